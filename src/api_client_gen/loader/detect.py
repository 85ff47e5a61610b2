"""Auto-detect the format of an operation document."""

import json
from pathlib import Path

import yaml

from api_client_gen.errors import ConfigurationError
from api_client_gen.loader.interface import parse_interface
from api_client_gen.loader.openapi import parse_openapi


def detect_format(file_path: Path) -> str:
    """Detect the format of an operation document.

    Returns: 'openapi', 'interface', or 'unknown'.
    """
    text = file_path.read_text(encoding="utf-8")

    # YAML is a superset of JSON, but keep a JSON fallback for files YAML rejects
    for load in (yaml.safe_load, json.loads):
        try:
            data = load(text)
        except (yaml.YAMLError, json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, dict):
            if "openapi" in data or "swagger" in data:
                return "openapi"
            if "operations" in data:
                return "interface"

    return "unknown"


def load_operations(file_path: Path, fmt: str = "auto"):
    """Parse an operation document in the given (or detected) format."""
    if fmt == "auto":
        fmt = detect_format(file_path)

    if fmt == "openapi":
        return parse_openapi(file_path)
    elif fmt == "interface":
        return parse_interface(file_path)
    else:
        raise ConfigurationError(f"Unrecognized operation document: {file_path}")
