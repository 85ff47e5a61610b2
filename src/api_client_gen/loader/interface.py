"""YAML interface document parser.

An interface document declares operations without any Python code:

    client:
      base_url: https://api.example.com
    operations:
      list_repos:
        request: {endpoint: "/users/{user}/repos", method: GET}
        headers: ["Accept:application/json"]
        parameters:
          - {name: user, role: path}
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from api_client_gen.errors import ConfigurationError
from api_client_gen.schema.models import (
    BodyRole,
    HeaderMapRole,
    OperationSpec,
    ParamSpec,
    PathRole,
    RequestLine,
)


def parse_interface(file_path: Path) -> list[OperationSpec]:
    """Parse a YAML interface document into a list of OperationSpec."""
    text = file_path.read_text(encoding="utf-8")
    try:
        doc = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid document {file_path}: {e}") from e
    if not isinstance(doc, dict):
        raise ConfigurationError(f"Invalid document {file_path}: expected a mapping at top level")

    operations = doc.get("operations") or {}
    if not isinstance(operations, dict):
        raise ConfigurationError(f"'operations' in {file_path} must be a mapping")

    return [_parse_operation(name, op or {}) for name, op in operations.items()]


def _parse_operation(name: str, op: dict) -> OperationSpec:
    request = op.get("request")
    try:
        return OperationSpec(
            name=name,
            request=RequestLine(
                endpoint=request["endpoint"],
                method=str(request.get("method", "GET")).upper(),
            ) if request else None,
            headers=tuple(op.get("headers", [])),
            follow_redirects=op.get("follow_redirects"),
            parameters=tuple(_parse_parameter(name, p) for p in op.get("parameters", [])),
        )
    except (KeyError, ValidationError) as e:
        raise ConfigurationError(f"Invalid operation '{name}': {e}") from e


def _parse_parameter(operation: str, p: dict) -> ParamSpec:
    role = p.get("role")
    if role == "path":
        parsed_role = PathRole(placeholder=p.get("placeholder", p["name"]))
    elif role == "header_map":
        parsed_role = HeaderMapRole()
    elif role == "body":
        parsed_role = BodyRole()
    elif role is None:
        parsed_role = None
    else:
        raise ConfigurationError(f"Unknown role '{role}' for parameter of operation '{operation}'")
    return ParamSpec(name=p["name"], role=parsed_role)
