"""OpenAPI / Swagger document importer.

Turns every path+method of an OpenAPI 3.x or Swagger 2.0 document into an
OperationSpec: path parameters become path substitutions, header parameters
collapse into one `headers` map and a request body becomes a `body` parameter.
"""

import re
from pathlib import Path

import yaml

from api_client_gen.errors import ConfigurationError
from api_client_gen.schema.models import (
    BodyRole,
    HeaderMapRole,
    OperationSpec,
    ParamSpec,
    PathRole,
    RequestLine,
)

METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")


def parse_openapi(file_path: Path) -> list[OperationSpec]:
    """Parse an OpenAPI/Swagger file into a list of OperationSpec."""
    text = file_path.read_text(encoding="utf-8")
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid document {file_path}: {e}") from e
    if not isinstance(doc, dict):
        raise ConfigurationError(f"Invalid document {file_path}: expected a mapping at top level")

    operations = []
    paths = doc.get("paths", {})

    for path, methods in paths.items():
        shared = methods.get("parameters", [])
        for method, operation in methods.items():
            if method.upper() not in METHODS:
                continue

            params = _parse_parameters(_merge_parameters(shared, operation.get("parameters", [])))
            if _has_body(operation):
                params.append(ParamSpec(name="body", role=BodyRole()))

            operations.append(
                OperationSpec(
                    name=_operation_name(method, path, operation),
                    request=RequestLine(endpoint=path, method=method.upper()),
                    headers=_accept_header(operation),
                    parameters=tuple(params),
                )
            )

    return operations


def _merge_parameters(shared: list[dict], own: list[dict]) -> list[dict]:
    # An operation parameter overrides a path-level one with the same name and location
    merged = {(p.get("name"), p.get("in", "query")): p for p in shared}
    for p in own:
        merged[(p.get("name"), p.get("in", "query"))] = p
    return list(merged.values())


def _parse_parameters(params: list[dict]) -> list[ParamSpec]:
    result = []
    has_headers = False
    for p in params:
        location = p.get("in", "query")
        if location == "path":
            result.append(ParamSpec(name=_identifier(p["name"]), role=PathRole(placeholder=p["name"])))
        elif location == "header":
            has_headers = True
        elif location == "body":
            # Swagger 2.0 keeps the payload among the parameters
            result.append(ParamSpec(name="body", role=BodyRole()))
    if has_headers:
        result.append(ParamSpec(name="headers", role=HeaderMapRole()))
    return result


def _has_body(operation: dict) -> bool:
    return bool(operation.get("requestBody", {}).get("content"))


def _accept_header(operation: dict) -> tuple[str, ...]:
    for resp in operation.get("responses", {}).values():
        content = resp.get("content", {}) if isinstance(resp, dict) else {}
        if "application/json" in content:
            return ("Accept:application/json",)
    return ()


def _operation_name(method: str, path: str, operation: dict) -> str:
    if operation.get("operationId"):
        return _identifier(operation["operationId"])
    return _identifier(f"{method.lower()}{path}")


def _identifier(text: str) -> str:
    name = re.sub(r"\W+", "_", text).strip("_")
    if not name or name[0].isdigit():
        name = f"_{name}"
    return name
