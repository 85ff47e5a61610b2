"""Request compiler: turns one operation call into a RequestDescriptor.

Compilation is a pure function of the operation spec, the shared client
configuration and the call's bound arguments. It never performs I/O.
"""

import logging
import re
from collections.abc import Mapping
from types import UnionType
from typing import Any, Generic, Union, get_args, get_origin
from urllib.parse import urlencode

from api_client_gen.compiler.descriptor import RequestDescriptor
from api_client_gen.errors import (
    ConfigurationError,
    HeaderArgumentTypeError,
    MalformedHeaderError,
    UnresolvedPathVariableError,
)
from api_client_gen.schema.models import BODY_METHODS, ClientConfig, OperationSpec

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")


def compile_request(
    spec: OperationSpec, config: ClientConfig, arguments: Mapping[str, Any]
) -> RequestDescriptor:
    """Compile a call of `spec` with the given bound arguments.

    `arguments` maps parameter names to the values of this call. The
    descriptor is only built once every step has succeeded.
    """
    if spec.request is None:
        raise ConfigurationError(f"No request metadata found on operation '{spec.name}'")

    # Static headers come first so a malformed one fails before any URL work.
    static_headers = parse_static_headers(spec.headers)

    template = spec.request.endpoint
    url = join_url(config.base_url, template)
    url = substitute_path(url, template, _path_values(spec, arguments))
    url = append_query(url, config.query_params)
    logger.debug("Final URL for '%s': %s", spec.name, url)

    headers = merge_headers(static_headers, _dynamic_headers(spec, arguments))

    return RequestDescriptor(
        url=url,
        method=spec.request.method,
        headers=headers,
        body=resolve_body(spec, arguments),
        auth=config.auth,
        proxy=config.proxy,
        disable_tls_verification=config.disable_tls_verification,
        follow_redirects=spec.follow_redirects,
        response_type=response_type_token(spec.response_type),
    )


def join_url(base_url: str, endpoint: str) -> str:
    """Concatenate base URL and endpoint, collapsing a doubled slash at the seam."""
    if base_url.endswith("/") and endpoint.startswith("/"):
        return base_url + endpoint[1:]
    return base_url + endpoint


def substitute_path(url: str, template: str, values: list[tuple[str, Any]]) -> str:
    """Replace every `{placeholder}` occurrence with its stringified value.

    Each search resumes after the text just inserted, so a value containing
    braces is never scanned again. Raises UnresolvedPathVariableError if a
    placeholder of `template` has no value.
    """
    resolved = set()
    for placeholder, value in values:
        token = "{" + placeholder + "}"
        replacement = str(value)
        start = url.find(token)
        while start != -1:
            url = url[:start] + replacement + url[start + len(token):]
            start = url.find(token, start + len(replacement))
        resolved.add(placeholder)

    missing = [
        name for name in dict.fromkeys(PLACEHOLDER_PATTERN.findall(template))
        if name not in resolved
    ]
    if missing:
        raise UnresolvedPathVariableError(template, missing)
    return url


def append_query(url: str, params: Mapping[str, str]) -> str:
    """Append percent-encoded query parameters in mapping order."""
    if not params:
        return url
    separator = "&" if "?" in url else "?"
    return url + separator + urlencode(list(params.items()))


def parse_static_headers(headers: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Split each "key:value" string on its first colon."""
    result: dict[str, str] = {}
    for header in headers:
        key, sep, value = header.partition(":")
        if not sep or not key.strip():
            raise MalformedHeaderError(header)
        result[key.strip()] = value.strip()
    if result:
        logger.debug("Request headers from method: %s", result)
    return result


def merge_headers(static: Mapping[str, str], dynamic: Mapping[str, str]) -> dict[str, str]:
    """Merge dynamic headers over static ones; dynamic wins on collision."""
    merged = dict(static)
    merged.update(dynamic)
    return merged


def resolve_body(spec: OperationSpec, arguments: Mapping[str, Any]) -> Any:
    """Pick the payload for POST, PUT and PATCH; always None for other verbs.

    Body parameters are tried in declaration order. The first one whose
    argument is supplied and matches its declared type wins.
    """
    body_params = spec.params_with("body")
    if spec.request.method not in BODY_METHODS:
        ignored = [p.name for p in body_params if arguments.get(p.name) is not None]
        if ignored:
            logger.warning(
                "Ignoring body argument(s) %s on %s operation '%s'",
                ignored, spec.request.method, spec.name,
            )
        return None

    for param in body_params:
        value = arguments.get(param.name)
        if value is None:
            continue
        if _matches_type(value, param.annotation):
            logger.debug("Request body taken from parameter '%s'", param.name)
            return value
        logger.debug(
            "Skipping body parameter '%s': %s does not match %r",
            param.name, type(value).__name__, param.annotation,
        )
    return None


def response_type_token(annotation: Any) -> Any:
    """Derive the response-type token from a declared return annotation.

    A parameterized user generic such as ApiCall[Repo] yields its type
    argument; builtin containers like list[Repo] are kept whole.
    """
    if annotation is None:
        return None
    origin = get_origin(annotation)
    args = get_args(annotation)
    if args and isinstance(origin, type) and issubclass(origin, Generic):
        return args[-1]
    return annotation


def _path_values(spec: OperationSpec, arguments: Mapping[str, Any]) -> list[tuple[str, Any]]:
    values = []
    for param in spec.params_with("path"):
        value = arguments.get(param.name)
        if value is not None:
            values.append((param.role.placeholder, value))
    return values


def _dynamic_headers(spec: OperationSpec, arguments: Mapping[str, Any]) -> dict[str, str]:
    params = spec.params_with("header_map")
    if not params:
        return {}
    param = params[0]
    value = arguments.get(param.name)
    if value is None:
        return {}
    if not isinstance(value, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        logger.error("Unable to read header parameter '%s' of type %s", param.name, type(value).__name__)
        raise HeaderArgumentTypeError(param.name, type(value))
    logger.debug("Request headers from params: %s", dict(value))
    return dict(value)


def _matches_type(value: Any, annotation: Any) -> bool:
    if annotation is None or annotation is Any:
        return True
    origin = get_origin(annotation)
    if origin is Union or origin is UnionType:
        return any(_matches_type(value, arg) for arg in get_args(annotation))
    target = origin or annotation
    if isinstance(target, type):
        return isinstance(value, target)
    return True
