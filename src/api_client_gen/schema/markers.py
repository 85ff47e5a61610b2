"""Declarative markers for API interfaces.

Operations are methods on an interface class tagged with decorators, and
parameters are tagged through ``typing.Annotated`` metadata::

    class GithubApi:
        @get("/users/{user}/repos")
        @headers("Accept:application/vnd.github+json")
        def list_repos(self, user: Annotated[str, Path()]) -> ApiCall[list[Repo]]:
            ...

The decorators only attach data to the function; they never wrap it.
"""

from dataclasses import dataclass

from pydantic import ValidationError

from api_client_gen.errors import ConfigurationError
from api_client_gen.schema.models import RequestLine

MARKER_ATTR = "__api_request__"


@dataclass
class OperationMarkers:
    """Operation-level metadata collected from decorators."""

    request: RequestLine | None = None
    headers: tuple[str, ...] = ()
    follow_redirects: bool | None = None


@dataclass(frozen=True)
class Path:
    """Substitute the argument into `{name}`; name defaults to the parameter name."""

    name: str | None = None


@dataclass(frozen=True)
class HeaderMap:
    """The argument is a mapping of headers merged over the static ones."""


@dataclass(frozen=True)
class Body:
    """The argument is the request payload for POST, PUT and PATCH."""


def get_markers(func) -> OperationMarkers | None:
    """Return the markers attached to func, or None if it was never decorated."""
    return getattr(func, MARKER_ATTR, None)


def _markers(func) -> OperationMarkers:
    markers = func.__dict__.get(MARKER_ATTR)
    if markers is None:
        markers = OperationMarkers()
        setattr(func, MARKER_ATTR, markers)
    return markers


def request(endpoint: str, method: str = "GET"):
    """Declare the endpoint template and HTTP method of an operation."""
    try:
        line = RequestLine(endpoint=endpoint, method=method.upper())
    except ValidationError as e:
        raise ConfigurationError(f"Invalid request metadata for '{endpoint}': {e}") from e

    def decorator(func):
        _markers(func).request = line
        return func

    return decorator


def get(endpoint: str):
    return request(endpoint, "GET")


def post(endpoint: str):
    return request(endpoint, "POST")


def put(endpoint: str):
    return request(endpoint, "PUT")


def patch(endpoint: str):
    return request(endpoint, "PATCH")


def delete(endpoint: str):
    return request(endpoint, "DELETE")


def headers(*values: str):
    """Attach static "key:value" headers to an operation.

    Stacked decorators keep top-to-bottom order.
    """

    def decorator(func):
        markers = _markers(func)
        markers.headers = tuple(values) + markers.headers
        return func

    return decorator


def follow_redirects(value: bool = True):
    """Override the transport's default redirect policy for an operation."""

    def decorator(func):
        _markers(func).follow_redirects = value
        return func

    return decorator
