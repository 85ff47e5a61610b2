"""Unified data models for operations and client configuration.

Decorated interfaces, YAML interface documents and OpenAPI documents are all
converted into these models before any request is compiled.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

HttpMethod = Literal["GET", "PUT", "POST", "PATCH", "DELETE"]

# Only these verbs ever carry a request body.
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Read-only after validation; dumps back to a plain dict.
FrozenStrMap = Annotated[
    Mapping[str, str],
    AfterValidator(lambda value: MappingProxyType(dict(value))),
    PlainSerializer(lambda value: dict(value), return_type=dict[str, str]),
]


class RequestLine(BaseModel):
    """Endpoint template and HTTP method of a single operation."""

    model_config = ConfigDict(frozen=True)

    endpoint: str  # /users/{user}/repos
    method: HttpMethod


class PathRole(BaseModel):
    """Binds the argument into every `{placeholder}` of the endpoint."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["path"] = "path"
    placeholder: str


class HeaderMapRole(BaseModel):
    """The argument is a str-to-str mapping of dynamic headers."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["header_map"] = "header_map"


class BodyRole(BaseModel):
    """The argument is a candidate request payload."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["body"] = "body"


ParamRole = Annotated[Union[PathRole, HeaderMapRole, BodyRole], Field(discriminator="kind")]


class ParamSpec(BaseModel):
    """A single formal parameter of an operation and its compile-time role."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    role: Optional[ParamRole] = None  # None: inert for compilation
    annotation: Any = None  # declared type, checked when selecting the body


class OperationSpec(BaseModel):
    """Everything the compiler needs to know about one operation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    request: RequestLine | None = None
    headers: tuple[str, ...] = ()  # "key:value" strings, in declaration order
    follow_redirects: bool | None = None
    parameters: tuple[ParamSpec, ...] = ()
    response_type: Any = None  # declared return annotation

    def params_with(self, kind: str) -> list[ParamSpec]:
        """Return the parameters whose role has the given kind, in order."""
        return [p for p in self.parameters if p.role is not None and p.role.kind == kind]


class BasicAuth(BaseModel):
    """Credentials for HTTP basic authentication."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str


class ProxySettings(BaseModel):
    """Proxy the execution layer should route requests through."""

    model_config = ConfigDict(frozen=True)

    url: str
    username: str | None = None
    password: str | None = None
    port: int | None = None


class ClientConfig(BaseModel):
    """Settings shared by every request compiled through one client."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    # appended to every URL, in order
    query_params: FrozenStrMap = Field(default_factory=dict, validate_default=True)
    auth: BasicAuth | None = None
    proxy: ProxySettings | None = None
    disable_tls_verification: bool = False
