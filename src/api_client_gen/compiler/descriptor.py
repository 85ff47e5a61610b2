"""Compiled request descriptors and the call handle returned by operations."""

from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from api_client_gen.schema.models import BasicAuth, FrozenStrMap, HttpMethod, ProxySettings

T = TypeVar("T")


class RequestDescriptor(BaseModel):
    """A fully resolved HTTP request, ready for an execution layer."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    url: str
    method: HttpMethod
    headers: FrozenStrMap = Field(default_factory=dict, validate_default=True)
    body: Any = None
    auth: BasicAuth | None = None
    proxy: ProxySettings | None = None
    disable_tls_verification: bool = False
    follow_redirects: bool | None = None  # None: the transport's default applies
    response_type: Any = None  # opaque token for decoding the response


class CallExecutor(Protocol):
    """Anything that can issue a described request and decode its response."""

    def execute(self, request: RequestDescriptor, response_type: Any) -> Any: ...


class ApiCall(Generic[T]):
    """Handle returned by every generated operation.

    Holds the compiled descriptor; nothing is sent until execute() hands it
    to an executor.
    """

    def __init__(self, request: RequestDescriptor):
        self._request = request

    @property
    def request(self) -> RequestDescriptor:
        return self._request

    @property
    def response_type(self) -> Any:
        return self._request.response_type

    def execute(self, executor: CallExecutor) -> T:
        return executor.execute(self._request, self._request.response_type)

    def __repr__(self) -> str:
        return f"ApiCall({self._request.method} {self._request.url})"
