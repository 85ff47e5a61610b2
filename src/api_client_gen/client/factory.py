"""Client factory: builds implementations of declarative API interfaces.

An interface is a class whose public methods are decorated with request
markers. create_api() derives one OperationSpec per method, registers it in
an ApiClient dispatch table and returns an instance of a generated subclass
whose methods compile calls instead of running the interface bodies.
"""

import functools
import inspect
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Annotated, Any, TypeVar, get_args, get_origin, get_type_hints

from api_client_gen.compiler.descriptor import ApiCall, RequestDescriptor
from api_client_gen.compiler.request import compile_request
from api_client_gen.errors import ConfigurationError
from api_client_gen.schema.markers import Body, HeaderMap, Path, get_markers
from api_client_gen.schema.models import (
    BodyRole,
    ClientConfig,
    HeaderMapRole,
    OperationSpec,
    ParamSpec,
    PathRole,
)

logger = logging.getLogger(__name__)

I = TypeVar("I")

PARAM_MARKERS = (Path, HeaderMap, Body)

# Specs derived from decorated functions, keyed by function identity.
_spec_cache: dict[Any, OperationSpec] = {}


@dataclass(frozen=True)
class _Operation:
    spec: OperationSpec
    signature: inspect.Signature


class ApiClient:
    """Operation-name-keyed dispatch table sharing one ClientConfig."""

    def __init__(self, config: ClientConfig, operations: Iterable[OperationSpec] = ()):
        self.config = config
        self._operations: dict[str, _Operation] = {}
        for spec in operations:
            self.register(spec)

    @property
    def operations(self) -> Mapping[str, OperationSpec]:
        return MappingProxyType({name: op.spec for name, op in self._operations.items()})

    def register(self, spec: OperationSpec, signature: inspect.Signature | None = None) -> None:
        """Add an operation; its arguments are bound against `signature`.

        Without a signature every parameter becomes an optional
        positional-or-keyword argument in declaration order.
        """
        check_operation(spec)
        if signature is None:
            signature = _signature_for(spec)
        self._operations[spec.name] = _Operation(spec, signature)

    def compile(self, name: str, /, *args, **kwargs) -> RequestDescriptor:
        operation = self._operations.get(name)
        if operation is None:
            raise ConfigurationError(f"Unknown operation '{name}'")
        bound = operation.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return compile_request(operation.spec, self.config, bound.arguments)

    def invoke(self, name: str, /, *args, **kwargs) -> ApiCall:
        """Compile a call of operation `name` and wrap it in an ApiCall."""
        return ApiCall(self.compile(name, *args, **kwargs))


def create_api(interface: type[I], config: ClientConfig) -> I:
    """Build an implementation of `interface` bound to `config`.

    Every public method of the interface is an operation and must carry
    request metadata, otherwise ConfigurationError is raised here rather than
    on first call.
    """
    client = ApiClient(config)
    namespace: dict[str, Any] = {"_api_client": client}
    for name, func in interface_operations(interface):
        client.register(operation_spec(func), _method_signature(func))
        namespace[name] = _dispatcher(name, func)

    metaclass = type(interface)
    implementation = metaclass(f"{interface.__name__}Client", (interface,), namespace)
    logger.debug("Built %s with %d operation(s)", implementation.__name__, len(client.operations))
    return implementation()


def interface_operations(interface: type) -> list[tuple[str, Any]]:
    """Return (name, function) for every public plain method of an interface."""
    operations = []
    for name in dir(interface):
        if name.startswith("_"):
            continue
        attr = inspect.getattr_static(interface, name)
        if inspect.isfunction(attr):
            operations.append((name, attr))
    return operations


def operation_spec(func) -> OperationSpec:
    """Derive the OperationSpec of a decorated function, cached per function."""
    cached = _spec_cache.get(func)
    if cached is not None:
        return cached
    return _spec_cache.setdefault(func, _derive_spec(func))


def check_operation(spec: OperationSpec) -> None:
    """Reject specs the compiler could never compile."""
    if spec.request is None:
        raise ConfigurationError(f"No request metadata found on operation '{spec.name}'")
    header_maps = spec.params_with("header_map")
    if len(header_maps) > 1:
        names = ", ".join(p.name for p in header_maps)
        raise ConfigurationError(
            f"Operation '{spec.name}' declares more than one HeaderMap parameter: {names}"
        )


def _derive_spec(func) -> OperationSpec:
    markers = get_markers(func)
    if markers is None or markers.request is None:
        raise ConfigurationError(f"No request metadata found on operation '{func.__qualname__}'")

    try:
        hints = get_type_hints(func, include_extras=True)
    except (NameError, TypeError) as e:
        raise ConfigurationError(f"Cannot resolve annotations of '{func.__qualname__}': {e}") from e

    parameters = []
    for param in _method_signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation, role = _param_role(param.name, hints.get(param.name))
        parameters.append(ParamSpec(name=param.name, role=role, annotation=annotation))

    return OperationSpec(
        name=func.__name__,
        request=markers.request,
        headers=markers.headers,
        follow_redirects=markers.follow_redirects,
        parameters=tuple(parameters),
        response_type=hints.get("return"),
    )


def _param_role(name: str, annotation: Any):
    if get_origin(annotation) is not Annotated:
        return annotation, None

    base, *extras = get_args(annotation)
    found = []
    for extra in extras:
        if isinstance(extra, type) and issubclass(extra, PARAM_MARKERS):
            extra = extra()
        if isinstance(extra, PARAM_MARKERS):
            found.append(extra)
    if len(found) > 1:
        raise ConfigurationError(f"Parameter '{name}' has more than one role marker")
    if not found:
        return base, None

    marker = found[0]
    if isinstance(marker, Path):
        return base, PathRole(placeholder=marker.name or name)
    if isinstance(marker, HeaderMap):
        return base, HeaderMapRole()
    return base, BodyRole()


def _method_signature(func) -> inspect.Signature:
    # Drop `self`; the generated methods bind the remaining arguments.
    signature = inspect.signature(func)
    return signature.replace(parameters=list(signature.parameters.values())[1:])


def _signature_for(spec: OperationSpec) -> inspect.Signature:
    try:
        return inspect.Signature([
            inspect.Parameter(p.name, inspect.Parameter.POSITIONAL_OR_KEYWORD, default=None)
            for p in spec.parameters
        ])
    except ValueError as e:
        raise ConfigurationError(f"Invalid parameters on operation '{spec.name}': {e}") from e


def _dispatcher(name: str, func):
    @functools.wraps(func)
    def operation(self, *args, **kwargs):
        return self._api_client.invoke(name, *args, **kwargs)

    # wraps() copies __isabstractmethod__ from abstract interface methods
    operation.__dict__.pop("__isabstractmethod__", None)
    return operation
