"""Exception classes raised while building clients and compiling requests.

Every error is raised synchronously from the generated operation (or from
the factory) and derives from ApiClientError, so callers can catch all
compilation failures with a single except clause.
"""


class ApiClientError(Exception):
    """Base exception for all api-client-gen errors."""

    pass


class ConfigurationError(ApiClientError):
    """Raised when an operation or client is declared incorrectly.

    Examples: an operation without request metadata, two header-map
    parameters on one operation, or an unknown operation name.
    """

    pass


class UnresolvedPathVariableError(ApiClientError):
    """Raised when an endpoint template keeps a placeholder after substitution.

    Attributes:
        template: The endpoint template that could not be resolved.
        missing: Placeholder names that had no bound path argument.
    """

    def __init__(self, template: str, missing: list[str]):
        names = ", ".join(f"{{{name}}}" for name in missing)
        super().__init__(
            f"Undeclared path variable(s) {names} in endpoint '{template}'; "
            "declare them as Path parameters on the operation"
        )
        self.template = template
        self.missing = missing


class MalformedHeaderError(ApiClientError):
    """Raised when a static header is not in '<key>:<value>' form.

    Attributes:
        header: The offending header string.
    """

    def __init__(self, header: str):
        super().__init__(
            f"Header data invalid, expected '<key>:<value>' format: {header!r}"
        )
        self.header = header


class HeaderArgumentTypeError(ApiClientError):
    """Raised when a header-map argument is not a str-to-str mapping.

    Attributes:
        parameter: Name of the header-map parameter.
        actual_type: Type of the value that was passed.
    """

    def __init__(self, parameter: str, actual_type: type):
        super().__init__(
            f"Header parameter '{parameter}' should be passed as Mapping[str, str], "
            f"got {actual_type.__name__}"
        )
        self.parameter = parameter
        self.actual_type = actual_type
