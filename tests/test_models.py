import pytest
from pydantic import ValidationError

from api_client_gen.errors import ConfigurationError
from api_client_gen.schema.markers import (
    MARKER_ATTR,
    Path,
    follow_redirects,
    get,
    get_markers,
    headers,
    patch,
    put,
    request,
)
from api_client_gen.schema.models import (
    BodyRole,
    ClientConfig,
    HeaderMapRole,
    OperationSpec,
    ParamSpec,
    PathRole,
    ProxySettings,
    RequestLine,
)


class TestRequestLine:
    def test_create_request_line(self):
        line = RequestLine(endpoint="/api/users/{id}", method="DELETE")
        assert line.method == "DELETE"

    def test_unknown_method_rejected(self):
        with pytest.raises(ValidationError):
            RequestLine(endpoint="/x", method="TRACE")


class TestParamSpec:
    def test_inert_param(self):
        p = ParamSpec(name="trace_id")
        assert p.role is None
        assert p.annotation is None

    def test_role_from_tagged_dict(self):
        p = ParamSpec.model_validate({"name": "id", "role": {"kind": "path", "placeholder": "userId"}})
        assert p.role == PathRole(placeholder="userId")

    def test_unknown_role_kind_rejected(self):
        with pytest.raises(ValidationError):
            ParamSpec.model_validate({"name": "x", "role": {"kind": "query"}})


class TestOperationSpec:
    def test_params_with_kind(self):
        spec = OperationSpec(
            name="create",
            request=RequestLine(endpoint="/users/{id}", method="POST"),
            parameters=(
                ParamSpec(name="id", role=PathRole(placeholder="id")),
                ParamSpec(name="extra", role=HeaderMapRole()),
                ParamSpec(name="user", role=BodyRole()),
                ParamSpec(name="note"),
            ),
        )
        assert [p.name for p in spec.params_with("path")] == ["id"]
        assert [p.name for p in spec.params_with("body")] == ["user"]
        assert [p.name for p in spec.params_with("header_map")] == ["extra"]

    def test_spec_is_frozen(self):
        spec = OperationSpec(name="x")
        with pytest.raises(ValidationError):
            spec.name = "y"


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig(base_url="https://api.example.com")
        assert config.query_params == {}
        assert config.auth is None
        assert config.proxy is None
        assert config.disable_tls_verification is False

    def test_query_params_keep_insertion_order(self):
        config = ClientConfig(base_url="https://h", query_params={"z": "1", "a": "2"})
        assert list(config.query_params) == ["z", "a"]

    def test_query_params_read_only_but_dump_as_dict(self):
        config = ClientConfig(base_url="https://h", query_params={"k": "v"})
        with pytest.raises(TypeError):
            config.query_params["k"] = "w"
        assert config.model_dump(mode="json")["query_params"] == {"k": "v"}
        assert type(config.model_dump()["query_params"]) is dict

    def test_proxy_port_coerced(self):
        proxy = ProxySettings.model_validate({"url": "proxy.local", "port": "8080"})
        assert proxy.port == 8080


class TestMarkers:
    def test_undecorated_function_has_no_markers(self):
        def op(self): ...

        assert get_markers(op) is None

    def test_request_decorator_does_not_wrap(self):
        def op(self): ...

        decorated = request("/users", "post")(op)
        assert decorated is op
        assert getattr(op, MARKER_ATTR).request == RequestLine(endpoint="/users", method="POST")

    def test_shorthands(self):
        @put("/a")
        def a(self): ...

        @patch("/b")
        def b(self): ...

        @get("/c")
        def c(self): ...

        assert get_markers(a).request.method == "PUT"
        assert get_markers(b).request.method == "PATCH"
        assert get_markers(c).request.method == "GET"

    def test_stacked_headers_keep_top_to_bottom_order(self):
        @get("/h")
        @headers("x-first:1")
        @headers("x-second:2", "x-third:3")
        def op(self): ...

        assert get_markers(op).headers == ("x-first:1", "x-second:2", "x-third:3")

    def test_follow_redirects(self):
        @follow_redirects()
        @get("/r")
        def op(self): ...

        assert get_markers(op).follow_redirects is True

    def test_path_marker_default_name(self):
        assert Path().name is None
        assert Path("user").name == "user"

    def test_unsupported_method_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="Invalid request metadata"):
            request("/x", "TRACE")
