"""Tests for perch.router — schema-aware registration and dispatch."""

from dataclasses import dataclass

import pytest

from perch.config import RouterConfig
from perch.dispatch.request import Request
from perch.dispatch.route import RouteHandle
from perch.errors import ConfigurationError, MalformedPath, NotFound, SchemaDeclarationError
from perch.router import Router
from perch.schema.model import ParameterSchema

METHODS = ["get", "post", "put", "delete", "patch", "head", "options", "trace"]


def hello(request: Request, next) -> str:  # noqa: A002
    return "hello, world"


def params(request: Request, next) -> dict:  # noqa: A002
    return dict(request.params)


async def passthrough(request: Request, next) -> object:  # noqa: A002
    return await next()


@dataclass
class _Shape:
    data_type: str


@dataclass
class _Record:
    name: str
    required: bool
    schema: _Shape


class TestRegistration:
    def test_verbs_are_chainable(self) -> None:
        router = Router()
        assert router.all("/", hello) is router
        assert router.get("/", hello) is router

    def test_route_returns_handle(self) -> None:
        handle = Router().route("/items")
        assert isinstance(handle, RouteHandle)

    def test_missing_handler(self) -> None:
        with pytest.raises(ConfigurationError):
            Router().get("/foo")

    def test_bad_schema_fails_at_registration(self) -> None:
        with pytest.raises(SchemaDeclarationError):
            Router().get("/{id}", {"id": {"type": "integer", "minLength": -1}}, hello)

    def test_bad_record_fails_at_registration(self) -> None:
        with pytest.raises(SchemaDeclarationError):
            Router().use("/{id}", [{"required": True}], hello)

    def test_bad_template_fails_at_registration(self) -> None:
        with pytest.raises(ConfigurationError):
            Router().get("/{id", hello)

    def test_parameters_accumulate(self) -> None:
        router = Router()
        router.use("/{id}", {"id": {"type": "integer"}}, passthrough)
        router.get("/{slug}", {"slug": {"pattern": "^[a-z]+$"}}, hello)
        assert set(router.parameters) == {"id", "slug"}
        assert router.parameters["id"].types == ("integer",)

    def test_redeclaration_replaces_record(self) -> None:
        router = Router()
        router.use("/{id}", {"id": {"type": "integer", "minimum": 5}}, passthrough)
        router.get("/{id}", {"id": {"type": "string"}}, hello)
        assert router.parameters["id"] == ParameterSchema(name="id", types=("string",))

    def test_parameters_replaced_not_mutated(self) -> None:
        router = Router()
        router.use("/{id}", {"id": {"type": "integer"}}, passthrough)
        before = router.parameters
        router.get("/{slug}", {"slug": "string"}, hello)
        assert router.parameters is not before
        assert set(before) == {"id"}

    def test_initial_parameters_from_config(self) -> None:
        router = Router(RouterConfig(parameters={"id": {"type": "integer"}}))
        assert router.parameters["id"].types == ("integer",)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_all_responds_to_every_method(self) -> None:
        router = Router()
        router.all("/", hello)
        for method in METHODS:
            assert await router.dispatch(Request(method, "/")) == "hello, world"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", METHODS)
    async def test_verb(self, method: str) -> None:
        router = Router()
        getattr(router, method)("/foo", hello)
        assert await router.dispatch(Request(method, "/foo")) == "hello, world"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", METHODS)
    async def test_verb_accepts_list(self, method: str) -> None:
        router = Router()
        getattr(router, method)("/foo", [hello])
        assert await router.dispatch(Request(method, "/foo")) == "hello, world"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", METHODS)
    async def test_verb_with_schema(self, method: str) -> None:
        router = Router()
        getattr(router, method)("/{id}", {"id": {"type": "number"}}, params)
        result = await router.dispatch(Request(method, "/123"))
        assert result == {"id": 123}
        assert isinstance(result["id"], int | float)

    @pytest.mark.asyncio
    async def test_wrong_method_is_not_found(self) -> None:
        router = Router()
        router.get("/foo", hello)
        with pytest.raises(NotFound):
            await router.dispatch(Request("POST", "/foo"))

    @pytest.mark.asyncio
    async def test_many_routes_miss(self) -> None:
        router = Router()
        for i in range(6000):
            router.get(f"/thing{i}", hello)
        with pytest.raises(NotFound):
            await router.dispatch(Request("GET", "/nothing"))

    @pytest.mark.asyncio
    async def test_many_routes_hit_last(self) -> None:
        router = Router()
        for i in range(6000):
            router.get(f"/thing{i}", hello)
        router.get("/", lambda request, next: "root")
        assert await router.dispatch(Request("GET", "/")) == "root"


class TestUse:
    @pytest.mark.asyncio
    async def test_middleware_without_path(self) -> None:
        router = Router()
        router.use(lambda request, next: request.path)
        assert await router.dispatch(Request("GET", "/foo")) == "/foo"

    @pytest.mark.asyncio
    async def test_middleware_list(self) -> None:
        router = Router()
        router.use([lambda request, next: request.path])
        assert await router.dispatch(Request("GET", "/foo")) == "/foo"

    @pytest.mark.asyncio
    async def test_path_is_stripped(self) -> None:
        router = Router()
        router.use("/foo", lambda request, next: request.path)
        assert await router.dispatch(Request("GET", "/foo")) == "/"

    @pytest.mark.asyncio
    async def test_path_and_enum_schema(self) -> None:
        router = Router()
        router.use("/{path}", {"path": {"type": "string", "enum": ["foo", "bar"]}}, params)
        assert await router.dispatch(Request("GET", "/bar")) == {"path": "bar"}
        with pytest.raises(NotFound):
            await router.dispatch(Request("GET", "/baz"))

    @pytest.mark.asyncio
    async def test_record_schema(self) -> None:
        records = [_Record(name="id", required=True, schema=_Shape("http://www.w3.org/2001/XMLSchema#integer"))]
        router = Router()
        router.use("/{id}", records, params)
        assert await router.dispatch(Request("GET", "/41")) == {"id": 41}


class TestSchemaScenarios:
    @pytest.mark.asyncio
    async def test_integer_param(self) -> None:
        router = Router()
        router.get("/{id}", {"id": {"type": "integer"}}, params)
        assert await router.dispatch(Request("GET", "/123")) == {"id": 123}
        with pytest.raises(NotFound):
            await router.dispatch(Request("GET", "/abc"))

    @pytest.mark.asyncio
    async def test_reuse_of_uri_parameters(self) -> None:
        router = Router()
        router.use("/{id}", {"id": {"type": "number"}}, passthrough)
        router.use("/{id}", params)
        assert await router.dispatch(Request("GET", "/12345")) == {"id": 12345}
        with pytest.raises(NotFound):
            await router.dispatch(Request("GET", "/abc"))

    @pytest.mark.asyncio
    async def test_same_path_different_schemas(self) -> None:
        router = Router()
        router.get("/{id}", {"id": {"type": "integer"}}, lambda request, next: "by id")
        router.get("/{id}", {"id": {"type": "string"}}, lambda request, next: "by name")
        assert await router.dispatch(Request("GET", "/5")) == "by id"
        assert await router.dispatch(Request("GET", "/five")) == "by name"

    @pytest.mark.asyncio
    async def test_nested_router_inherits(self) -> None:
        parent = Router()
        parent.use("/{id}", {"id": {"type": "integer"}}, passthrough)
        child = parent.child()
        child.get("/{id}", params)
        parent.use("/items", child)

        assert await parent.dispatch(Request("GET", "/items/7")) == {"id": 7}
        with pytest.raises(NotFound):
            await parent.dispatch(Request("GET", "/items/seven"))

    @pytest.mark.asyncio
    async def test_child_may_extend(self) -> None:
        parent = Router(RouterConfig(parameters={"id": {"type": "integer"}}))
        child = parent.child(parameters={"slug": {"enum": ["a", "b"]}})
        assert set(child.parameters) == {"id", "slug"}
        child.get("/{id}/{slug}", params)
        assert await child.dispatch(Request("GET", "/1/a")) == {"id": 1, "slug": "a"}

    @pytest.mark.asyncio
    async def test_nested_params_merge(self) -> None:
        child = Router()
        child.get("/posts/{post}", {"post": {"type": "integer"}}, params)
        parent = Router()
        parent.use("/users/{user}", child)
        result = await parent.dispatch(Request("GET", "/users/ann/posts/3"))
        assert result == {"user": "ann", "post": 3}

    @pytest.mark.asyncio
    async def test_nested_fallthrough(self) -> None:
        child = Router()
        child.get("/known", hello)
        parent = Router()
        parent.use("/api", child)
        parent.get("/api/other", lambda request, next: "parent")
        assert await parent.dispatch(Request("GET", "/api/known")) == "hello, world"
        assert await parent.dispatch(Request("GET", "/api/other")) == "parent"


class TestOptions:
    @pytest.mark.asyncio
    async def test_case_sensitive(self) -> None:
        router = Router(RouterConfig(case_sensitive=True))
        router.get("/Foo", hello)
        with pytest.raises(NotFound):
            await router.dispatch(Request("GET", "/foo"))

    @pytest.mark.asyncio
    async def test_strict(self) -> None:
        router = Router(RouterConfig(strict=True))
        router.get("/foo", hello)
        with pytest.raises(NotFound):
            await router.dispatch(Request("GET", "/foo/"))

    @pytest.mark.asyncio
    async def test_child_inherits_options(self) -> None:
        child = Router(RouterConfig(strict=True)).child()
        assert child.config.strict is True


class TestMalformedInput:
    @pytest.mark.asyncio
    async def test_invalid_decode(self) -> None:
        router = Router()
        router.get("/{id}", {"id": {"type": "string"}}, passthrough, hello)
        with pytest.raises(MalformedPath) as exc_info:
            await router.dispatch(Request("GET", "/foo%d"))
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    async def test_independent_of_template(self) -> None:
        router = Router()
        router.get("/unrelated", hello)
        with pytest.raises(MalformedPath):
            await router.dispatch(Request("GET", "/x%d/y"))

    @pytest.mark.asyncio
    async def test_propagates_through_nested_routers(self) -> None:
        child = Router()
        child.get("/{id}", hello)
        parent = Router()
        parent.use("/", child)
        parent.get("/{id}", lambda request, next: "unreachable")
        with pytest.raises(MalformedPath):
            await parent.dispatch(Request("GET", "/%zz"))
