"""Tests for perch.dispatch.engine — layer walking and next() chaining."""

import logging

import pytest

from perch.dispatch.engine import Engine, Stack
from perch.dispatch.request import Request
from perch.dispatch.route import RouteHandle
from perch.errors import MalformedPath, NotFound
from perch.routing.matcher import compile_template
from perch.schema.model import normalize


def _prefix(template: str, schema: object = None):
    return compile_template(template, normalize(schema), anchor="prefix")


def _exact(template: str, schema: object = None):
    return compile_template(template, normalize(schema), anchor="exact")


class TestProtocol:
    def test_stack_is_an_engine(self) -> None:
        engine: Engine = Stack()
        assert len(engine.layers) == 0  # type: ignore[attr-defined]


class TestDispatch:
    @pytest.mark.asyncio
    async def test_first_matching_layer_wins(self) -> None:
        stack = Stack()
        stack.register_exact(_exact("/a"), RouteHandle("/a").get(lambda request, next: "a"))
        stack.register_exact(_exact("/b"), RouteHandle("/b").get(lambda request, next: "b"))
        assert await stack.dispatch(Request("GET", "/b")) == "b"

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        stack = Stack()
        stack.register_exact(_exact("/a"), RouteHandle("/a").get(lambda request, next: "a"))
        with pytest.raises(NotFound):
            await stack.dispatch(Request("GET", "/missing"))

    @pytest.mark.asyncio
    async def test_done_instead_of_not_found(self) -> None:
        stack = Stack()
        result = await stack.dispatch(Request("GET", "/missing"), lambda request: f"done {request.url}")
        assert result == "done /missing"

    @pytest.mark.asyncio
    async def test_unhandled_method_falls_through(self) -> None:
        stack = Stack()
        stack.register_exact(_exact("/a"), RouteHandle("/a").post(lambda request, next: "post"))
        stack.register_exact(_exact("/a"), RouteHandle("/a").get(lambda request, next: "get"))
        assert await stack.dispatch(Request("GET", "/a")) == "get"

    @pytest.mark.asyncio
    async def test_mount_sees_remainder(self) -> None:
        stack = Stack()
        stack.register_prefix(_prefix("/api"), lambda request, next: (request.path, request.base_path))
        assert await stack.dispatch(Request("GET", "/api/users")) == ("/users", "/api")

    @pytest.mark.asyncio
    async def test_mount_at_exact_prefix_sees_root(self) -> None:
        stack = Stack()
        stack.register_prefix(_prefix("/foo"), lambda request, next: request.path)
        assert await stack.dispatch(Request("GET", "/foo")) == "/"

    @pytest.mark.asyncio
    async def test_next_restores_outer_path(self) -> None:
        seen: list[str] = []

        async def mounted(request: Request, next) -> object:  # noqa: A002
            seen.append(request.path)
            return await next(request)

        stack = Stack()
        stack.register_prefix(_prefix("/api"), mounted)
        stack.register_exact(_exact("/api/users"), RouteHandle("/api/users").get(lambda request, next: request.path))
        assert await stack.dispatch(Request("GET", "/api/users")) == "/api/users"
        assert seen == ["/users"]

    @pytest.mark.asyncio
    async def test_params_merge_with_outer(self) -> None:
        stack = Stack()
        stack.register_exact(
            _exact("/{id}", {"id": {"type": "integer"}}),
            RouteHandle("/{id}").get(lambda request, next: dict(request.params)),
        )
        request = Request("GET", "/7", params={"tenant": "acme"})
        assert await stack.dispatch(request) == {"tenant": "acme", "id": 7}

    @pytest.mark.asyncio
    async def test_state_is_shared(self) -> None:
        async def mark(request: Request, next) -> object:  # noqa: A002
            request.state["marked"] = True
            return await next()

        stack = Stack()
        stack.register_prefix(_prefix("/"), mark)
        stack.register_exact(_exact("/x"), RouteHandle("/x").get(lambda request, next: request.state["marked"]))
        assert await stack.dispatch(Request("GET", "/x")) is True

    @pytest.mark.asyncio
    async def test_malformed_path_short_circuits(self, caplog: pytest.LogCaptureFixture) -> None:
        calls: list[str] = []
        stack = Stack()
        stack.register_exact(_exact("/other"), RouteHandle("/other").get(lambda request, next: calls.append("x")))
        caplog.set_level(logging.WARNING, logger="perch.dispatch")
        with pytest.raises(MalformedPath):
            await stack.dispatch(Request("GET", "/foo%d"), lambda request: "done")
        assert calls == []
        warnings = [
            record
            for record in caplog.records
            if record.name == "perch.dispatch" and record.levelno == logging.WARNING
        ]
        assert len(warnings) == 1
        assert "Malformed" in warnings[0].getMessage()
        assert "/foo%d" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_many_layers_no_stack_growth(self) -> None:
        stack = Stack()
        for i in range(6000):
            stack.register_exact(_exact(f"/thing{i}"), RouteHandle(f"/thing{i}").get(lambda request, next: "hit"))
        with pytest.raises(NotFound):
            await stack.dispatch(Request("GET", "/missing"))


class TestSnapshot:
    @pytest.mark.asyncio
    async def test_registration_during_dispatch_is_not_seen(self) -> None:
        stack = Stack()

        async def register_more(request: Request, next) -> object:  # noqa: A002
            stack.register_exact(_exact("/late"), RouteHandle("/late").get(lambda r, n: "late"))
            return await next()

        stack.register_prefix(_prefix("/"), register_more)
        with pytest.raises(NotFound):
            await stack.dispatch(Request("GET", "/late"))
        assert await stack.dispatch(Request("GET", "/late")) == "late"
