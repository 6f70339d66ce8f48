"""Router — schema-aware registration on top of a dispatch engine.

The router owns the effective parameter schema. Every registration
merges the locally declared parameters over the ones already in scope,
compiles the path against the result, and keeps the result for the
next registration::

    router = Router()
    router.use("/{id}", {"id": {"type": "integer"}}, load_item)
    router.get("/{id}", show_item)   # {id} is still an integer here

Matching and ``next()`` chaining are delegated to the engine the router
holds (``perch.dispatch.Stack`` by default).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any

from perch.arguments import parse_registration
from perch.config import RouterConfig
from perch.dispatch.engine import Engine, Stack
from perch.dispatch.layer import Next
from perch.dispatch.request import Request
from perch.dispatch.route import ALL, RouteHandle
from perch.routing.matcher import CompiledMatcher, compile_template
from perch.schema.merge import merge
from perch.schema.model import SchemaSet, normalize

logger = logging.getLogger("perch.router")


class Router:
    """A router whose path parameters are typed by declared schemas.

    Thread safety:
        Registration is expected to happen before requests are served,
        but is safe to interleave with dispatch: ``parameters`` is
        replaced by assignment, never edited, and compiled matchers are
        immutable.
    """

    __slots__ = ("_engine", "_register_lock", "config", "parameters")

    def __init__(self, config: RouterConfig | None = None, *, engine: Engine | None = None) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self.parameters: SchemaSet = normalize(self.config.parameters)
        self._engine: Engine = engine if engine is not None else Stack()
        self._register_lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        return self._engine

    # -- Registration --

    def _compile(self, path: str, schema: Any, anchor: str) -> CompiledMatcher:
        """Merge *schema* into scope and compile *path* against it."""
        local = normalize(schema)
        with self._register_lock:
            effective = merge(self.parameters, local)
            matcher = compile_template(
                path,
                effective,
                case_sensitive=self.config.case_sensitive,
                strict=self.config.strict,
                anchor=anchor,
                raml_version=self.config.raml_version,
            )
            self.parameters = effective
        return matcher

    def use(self, *args: Any) -> Router:
        """Mount middleware or nested routers under a path prefix.

        Usage::

            router.use(log_request)
            router.use("/users", users_router)
            router.use("/{id}", {"id": {"type": "integer"}}, load_item)

        Handlers receive a request whose ``path`` is what remains after
        the prefix. The path defaults to ``/``, which matches everything.
        """
        registration = parse_registration(args, default_path="/")
        matcher = self._compile(registration.path, registration.schema, "prefix")
        for handler in registration.handlers:
            self._engine.register_prefix(matcher, handler)
        logger.debug(
            "Mounted %d handler(s) at %r (parameters: %s)",
            len(registration.handlers),
            registration.path,
            ", ".join(matcher.names) or "none",
        )
        return self

    def route(self, path: str, schema: Any = None) -> RouteHandle:
        """Register *path* as a terminal route and return its handle.

        The whole request path must match; add handlers per verb on the
        returned ``RouteHandle``.
        """
        matcher = self._compile(path, schema, "exact")
        handle = RouteHandle(path)
        self._engine.register_exact(matcher, handle)
        logger.debug("Registered route %r", path)
        return handle

    def add(self, method: str, *args: Any) -> Router:
        """Register handlers for *method* on ``path`` with an optional schema.

        ``router.add("GET", "/{id}", {"id": "integer"}, show)`` is what
        ``router.get(...)`` does.
        """
        registration = parse_registration(args)
        self.route(registration.path, registration.schema).add(method, *registration.handlers)
        return self

    def all(self, *args: Any) -> Router:
        return self.add(ALL, *args)

    def get(self, *args: Any) -> Router:
        return self.add("GET", *args)

    def post(self, *args: Any) -> Router:
        return self.add("POST", *args)

    def put(self, *args: Any) -> Router:
        return self.add("PUT", *args)

    def delete(self, *args: Any) -> Router:
        return self.add("DELETE", *args)

    def patch(self, *args: Any) -> Router:
        return self.add("PATCH", *args)

    def head(self, *args: Any) -> Router:
        return self.add("HEAD", *args)

    def options(self, *args: Any) -> Router:
        return self.add("OPTIONS", *args)

    def trace(self, *args: Any) -> Router:
        return self.add("TRACE", *args)

    def child(self, **overrides: Any) -> Router:
        """Create a router that inherits this router's config and parameters.

        Usage::

            items = router.child()
            items.get("/{id}", show_item)   # sees every parameter declared so far
            router.use("/items", items)

        ``parameters=...`` in *overrides* is merged over the inherited set
        rather than replacing it.
        """
        local = normalize(overrides.pop("parameters", None))
        config = replace(self.config, **overrides, parameters=merge(self.parameters, local))
        return Router(config)

    # -- Dispatch --

    async def dispatch(self, request: Request, done: Next | None = None) -> Any:
        """Dispatch *request* through the registered layers.

        Raises ``NotFound`` when nothing handles the request and *done*
        is not given, ``MalformedPath`` for undecodable paths.
        """
        return await self._engine.dispatch(request, done)

    async def __call__(self, request: Request, next: Next) -> Any:  # noqa: A002
        """Act as a handler so routers can be mounted with ``use``."""
        return await self._engine.dispatch(request, next)

    def __repr__(self) -> str:
        names = ", ".join(self.parameters) or "none"
        return f"Router(parameters=[{names}])"
