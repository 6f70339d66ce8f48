"""Dispatch engine — an ordered stack of layers walked per request.

The engine knows nothing about schemas or templates; it receives
compiled matchers from the router and walks them in registration order.

Layers are tried in a loop, so a request that misses every one of
thousands of routes uses a constant amount of stack. Depth grows only
when a matched handler calls ``next``.
"""

import logging
import threading
from typing import Any, Protocol

from perch.dispatch.layer import Handler, Layer, Next, call_handler
from perch.dispatch.request import Request
from perch.dispatch.route import RouteHandle
from perch.errors import MalformedPath, NotFound
from perch.routing.matcher import CompiledMatcher

logger = logging.getLogger("perch.dispatch")


class Engine(Protocol):
    """What a router needs from a dispatch engine."""

    def register_prefix(self, matcher: CompiledMatcher, handler: Handler) -> None: ...

    def register_exact(self, matcher: CompiledMatcher, route: RouteHandle) -> None: ...

    async def dispatch(self, request: Request, done: Next | None = None) -> Any: ...


class Stack:
    """The default engine: a copy-on-write tuple of layers.

    Thread safety:
        Registration replaces ``_layers`` with a new tuple under a lock.
        A dispatch reads the tuple once and walks that snapshot, so
        registering while requests are in flight never changes what an
        in-flight request sees.
    """

    __slots__ = ("_layers", "_lock")

    def __init__(self) -> None:
        self._layers: tuple[Layer, ...] = ()
        self._lock = threading.Lock()

    @property
    def layers(self) -> tuple[Layer, ...]:
        return self._layers

    def __len__(self) -> int:
        return len(self._layers)

    def _append(self, layer: Layer) -> None:
        with self._lock:
            self._layers = (*self._layers, layer)

    def register_prefix(self, matcher: CompiledMatcher, handler: Handler) -> None:
        self._append(Layer(matcher=matcher, handler=handler))

    def register_exact(self, matcher: CompiledMatcher, route: RouteHandle) -> None:
        self._append(Layer(matcher=matcher, route=route))

    async def dispatch(self, request: Request, done: Next | None = None) -> Any:
        """Run the first matching layer; it may hand on via ``next``.

        Returns whatever the handling handler returns. When every layer
        passes, calls ``done(request)`` if given, else raises
        ``NotFound``. ``MalformedPath`` aborts the walk immediately.
        """
        layers = self._layers

        async def resume(index: int, current: Request) -> Any:
            while index < len(layers):
                layer = layers[index]
                index += 1
                try:
                    result = layer.matcher.match(current.path)
                except MalformedPath:
                    logger.warning("Malformed request path %r", current.url)
                    raise
                if result is None or not layer.accepts(current):
                    continue

                following = index

                async def next_(passed: Request | None = None) -> Any:
                    after = current if passed is None else passed.restore(current)
                    return await resume(following, after)

                if layer.route is not None:
                    return await layer.route.dispatch(current.with_params(result.params), next_)
                return await call_handler(layer.handler, current.mounted(result), next_)

            if done is not None:
                return await call_handler(done, current)
            logger.debug("No layer matched %s %r", request.method, request.url)
            raise NotFound(f"No route matches {request.method} {request.url!r}")

        return await resume(0, request)
