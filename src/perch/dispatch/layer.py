"""Layers — one registered matcher plus what it dispatches to."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

from perch.routing.matcher import CompiledMatcher

if TYPE_CHECKING:
    from perch.dispatch.request import Request
    from perch.dispatch.route import RouteHandle

# Handler — ``(request, next)``, sync or async
Handler: TypeAlias = Callable[..., Any]

# The continuation handed to a handler; optionally takes the request
Next: TypeAlias = Callable[..., Awaitable[Any]]


async def call_handler(handler: Handler, *args: Any) -> Any:
    """Call *handler* and await the result when it is awaitable."""
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass(frozen=True, slots=True)
class Layer:
    """A matcher with either a mounted handler or a route handle.

    Prefix layers (``use``) carry a ``handler``; exact layers
    (``route``/verbs) carry a ``route``.
    """

    matcher: CompiledMatcher
    handler: Handler | None = None
    route: RouteHandle | None = None

    def accepts(self, request: Request) -> bool:
        """Mounts take any method; routes only methods they have handlers for."""
        return self.route is None or self.route.handles(request.method)
