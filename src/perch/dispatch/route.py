"""Route handles — per-verb handler lists behind one exact matcher."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

from perch.dispatch.layer import Handler, Next, call_handler
from perch.dispatch.request import Request
from perch.errors import ConfigurationError

# Methods that get a registration shortcut
METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "TRACE")

# Pseudo-method matching every verb
ALL = "*"


def flatten_handlers(items: Iterable[Any]) -> tuple[Handler, ...]:
    """Flatten nested lists/tuples of handlers, rejecting non-callables."""
    flat: list[Handler] = []
    pending = list(items)
    pending.reverse()
    while pending:
        item = pending.pop()
        if isinstance(item, (list, tuple)):
            pending.extend(reversed(item))
        elif callable(item):
            flat.append(item)
        else:
            msg = f"Handlers must be callable, got {type(item).__name__}"
            raise ConfigurationError(msg)
    return tuple(flat)


class RouteHandle:
    """Handlers registered for one exact template, in registration order.

    Usage::

        router.route("/users/{id}", {"id": {"type": "integer"}}) \\
            .get(show_user) \\
            .delete(require_admin, delete_user)
    """

    __slots__ = ("_lock", "_stack", "path")

    def __init__(self, path: str) -> None:
        self.path = path
        self._stack: tuple[tuple[str, Handler], ...] = ()
        self._lock = threading.Lock()

    @property
    def methods(self) -> frozenset[str]:
        """Verbs with at least one handler (``"*"`` for ``all``)."""
        return frozenset(method for method, _ in self._stack)

    def handles(self, method: str) -> bool:
        return any(m == ALL or m == method for m, _ in self._stack)

    def add(self, method: str, *handlers: Any) -> RouteHandle:
        """Append *handlers* for *method* (``"*"`` for every method)."""
        flat = flatten_handlers(handlers)
        if not flat:
            msg = f"Route {self.path!r} {method} requires at least one handler"
            raise ConfigurationError(msg)
        verb = method if method == ALL else method.upper()
        with self._lock:
            self._stack = self._stack + tuple((verb, handler) for handler in flat)
        return self

    def all(self, *handlers: Any) -> RouteHandle:
        return self.add(ALL, *handlers)

    def get(self, *handlers: Any) -> RouteHandle:
        return self.add("GET", *handlers)

    def post(self, *handlers: Any) -> RouteHandle:
        return self.add("POST", *handlers)

    def put(self, *handlers: Any) -> RouteHandle:
        return self.add("PUT", *handlers)

    def delete(self, *handlers: Any) -> RouteHandle:
        return self.add("DELETE", *handlers)

    def patch(self, *handlers: Any) -> RouteHandle:
        return self.add("PATCH", *handlers)

    def head(self, *handlers: Any) -> RouteHandle:
        return self.add("HEAD", *handlers)

    def options(self, *handlers: Any) -> RouteHandle:
        return self.add("OPTIONS", *handlers)

    def trace(self, *handlers: Any) -> RouteHandle:
        return self.add("TRACE", *handlers)

    async def dispatch(self, request: Request, done: Next) -> Any:
        """Run the handlers for ``request.method``; ``done`` when they pass."""
        stack = tuple(h for m, h in self._stack if m == ALL or m == request.method)

        async def resume(index: int, current: Request) -> Any:
            if index >= len(stack):
                return await done(current)

            async def next_(passed: Request | None = None) -> Any:
                following = current if passed is None else passed.restore(current)
                return await resume(index + 1, following)

            return await call_handler(stack[index], current, next_)

        return await resume(0, request)

    def __repr__(self) -> str:
        methods = ", ".join(sorted(self.methods))
        return f"RouteHandle({self.path!r}, methods=[{methods}])"
