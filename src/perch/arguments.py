"""Registration argument parsing.

``use`` and the verb methods take loosely ordered arguments::

    router.use(handler)
    router.use("/api", api_router)
    router.use("/{id}", {"id": {"type": "integer"}}, check_id, [audit, load])
    router.get("/{id}", show)

The first argument that is not a handler is the path; the next one, if
it is not a handler either, is the parameter schema; everything after
is flattened into the handler sequence. A handler is a callable or a
non-empty list/tuple of callables.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from perch.dispatch.layer import Handler
from perch.dispatch.route import flatten_handlers
from perch.errors import ConfigurationError


def is_handler(value: Any) -> bool:
    """True for a callable or a non-empty list/tuple of handlers."""
    if callable(value):
        return True
    if isinstance(value, (list, tuple)) and value:
        return all(is_handler(item) for item in value)
    return False


@dataclass(frozen=True, slots=True)
class Registration:
    """A disambiguated registration call."""

    path: str
    schema: Any
    handlers: tuple[Handler, ...]


def parse_registration(
    args: Sequence[Any],
    *,
    default_path: str | None = None,
) -> Registration:
    """Split *args* into path, schema and handlers.

    Raises ``ConfigurationError`` when no path is given and there is no
    *default_path*, or when no handlers are given.
    """
    index = 0
    path = default_path
    schema = None

    if index < len(args) and not is_handler(args[index]):
        path = args[index]
        index += 1
        if index < len(args) and not is_handler(args[index]):
            schema = args[index]
            index += 1

    if path is None:
        raise ConfigurationError("A route path is required")
    if not isinstance(path, str):
        msg = f"Route path must be a string, got {type(path).__name__}"
        raise ConfigurationError(msg)

    handlers = flatten_handlers(args[index:])
    if not handlers:
        msg = f"Registration for {path!r} requires at least one handler"
        raise ConfigurationError(msg)
    return Registration(path=path, schema=schema, handlers=handlers)
