"""Perch — typed path parameters for HTTP routing.

Turns URL templates plus declared parameter schemas into matchers that
extract, coerce and validate path parameters, and accumulates those
schemas across nested router registrations.

Basic usage::

    from perch import Request, Router

    router = Router()
    router.get("/{id}", {"id": {"type": "integer"}}, show_item)
    await router.dispatch(Request("GET", "/123"))   # show_item sees params["id"] == 123

Lower-level pieces::

    from perch import compile_template, normalize

    matcher = compile_template("/{slug}", normalize({"slug": {"pattern": "^[a-z-]+$"}}))
    matcher.match("/hello-world").params   # {"slug": "hello-world"}
"""

__version__ = "0.1.0-dev"
__all__ = [
    "BadRequest",
    "CompiledMatcher",
    "ConfigurationError",
    "HTTPError",
    "MalformedPath",
    "MatchResult",
    "NotFound",
    "ParameterSchema",
    "PerchError",
    "Request",
    "RouteHandle",
    "Router",
    "RouterConfig",
    "SchemaDeclarationError",
    "SchemaSet",
    "compile_template",
    "merge",
    "normalize",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "Router":
        from perch.router import Router

        return Router

    if name == "RouterConfig":
        from perch.config import RouterConfig

        return RouterConfig

    if name in ("Request", "RouteHandle"):
        from perch import dispatch as _dispatch

        return getattr(_dispatch, name)

    if name in ("ParameterSchema", "SchemaSet", "merge", "normalize"):
        from perch import schema as _schema

        return getattr(_schema, name)

    if name in ("CompiledMatcher", "MatchResult", "compile_template"):
        from perch.routing import matcher as _matcher

        return getattr(_matcher, name)

    if name in (
        "BadRequest",
        "ConfigurationError",
        "HTTPError",
        "MalformedPath",
        "NotFound",
        "PerchError",
        "SchemaDeclarationError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
