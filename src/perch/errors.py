"""Perch exception hierarchy.

Shared across the schema model, the path compiler, the dispatch engine and
the router so every module raises and catches the same types.

Structural non-matches are not errors: a matcher that does not accept a
path returns ``None`` and dispatch moves on to the next layer.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when a router, template or registration is invalid.

    Raised at registration time, before any request is served.
    """


class SchemaDeclarationError(ConfigurationError):
    """Raised when parameter declarations cannot be read.

    Covers unreadable parameter records (no name, no type) and facets
    that can never be satisfied (a negative ``minLength``, a pattern
    that does not compile).
    """

    def __init__(self, message: str, *, parameter: str | None = None) -> None:
        self.parameter = parameter
        if parameter is not None:
            message = f"Parameter {parameter!r}: {message}"
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by matchers and by the dispatch engine. The caller that owns
    the request/response lifecycle turns these into responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no layer handled the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class BadRequest(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """400 — the request itself is unusable."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class MalformedPath(BadRequest):
    """400 — the request path contains undecodable percent-encoding.

    Raised before any structural matching, so it surfaces no matter
    which template is being tried, and it aborts the remaining layers.
    """

    def __init__(self, path: str, detail: str = "") -> None:
        super().__init__(detail or f"Malformed percent-encoding in path {path!r}")
        object.__setattr__(self, "_path", path)

    @property
    def path(self) -> str:
        """The raw request path that failed to decode."""
        return self._path  # type: ignore[attr-defined]
