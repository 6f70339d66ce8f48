"""Immutable request view used during dispatch.

Only what routing needs: the method, the path still to be matched, the
part already consumed by enclosing mounts, and the typed parameters
collected so far.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from perch.routing.matcher import MatchResult


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable routing request.

    ``path`` is relative to the router currently dispatching; ``base_path``
    is what enclosing mounts have consumed, so ``url`` is always the full
    path. ``state`` is shared by every view derived from one request and
    is the only mutable part.
    """

    method: str
    path: str = "/"
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    base_path: str = ""
    state: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        if not self.path:
            object.__setattr__(self, "path", "/")

    @property
    def url(self) -> str:
        """Full request path, including what enclosing mounts consumed."""
        if self.path == "/" and self.base_path:
            return self.base_path
        return self.base_path + self.path

    def with_params(self, params: Mapping[str, Any]) -> Request:
        """Return a view whose params are ``{**self.params, **params}``."""
        if not params:
            return self
        return replace(self, params=MappingProxyType({**self.params, **params}))

    def mounted(self, result: MatchResult) -> Request:
        """Return the view a prefix-mounted handler sees.

        The consumed part moves into ``base_path``, the remainder becomes
        ``path`` and the matched params are merged in.
        """
        return replace(
            self,
            path=result.remainder or "/",
            base_path=self.base_path + result.path.rstrip("/"),
            params=MappingProxyType({**self.params, **result.params}),
        )

    def restore(self, other: Request) -> Request:
        """Return *self* with the routing position of *other*."""
        if self is other:
            return self
        return replace(self, path=other.path, base_path=other.base_path, params=other.params)
