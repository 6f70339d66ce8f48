"""URL template parsing and expansion.

Templates mix literal text with ``{name}`` placeholders. A placeholder
may share a path segment with literal text::

    "/users/{id}"            -> "/users/", {id}
    "/files/{name}.{ext}"    -> "/files/", {name}, ".", {ext}
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any
from urllib.parse import quote

from perch.errors import ConfigurationError

_PLACEHOLDER_RE = re.compile(r"\{([^{}]*)\}")
_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")
_ANGLE_PARAM_RE = re.compile(r"<[A-Za-z_][A-Za-z0-9_:]*>")


@dataclass(frozen=True, slots=True)
class TemplateToken:
    """A parsed piece of a URL template.

    Literal:      ``/users/``  (is_param=False)
    Placeholder:  ``{id}``     (is_param=True, value="id")
    """

    value: str
    is_param: bool = False


def parse_template(template: str) -> tuple[TemplateToken, ...]:
    """Split a template into literal and placeholder tokens.

    A missing leading slash is added. Raises ``ConfigurationError`` for
    unbalanced braces, empty or invalid names, duplicate names, and
    ``<param>``-style placeholders.

    Examples::

        parse_template("/")            -> (TemplateToken("/"),)
        parse_template("/users/{id}")  -> (TemplateToken("/users/"), TemplateToken("id", True))
    """
    if not isinstance(template, str):
        msg = f"Route path must be a string, got {type(template).__name__}"
        raise ConfigurationError(msg)
    if not template.startswith("/"):
        template = "/" + template

    if _ANGLE_PARAM_RE.search(template):
        msg = (
            f"Route path {template!r} uses <param> placeholders. "
            "Use {param} instead, e.g. '/users/{id}'."
        )
        raise ConfigurationError(msg)

    tokens: list[TemplateToken] = []
    seen: set[str] = set()
    position = 0
    for match in _PLACEHOLDER_RE.finditer(template):
        if match.start() > position:
            tokens.append(_literal(template, template[position : match.start()]))
        name = match.group(1).strip()
        if not _NAME_RE.match(name):
            msg = f"Invalid placeholder {match.group(0)!r} in route path {template!r}"
            raise ConfigurationError(msg)
        if name in seen:
            msg = f"Placeholder {{{name}}} appears more than once in route path {template!r}"
            raise ConfigurationError(msg)
        seen.add(name)
        tokens.append(TemplateToken(name, is_param=True))
        position = match.end()

    if position < len(template):
        tokens.append(_literal(template, template[position:]))
    return tuple(tokens)


def _literal(template: str, text: str) -> TemplateToken:
    if "{" in text or "}" in text:
        msg = f"Unbalanced braces in route path {template!r}"
        raise ConfigurationError(msg)
    return TemplateToken(text)


def placeholder_names(tokens: Sequence[TemplateToken]) -> tuple[str, ...]:
    """Return the placeholder names of *tokens* in template order."""
    return tuple(token.value for token in tokens if token.is_param)


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------


def format_value(value: Any) -> str:
    """Render a typed parameter value the way a request path carries it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    return str(value)


def expand_template(template: str, values: Mapping[str, Any]) -> str:
    """Substitute *values* into *template*, percent-encoding each value.

    Usage::

        expand_template("/users/{id}", {"id": 42})  # -> "/users/42"

    Raises ``KeyError`` when a placeholder has no value.
    """
    parts: list[str] = []
    for token in parse_template(template):
        if token.is_param:
            parts.append(quote(format_value(values[token.value]), safe=""))
        else:
            parts.append(token.value)
    return "".join(parts)
