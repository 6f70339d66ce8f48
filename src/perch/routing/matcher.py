"""Compiled path matchers.

``compile_template`` turns a URL template plus the ``SchemaSet`` in scope
into a ``CompiledMatcher``: an immutable, self-contained object that
decides whether a request path matches and returns typed parameters.

Usage::

    matcher = compile_template("/users/{id}", normalize({"id": {"type": "integer"}}))
    matcher.match("/users/42")   # MatchResult(path="/users/42", remainder="", params={"id": 42})
    matcher.match("/users/abc")  # None

There is no shared route table. Each registration owns one matcher, and
trying a matcher costs one regex match plus one coercion per placeholder.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from perch.errors import ConfigurationError
from perch.routing.constraints import Check, build_checks
from perch.routing.decode import check_path, decode_component
from perch.routing.params import Converter, resolve_converter
from perch.routing.template import TemplateToken, parse_template, placeholder_names
from perch.schema.model import EMPTY, ParameterSchema, SchemaSet

logger = logging.getLogger("perch.routing")

# Matching modes: middleware mounts match a prefix, routes the whole path
ANCHORS = ("exact", "prefix")

_REJECT = object()


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Result of a successful match.

    ``path`` is the raw consumed part of the request path; ``remainder``
    is what is left for nested routers (always empty in exact mode,
    otherwise empty or starting with ``/``).
    """

    path: str
    remainder: str
    params: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class _ParamRule:
    """Coercion and validation for one placeholder."""

    name: str
    converters: tuple[tuple[str, Converter | None], ...]
    checks: tuple[Check, ...]

    def apply(self, text: str) -> Any:
        """Return the typed value, or ``_REJECT``."""
        for type_name, converter in self.converters:
            if converter is None:
                continue
            try:
                value = converter(text)
            except ValueError:
                continue
            break
        else:
            types = ", ".join(name for name, _ in self.converters)
            logger.debug("Rejected {%s}=%r: not coercible to %s", self.name, text, types)
            return _REJECT

        for check in self.checks:
            reason = check(value)
            if reason is not None:
                logger.debug("Rejected {%s}=%r: %s", self.name, text, reason)
                return _REJECT
        return value


def _rule_for(name: str, schema: ParameterSchema | None, raml_version: str) -> _ParamRule:
    if schema is None:
        return _ParamRule(name=name, converters=(("string", str),), checks=())
    converters = tuple(
        (type_name, resolve_converter(type_name, fmt=schema.format, raml_version=raml_version))
        for type_name in schema.types
    )
    for type_name, converter in converters:
        if converter is None:
            logger.debug("Parameter {%s} declares unknown type %r", name, type_name)
    return _ParamRule(name=name, converters=converters, checks=build_checks(schema))


def _build_pattern(tokens: tuple[TemplateToken, ...], *, anchor: str, strict: bool) -> str:
    body = "".join(
        "([^/]+?)" if token.is_param else re.escape(token.value) for token in tokens
    )
    last = tokens[-1]
    ends_with_slash = not last.is_param and last.value.endswith("/")

    if not strict:
        if ends_with_slash:
            body = body[:-1]
        body += "(?:/(?=\\Z))?"
    if anchor == "exact":
        return body + "\\Z"
    if strict and ends_with_slash:
        return body
    return body + "(?=/|\\Z)"


class CompiledMatcher:
    """An immutable matcher for one registered template.

    Safe to share between concurrent requests: nothing is written after
    ``__init__``.
    """

    __slots__ = (
        "_regex",
        "_rules",
        "anchor",
        "case_sensitive",
        "names",
        "raml_version",
        "schema",
        "strict",
        "template",
    )

    def __init__(
        self,
        template: str,
        schema: SchemaSet = EMPTY,
        *,
        case_sensitive: bool = False,
        strict: bool = False,
        anchor: str = "exact",
        raml_version: str = "1.0",
    ) -> None:
        if anchor not in ANCHORS:
            msg = f"Unknown anchor {anchor!r}. Expected one of: {', '.join(ANCHORS)}"
            raise ConfigurationError(msg)

        tokens = parse_template(template)
        self.template = template
        self.schema = schema
        self.anchor = anchor
        self.case_sensitive = case_sensitive
        self.strict = strict
        self.raml_version = raml_version
        self.names = placeholder_names(tokens)

        flags = 0 if case_sensitive else re.IGNORECASE
        pattern = _build_pattern(tokens, anchor=anchor, strict=strict)
        self._regex = re.compile(pattern, flags)
        self._rules = tuple(_rule_for(name, schema.get(name), raml_version) for name in self.names)
        logger.debug("Compiled %s template %r -> %s", anchor, template, pattern)

    def match(self, path: str) -> MatchResult | None:
        """Match *path*, returning typed parameters or ``None``.

        Raises ``MalformedPath`` when *path* contains undecodable
        percent-encoding, whatever the template.
        """
        check_path(path)
        found = self._regex.match(path)
        if found is None:
            return None

        params: dict[str, Any] = {}
        for rule, raw in zip(self._rules, found.groups(), strict=True):
            value = rule.apply(decode_component(raw, path=path))
            if value is _REJECT:
                return None
            params[rule.name] = value

        consumed = found.group(0)
        remainder = path[found.end() :]
        if remainder and not remainder.startswith("/"):
            # Strict prefix templates end in "/" and consume it
            consumed = consumed[:-1]
            remainder = "/" + remainder
        return MatchResult(path=consumed, remainder=remainder, params=MappingProxyType(params))

    __call__ = match

    def __repr__(self) -> str:
        return f"CompiledMatcher({self.template!r}, anchor={self.anchor!r})"


def compile_template(
    template: str,
    schema: SchemaSet = EMPTY,
    *,
    case_sensitive: bool = False,
    strict: bool = False,
    anchor: str = "exact",
    raml_version: str = "1.0",
) -> CompiledMatcher:
    """Compile *template* against the parameters in *schema*.

    Args:
        template: URL template, e.g. ``"/users/{id}"``.
        schema: Parameters in scope. Placeholders without an entry
            match any non-empty segment text as a string.
        case_sensitive: Compare literal text case-sensitively.
        strict: Treat a trailing slash as significant.
        anchor: ``"exact"`` to consume the whole path, ``"prefix"`` to
            stop at the end of the template and return the remainder.
        raml_version: Dialect used for the ``date`` type.

    Raises:
        ConfigurationError: malformed template or unknown anchor.
    """
    return CompiledMatcher(
        template,
        schema,
        case_sensitive=case_sensitive,
        strict=strict,
        anchor=anchor,
        raml_version=raml_version,
    )
