"""Parameter schema model.

A ``ParameterSchema`` is the canonical contract for one named path
parameter; a ``SchemaSet`` maps parameter names to their contracts.

Two external shapes normalize into a ``SchemaSet``::

    # (a) inline constraint objects, keyed by name
    normalize({"id": {"type": "integer", "minimum": 1}})

    # (b) ordered parameter records from an API-description reader
    normalize([record])  # record.name, record.required, record.schema.data_type

Both are immutable once built, so a matcher compiled against a set can
share it freely with concurrent requests.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace
from numbers import Real
from typing import Any

from perch.errors import SchemaDeclarationError

logger = logging.getLogger("perch.schema")

# Facet names as API descriptions spell them -> ParameterSchema field
_FACETS: dict[str, str] = {
    "enum": "enum",
    "values": "enum",
    "format": "format",
    "pattern": "pattern",
    "minimum": "minimum",
    "maximum": "maximum",
    "multipleOf": "multiple_of",
    "multiple_of": "multiple_of",
    "minLength": "min_length",
    "min_length": "min_length",
    "maxLength": "max_length",
    "max_length": "max_length",
    "default": "default",
    "displayName": "display_name",
    "display_name": "display_name",
    "description": "description",
}

_NUMERIC_FACETS = ("minimum", "maximum", "multiple_of")
_LENGTH_FACETS = ("min_length", "max_length")


def local_type_name(token: str) -> str:
    """Strip the namespace from a type identifier.

    ``"http://www.w3.org/2001/XMLSchema#integer"`` -> ``"integer"``.
    Tokens without a namespace pass through unchanged; no vocabulary
    check happens here.
    """
    if "#" in token:
        return token.rsplit("#", 1)[1]
    if "://" in token:
        return token.rstrip("/").rsplit("/", 1)[1]
    return token


@dataclass(frozen=True, slots=True)
class ParameterSchema:
    """The declared contract for one path parameter.

    ``types`` is ordered: the first type the raw text coerces to wins.
    Facets only apply to values they make sense for, so ``min_length``
    is ignored for a value that coerced to an ``int``.

    ``default`` is recorded for consumers; the matcher never injects it.
    """

    name: str
    types: tuple[str, ...] = ("string",)
    required: bool = True
    enum: tuple[Any, ...] | None = None
    format: str | None = None
    pattern: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    multiple_of: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    default: Any = None
    display_name: str | None = field(default=None, compare=False)
    description: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise SchemaDeclarationError("Parameter name must be a non-empty string")

        types = (self.types,) if isinstance(self.types, str) else tuple(self.types)
        if not types:
            raise SchemaDeclarationError("At least one type is required", parameter=self.name)
        for token in types:
            if not isinstance(token, str) or not token:
                msg = f"Type identifiers must be non-empty strings, got {token!r}"
                raise SchemaDeclarationError(msg, parameter=self.name)
        object.__setattr__(self, "types", tuple(local_type_name(t) for t in types))

        if self.enum is not None:
            if isinstance(self.enum, (str, bytes)) or not isinstance(self.enum, Iterable):
                msg = f"enum must be a list of values, got {self.enum!r}"
                raise SchemaDeclarationError(msg, parameter=self.name)
            object.__setattr__(self, "enum", tuple(self.enum))

        for facet in _NUMERIC_FACETS:
            value = getattr(self, facet)
            if value is not None and (isinstance(value, bool) or not isinstance(value, Real)):
                msg = f"{facet} must be a number, got {value!r}"
                raise SchemaDeclarationError(msg, parameter=self.name)
        if self.multiple_of is not None and self.multiple_of <= 0:
            msg = f"multiple_of must be positive, got {self.multiple_of!r}"
            raise SchemaDeclarationError(msg, parameter=self.name)

        for facet in _LENGTH_FACETS:
            value = getattr(self, facet)
            if value is not None and (
                isinstance(value, bool) or not isinstance(value, int) or value < 0
            ):
                msg = f"{facet} must be a non-negative integer, got {value!r}"
                raise SchemaDeclarationError(msg, parameter=self.name)

        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except (re.error, TypeError) as exc:
                msg = f"Invalid pattern {self.pattern!r}: {exc}"
                raise SchemaDeclarationError(msg, parameter=self.name) from exc

    def renamed(self, name: str) -> ParameterSchema:
        """Return a copy bound to a different parameter name."""
        if name == self.name:
            return self
        return replace(self, name=name)


class SchemaSet(Mapping[str, ParameterSchema]):
    """An immutable mapping of parameter name to ``ParameterSchema``.

    Routers never edit a set in place; every registration produces a new
    one (see ``perch.schema.merge``).
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[ParameterSchema] = ()) -> None:
        mapping: dict[str, ParameterSchema] = {}
        for schema in entries:
            if schema.name in mapping:
                raise SchemaDeclarationError("Declared more than once", parameter=schema.name)
            mapping[schema.name] = schema
        self._entries = mapping

    @classmethod
    def _from_dict(cls, mapping: dict[str, ParameterSchema]) -> SchemaSet:
        instance = cls.__new__(cls)
        instance._entries = mapping
        return instance

    def __getitem__(self, name: str) -> ParameterSchema:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __hash__(self) -> int:
        return hash(frozenset(self._entries.items()))

    def __repr__(self) -> str:
        return f"SchemaSet({list(self._entries.values())!r})"


EMPTY = SchemaSet()


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize(source: Any) -> SchemaSet:
    """Build a ``SchemaSet`` from any accepted declaration shape.

    Args:
        source: ``None``, a ``SchemaSet``, a mapping of name to inline
            constraints, or a sequence of parameter records.

    Returns:
        The canonical set. Absent or unrecognized input gives an empty
        set; a ``SchemaSet`` is returned as-is.

    Raises:
        SchemaDeclarationError: a record or constraint object cannot be
            read.
    """
    if isinstance(source, SchemaSet):
        return source
    if source is None:
        return EMPTY
    if isinstance(source, Mapping):
        return SchemaSet._from_dict(
            {str(key): _from_inline(str(key), value) for key, value in source.items()}
        )
    if isinstance(source, Sequence) and not isinstance(source, (str, bytes)):
        return SchemaSet(_from_record(record, index) for index, record in enumerate(source))

    logger.debug("Ignoring unrecognized parameter declarations: %r", source)
    return EMPTY


def _from_inline(name: str, constraints: Any) -> ParameterSchema:
    """Read one ``name: {type: ..., facets...}`` entry."""
    if isinstance(constraints, ParameterSchema):
        return constraints.renamed(name)
    if constraints is None:
        return ParameterSchema(name=name)
    if isinstance(constraints, str):
        # Shorthand: ``{"id": "integer"}``
        return ParameterSchema(name=name, types=(constraints,))
    if not isinstance(constraints, Mapping):
        msg = f"Constraints must be a mapping, got {type(constraints).__name__}"
        raise SchemaDeclarationError(msg, parameter=name)

    kwargs: dict[str, Any] = {"name": name}
    declared_type = constraints.get("type")
    if declared_type is not None:
        kwargs["types"] = _type_tuple(declared_type, name)
    if "required" in constraints:
        kwargs["required"] = bool(constraints["required"])
    for key, value in constraints.items():
        target = _FACETS.get(key)
        if target is not None and value is not None:
            kwargs[target] = value
    return ParameterSchema(**kwargs)


def _from_record(record: Any, index: int) -> ParameterSchema:
    """Read one structured parameter record.

    Records expose ``name``, ``required`` and ``schema``; the schema
    exposes ``data_type`` plus optional facets. Attribute access and
    mapping access are both accepted. Canonical ``ParameterSchema``
    entries pass through unchanged.
    """
    if isinstance(record, ParameterSchema):
        return record

    name = _read(record, "name")
    if not isinstance(name, str) or not name:
        msg = f"Parameter record #{index} has no name: {record!r}"
        raise SchemaDeclarationError(msg)

    schema = _read(record, "schema")
    if schema is None:
        raise SchemaDeclarationError("Parameter record has no schema", parameter=name)

    data_type = _read(schema, "data_type", "dataType", "type")
    if data_type is None:
        raise SchemaDeclarationError("Parameter schema has no data type", parameter=name)

    kwargs: dict[str, Any] = {"name": name, "types": _type_tuple(data_type, name)}
    required = _read(record, "required")
    if required is not None:
        kwargs["required"] = bool(required)
    for key, target in _FACETS.items():
        value = _read(schema, key)
        if value is not None:
            kwargs[target] = value
    return ParameterSchema(**kwargs)


def _type_tuple(declared: Any, name: str) -> tuple[str, ...]:
    if isinstance(declared, str):
        return (declared,)
    if isinstance(declared, Iterable):
        return tuple(declared)
    msg = f"type must be a string or a list of strings, got {declared!r}"
    raise SchemaDeclarationError(msg, parameter=name)


def _read(source: Any, *keys: str) -> Any:
    """Return the first present key/attribute of *source*, else ``None``."""
    for key in keys:
        if isinstance(source, Mapping):
            if key in source:
                return source[key]
        elif hasattr(source, key):
            return getattr(source, key)
    return None
