"""Facet checks applied to coerced parameter values.

Each check is a callable with the signature::

    def check(value: Any) -> str | None:
        '''Return a rejection reason, or None if the value passes.'''

Checks are built once per placeholder when a template is compiled. A
facet only constrains the kind of value it is meaningful for: string
facets skip numbers, numeric facets skip strings.
"""

import math
import re
from collections.abc import Callable, Sequence
from typing import Any, TypeAlias

from perch.schema.model import ParameterSchema

Check: TypeAlias = Callable[[Any], str | None]

# Integer formats and their inclusive ranges (None = unbounded)
_INTEGER_FORMATS: dict[str, tuple[int, int] | None] = {
    "int8": (-(2**7), 2**7 - 1),
    "int16": (-(2**15), 2**15 - 1),
    "int32": (-(2**31), 2**31 - 1),
    "int64": (-(2**63), 2**63 - 1),
    "long": (-(2**63), 2**63 - 1),
    "int": None,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(choices: Sequence[Any]) -> Check:
    """Value must equal one of *choices*."""

    def check(value: Any) -> str | None:
        for choice in choices:
            if type(choice) is type(value) and choice == value:
                return None
            if _is_number(choice) and _is_number(value) and choice == value:
                return None
        options = ", ".join(repr(choice) for choice in choices)
        return f"Must be one of: {options}"

    return check


# ---------------------------------------------------------------------------
# String facets
# ---------------------------------------------------------------------------


def matches(pattern: str) -> Check:
    """String must contain a match for *pattern* (unanchored search)."""
    compiled = re.compile(pattern)

    def check(value: Any) -> str | None:
        if isinstance(value, str) and not compiled.search(value):
            return f"Must match pattern: {pattern}"
        return None

    return check


def min_length(n: int) -> Check:
    """String must be at least *n* characters."""

    def check(value: Any) -> str | None:
        if isinstance(value, str) and len(value) < n:
            return f"Must be at least {n} characters"
        return None

    return check


def max_length(n: int) -> Check:
    """String must be at most *n* characters."""

    def check(value: Any) -> str | None:
        if isinstance(value, str) and len(value) > n:
            return f"Must be at most {n} characters"
        return None

    return check


# ---------------------------------------------------------------------------
# Numeric facets
# ---------------------------------------------------------------------------


def minimum(bound: float) -> Check:
    """Number must be >= *bound*."""

    def check(value: Any) -> str | None:
        if _is_number(value) and value < bound:
            return f"Must be at least {bound}"
        return None

    return check


def maximum(bound: float) -> Check:
    """Number must be <= *bound*."""

    def check(value: Any) -> str | None:
        if _is_number(value) and value > bound:
            return f"Must be at most {bound}"
        return None

    return check


def multiple_of(step: float) -> Check:
    """Number must be a whole multiple of *step*."""

    def check(value: Any) -> str | None:
        if not _is_number(value):
            return None
        if isinstance(value, int) and isinstance(step, int):
            ok = value % step == 0
        else:
            try:
                quotient = value / step
                ok = math.isfinite(quotient) and math.isclose(
                    quotient, round(quotient), rel_tol=1e-9, abs_tol=1e-9
                )
            except OverflowError:
                ok = False
        if not ok:
            return f"Must be a multiple of {step}"
        return None

    return check


def number_format(fmt: str) -> Check | None:
    """Integer formats (``int8`` .. ``int64``) bound and require whole numbers.

    ``float``/``double`` and non-numeric formats add no check.
    """
    if fmt not in _INTEGER_FORMATS:
        return None
    bounds = _INTEGER_FORMATS[fmt]

    def check(value: Any) -> str | None:
        if not _is_number(value):
            return None
        if isinstance(value, float) and not value.is_integer():
            return f"Must be a whole number ({fmt})"
        if bounds is not None and not bounds[0] <= value <= bounds[1]:
            return f"Must fit in {fmt}"
        return None

    return check


def build_checks(schema: ParameterSchema) -> tuple[Check, ...]:
    """Return every facet check *schema* declares, enum first."""
    checks: list[Check] = []
    if schema.enum is not None:
        checks.append(one_of(schema.enum))
    if schema.pattern is not None:
        checks.append(matches(schema.pattern))
    if schema.min_length is not None:
        checks.append(min_length(schema.min_length))
    if schema.max_length is not None:
        checks.append(max_length(schema.max_length))
    if schema.minimum is not None:
        checks.append(minimum(schema.minimum))
    if schema.maximum is not None:
        checks.append(maximum(schema.maximum))
    if schema.multiple_of is not None:
        checks.append(multiple_of(schema.multiple_of))
    if schema.format is not None:
        fmt_check = number_format(schema.format)
        if fmt_check is not None:
            checks.append(fmt_check)
    return tuple(checks)
