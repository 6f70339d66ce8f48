"""Schema merge — override-by-name accumulation across registrations.

A name declared locally replaces the inherited record as a whole; there
is no field-level merging. Every call returns a new ``SchemaSet`` and
leaves both inputs untouched.
"""

from functools import reduce

from perch.schema.model import EMPTY, SchemaSet


def merge(ancestor: SchemaSet, local: SchemaSet) -> SchemaSet:
    """Return the effective set for a registration.

    Contains every entry of *local*, plus every entry of *ancestor*
    whose name *local* does not redeclare::

        merge(SchemaSet([id_int]), SchemaSet([id_str, slug]))
        # -> {"id": id_str, "slug": slug}
    """
    if not local:
        return ancestor
    if not ancestor:
        return local
    combined = {name: schema for name, schema in ancestor.items() if name not in local}
    combined.update(local.items())
    return SchemaSet._from_dict(combined)


def merge_all(*sets: SchemaSet) -> SchemaSet:
    """Fold ``merge`` left to right; later sets override earlier ones."""
    return reduce(merge, sets, EMPTY)
