"""Parameter schemas — canonical model, normalization and merging.

Usage::

    from perch.schema import merge, normalize

    inherited = normalize({"id": {"type": "integer"}})
    effective = merge(inherited, normalize({"slug": {"pattern": "^[a-z-]+$"}}))
"""

from perch.schema.merge import merge, merge_all
from perch.schema.model import EMPTY, ParameterSchema, SchemaSet, local_type_name, normalize

__all__ = [
    "EMPTY",
    "ParameterSchema",
    "SchemaSet",
    "local_type_name",
    "merge",
    "merge_all",
    "normalize",
]
