"""Live schema introspection and drift checking.

Usage:
    from chop_sync.schema import SchemaIntrospector, check_schema
"""

from chop_sync.schema.comparator import check_schema
from chop_sync.schema.introspector import SchemaIntrospector
from chop_sync.schema.models import ColumnDiff, SchemaValidationResult

__all__ = [
    "check_schema",
    "SchemaIntrospector",
    "SchemaValidationResult",
    "ColumnDiff",
]
