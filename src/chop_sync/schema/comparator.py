"""Schema drift check using set operations.

Compares the live store's columns with the canonical table registry.
Pure logic -- no I/O, no database connections.

Usage:
    from chop_sync.schema.comparator import check_schema
    from chop_sync.backup.registry import TRACKER_SCHEMA

    actual = await adapter.get_column_names(TRACKER_SCHEMA.table_names)
    result = check_schema(actual, TRACKER_SCHEMA)
    print(result.format_report())
"""

from chop_sync.backup.models import BackupSchema
from chop_sync.schema.models import ColumnDiff, SchemaValidationResult


def check_schema(
    actual_columns: dict[str, set[str]],
    schema: BackupSchema,
) -> SchemaValidationResult:
    """Compare live columns against the registry's canonical columns.

    Args:
        actual_columns: Dict mapping table name to its live column set, as
            returned by ``adapter.get_column_names()``.  Tables absent from
            the store are absent from the dict.
        schema: Table registry.  Tables with an empty ``columns`` list are
            only checked for existence.

    Returns:
        ``SchemaValidationResult``; ``valid`` is ``True`` when no registered
        table or column is missing.

    Examples:
        >>> from chop_sync.backup.models import BackupSchema, TableDef
        >>> schema = BackupSchema(tables=[TableDef(name="users", columns=["id", "name"])])
        >>> check_schema({"users": {"id", "name", "avatar"}}, schema).valid
        True
        >>> result = check_schema({"users": {"id"}}, schema)
        >>> result.missing_columns[0].column
        'name'
    """
    missing_tables: list[str] = []
    missing_columns: list[ColumnDiff] = []
    extra_columns: list[ColumnDiff] = []

    for table_def in schema.tables:
        if table_def.name not in actual_columns:
            missing_tables.append(table_def.name)
            continue

        if not table_def.columns:
            continue

        live: set[str] = actual_columns[table_def.name]
        expected: set[str] = set(table_def.columns)

        for col_name in table_def.columns:
            if col_name not in live:
                missing_columns.append(
                    ColumnDiff(
                        table=table_def.name,
                        column=col_name,
                        message=f"Column '{col_name}' missing from table '{table_def.name}'",
                    )
                )

        for col_name in sorted(live - expected):
            extra_columns.append(
                ColumnDiff(
                    table=table_def.name,
                    column=col_name,
                    message=f"Column '{col_name}' is not in the registry for '{table_def.name}'",
                )
            )

    return SchemaValidationResult(
        valid=not missing_tables and not missing_columns,
        missing_tables=missing_tables,
        missing_columns=missing_columns,
        extra_columns=extra_columns,
    )
