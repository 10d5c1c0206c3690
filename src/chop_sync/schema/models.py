"""Pydantic models for schema drift checking."""

from pydantic import BaseModel, Field


class ColumnDiff(BaseModel):
    """A column present on one side of the comparison only."""

    table: str
    column: str
    message: str = ""


class SchemaValidationResult(BaseModel):
    """Result of comparing the live store with the table registry.

    Missing tables and columns are errors: an import will drop that data.
    Extra live columns are warnings: they are exported, but the registry
    doesn't describe them.

    Example:
        >>> result = SchemaValidationResult(valid=True)
        >>> result.format_report()
        'Schema matches the table registry'
    """

    valid: bool
    missing_tables: list[str] = Field(default_factory=list)
    missing_columns: list[ColumnDiff] = Field(default_factory=list)
    extra_columns: list[ColumnDiff] = Field(default_factory=list)  # Warning only

    @property
    def error_count(self) -> int:
        """Count of critical errors (missing tables + missing columns)."""
        return len(self.missing_tables) + len(self.missing_columns)

    def format_report(self) -> str:
        """Format the result as a human-readable report."""
        if self.valid and not self.extra_columns:
            return "Schema matches the table registry"

        lines = (
            ["Schema matches the table registry (with warnings):"]
            if self.valid
            else ["Schema drift detected:"]
        )

        if self.missing_tables:
            lines.append(f"\n  Missing tables ({len(self.missing_tables)}):")
            for table in self.missing_tables:
                lines.append(f"    - {table}")

        if self.missing_columns:
            lines.append(f"\n  Missing columns ({len(self.missing_columns)}):")
            for diff in self.missing_columns:
                lines.append(f"    - {diff.table}.{diff.column}")

        if self.extra_columns:
            lines.append(f"\n  Unregistered columns ({len(self.extra_columns)}):")
            for diff in self.extra_columns:
                lines.append(f"    - {diff.table}.{diff.column}")

        return "\n".join(lines)
