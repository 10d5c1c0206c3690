"""Snapshot models and the declarative table registry.

``BackupSchema`` is an ordered list of ``TableDef`` descriptors.  The order
is the dependency order for foreign keys: the exporter and importer walk it
forwards for reads and inserts, and backwards when clearing tables.

Usage:
    from chop_sync.backup.models import BackupSchema, TableDef

    schema = BackupSchema(tables=[
        TableDef(name="authors", columns=["id", "name"]),
        TableDef(name="books", columns=["id", "author_id", "title"]),
    ])
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SNAPSHOT_VERSION = "1.0"


class TableDef(BaseModel):
    """Definition of a table for export/import."""

    name: str                                       # table name
    pk: str = "id"                                  # identity column used for upserts
    columns: list[str] = Field(default_factory=list)  # canonical column order

    @model_validator(mode="after")
    def _pk_in_columns(self) -> "TableDef":
        if self.columns and self.pk not in self.columns:
            raise ValueError(
                f"Primary key '{self.pk}' is not a column of '{self.name}'"
            )
        return self


class BackupSchema(BaseModel):
    """Ordered table registry.  Tables ordered by dependency (parents first)."""

    tables: list[TableDef]

    @model_validator(mode="after")
    def _unique_names(self) -> "BackupSchema":
        names = [t.name for t in self.tables]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate tables in schema: {', '.join(duplicates)}")
        return self

    @property
    def table_names(self) -> list[str]:
        """Table names in insertion order."""
        return [t.name for t in self.tables]

    def get(self, name: str) -> TableDef | None:
        """Find a ``TableDef`` by name."""
        for t in self.tables:
            if t.name == name:
                return t
        return None


class CamelModel(BaseModel):
    """Base for wire models: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SnapshotDocument(CamelModel):
    """Portable all-tables snapshot, the unit of backup and restore.

    ``tables`` is deliberately loose (``dict[str, Any]``): documents written by
    older or newer deployments may carry extra tables or malformed entries,
    and the importer decides per table what to do with them.  Only
    ``tables`` is required; ``exported_at`` may be absent.
    """

    exported_at: str | None = None
    version: str = SNAPSHOT_VERSION
    tables: dict[str, Any]

    def to_json(self) -> str:
        """Canonical text encoding used for uploads and local files."""
        return self.model_dump_json(by_alias=True, indent=2)


class ImportResult(CamelModel):
    """Outcome of one ``import_all`` call.  Not persisted."""

    success: bool = True
    imported: dict[str, int] = Field(default_factory=dict)
    skipped: dict[str, int] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
