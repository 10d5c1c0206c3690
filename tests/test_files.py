"""Tests for local snapshot files."""

import json
from pathlib import Path

import pytest

from chop_sync.backup import SnapshotDocument
from chop_sync.backup.files import read_snapshot, validate_snapshot, write_snapshot
from chop_sync.backup.models import BackupSchema, TableDef

DOC = SnapshotDocument(
    exported_at="2025-02-01T12:00:00+00:00",
    tables={"interns": [{"id": 1, "name": "Ada"}]},
)


class TestWriteSnapshot:
    """write_snapshot() writes the wire JSON."""

    def test_explicit_path(self, tmp_path: Path):
        path = write_snapshot(DOC, str(tmp_path / "out" / "snap.json"))

        data = json.loads(Path(path).read_text())
        assert data["exportedAt"] == "2025-02-01T12:00:00+00:00"
        assert data["tables"]["interns"] == [{"id": 1, "name": "Ada"}]

    def test_default_path_under_backups(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        path = Path(write_snapshot(DOC))

        assert path.parent == tmp_path / "backups"
        assert path.name.startswith("backup-")
        assert path.suffix == ".json"

    def test_read_back(self, tmp_path: Path):
        path = write_snapshot(DOC, str(tmp_path / "snap.json"))
        assert read_snapshot(path) == DOC


class TestReadSnapshot:
    """read_snapshot() reports unusable files as errors."""

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_snapshot(str(tmp_path / "nope.json"))

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{truncated")

        with pytest.raises(ValueError, match="Invalid JSON"):
            read_snapshot(str(path))

    def test_without_exported_at(self, tmp_path: Path):
        path = tmp_path / "handmade.json"
        path.write_text(json.dumps({"version": "1.0", "tables": {"interns": []}}))

        doc = read_snapshot(str(path))

        assert doc.exported_at is None
        assert doc.tables == {"interns": []}
        assert validate_snapshot(json.loads(path.read_text()))["valid"] is True

    def test_not_a_snapshot(self, tmp_path: Path):
        path = tmp_path / "other.json"
        path.write_text(json.dumps({"hello": "world"}))

        with pytest.raises(ValueError, match="Not a snapshot document"):
            read_snapshot(str(path))


class TestValidateSnapshot:
    """validate_snapshot() separates fatal errors from warnings."""

    schema = BackupSchema(tables=[
        TableDef(name="interns", columns=["id", "name"]),
        TableDef(name="tasks", columns=["id", "title"]),
    ])

    def test_complete_document(self):
        report = validate_snapshot(
            {"exportedAt": "x", "version": "1.0", "tables": {"interns": [], "tasks": []}},
            self.schema,
        )
        assert report == {"valid": True, "errors": [], "warnings": []}

    def test_not_an_object(self):
        report = validate_snapshot([1, 2], self.schema)
        assert report["valid"] is False

    def test_missing_tables(self):
        report = validate_snapshot({"exportedAt": "x", "version": "1.0"}, self.schema)
        assert report["errors"] == ["Invalid backup format: missing tables"]

    def test_wrong_version(self):
        report = validate_snapshot(
            {"exportedAt": "x", "version": "2.0", "tables": {"interns": [], "tasks": []}},
            self.schema,
        )
        assert report["valid"] is False
        assert "Unsupported backup version '2.0'" in report["errors"][0]

    def test_warnings_do_not_invalidate(self):
        report = validate_snapshot(
            {"version": "1.0", "tables": {"interns": {}, "gadgets": []}},
            self.schema,
        )

        assert report["valid"] is True
        assert report["warnings"] == [
            "Missing field: exportedAt",
            "Table interns is not a list of rows",
            "Missing table: tasks",
            "Unknown table (ignored on import): gadgets",
        ]
