"""Shared fixtures: a real SQLite tracker store and in-memory remote stores."""

from pathlib import Path
from typing import Any

import pytest

from chop_sync.adapters.sql import AsyncSQLAdapter, create_async_engine_pooled, normalize_url
from chop_sync.backup.models import SnapshotDocument
from chop_sync.errors import AuthenticationError
from chop_sync.remote.base import RemoteFile, UserInfo

# ------------------------------------------------------------------
# Tracker DDL (SQLite), parents before children
# ------------------------------------------------------------------

TRACKER_DDL: dict[str, str] = {
    "settings": """
        CREATE TABLE settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )""",
    "interns": """
        CREATE TABLE interns (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE,
            phone TEXT,
            department TEXT,
            role TEXT,
            university TEXT,
            start_date TEXT,
            end_date TEXT,
            status TEXT DEFAULT 'active',
            notes TEXT,
            avatar_color TEXT,
            traits TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )""",
    "projects": """
        CREATE TABLE projects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT,
            status TEXT DEFAULT 'planning',
            priority TEXT DEFAULT 'medium',
            progress INTEGER DEFAULT 0,
            start_date TEXT,
            due_date TEXT,
            completed_date TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )""",
    "project_assignments": """
        CREATE TABLE project_assignments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            intern_id INTEGER NOT NULL REFERENCES interns(id) ON DELETE CASCADE,
            role TEXT,
            is_lead INTEGER DEFAULT 0,
            assigned_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(project_id, intern_id)
        )""",
    "tasks": """
        CREATE TABLE tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            project_id INTEGER REFERENCES projects(id) ON DELETE CASCADE,
            intern_id INTEGER REFERENCES interns(id) ON DELETE SET NULL,
            title TEXT NOT NULL,
            description TEXT,
            status TEXT DEFAULT 'todo',
            priority TEXT DEFAULT 'medium',
            due_date TEXT,
            completed_at TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )""",
    "events": """
        CREATE TABLE events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT,
            event_type TEXT DEFAULT 'meeting',
            event_date TEXT NOT NULL,
            start_time TEXT,
            end_time TEXT,
            location TEXT,
            intern_id INTEGER REFERENCES interns(id) ON DELETE SET NULL,
            project_id INTEGER REFERENCES projects(id) ON DELETE SET NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            color TEXT,
            recurrence_type TEXT,
            recurrence_count INTEGER,
            recurrence_parent_id INTEGER
        )""",
    "event_assignments": """
        CREATE TABLE event_assignments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
            intern_id INTEGER NOT NULL REFERENCES interns(id) ON DELETE CASCADE,
            assigned_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(event_id, intern_id)
        )""",
    "intern_files": """
        CREATE TABLE intern_files (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            intern_id INTEGER NOT NULL REFERENCES interns(id) ON DELETE CASCADE,
            filename TEXT NOT NULL,
            original_name TEXT NOT NULL,
            file_type TEXT,
            file_size INTEGER,
            description TEXT,
            uploaded_at TEXT DEFAULT CURRENT_TIMESTAMP
        )""",
    "intern_notes": """
        CREATE TABLE intern_notes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            intern_id INTEGER NOT NULL REFERENCES interns(id) ON DELETE CASCADE,
            note_date TEXT NOT NULL,
            title TEXT,
            content TEXT NOT NULL,
            category TEXT DEFAULT 'general',
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )""",
    "weekly_reports": """
        CREATE TABLE weekly_reports (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            intern_id INTEGER NOT NULL REFERENCES interns(id) ON DELETE CASCADE,
            week_start TEXT NOT NULL,
            week_end TEXT NOT NULL,
            accomplishments TEXT,
            challenges TEXT,
            next_week_goals TEXT,
            hours_worked REAL,
            supervisor_feedback TEXT,
            rating INTEGER,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )""",
    "activity_log": """
        CREATE TABLE activity_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            action TEXT NOT NULL,
            entity_type TEXT NOT NULL,
            entity_id INTEGER,
            entity_name TEXT,
            details TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )""",
}


# ------------------------------------------------------------------
# Sample data
# ------------------------------------------------------------------

SAMPLE_DATA: dict[str, list[dict[str, Any]]] = {
    "settings": [
        {"key": "theme", "value": "dark", "updated_at": "2025-01-02T08:00:00"},
    ],
    "interns": [
        {"id": 1, "name": "Ada Lovelace", "email": "ada@example.com", "department": "Engineering",
         "status": "active", "traits": '["curious"]', "created_at": "2025-01-02T09:00:00",
         "updated_at": "2025-01-02T09:00:00"},
        {"id": 2, "name": "Alan Turing", "email": "alan@example.com", "department": "Research",
         "status": "active", "created_at": "2025-01-03T09:00:00",
         "updated_at": "2025-01-03T09:00:00"},
    ],
    "projects": [
        {"id": 1, "name": "Onboarding Portal", "status": "active", "priority": "high",
         "progress": 40, "created_at": "2025-01-04T09:00:00", "updated_at": "2025-01-04T09:00:00"},
    ],
    "project_assignments": [
        {"id": 1, "project_id": 1, "intern_id": 1, "role": "developer", "is_lead": 1,
         "assigned_at": "2025-01-04T10:00:00"},
    ],
    "tasks": [
        {"id": 1, "project_id": 1, "intern_id": 1, "title": "Design schema", "status": "done",
         "created_at": "2025-01-05T09:00:00", "updated_at": "2025-01-05T09:00:00"},
        {"id": 2, "project_id": 1, "intern_id": 2, "title": "Write tests", "status": "todo",
         "created_at": "2025-01-05T09:30:00", "updated_at": "2025-01-05T09:30:00"},
    ],
    "events": [
        {"id": 1, "title": "Kickoff", "event_date": "2025-01-06", "start_time": "10:00",
         "project_id": 1, "color": "#3366ff", "created_at": "2025-01-05T12:00:00",
         "updated_at": "2025-01-05T12:00:00"},
    ],
    "event_assignments": [
        {"id": 1, "event_id": 1, "intern_id": 2, "assigned_at": "2025-01-05T12:05:00"},
    ],
    "intern_notes": [
        {"id": 1, "intern_id": 2, "note_date": "2025-01-07", "content": "Great first week",
         "category": "feedback", "created_at": "2025-01-07T17:00:00",
         "updated_at": "2025-01-07T17:00:00"},
    ],
    "weekly_reports": [
        {"id": 1, "intern_id": 1, "week_start": "2025-01-06", "week_end": "2025-01-10",
         "hours_worked": 38.5, "rating": 5, "created_at": "2025-01-10T18:00:00",
         "updated_at": "2025-01-10T18:00:00"},
    ],
    "activity_log": [
        {"id": 1, "action": "create", "entity_type": "intern", "entity_id": 1,
         "entity_name": "Ada Lovelace", "created_at": "2025-01-02T09:00:00"},
    ],
}


# ------------------------------------------------------------------
# Store helpers
# ------------------------------------------------------------------


async def create_tracker_db(db_path: Path, skip: tuple[str, ...] = ()) -> str:
    """Create the tracker tables in a fresh SQLite file and return its URL."""
    url = f"sqlite:///{db_path}"
    engine = create_async_engine_pooled(normalize_url(url))
    async with engine.begin() as conn:
        for name, ddl in TRACKER_DDL.items():
            if name not in skip:
                await conn.exec_driver_sql(ddl)
    await engine.dispose()
    return url


async def seed(adapter: AsyncSQLAdapter, data: dict[str, list[dict]] = SAMPLE_DATA) -> None:
    """Insert *data* table by table in one transaction."""
    async with adapter.transaction() as tx:
        for table_name, rows in data.items():
            for row in rows:
                await tx.insert(table_name, row)


async def dump(adapter: AsyncSQLAdapter, tables: list[str] | None = None) -> dict[str, list[dict]]:
    """All rows of *tables* (every tracker table by default), ordered by key."""
    result = {}
    for name in tables or list(TRACKER_DDL):
        order = "key" if name == "settings" else "id"
        result[name] = await adapter.select(name, order_by=order)
    return result


@pytest.fixture
async def store(tmp_path: Path):
    """Empty tracker store."""
    adapter = AsyncSQLAdapter(await create_tracker_db(tmp_path / "tracker.db"))
    yield adapter
    await adapter.close()


@pytest.fixture
async def populated_store(tmp_path: Path):
    """Tracker store holding ``SAMPLE_DATA``."""
    adapter = AsyncSQLAdapter(await create_tracker_db(tmp_path / "populated.db"))
    await seed(adapter)
    yield adapter
    await adapter.close()


# ------------------------------------------------------------------
# In-memory remote and session stores
# ------------------------------------------------------------------


class MemoryBlobStore:
    """``BlobStore`` holding one document in memory.

    Set ``error`` to make every call raise it; set ``download_error`` to
    make only ``download()`` raise.
    """

    def __init__(self, doc: SnapshotDocument | None = None) -> None:
        self.doc = doc
        self.uploads: list[SnapshotDocument] = []
        self.error: Exception | None = None
        self.download_error: Exception | None = None
        self.user = UserInfo(email="ada@example.com", name="Ada Lovelace")

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def find(self) -> RemoteFile | None:
        self._check()
        if self.doc is None:
            return None
        return RemoteFile(
            id="backup-1",
            name="chop-chop-backup.json",
            modified_time=self.doc.exported_at,
            size=str(len(self.doc.to_json())),
        )

    async def upload(self, doc: SnapshotDocument) -> RemoteFile:
        self._check()
        # Store a decoded copy, as a real remote would
        self.doc = SnapshotDocument.model_validate_json(doc.to_json())
        self.uploads.append(self.doc)
        return await self.find()

    async def download(self) -> SnapshotDocument | None:
        self._check()
        if self.download_error is not None:
            raise self.download_error
        if self.doc is None:
            return None
        return SnapshotDocument.model_validate_json(self.doc.to_json())

    async def user_info(self) -> UserInfo:
        self._check()
        return self.user


class MemorySessionStore:
    """``SessionStore`` keeping the session in memory."""

    def __init__(self, session: dict | None = None) -> None:
        self.session = session
        self.cleared = False

    def load(self) -> dict | None:
        return self.session

    def save(self, session: dict) -> None:
        self.session = session

    def clear(self) -> None:
        self.session = None
        self.cleared = True


def expired_session_error() -> AuthenticationError:
    return AuthenticationError("Google rejected the session: 401")
