"""Canonical table registry for the intern/project tracker.

The order below is the foreign-key dependency order: ``tasks`` after
``projects``, assignments after both of their parents, and so on.
"""

from chop_sync.backup.models import BackupSchema, TableDef

TRACKER_SCHEMA = BackupSchema(
    tables=[
        TableDef(
            name="settings",
            pk="key",
            columns=["key", "value", "updated_at"],
        ),
        TableDef(
            name="interns",
            columns=[
                "id", "name", "email", "phone", "department", "role",
                "university", "start_date", "end_date", "status", "notes",
                "avatar_color", "traits", "created_at", "updated_at",
            ],
        ),
        TableDef(
            name="projects",
            columns=[
                "id", "name", "description", "status", "priority", "progress",
                "start_date", "due_date", "completed_date", "created_at",
                "updated_at",
            ],
        ),
        TableDef(
            name="project_assignments",
            columns=["id", "project_id", "intern_id", "role", "is_lead", "assigned_at"],
        ),
        TableDef(
            name="tasks",
            columns=[
                "id", "project_id", "intern_id", "title", "description",
                "status", "priority", "due_date", "completed_at", "created_at",
                "updated_at",
            ],
        ),
        TableDef(
            name="events",
            columns=[
                "id", "title", "description", "event_type", "event_date",
                "start_time", "end_time", "location", "intern_id", "project_id",
                "created_at", "updated_at", "color", "recurrence_type",
                "recurrence_count", "recurrence_parent_id",
            ],
        ),
        TableDef(
            name="event_assignments",
            columns=["id", "event_id", "intern_id", "assigned_at"],
        ),
        TableDef(
            name="intern_files",
            columns=[
                "id", "intern_id", "filename", "original_name", "file_type",
                "file_size", "description", "uploaded_at",
            ],
        ),
        TableDef(
            name="intern_notes",
            columns=[
                "id", "intern_id", "note_date", "title", "content", "category",
                "created_at", "updated_at",
            ],
        ),
        TableDef(
            name="weekly_reports",
            columns=[
                "id", "intern_id", "week_start", "week_end", "accomplishments",
                "challenges", "next_week_goals", "hours_worked",
                "supervisor_feedback", "rating", "created_at", "updated_at",
            ],
        ),
        TableDef(
            name="activity_log",
            columns=[
                "id", "action", "entity_type", "entity_id", "entity_name",
                "details", "created_at",
            ],
        ),
    ]
)
