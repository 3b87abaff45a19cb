"""SQLite repository - the local system of record stored in a database file."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from tracksync.core.domain.entities import Personnel, Project, Task
from tracksync.core.domain.enums import (
    ProjectPriority,
    ProjectStatus,
    SyncStatus,
    TaskPriority,
    TaskStatus,
)
from tracksync.core.ports.repository import RepositoryPort


SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT DEFAULT '',
    status TEXT DEFAULT 'planning'
        CHECK (status IN ('planning', 'active', 'on_hold', 'completed', 'cancelled')),
    priority TEXT DEFAULT 'medium' CHECK (priority IN ('low', 'medium', 'high', 'critical')),
    team_lead_id TEXT,
    start_date TEXT,
    end_date TEXT,
    progress INTEGER DEFAULT 0 CHECK (progress BETWEEN 0 AND 100),
    sync_enabled INTEGER DEFAULT 0,
    sync_status TEXT DEFAULT 'not_synced'
        CHECK (sync_status IN ('not_synced', 'pending_sync', 'synced', 'sync_failed')),
    last_synced_at TEXT,
    last_sync_error TEXT,
    remote_project_id TEXT UNIQUE,
    remote_team_id TEXT,
    remote_cycle_ids TEXT DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT DEFAULT '',
    status TEXT DEFAULT 'backlog'
        CHECK (status IN ('backlog', 'todo', 'in_progress', 'in_review', 'done', 'cancelled')),
    priority TEXT DEFAULT 'medium'
        CHECK (priority IN ('none', 'low', 'medium', 'high', 'urgent')),
    assignee_id TEXT,
    project_id TEXT REFERENCES projects(id),
    due_date TEXT,
    completed_at TEXT,
    sync_status TEXT DEFAULT 'not_synced'
        CHECK (sync_status IN ('not_synced', 'pending_sync', 'synced', 'sync_failed')),
    last_synced_at TEXT,
    last_sync_error TEXT,
    linear_issue_id TEXT UNIQUE,
    linear_issue_key TEXT UNIQUE,
    remote_project_id TEXT,
    remote_state_id TEXT
);

CREATE TABLE IF NOT EXISTS personnel (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    email TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(project_id);
CREATE INDEX IF NOT EXISTS idx_personnel_email ON personnel(email COLLATE NOCASE);
"""

PROJECT_COLUMNS = (
    "id",
    "name",
    "description",
    "status",
    "priority",
    "team_lead_id",
    "start_date",
    "end_date",
    "progress",
    "sync_enabled",
    "sync_status",
    "last_synced_at",
    "last_sync_error",
    "remote_project_id",
    "remote_team_id",
    "remote_cycle_ids",
)

TASK_COLUMNS = (
    "id",
    "title",
    "description",
    "status",
    "priority",
    "assignee_id",
    "project_id",
    "due_date",
    "completed_at",
    "sync_status",
    "last_synced_at",
    "last_sync_error",
    "linear_issue_id",
    "linear_issue_key",
    "remote_project_id",
    "remote_state_id",
)


def init_db(db_path: Path | str) -> sqlite3.Connection:
    """Initialize the database, creating tables if needed."""
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    conn.executescript(SCHEMA)
    conn.commit()
    return conn


def _upsert_sql(table: str, columns: tuple[str, ...]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c != "id")
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT(id) DO UPDATE SET {updates}"
    )


def _fmt(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value[:10])


class SqliteRepository(RepositoryPort):
    """
    RepositoryPort backed by sqlite3.

    Each save is a single upsert committed on its own, so domain fields and
    sync fields land together or not at all.
    """

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        self.logger = logging.getLogger("SqliteRepository")
        self._conn = init_db(db_path)

    @contextmanager
    def _transaction(self):
        try:
            yield self._conn
            self._conn.commit()
        except sqlite3.Error:
            self._conn.rollback()
            raise

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SqliteRepository:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def find_project_by_id(self, project_id: str) -> Project | None:
        row = self._conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
        return _row_to_project(row) if row else None

    def find_project_by_remote_id(self, remote_project_id: str) -> Project | None:
        row = self._conn.execute(
            "SELECT * FROM projects WHERE remote_project_id = ?", (remote_project_id,)
        ).fetchone()
        return _row_to_project(row) if row else None

    def list_projects(self) -> list[Project]:
        rows = self._conn.execute("SELECT * FROM projects ORDER BY name").fetchall()
        return [_row_to_project(r) for r in rows]

    def save_project(self, project: Project) -> Project:
        values = (
            project.id,
            project.name,
            project.description,
            project.status.value,
            project.priority.value,
            project.team_lead_id,
            _fmt(project.start_date),
            _fmt(project.end_date),
            project.progress,
            int(project.sync_enabled),
            project.sync_status.value,
            _fmt(project.last_synced_at),
            project.last_sync_error,
            project.remote_project_id,
            project.remote_team_id,
            json.dumps(list(project.remote_cycle_ids)),
        )
        with self._transaction() as conn:
            conn.execute(_upsert_sql("projects", PROJECT_COLUMNS), values)
        self.logger.debug(f"Saved project {project.id} ({project.sync_status.value})")
        return project

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def find_task_by_id(self, task_id: str) -> Task | None:
        row = self._conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return _row_to_task(row) if row else None

    def find_task_by_remote_issue_id(self, linear_issue_id: str) -> Task | None:
        row = self._conn.execute(
            "SELECT * FROM tasks WHERE linear_issue_id = ?", (linear_issue_id,)
        ).fetchone()
        return _row_to_task(row) if row else None

    def find_tasks_by_project(self, project_id: str) -> list[Task]:
        rows = self._conn.execute(
            "SELECT * FROM tasks WHERE project_id = ? ORDER BY rowid", (project_id,)
        ).fetchall()
        return [_row_to_task(r) for r in rows]

    def save_task(self, task: Task) -> Task:
        values = (
            task.id,
            task.title,
            task.description,
            task.status.value,
            task.priority.value,
            task.assignee_id,
            task.project_id,
            _fmt(task.due_date),
            _fmt(task.completed_at),
            task.sync_status.value,
            _fmt(task.last_synced_at),
            task.last_sync_error,
            task.linear_issue_id,
            task.linear_issue_key,
            task.remote_project_id,
            task.remote_state_id,
        )
        with self._transaction() as conn:
            conn.execute(_upsert_sql("tasks", TASK_COLUMNS), values)
        self.logger.debug(f"Saved task {task.id} ({task.sync_status.value})")
        return task

    # -------------------------------------------------------------------------
    # Personnel
    # -------------------------------------------------------------------------

    def find_personnel_by_email(self, email: str) -> Personnel | None:
        row = self._conn.execute(
            "SELECT * FROM personnel WHERE lower(email) = lower(?)", (email.strip(),)
        ).fetchone()
        if not row:
            return None
        return Personnel(id=row["id"], name=row["name"], email=row["email"])

    def add_personnel(self, person: Personnel) -> Personnel:
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO personnel (id, name, email) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, email = excluded.email",
                (person.id, person.name, person.email),
            )
        return person


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        status=ProjectStatus(row["status"]),
        priority=ProjectPriority(row["priority"]),
        team_lead_id=row["team_lead_id"],
        start_date=_parse_date(row["start_date"]),
        end_date=_parse_date(row["end_date"]),
        progress=row["progress"] or 0,
        sync_enabled=bool(row["sync_enabled"]),
        sync_status=SyncStatus(row["sync_status"]),
        last_synced_at=_parse_dt(row["last_synced_at"]),
        last_sync_error=row["last_sync_error"],
        remote_project_id=row["remote_project_id"],
        remote_team_id=row["remote_team_id"],
        remote_cycle_ids=json.loads(row["remote_cycle_ids"] or "[]"),
    )


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=row["id"],
        title=row["title"],
        description=row["description"] or "",
        status=TaskStatus(row["status"]),
        priority=TaskPriority(row["priority"]),
        assignee_id=row["assignee_id"],
        project_id=row["project_id"],
        due_date=_parse_date(row["due_date"]),
        completed_at=_parse_dt(row["completed_at"]),
        sync_status=SyncStatus(row["sync_status"]),
        last_synced_at=_parse_dt(row["last_synced_at"]),
        last_sync_error=row["last_sync_error"],
        linear_issue_id=row["linear_issue_id"],
        linear_issue_key=row["linear_issue_key"],
        remote_project_id=row["remote_project_id"],
        remote_state_id=row["remote_state_id"],
    )
