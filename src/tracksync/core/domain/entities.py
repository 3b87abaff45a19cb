"""
Domain Entities - Objects with identity that persist over time.

Entities are mutable and have a unique identifier. Project and Task carry
the sync-status state machine; only the sync orchestrator drives it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any
from uuid import uuid4

from .enums import ProjectPriority, ProjectStatus, SyncStatus, TaskPriority, TaskStatus


UNKNOWN_SYNC_ERROR = "Unknown sync error"


def _new_id() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class SyncState:
    """
    Sync health fields shared by every synchronizable entity.

    Transitions:
        not_synced -> pending_sync -> synced | sync_failed
        sync_failed -> synced | sync_failed (retry)

    last_sync_error is present exactly when sync_status is sync_failed, and
    last_synced_at only moves when entering synced.
    """

    sync_status: SyncStatus = SyncStatus.NOT_SYNCED
    last_synced_at: datetime | None = None
    last_sync_error: str | None = None

    def mark_pending(self) -> None:
        """Flag outbound work as queued; set before a push reaches the tracker."""
        self.sync_status = SyncStatus.PENDING_SYNC
        self.last_sync_error = None

    def mark_synced(self, at: datetime | None = None) -> None:
        self.sync_status = SyncStatus.SYNCED
        self.last_synced_at = at or utc_now()
        self.last_sync_error = None

    def mark_failed(self, error: str) -> None:
        """Record a failed attempt; last_synced_at is left alone."""
        self.sync_status = SyncStatus.SYNC_FAILED
        self.last_sync_error = error.strip() or UNKNOWN_SYNC_ERROR

    def mark_not_synced(self) -> None:
        self.sync_status = SyncStatus.NOT_SYNCED
        self.last_sync_error = None

    @property
    def is_synced(self) -> bool:
        return self.sync_status == SyncStatus.SYNCED

    @property
    def has_sync_error(self) -> bool:
        return self.sync_status == SyncStatus.SYNC_FAILED


@dataclass
class Personnel:
    """A collaborator record, used only to resolve assignees by email."""

    id: str
    name: str = ""
    email: str = ""

    def matches_email(self, email: str) -> bool:
        return self.email.strip().lower() == email.strip().lower()


@dataclass
class Project(SyncState):
    """
    A unit of work tracked locally and optionally in the remote tracker.

    remote_project_id is set once the project has been created remotely and
    is never cleared by the sync engine.
    """

    # Identity
    id: str = field(default_factory=_new_id)
    name: str = ""

    # Content
    description: str = ""

    # Metadata
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: ProjectPriority = ProjectPriority.MEDIUM
    team_lead_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    progress: int = 0

    # Remote linkage
    sync_enabled: bool = False
    remote_project_id: str | None = None
    remote_team_id: str | None = None
    remote_cycle_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.progress = clamp_progress(self.progress)

    @property
    def is_linked(self) -> bool:
        """Check if the project exists in the remote tracker."""
        return bool(self.remote_project_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "team_lead_id": self.team_lead_id,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "progress": self.progress,
            "sync_enabled": self.sync_enabled,
            "sync_status": self.sync_status.value,
            "last_synced_at": _iso(self.last_synced_at),
            "last_sync_error": self.last_sync_error,
            "remote_project_id": self.remote_project_id,
            "remote_team_id": self.remote_team_id,
            "remote_cycle_ids": list(self.remote_cycle_ids),
        }


@dataclass
class Task(SyncState):
    """
    A unit of work, optionally linked 1:1 to a remote issue.

    completed_at is set exactly when status is done. A task may only carry
    a linear_issue_id when its project is linked remotely.
    """

    # Identity
    id: str = field(default_factory=_new_id)
    title: str = ""

    # Content
    description: str = ""

    # Metadata
    status: TaskStatus = TaskStatus.BACKLOG
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: str | None = None
    project_id: str | None = None
    due_date: date | None = None
    completed_at: datetime | None = None

    # Remote linkage
    linear_issue_id: str | None = None
    linear_issue_key: str | None = None
    remote_project_id: str | None = None
    remote_state_id: str | None = None

    def __post_init__(self) -> None:
        if self.status != TaskStatus.DONE:
            self.completed_at = None
        elif self.completed_at is None:
            self.completed_at = utc_now()

    def set_status(self, status: TaskStatus, at: datetime | None = None) -> None:
        """
        Change status while keeping completed_at consistent.

        Entering done stamps completed_at (an already-done task keeps its
        original timestamp); any other status clears it.
        """
        if status == TaskStatus.DONE:
            if self.status != TaskStatus.DONE or self.completed_at is None:
                self.completed_at = at or utc_now()
        else:
            self.completed_at = None
        self.status = status

    @property
    def is_linked(self) -> bool:
        """Check if the task is linked to a remote issue."""
        return bool(self.linear_issue_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "assignee_id": self.assignee_id,
            "project_id": self.project_id,
            "due_date": _iso(self.due_date),
            "completed_at": _iso(self.completed_at),
            "sync_status": self.sync_status.value,
            "last_synced_at": _iso(self.last_synced_at),
            "last_sync_error": self.last_sync_error,
            "linear_issue_id": self.linear_issue_id,
            "linear_issue_key": self.linear_issue_key,
            "remote_project_id": self.remote_project_id,
            "remote_state_id": self.remote_state_id,
        }


def clamp_progress(value: float | int | None) -> int:
    """Round a percentage and clamp it into 0..100."""
    if value is None:
        return 0
    return max(0, min(100, int(round(value))))
