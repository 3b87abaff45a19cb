"""
Domain enums - Status, Priority, and sync-health enumerated types.

Values are the local vocabulary as stored by the system of record.
"""

from __future__ import annotations

from enum import Enum


class ProjectStatus(Enum):
    """Lifecycle status of a local project."""

    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> ProjectStatus:
        """Parse a stored value, tolerating case and dash/space variants."""
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown project status: {value!r}")

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.replace("_", " ").title()

    def is_closed(self) -> bool:
        return self in (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)


class ProjectPriority(Enum):
    """Priority of a local project."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_string(cls, value: str) -> ProjectPriority:
        """Parse priority from string, defaulting to MEDIUM."""
        value = value.strip().lower()

        if any(x in value for x in ["critical", "blocker", "p0"]):
            return cls.CRITICAL
        if any(x in value for x in ["high", "p1"]):
            return cls.HIGH
        if any(x in value for x in ["low", "minor", "p3"]):
            return cls.LOW

        return cls.MEDIUM

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class TaskStatus(Enum):
    """Workflow status of a local task."""

    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> TaskStatus:
        """Parse a stored value, tolerating case and dash/space variants."""
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown task status: {value!r}")

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return {
            TaskStatus.BACKLOG: "Backlog",
            TaskStatus.TODO: "Todo",
            TaskStatus.IN_PROGRESS: "In Progress",
            TaskStatus.IN_REVIEW: "In Review",
            TaskStatus.DONE: "Done",
            TaskStatus.CANCELLED: "Cancelled",
        }[self]

    def is_complete(self) -> bool:
        """Check if this represents a completed state."""
        return self in (TaskStatus.DONE, TaskStatus.CANCELLED)

    def is_active(self) -> bool:
        """Check if this represents an active/working state."""
        return self in (TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW)


class TaskPriority(Enum):
    """Priority of a local task."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def from_string(cls, value: str) -> TaskPriority:
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown task priority: {value!r}")

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class SyncStatus(Enum):
    """
    Sync health of a synchronizable entity.

    not_synced is the initial state. pending_sync is set optimistically when
    work is queued. synced and sync_failed are outcomes of an orchestrator
    operation; sync_failed is never terminal.
    """

    NOT_SYNCED = "not_synced"
    PENDING_SYNC = "pending_sync"
    SYNCED = "synced"
    SYNC_FAILED = "sync_failed"

    @classmethod
    def from_string(cls, value: str) -> SyncStatus:
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown sync status: {value!r}")

    @property
    def emoji(self) -> str:
        """Get emoji representation."""
        return {
            SyncStatus.NOT_SYNCED: "⚪",
            SyncStatus.PENDING_SYNC: "🔄",
            SyncStatus.SYNCED: "✅",
            SyncStatus.SYNC_FAILED: "❌",
        }[self]

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").capitalize()


class OrphanPolicy(Enum):
    """
    What issue sync does with linked local tasks whose remote issue is gone.

    LEAVE keeps them untouched, MARK_NOT_SYNCED drops their sync health back
    to not_synced, ARCHIVE cancels them locally.
    """

    LEAVE = "leave"
    MARK_NOT_SYNCED = "mark_not_synced"
    ARCHIVE = "archive"

    @classmethod
    def from_string(cls, value: str) -> OrphanPolicy:
        normalized = value.strip().lower().replace("-", "_")
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown orphan policy: {value!r}")


class WebhookAction(Enum):
    """Action carried by a remote webhook delivery."""

    CREATE = "create"
    UPDATE = "update"
    REMOVE = "remove"
