"""
Domain layer - Entities, enums, snapshots and events.

Nothing here performs I/O.
"""

from .entities import Personnel, Project, SyncState, Task, clamp_progress, utc_now
from .enums import (
    OrphanPolicy,
    ProjectPriority,
    ProjectStatus,
    SyncStatus,
    TaskPriority,
    TaskStatus,
    WebhookAction,
)
from .events import (
    DomainEvent,
    EventBus,
    IssuesReconciled,
    ProjectLinked,
    ProjectPulled,
    ProjectPushed,
    SyncFailed,
    SyncStarted,
    TaskMaterialized,
    TaskUpdated,
)
from .snapshots import (
    SCHEMA_VERSION,
    IssueInput,
    ProjectInput,
    RemoteIssue,
    RemoteProject,
    RemoteState,
    RemoteTeam,
    RemoteUser,
)


__all__ = [
    "SCHEMA_VERSION",
    "DomainEvent",
    "EventBus",
    "IssueInput",
    "IssuesReconciled",
    "OrphanPolicy",
    "Personnel",
    "Project",
    "ProjectInput",
    "ProjectLinked",
    "ProjectPriority",
    "ProjectPulled",
    "ProjectPushed",
    "ProjectStatus",
    "RemoteIssue",
    "RemoteProject",
    "RemoteState",
    "RemoteTeam",
    "RemoteUser",
    "SyncFailed",
    "SyncStarted",
    "SyncState",
    "SyncStatus",
    "Task",
    "TaskMaterialized",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdated",
    "WebhookAction",
    "clamp_progress",
    "utc_now",
]
