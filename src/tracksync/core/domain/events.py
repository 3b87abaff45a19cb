"""
Domain Events - Things that happened during synchronization.

Events are immutable records of something that occurred.
They enable loose coupling and audit trails.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_type(self) -> str:
        """Get the event type name."""
        return self.__class__.__name__


@dataclass(frozen=True)
class SyncStarted(DomainEvent):
    """Event: An orchestrator operation started."""

    operation: str = ""
    entity_id: str = ""


@dataclass(frozen=True)
class ProjectLinked(DomainEvent):
    """Event: A local project was created remotely and linked."""

    project_id: str = ""
    remote_project_id: str = ""
    remote_team_id: str = ""


@dataclass(frozen=True)
class ProjectPushed(DomainEvent):
    """Event: Local project fields were written to the remote project."""

    project_id: str = ""
    remote_project_id: str = ""


@dataclass(frozen=True)
class ProjectPulled(DomainEvent):
    """Event: A local project was overwritten from its remote snapshot."""

    project_id: str = ""
    remote_project_id: str = ""
    changes: dict = field(default_factory=dict)


@dataclass(frozen=True)
class TaskMaterialized(DomainEvent):
    """Event: A local task was created from a remote issue."""

    task_id: str = ""
    linear_issue_id: str = ""
    linear_issue_key: str = ""


@dataclass(frozen=True)
class TaskUpdated(DomainEvent):
    """Event: A linked local task was updated from or pushed to its remote issue."""

    task_id: str = ""
    linear_issue_id: str = ""
    direction: str = "pull"  # pull, push


@dataclass(frozen=True)
class IssuesReconciled(DomainEvent):
    """Event: Issue sync for a project completed."""

    project_id: str = ""
    created: int = 0
    updated: int = 0
    failed: int = 0
    orphaned: int = 0


@dataclass(frozen=True)
class SyncFailed(DomainEvent):
    """Event: A remote failure was recorded on an entity."""

    operation: str = ""
    entity_type: str = ""
    entity_id: str = ""
    error: str = ""


class EventBus:
    """
    Simple event bus for publishing and subscribing to domain events.

    Handlers subscribed to DomainEvent receive every event. A failing handler
    is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[DomainEvent], None]]] = {}
        self._history: list[DomainEvent] = []
        self.logger = logging.getLogger("EventBus")

    def subscribe(self, event_type: type, handler: Callable[[DomainEvent], None]) -> None:
        """Subscribe a handler to an event type."""
        self._handlers.setdefault(event_type, []).append(handler)

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        self._history.append(event)

        handlers = list(self._handlers.get(type(event), []))
        if type(event) is not DomainEvent:
            handlers.extend(self._handlers.get(DomainEvent, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Handler for {event.event_type} failed: {e}")

    def get_history(self) -> list[DomainEvent]:
        """Get all published events."""
        return self._history.copy()

    def clear_history(self) -> None:
        """Clear event history."""
        self._history.clear()
