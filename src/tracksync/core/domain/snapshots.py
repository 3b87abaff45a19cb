"""
Remote snapshots - Typed, versioned reads of remote tracker entities.

Snapshots are decoded at the adapter boundary so nothing past the port ever
handles raw payloads. They are transient and never persisted verbatim; every
field consumed from them is translated into local vocabulary first.

Bump SCHEMA_VERSION whenever a field is added, removed, or changes meaning.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


SCHEMA_VERSION = 1


@dataclass(frozen=True)
class RemoteUser:
    id: str
    name: str
    email: str | None = None
    schema_version: int = SCHEMA_VERSION


@dataclass(frozen=True)
class RemoteTeam:
    id: str
    name: str
    key: str
    description: str | None = None
    schema_version: int = SCHEMA_VERSION


@dataclass(frozen=True)
class RemoteState:
    """A workflow state; name is free text and type is the remote category."""

    id: str
    name: str
    type: str | None = None
    color: str | None = None
    schema_version: int = SCHEMA_VERSION


@dataclass(frozen=True)
class RemoteProject:
    """
    A remote project.

    state is the raw remote project state ("planned", "started", ...).
    progress is a fraction in 0..1 as reported by the tracker.
    """

    id: str
    name: str
    state: str
    description: str | None = None
    progress: float | None = None
    start_date: date | None = None
    target_date: date | None = None
    url: str | None = None
    team_ids: tuple[str, ...] = ()
    lead: RemoteUser | None = None
    schema_version: int = SCHEMA_VERSION


@dataclass(frozen=True)
class RemoteIssue:
    """A remote issue; identifier is the human-readable key such as ENG-42."""

    id: str
    identifier: str
    title: str
    state: RemoteState
    priority: int | None = None
    description: str | None = None
    assignee: RemoteUser | None = None
    project_id: str | None = None
    team_id: str | None = None
    url: str | None = None
    due_date: date | None = None
    schema_version: int = SCHEMA_VERSION


# =============================================================================
# Write Inputs
# =============================================================================


@dataclass(frozen=True)
class ProjectInput:
    """
    Create/update input for a remote project.

    Fields left as None are omitted from the request, so the same type serves
    as a partial update.
    """

    name: str | None = None
    description: str | None = None
    state: str | None = None
    start_date: date | None = None
    target_date: date | None = None
    team_ids: tuple[str, ...] = ()
    lead_id: str | None = None


@dataclass(frozen=True)
class IssueInput:
    """
    Create/update input for a remote issue.

    state_name is the remote workflow state name; the adapter resolves it to
    the team's state id.
    """

    title: str | None = None
    description: str | None = None
    state_name: str | None = None
    priority: int | None = None
    team_id: str | None = None
    project_id: str | None = None
    assignee_id: str | None = None
    due_date: date | None = None
