"""
Shared pytest fixtures for the tracksync test suite.

Fixture Categories:
- Domain: Sample projects, tasks, remote snapshots
- Mocks: Mock tracker, in-memory repository, fixed clock
- Payloads: Raw Linear GraphQL objects
- CLI: Console instances
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any
from unittest.mock import Mock

import pytest

from tracksync.adapters.repository import InMemoryRepository
from tracksync.core.domain import (
    EventBus,
    Personnel,
    Project,
    ProjectStatus,
    RemoteIssue,
    RemoteProject,
    RemoteState,
    RemoteUser,
)
from tracksync.core.ports.config_provider import SyncConfig
from tracksync.core.ports.remote_tracker import RemoteTrackerPort


if TYPE_CHECKING:
    from tracksync.application import SyncOrchestrator
    from tracksync.cli.output import Console


FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def fixed_now() -> datetime:
    """The time returned by the orchestrator clock in tests."""
    return FIXED_NOW


@pytest.fixture
def project() -> Project:
    """An unlinked local project."""
    return Project(
        id="p-1",
        name="Website Redesign",
        description="Refresh the marketing site",
        status=ProjectStatus.ACTIVE,
        start_date=date(2025, 1, 6),
        end_date=date(2025, 4, 30),
        progress=20,
    )


@pytest.fixture
def linked_project(project: Project) -> Project:
    """A project already linked to remote project proj-123 in team team-1."""
    project.remote_project_id = "proj-123"
    project.remote_team_id = "team-1"
    project.sync_enabled = True
    return project


@pytest.fixture
def alice() -> Personnel:
    return Personnel(id="u-alice", name="Alice", email="alice@example.com")


def make_state(name: str = "Todo", state_id: str | None = None, state_type: str = "unstarted") -> RemoteState:
    return RemoteState(id=state_id or f"st-{name.lower().replace(' ', '-')}", name=name, type=state_type)


def make_issue(
    issue_id: str = "iss-1",
    identifier: str = "ENG-1",
    title: str = "Build landing page",
    state: str = "Todo",
    priority: int | None = 3,
    description: str | None = None,
    assignee_email: str | None = None,
    project_id: str | None = "proj-123",
) -> RemoteIssue:
    """Build a RemoteIssue snapshot with sensible defaults."""
    assignee = None
    if assignee_email:
        assignee = RemoteUser(id=f"lin-{assignee_email}", name=assignee_email, email=assignee_email)
    return RemoteIssue(
        id=issue_id,
        identifier=identifier,
        title=title,
        state=make_state(state),
        priority=priority,
        description=description,
        assignee=assignee,
        project_id=project_id,
        team_id="team-1",
    )


def make_remote_project(
    project_id: str = "proj-123",
    name: str = "Website Redesign",
    state: str = "started",
    **kwargs: Any,
) -> RemoteProject:
    return RemoteProject(id=project_id, name=name, state=state, team_ids=("team-1",), **kwargs)


# =============================================================================
# Mocks
# =============================================================================


@pytest.fixture
def mock_tracker() -> Mock:
    """A RemoteTrackerPort mock returning well-formed snapshots."""
    tracker = Mock(spec=RemoteTrackerPort)
    tracker.name = "Linear"
    tracker.create_project.return_value = make_remote_project()
    tracker.update_project.return_value = make_remote_project()
    tracker.get_project.return_value = make_remote_project()
    tracker.get_project_issues.return_value = []
    tracker.create_issue.return_value = make_issue(issue_id="iss-new", identifier="ENG-42")
    tracker.update_issue.return_value = make_issue()
    tracker.get_issue.return_value = make_issue()
    return tracker


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig()


@pytest.fixture
def orchestrator(
    repository: InMemoryRepository,
    mock_tracker: Mock,
    sync_config: SyncConfig,
    event_bus: EventBus,
) -> SyncOrchestrator:
    from tracksync.application import SyncOrchestrator

    return SyncOrchestrator(
        repository=repository,
        tracker=mock_tracker,
        config=sync_config,
        event_bus=event_bus,
        clock=lambda: FIXED_NOW,
    )


# =============================================================================
# Raw Linear Payloads
# =============================================================================


@pytest.fixture
def linear_issue_payload() -> dict[str, Any]:
    """An issue as returned by the GraphQL API."""
    return {
        "id": "iss-1",
        "identifier": "ENG-1",
        "title": "Build landing page",
        "description": "Hero, features, pricing",
        "priority": 2,
        "url": "https://linear.app/acme/issue/ENG-1",
        "dueDate": "2025-03-15",
        "state": {"id": "st-todo", "name": "Todo", "type": "unstarted", "color": "#e2e2e2"},
        "assignee": {"id": "lin-u1", "name": "Alice", "email": "alice@example.com"},
        "project": {"id": "proj-123"},
        "team": {"id": "team-1"},
    }


@pytest.fixture
def linear_project_payload() -> dict[str, Any]:
    """A project as returned by the GraphQL API."""
    return {
        "id": "proj-123",
        "name": "Website Redesign",
        "description": "Refresh the marketing site",
        "state": "started",
        "progress": 0.456,
        "startDate": "2025-01-06",
        "targetDate": "2025-04-30",
        "url": "https://linear.app/acme/project/website-redesign",
        "teams": {"nodes": [{"id": "team-1"}]},
        "lead": {"id": "lin-u1", "name": "Alice", "email": "alice@example.com"},
    }


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def console() -> Console:
    """Create a Console instance with colors disabled."""
    from tracksync.cli.output import Console

    return Console(color=False, verbose=False)


@pytest.fixture
def verbose_console() -> Console:
    """Create a verbose Console instance."""
    from tracksync.cli.output import Console

    return Console(color=False, verbose=True)


@pytest.fixture
def issue_factory():
    """Factory for RemoteIssue snapshots (see make_issue)."""
    return make_issue


@pytest.fixture
def remote_project_factory():
    """Factory for RemoteProject snapshots (see make_remote_project)."""
    return make_remote_project
