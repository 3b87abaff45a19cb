"""
Remote Tracker Port - Abstract interface for the remote issue tracker.

Implementations:
- LinearAdapter: Linear (GraphQL)

Contract: every operation either returns a fully-populated snapshot or raises
RemoteError (or a subclass) with a human-readable message. Implementations
never mutate local state.
"""

from abc import ABC, abstractmethod

from tracksync.core.domain.snapshots import (
    IssueInput,
    ProjectInput,
    RemoteIssue,
    RemoteProject,
    RemoteTeam,
)


class RemoteTrackerPort(ABC):
    """
    Abstract interface for the remote issue tracker.

    The sync orchestrator depends only on this interface, so tests and other
    trackers can stand in for Linear.
    """

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tracker name (e.g., 'Linear')."""
        ...

    # -------------------------------------------------------------------------
    # Teams
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_teams(self) -> list[RemoteTeam]:
        """Fetch every team visible to the credentials."""
        ...

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_project(self, project_id: str) -> RemoteProject:
        """
        Fetch a single remote project.

        Args:
            project_id: Remote project id

        Returns:
            RemoteProject snapshot

        Raises:
            RemoteNotFoundError: If the project doesn't exist
        """
        ...

    @abstractmethod
    def create_project(self, data: ProjectInput) -> RemoteProject:
        """
        Create a remote project.

        Args:
            data: Create input; team_ids must be non-empty

        Returns:
            The created project as the tracker reports it
        """
        ...

    @abstractmethod
    def update_project(self, project_id: str, data: ProjectInput) -> RemoteProject:
        """
        Update a remote project. Fields left as None are not sent.

        Returns:
            The updated project as the tracker reports it
        """
        ...

    @abstractmethod
    def get_project_issues(self, project_id: str) -> list[RemoteIssue]:
        """
        Fetch every issue of a remote project in a single list call.

        Args:
            project_id: Remote project id

        Returns:
            Issue snapshots (possibly empty)
        """
        ...

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_issue(self, issue_id: str) -> RemoteIssue:
        """
        Fetch a single remote issue.

        Raises:
            RemoteNotFoundError: If the issue doesn't exist
        """
        ...

    @abstractmethod
    def create_issue(self, data: IssueInput) -> RemoteIssue:
        """
        Create a remote issue.

        Args:
            data: Create input; title and team_id are required

        Returns:
            The created issue as the tracker reports it
        """
        ...

    @abstractmethod
    def update_issue(self, issue_id: str, data: IssueInput) -> RemoteIssue:
        """
        Update a remote issue. Fields left as None are not sent.

        Returns:
            The updated issue as the tracker reports it
        """
        ...
