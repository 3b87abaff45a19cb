"""
Repository Port - Abstract interface for the local system of record.

Implementations:
- InMemoryRepository: dict-backed, for tests and embedding
- SqliteRepository: sqlite3 database file

The sync engine depends only on this contract; persistence mechanics and
read-after-write consistency belong to the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tracksync.core.domain.entities import Personnel, Project, Task


class RepositoryPort(ABC):
    """
    Abstract interface for reading and writing projects and tasks.

    Finders return None when nothing matches. Saves are upserts keyed by the
    entity id and persist every field, sync fields included, in one write.
    """

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    @abstractmethod
    def find_project_by_id(self, project_id: str) -> Project | None:
        """Find a project by its local id."""
        ...

    @abstractmethod
    def find_project_by_remote_id(self, remote_project_id: str) -> Project | None:
        """Find the project linked to a remote project id."""
        ...

    @abstractmethod
    def save_project(self, project: Project) -> Project:
        """
        Insert or replace a project.

        Args:
            project: Project to persist

        Returns:
            The persisted project
        """
        ...

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    @abstractmethod
    def find_task_by_id(self, task_id: str) -> Task | None:
        """Find a task by its local id."""
        ...

    @abstractmethod
    def find_task_by_remote_issue_id(self, linear_issue_id: str) -> Task | None:
        """Find the task linked to a remote issue id."""
        ...

    @abstractmethod
    def find_tasks_by_project(self, project_id: str) -> list[Task]:
        """List every task that belongs to a project."""
        ...

    @abstractmethod
    def save_task(self, task: Task) -> Task:
        """
        Insert or replace a task.

        Args:
            task: Task to persist

        Returns:
            The persisted task
        """
        ...

    # -------------------------------------------------------------------------
    # Personnel
    # -------------------------------------------------------------------------

    @abstractmethod
    def find_personnel_by_email(self, email: str) -> Personnel | None:
        """Find a collaborator by email, ignoring case."""
        ...
