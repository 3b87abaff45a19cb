"""
In-memory repository.

Entities are deep-copied on the way in and out, so callers never share
mutable state with the store; an unsaved modification is invisible to other
readers, as it would be with a database.
"""

from __future__ import annotations

import copy

from tracksync.core.domain.entities import Personnel, Project, Task
from tracksync.core.ports.repository import RepositoryPort


class InMemoryRepository(RepositoryPort):
    """Dict-backed RepositoryPort for tests and embedding."""

    def __init__(
        self,
        projects: list[Project] | None = None,
        tasks: list[Task] | None = None,
        personnel: list[Personnel] | None = None,
    ):
        self._projects: dict[str, Project] = {}
        self._tasks: dict[str, Task] = {}
        self._personnel: dict[str, Personnel] = {}

        for project in projects or []:
            self.save_project(project)
        for task in tasks or []:
            self.save_task(task)
        for person in personnel or []:
            self.add_personnel(person)

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def find_project_by_id(self, project_id: str) -> Project | None:
        return copy.deepcopy(self._projects.get(project_id))

    def find_project_by_remote_id(self, remote_project_id: str) -> Project | None:
        for project in self._projects.values():
            if project.remote_project_id == remote_project_id:
                return copy.deepcopy(project)
        return None

    def save_project(self, project: Project) -> Project:
        self._projects[project.id] = copy.deepcopy(project)
        return copy.deepcopy(project)

    def list_projects(self) -> list[Project]:
        return [copy.deepcopy(p) for p in self._projects.values()]

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def find_task_by_id(self, task_id: str) -> Task | None:
        return copy.deepcopy(self._tasks.get(task_id))

    def find_task_by_remote_issue_id(self, linear_issue_id: str) -> Task | None:
        for task in self._tasks.values():
            if task.linear_issue_id == linear_issue_id:
                return copy.deepcopy(task)
        return None

    def find_tasks_by_project(self, project_id: str) -> list[Task]:
        return [copy.deepcopy(t) for t in self._tasks.values() if t.project_id == project_id]

    def save_task(self, task: Task) -> Task:
        self._tasks[task.id] = copy.deepcopy(task)
        return copy.deepcopy(task)

    # -------------------------------------------------------------------------
    # Personnel
    # -------------------------------------------------------------------------

    def find_personnel_by_email(self, email: str) -> Personnel | None:
        for person in self._personnel.values():
            if person.matches_email(email):
                return copy.deepcopy(person)
        return None

    def add_personnel(self, person: Personnel) -> Personnel:
        self._personnel[person.id] = copy.deepcopy(person)
        return person
