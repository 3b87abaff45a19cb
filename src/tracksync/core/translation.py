"""
Translation tables between local and remote vocabularies.

Pure, total and deterministic. The outbound direction is exact. The inbound
direction never raises: remote names are trimmed and matched
case-insensitively, and anything unrecognized degrades to a safe default
(project -> planning, task -> backlog, priority -> medium) with a WARNING on
the ``tracksync.translation`` logger.
"""

from __future__ import annotations

import logging

from .domain.enums import ProjectStatus, TaskPriority, TaskStatus


logger = logging.getLogger("tracksync.translation")


DEFAULT_PROJECT_STATUS = ProjectStatus.PLANNING
DEFAULT_TASK_STATUS = TaskStatus.BACKLOG
DEFAULT_TASK_PRIORITY = TaskPriority.MEDIUM

PROJECT_STATUS_TO_REMOTE: dict[ProjectStatus, str] = {
    ProjectStatus.PLANNING: "planned",
    ProjectStatus.ACTIVE: "started",
    ProjectStatus.ON_HOLD: "paused",
    ProjectStatus.COMPLETED: "completed",
    ProjectStatus.CANCELLED: "canceled",
}

TASK_STATUS_TO_REMOTE: dict[TaskStatus, str] = {
    TaskStatus.BACKLOG: "backlog",
    TaskStatus.TODO: "todo",
    TaskStatus.IN_PROGRESS: "in progress",
    TaskStatus.IN_REVIEW: "in review",
    TaskStatus.DONE: "done",
    TaskStatus.CANCELLED: "canceled",
}

PRIORITY_TO_REMOTE: dict[TaskPriority, int] = {
    TaskPriority.NONE: 0,
    TaskPriority.URGENT: 1,
    TaskPriority.HIGH: 2,
    TaskPriority.MEDIUM: 3,
    TaskPriority.LOW: 4,
}

PROJECT_STATUS_FROM_REMOTE = {v: k for k, v in PROJECT_STATUS_TO_REMOTE.items()}
TASK_STATUS_FROM_REMOTE = {v: k for k, v in TASK_STATUS_TO_REMOTE.items()}
PRIORITY_FROM_REMOTE = {v: k for k, v in PRIORITY_TO_REMOTE.items()}


def _normalize(value: str | None) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


# =============================================================================
# Project Status
# =============================================================================


def project_status_to_remote(status: ProjectStatus) -> str:
    """Local project status to the remote project state name."""
    return PROJECT_STATUS_TO_REMOTE[status]


def project_status_from_remote(state: str | None) -> ProjectStatus:
    """
    Remote project state to local project status.

    Args:
        state: Remote state such as "started" or "Canceled".

    Returns:
        The matching ProjectStatus, or PLANNING if the state is unknown.
    """
    status = PROJECT_STATUS_FROM_REMOTE.get(_normalize(state))
    if status is None:
        logger.warning(
            f"Unrecognized remote project state {state!r}, "
            f"defaulting to {DEFAULT_PROJECT_STATUS.value}"
        )
        return DEFAULT_PROJECT_STATUS
    return status


# =============================================================================
# Task Status
# =============================================================================


def task_status_to_remote(status: TaskStatus) -> str:
    """Local task status to the remote workflow state name (lowercase)."""
    return TASK_STATUS_TO_REMOTE[status]


def task_status_from_remote(state_name: str | None) -> TaskStatus:
    """
    Remote workflow state name to local task status.

    Args:
        state_name: Free-text remote state name such as "In Progress".

    Returns:
        The matching TaskStatus, or BACKLOG if the name is unknown.
    """
    status = TASK_STATUS_FROM_REMOTE.get(_normalize(state_name))
    if status is None:
        logger.warning(
            f"Unrecognized remote issue state {state_name!r}, "
            f"defaulting to {DEFAULT_TASK_STATUS.value}"
        )
        return DEFAULT_TASK_STATUS
    return status


# =============================================================================
# Priority
# =============================================================================


def priority_to_remote(priority: TaskPriority) -> int:
    """Local task priority to the remote priority integer (0..4)."""
    return PRIORITY_TO_REMOTE[priority]


def priority_from_remote(priority: int | None) -> TaskPriority:
    """
    Remote priority integer to local task priority.

    0 means "no priority" remotely and maps to NONE. A missing or out of
    range value maps to MEDIUM.
    """
    # bool is an int subclass but never a valid priority
    if isinstance(priority, bool) or not isinstance(priority, int):
        result = None
    else:
        result = PRIORITY_FROM_REMOTE.get(priority)

    if result is None:
        logger.warning(
            f"Unrecognized remote priority {priority!r}, "
            f"defaulting to {DEFAULT_TASK_PRIORITY.value}"
        )
        return DEFAULT_TASK_PRIORITY
    return result
