"""
Sync Orchestrator - Coordinates synchronization with the remote tracker.

This is the main entry point for sync operations. Every operation loads one
entity, talks to the tracker, and writes the outcome back in a single save:
domain fields and ``synced`` are committed together, or only ``sync_failed``
and the error message are written. Remote failures never escape as
exceptions; NotLinkedError/NotFoundError are raised before anything changes.

The orchestrator holds no locks. Callers must ensure at most one in-flight
operation per entity id.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from tracksync.core.domain.entities import Project, Task, clamp_progress
from tracksync.core.domain.enums import (
    OrphanPolicy,
    ProjectStatus,
    SyncStatus,
    TaskStatus,
    WebhookAction,
)
from tracksync.core.domain.events import (
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
from tracksync.core.domain.snapshots import (
    IssueInput,
    ProjectInput,
    RemoteIssue,
    RemoteProject,
)
from tracksync.core.exceptions import (
    AlreadyLinkedError,
    NotFoundError,
    NotLinkedError,
    RemoteError,
    TrackerUnavailableError,
)
from tracksync.core.ports.config_provider import SyncConfig
from tracksync.core.ports.remote_tracker import RemoteTrackerPort
from tracksync.core.ports.repository import RepositoryPort
from tracksync.core.result import Result
from tracksync.core.translation import (
    priority_from_remote,
    priority_to_remote,
    project_status_from_remote,
    project_status_to_remote,
    task_status_from_remote,
    task_status_to_remote,
)


MATERIALIZED_DESCRIPTION = "Synced from Linear issue {identifier}"

TrackerFactory = Callable[[], Result[RemoteTrackerPort, str]]


@dataclass
class FailedOperation:
    """
    Details of a failed operation during sync.

    Provides context about what failed, where, and why for
    better error reporting and debugging.
    """

    operation: str  # e.g., "sync_issue", "handle_orphan"
    entity_id: str  # Local task id, or the remote id when no task exists yet
    error: str
    remote_id: str = ""
    recoverable: bool = True

    def __str__(self) -> str:
        """Format as human-readable error message."""
        if self.remote_id and self.remote_id != self.entity_id:
            return f"[{self.operation}] {self.entity_id} (remote {self.remote_id}): {self.error}"
        return f"[{self.operation}] {self.entity_id}: {self.error}"


@dataclass
class SyncResult:
    """
    Result of a single-entity sync operation.

    Attributes:
        operation: Name of the orchestrator operation.
        entity_id: Local id of the project or task operated on.
        success: False when a remote failure was recorded on the entity.
        project: The project as persisted after the operation.
        task: The task as persisted after the operation.
        remote_id: Remote id involved (project or issue).
        errors: Error messages.
        warnings: Warning messages.
    """

    operation: str = ""
    entity_id: str = ""
    success: bool = True
    project: Project | None = None
    task: Task | None = None
    remote_id: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: str) -> None:
        """
        Add an error message and mark sync as failed.

        Args:
            error: Error message to add.
        """
        self.errors.append(error)
        self.success = False

    def add_warning(self, warning: str) -> None:
        """Add a warning message (does not affect success status)."""
        self.warnings.append(warning)

    @property
    def error(self) -> str | None:
        """First error message, if any."""
        return self.errors[0] if self.errors else None

    def summary(self) -> str:
        """Generate a one-line human-readable summary."""
        if self.success:
            return f"✓ {self.operation} {self.entity_id} succeeded"
        return f"✗ {self.operation} {self.entity_id} failed: {self.error}"


@dataclass
class IssueSyncResult(SyncResult):
    """
    Result of reconciling a project's remote issues with local tasks.

    Supports partial success: a failing issue is recorded in
    failed_operations while the rest of the batch is still applied.
    """

    created: list[str] = field(default_factory=list)  # local task ids
    updated: list[str] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)
    failed_operations: list[FailedOperation] = field(default_factory=list)

    def add_failed_operation(
        self,
        operation: str,
        entity_id: str,
        error: str,
        remote_id: str = "",
        recoverable: bool = True,
    ) -> None:
        """
        Add a failed operation with detailed context.

        Args:
            operation: The operation that failed.
            entity_id: The local (or remote) id being operated on.
            error: The error message.
            remote_id: The remote issue id if applicable.
            recoverable: Whether sync continued after this failure.
        """
        failed = FailedOperation(
            operation=operation,
            entity_id=entity_id,
            error=error,
            remote_id=remote_id,
            recoverable=recoverable,
        )
        self.failed_operations.append(failed)
        self.errors.append(str(failed))
        self.success = False

    @property
    def partial_success(self) -> bool:
        """True if there are both successes and failures."""
        has_successes = bool(self.created or self.updated)
        return has_successes and bool(self.failed_operations)

    @property
    def total_operations(self) -> int:
        """Total number of issues attempted."""
        return len(self.created) + len(self.updated) + len(self.failed_operations)

    @property
    def success_rate(self) -> float:
        """
        Calculate the success rate of operations.

        Returns:
            Fraction of successful operations (0.0 to 1.0).
        """
        total = self.total_operations
        if total == 0:
            return 1.0
        return (total - len(self.failed_operations)) / total

    def summary(self) -> str:
        """
        Generate a human-readable summary of the issue sync.

        Returns:
            Multi-line summary string.
        """
        lines = []

        if self.success:
            lines.append("✓ Issue sync completed successfully")
        elif self.partial_success:
            lines.append(f"⚠ Issue sync completed with errors ({len(self.failed_operations)} failures)")
        else:
            lines.append(f"✗ Issue sync failed ({len(self.errors)} errors)")

        lines.append(f"  Tasks created: {len(self.created)}")
        lines.append(f"  Tasks updated: {len(self.updated)}")
        lines.append(f"  Orphaned tasks: {len(self.orphaned)}")

        if self.failed_operations:
            lines.append("")
            lines.append("Failed operations:")
            for failed in self.failed_operations[:10]:  # Limit to first 10
                lines.append(f"  • {failed}")
            if len(self.failed_operations) > 10:
                lines.append(f"  ... and {len(self.failed_operations) - 10} more")
        elif self.errors:
            lines.append("")
            for error in self.errors:
                lines.append(f"  • {error}")

        return "\n".join(lines)


@dataclass
class SyncMetrics:
    """Task counts by sync status for one project."""

    total: int = 0
    synced: int = 0
    pending: int = 0
    failed: int = 0
    not_synced: int = 0

    @classmethod
    def from_tasks(cls, tasks: list[Task]) -> SyncMetrics:
        metrics = cls(total=len(tasks))
        for task in tasks:
            if task.sync_status == SyncStatus.SYNCED:
                metrics.synced += 1
            elif task.sync_status == SyncStatus.PENDING_SYNC:
                metrics.pending += 1
            elif task.sync_status == SyncStatus.SYNC_FAILED:
                metrics.failed += 1
            else:
                metrics.not_synced += 1
        return metrics


@dataclass
class ProjectSyncStatus:
    """
    Read-only view of a project's sync health.

    remote_project is best-effort: when fetching it fails the error is kept
    in remote_error and the rest of the view is still returned.
    """

    project: Project
    metrics: SyncMetrics
    remote_project: RemoteProject | None = None
    remote_error: str | None = None

    @property
    def is_linked(self) -> bool:
        return self.project.is_linked


class SyncOrchestrator:
    """
    Orchestrates synchronization between local records and the remote tracker.

    Operations:
    - create_remote_project: create a remote project for a local one and link it
    - push_project_to_remote: overwrite the remote project from local fields
    - pull_project_from_remote: overwrite the local project from the remote one
    - sync_project_issues: reconcile remote issues into local tasks
    - get_project_sync_status: read-only health view
    - push_task_to_remote / pull_task_from_remote: single task round trips
    - apply_remote_issue / apply_remote_project: webhook-driven updates
    """

    def __init__(
        self,
        repository: RepositoryPort,
        tracker: RemoteTrackerPort | None = None,
        tracker_factory: TrackerFactory | None = None,
        config: SyncConfig | None = None,
        event_bus: EventBus | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            repository: Local repository port
            tracker: Remote tracker to use for every operation
            tracker_factory: Produces the tracker per operation (used when
                tracker is None); an Err is treated as an unreachable remote
            config: Sync configuration
            event_bus: Optional event bus
            clock: Returns the current time (defaults to UTC now)
        """
        self.repository = repository
        self.tracker = tracker
        self.tracker_factory = tracker_factory
        self.config = config or SyncConfig()
        self.event_bus = event_bus or EventBus()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logging.getLogger("SyncOrchestrator")

    # -------------------------------------------------------------------------
    # Project Operations
    # -------------------------------------------------------------------------

    def create_remote_project(self, project: Project, team_id: str) -> SyncResult:
        """
        Create the remote counterpart of a local project and link the two.

        On success remote_project_id, remote_team_id, sync_enabled and synced
        are written together. On failure only sync_failed and the message are
        written; every domain field and any previous link stay as they were.

        Args:
            project: Local project without a remote_project_id
            team_id: Remote team that will own the project

        Returns:
            SyncResult with the persisted project

        Raises:
            AlreadyLinkedError: If the project is already linked (push instead)
        """
        operation = "create_remote_project"
        if project.remote_project_id:
            raise AlreadyLinkedError(
                f"Project {project.id} is already linked to {project.remote_project_id}",
                entity_id=project.id,
            )

        self._publish(SyncStarted(operation=operation, entity_id=project.id))

        data = ProjectInput(
            name=project.name,
            description=project.description or None,
            state=project_status_to_remote(project.status),
            start_date=project.start_date,
            target_date=project.end_date,
            team_ids=(team_id,),
        )

        try:
            remote = self._get_tracker().create_project(data)
        except RemoteError as e:
            return self._fail_project(project, operation, e)

        updated = replace(
            project,
            remote_project_id=remote.id,
            remote_team_id=team_id,
            sync_enabled=True,
        )
        updated.mark_synced(self._now())
        saved = self.repository.save_project(updated)

        self.logger.info(f"Created remote project {remote.id} for project {project.id}")
        self._publish(
            ProjectLinked(project_id=project.id, remote_project_id=remote.id, remote_team_id=team_id)
        )
        return SyncResult(operation=operation, entity_id=project.id, project=saved, remote_id=remote.id)

    def push_project_to_remote(self, project_id: str) -> SyncResult:
        """
        Overwrite the linked remote project with the local fields.

        Args:
            project_id: Local project id

        Returns:
            SyncResult with the persisted project

        Raises:
            NotFoundError: If the project does not exist
            NotLinkedError: If the project has no remote_project_id
        """
        operation = "push_project_to_remote"
        project = self._require_project(project_id)
        if not project.remote_project_id:
            raise NotLinkedError(f"Project {project_id} is not linked to Linear", entity_id=project_id)

        self._publish(SyncStarted(operation=operation, entity_id=project_id))
        self._flag_project_pending(project)

        data = ProjectInput(
            name=project.name,
            description=project.description,
            state=project_status_to_remote(project.status),
            start_date=project.start_date,
            target_date=project.end_date,
        )

        try:
            self._get_tracker().update_project(project.remote_project_id, data)
        except RemoteError as e:
            return self._fail_project(project, operation, e)

        updated = replace(project)
        updated.mark_synced(self._now())
        saved = self.repository.save_project(updated)

        self.logger.info(f"Pushed project {project_id} to {project.remote_project_id}")
        self._publish(ProjectPushed(project_id=project_id, remote_project_id=project.remote_project_id))
        return SyncResult(
            operation=operation,
            entity_id=project_id,
            project=saved,
            remote_id=project.remote_project_id,
        )

    def pull_project_from_remote(self, remote_project_id: str) -> SyncResult:
        """
        Overwrite the local project from its remote snapshot.

        Remote wins for every field the snapshot supplies; description, dates
        and progress keep their local values when the remote leaves them empty.

        Args:
            remote_project_id: Remote project id

        Returns:
            SyncResult with the persisted project

        Raises:
            NotFoundError: If no local project is linked to remote_project_id
        """
        operation = "pull_project_from_remote"
        project = self.repository.find_project_by_remote_id(remote_project_id)
        if project is None:
            raise NotFoundError(
                f"No local project linked to {remote_project_id}",
                entity_type="project",
                entity_id=remote_project_id,
            )

        self._publish(SyncStarted(operation=operation, entity_id=project.id))

        try:
            remote = self._get_tracker().get_project(remote_project_id)
        except RemoteError as e:
            return self._fail_project(project, operation, e)

        updated = self._apply_remote_project_fields(project, remote)
        updated.mark_synced(self._now())
        saved = self.repository.save_project(updated)

        changes = _diff(project, updated, ("name", "description", "status", "start_date", "end_date", "progress"))
        self.logger.info(f"Pulled project {project.id} from {remote_project_id} ({len(changes)} changes)")
        self._publish(
            ProjectPulled(project_id=project.id, remote_project_id=remote_project_id, changes=changes)
        )
        return SyncResult(
            operation=operation,
            entity_id=project.id,
            project=saved,
            remote_id=remote_project_id,
        )

    def get_project_sync_status(self, project_id: str) -> ProjectSyncStatus:
        """
        Aggregate a project's sync health without changing anything.

        A failure fetching the remote snapshot does not fail the call; it only
        omits the snapshot.

        Raises:
            NotFoundError: If the project does not exist
        """
        project = self._require_project(project_id)

        remote_project = None
        remote_error = None
        if project.remote_project_id:
            try:
                remote_project = self._get_tracker().get_project(project.remote_project_id)
            except RemoteError as e:
                remote_error = str(e)
                self.logger.warning(f"Could not fetch remote project for {project_id}: {e}")

        tasks = self.repository.find_tasks_by_project(project_id)
        return ProjectSyncStatus(
            project=project,
            metrics=SyncMetrics.from_tasks(tasks),
            remote_project=remote_project,
            remote_error=remote_error,
        )

    # -------------------------------------------------------------------------
    # Issue Reconciliation
    # -------------------------------------------------------------------------

    def sync_project_issues(self, project_id: str) -> IssueSyncResult:
        """
        Reconcile every remote issue of a linked project into local tasks.

        One list call fetches all issues. Each issue then updates the task
        linked to it or materializes a new one, already synced. A failing
        issue is recorded and the rest of the batch continues. Linked tasks
        whose issue is no longer in the list are handled by the configured
        orphan policy.

        Args:
            project_id: Local project id

        Returns:
            IssueSyncResult with created/updated/orphaned task ids

        Raises:
            NotFoundError: If the project does not exist
            NotLinkedError: If the project has no remote_project_id
        """
        operation = "sync_project_issues"
        project = self._require_project(project_id)
        if not project.remote_project_id:
            raise NotLinkedError(f"Project {project_id} is not linked to Linear", entity_id=project_id)

        result = IssueSyncResult(
            operation=operation, entity_id=project_id, remote_id=project.remote_project_id
        )
        self._publish(SyncStarted(operation=operation, entity_id=project_id))

        try:
            issues = self._get_tracker().get_project_issues(project.remote_project_id)
        except RemoteError as e:
            failed = self._fail_project(project, operation, e)
            result.project = failed.project
            result.add_error(failed.error or str(e))
            return result

        if project.sync_status == SyncStatus.SYNC_FAILED:
            recovered = replace(project)
            recovered.mark_synced(self._now())
            project = self.repository.save_project(recovered)
            self.logger.info(f"Project {project_id} recovered from a failed sync")

        self.logger.debug(f"Reconciling {len(issues)} issues for project {project_id}")
        seen: set[str] = set()

        for issue in issues:
            seen.add(issue.id)
            try:
                task, created = self._reconcile_issue(project, issue)
            except Exception as e:
                self.logger.error(f"Failed to sync issue {issue.identifier}: {e}")
                failed_task = self._mark_issue_task_failed(issue.id, str(e))
                result.add_failed_operation(
                    operation="sync_issue",
                    entity_id=failed_task.id if failed_task else issue.identifier,
                    error=str(e),
                    remote_id=issue.id,
                )
                continue

            (result.created if created else result.updated).append(task.id)

        self._handle_orphans(project, seen, result)
        result.project = project

        self.logger.info(
            f"Issue sync for {project_id}: {len(result.created)} created, "
            f"{len(result.updated)} updated, {len(result.failed_operations)} failed, "
            f"{len(result.orphaned)} orphaned"
        )
        self._publish(
            IssuesReconciled(
                project_id=project_id,
                created=len(result.created),
                updated=len(result.updated),
                failed=len(result.failed_operations),
                orphaned=len(result.orphaned),
            )
        )
        return result

    def _reconcile_issue(self, project: Project, issue: RemoteIssue) -> tuple[Task, bool]:
        """Apply one remote issue; returns the saved task and whether it was created."""
        existing = self.repository.find_task_by_remote_issue_id(issue.id)
        now = self._now()

        if existing is not None:
            task = self._apply_issue_fields(existing, issue, now, include_description=False)
            task.mark_synced(now)
            saved = self.repository.save_task(task)
            self._publish(TaskUpdated(task_id=saved.id, linear_issue_id=issue.id, direction="pull"))
            return saved, False

        task = self._materialize_task(project, issue, now)
        saved = self.repository.save_task(task)
        self._publish(
            TaskMaterialized(task_id=saved.id, linear_issue_id=issue.id, linear_issue_key=issue.identifier)
        )
        return saved, True

    def _handle_orphans(self, project: Project, seen: set[str], result: IssueSyncResult) -> None:
        """Apply the orphan policy to linked tasks absent from the remote list."""
        policy = self.config.orphan_policy

        for task in self.repository.find_tasks_by_project(project.id):
            if not task.linear_issue_id or task.linear_issue_id in seen:
                continue

            result.orphaned.append(task.id)
            if policy == OrphanPolicy.LEAVE:
                continue

            try:
                if policy == OrphanPolicy.MARK_NOT_SYNCED:
                    task.mark_not_synced()
                elif policy == OrphanPolicy.ARCHIVE:
                    task.set_status(TaskStatus.CANCELLED, self._now())
                    task.mark_synced(self._now())
                self.repository.save_task(task)
            except Exception as e:
                self.logger.error(f"Failed to apply orphan policy to task {task.id}: {e}")
                result.add_failed_operation(
                    operation="handle_orphan",
                    entity_id=task.id,
                    error=str(e),
                    remote_id=task.linear_issue_id,
                )

        if result.orphaned:
            result.add_warning(
                f"{len(result.orphaned)} linked task(s) no longer in the remote project "
                f"(policy: {policy.value})"
            )

    # -------------------------------------------------------------------------
    # Task Operations
    # -------------------------------------------------------------------------

    def push_task_to_remote(self, task_id: str) -> SyncResult:
        """
        Create or update the remote issue of a task.

        A task without linear_issue_id gets a new issue in its project's
        remote project; otherwise the linked issue is overwritten.

        Raises:
            NotFoundError: If the task or its project does not exist
            NotLinkedError: If the task's project is not linked remotely
        """
        operation = "push_task_to_remote"
        task = self._require_task(task_id)
        if not task.project_id:
            raise NotLinkedError(f"Task {task_id} does not belong to a project", entity_id=task_id)

        project = self._require_project(task.project_id)
        if not project.remote_project_id:
            raise NotLinkedError(
                f"Project {project.id} of task {task_id} is not linked to Linear",
                entity_id=project.id,
            )
        if not project.remote_team_id:
            raise NotLinkedError(
                f"Project {project.id} has no remote team to create issues in",
                entity_id=project.id,
            )

        self._publish(SyncStarted(operation=operation, entity_id=task_id))
        self._flag_task_pending(task)

        data = IssueInput(
            title=task.title,
            description=task.description,
            state_name=task_status_to_remote(task.status),
            priority=priority_to_remote(task.priority),
            team_id=project.remote_team_id,
            project_id=project.remote_project_id,
            due_date=task.due_date,
        )

        try:
            tracker = self._get_tracker()
            if task.linear_issue_id:
                remote = tracker.update_issue(task.linear_issue_id, data)
            else:
                remote = tracker.create_issue(data)
        except RemoteError as e:
            return self._fail_task(task, operation, e)

        updated = replace(
            task,
            linear_issue_id=remote.id,
            linear_issue_key=remote.identifier,
            remote_state_id=remote.state.id,
            remote_project_id=project.remote_project_id,
        )
        updated.mark_synced(self._now())
        saved = self.repository.save_task(updated)

        self.logger.info(f"Pushed task {task_id} to {remote.identifier}")
        self._publish(TaskUpdated(task_id=task_id, linear_issue_id=remote.id, direction="push"))
        return SyncResult(operation=operation, entity_id=task_id, task=saved, remote_id=remote.id)

    def pull_task_from_remote(self, task_id: str) -> SyncResult:
        """
        Refresh a linked task from its remote issue.

        Raises:
            NotFoundError: If the task does not exist
            NotLinkedError: If the task has no linear_issue_id
        """
        operation = "pull_task_from_remote"
        task = self._require_task(task_id)
        if not task.linear_issue_id:
            raise NotLinkedError(f"Task {task_id} is not linked to a Linear issue", entity_id=task_id)

        self._publish(SyncStarted(operation=operation, entity_id=task_id))

        try:
            issue = self._get_tracker().get_issue(task.linear_issue_id)
        except RemoteError as e:
            return self._fail_task(task, operation, e)

        now = self._now()
        updated = self._apply_issue_fields(task, issue, now, include_description=True)
        updated.mark_synced(now)
        saved = self.repository.save_task(updated)

        self._publish(TaskUpdated(task_id=task_id, linear_issue_id=issue.id, direction="pull"))
        return SyncResult(operation=operation, entity_id=task_id, task=saved, remote_id=issue.id)

    # -------------------------------------------------------------------------
    # Webhook-driven Updates
    # -------------------------------------------------------------------------

    def apply_remote_issue(
        self,
        issue: RemoteIssue,
        remote_project_id: str | None,
        action: WebhookAction,
    ) -> SyncResult:
        """
        Apply an issue change pushed by the tracker.

        create materializes a task when the issue's project is linked locally,
        update overwrites the linked task like a pull, remove cancels it.
        Changes for unknown local targets are ignored.
        """
        operation = f"apply_remote_issue:{action.value}"
        result = SyncResult(operation=operation, entity_id=issue.id, remote_id=issue.id)
        existing = self.repository.find_task_by_remote_issue_id(issue.id)
        now = self._now()

        if action == WebhookAction.CREATE and existing is None:
            project_ref = remote_project_id or issue.project_id
            project = self.repository.find_project_by_remote_id(project_ref) if project_ref else None
            if project is None:
                self.logger.info(f"Ignoring issue {issue.identifier}: project not linked locally")
                result.add_warning(f"No local project linked to {project_ref}")
                return result

            saved = self.repository.save_task(self._materialize_task(project, issue, now))
            self.logger.info(f"Created task {saved.id} from issue {issue.identifier}")
            self._publish(
                TaskMaterialized(task_id=saved.id, linear_issue_id=issue.id, linear_issue_key=issue.identifier)
            )
            result.entity_id = saved.id
            result.task = saved
            return result

        if existing is None:
            self.logger.info(f"Ignoring {action.value} for unknown issue {issue.identifier}")
            result.add_warning(f"No local task linked to {issue.id}")
            return result

        if action == WebhookAction.REMOVE:
            updated = replace(existing)
            updated.set_status(TaskStatus.CANCELLED, now)
        else:
            updated = self._apply_issue_fields(existing, issue, now, include_description=True)
        updated.mark_synced(now)
        saved = self.repository.save_task(updated)

        self.logger.info(f"Applied {action.value} of {issue.identifier} to task {saved.id}")
        self._publish(TaskUpdated(task_id=saved.id, linear_issue_id=issue.id, direction="pull"))
        result.entity_id = saved.id
        result.task = saved
        return result

    def apply_remote_project(self, project: RemoteProject, action: WebhookAction) -> SyncResult:
        """
        Apply a project change pushed by the tracker.

        update overwrites the linked project like a pull, remove cancels it.
        Remote project creation is ignored; projects are linked from the
        local side.
        """
        operation = f"apply_remote_project:{action.value}"
        result = SyncResult(operation=operation, entity_id=project.id, remote_id=project.id)

        if action == WebhookAction.CREATE:
            self.logger.info(f"Remote project created: {project.name} ({project.id})")
            return result

        local = self.repository.find_project_by_remote_id(project.id)
        if local is None:
            self.logger.info(f"Ignoring {action.value} for unlinked project {project.id}")
            result.add_warning(f"No local project linked to {project.id}")
            return result

        if action == WebhookAction.REMOVE:
            updated = replace(local, status=ProjectStatus.CANCELLED)
        else:
            updated = self._apply_remote_project_fields(local, project)
        updated.mark_synced(self._now())
        saved = self.repository.save_project(updated)

        changes = _diff(local, updated, ("name", "description", "status", "start_date", "end_date", "progress"))
        self.logger.info(f"Applied {action.value} of remote project {project.id} to {local.id}")
        self._publish(ProjectPulled(project_id=local.id, remote_project_id=project.id, changes=changes))
        result.entity_id = local.id
        result.project = saved
        return result

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        return self.clock()

    def _publish(self, event: DomainEvent) -> None:
        self.event_bus.publish(event)

    def _get_tracker(self) -> RemoteTrackerPort:
        """
        Resolve the tracker for this operation.

        Raises:
            TrackerUnavailableError: If no tracker can be produced
        """
        if self.tracker is not None:
            return self.tracker
        if self.tracker_factory is None:
            raise TrackerUnavailableError("No remote tracker configured")

        result = self.tracker_factory()
        if result.is_err():
            raise TrackerUnavailableError(str(result.unwrap_err()))
        return result.unwrap()

    def _require_project(self, project_id: str) -> Project:
        project = self.repository.find_project_by_id(project_id)
        if project is None:
            raise NotFoundError(f"Project not found: {project_id}", entity_type="project", entity_id=project_id)
        return project

    def _require_task(self, task_id: str) -> Task:
        task = self.repository.find_task_by_id(task_id)
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}", entity_type="task", entity_id=task_id)
        return task

    def _flag_project_pending(self, project: Project) -> None:
        pending = replace(project)
        pending.mark_pending()
        self.repository.save_project(pending)

    def _flag_task_pending(self, task: Task) -> None:
        pending = replace(task)
        pending.mark_pending()
        self.repository.save_task(pending)

    def _fail_project(self, project: Project, operation: str, error: RemoteError) -> SyncResult:
        """Persist sync_failed on the stored project, touching nothing else."""
        message = str(error)
        current = self.repository.find_project_by_id(project.id) or replace(project)
        current.mark_failed(message)
        saved = self.repository.save_project(current)

        self.logger.error(f"{operation} failed for project {project.id}: {message}")
        self._publish(SyncFailed(operation=operation, entity_type="project", entity_id=project.id, error=message))

        result = SyncResult(
            operation=operation,
            entity_id=project.id,
            project=saved,
            remote_id=project.remote_project_id,
        )
        result.add_error(saved.last_sync_error or message)
        return result

    def _fail_task(self, task: Task, operation: str, error: RemoteError) -> SyncResult:
        """Persist sync_failed on the stored task, touching nothing else."""
        message = str(error)
        current = self.repository.find_task_by_id(task.id) or replace(task)
        current.mark_failed(message)
        saved = self.repository.save_task(current)

        self.logger.error(f"{operation} failed for task {task.id}: {message}")
        self._publish(SyncFailed(operation=operation, entity_type="task", entity_id=task.id, error=message))

        result = SyncResult(operation=operation, entity_id=task.id, task=saved, remote_id=task.linear_issue_id)
        result.add_error(saved.last_sync_error or message)
        return result

    def _mark_issue_task_failed(self, issue_id: str, message: str) -> Task | None:
        """Best-effort sync_failed on the task linked to a failing issue."""
        try:
            task = self.repository.find_task_by_remote_issue_id(issue_id)
            if task is None:
                return None
            task.mark_failed(message)
            return self.repository.save_task(task)
        except Exception as e:
            self.logger.error(f"Could not record failure on task for issue {issue_id}: {e}")
            return None

    def _apply_remote_project_fields(self, project: Project, remote: RemoteProject) -> Project:
        """Copy of project with remote-supplied fields applied (remote wins when present)."""
        return replace(
            project,
            name=remote.name,
            description=remote.description or project.description,
            status=project_status_from_remote(remote.state),
            start_date=remote.start_date or project.start_date,
            end_date=remote.target_date or project.end_date,
            progress=(
                clamp_progress(remote.progress * 100)
                if remote.progress is not None
                else project.progress
            ),
            remote_team_id=project.remote_team_id or (remote.team_ids[0] if remote.team_ids else None),
        )

    def _apply_issue_fields(
        self,
        task: Task,
        issue: RemoteIssue,
        now: datetime,
        include_description: bool,
    ) -> Task:
        """Copy of task with the issue's title, status, priority, assignee and state applied."""
        updated = replace(
            task,
            title=issue.title,
            description=(issue.description or task.description) if include_description else task.description,
            priority=priority_from_remote(issue.priority),
            assignee_id=self._resolve_assignee(issue),
            linear_issue_key=issue.identifier,
            remote_state_id=issue.state.id,
            due_date=issue.due_date or task.due_date,
        )
        updated.set_status(task_status_from_remote(issue.state.name), now)
        return updated

    def _materialize_task(self, project: Project, issue: RemoteIssue, now: datetime) -> Task:
        """A new local task for a remote issue, created directly as synced."""
        task = Task(
            title=issue.title,
            description=issue.description or MATERIALIZED_DESCRIPTION.format(identifier=issue.identifier),
            priority=priority_from_remote(issue.priority),
            assignee_id=self._resolve_assignee(issue),
            project_id=project.id,
            due_date=issue.due_date,
            linear_issue_id=issue.id,
            linear_issue_key=issue.identifier,
            remote_project_id=project.remote_project_id,
            remote_state_id=issue.state.id,
        )
        task.set_status(task_status_from_remote(issue.state.name), now)
        task.mark_synced(now)
        return task

    def _resolve_assignee(self, issue: RemoteIssue) -> str | None:
        """Local personnel id for the issue's assignee, matched by email."""
        if issue.assignee is None or not issue.assignee.email:
            return None
        person = self.repository.find_personnel_by_email(issue.assignee.email)
        if person is None:
            self.logger.debug(f"No personnel matches {issue.assignee.email}; leaving unassigned")
            return None
        return person.id


def _diff(before: object, after: object, fields: tuple[str, ...]) -> dict[str, tuple[str, str]]:
    """Changed fields as {name: (old, new)} rendered as strings."""
    changes = {}
    for name in fields:
        old, new = getattr(before, name), getattr(after, name)
        if old != new:
            changes[name] = (_render(old), _render(new))
    return changes


def _render(value: object) -> str:
    if value is None:
        return ""
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)
