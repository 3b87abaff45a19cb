"""
Application Layer - Use cases and orchestration.

This layer contains:
- sync/: Synchronization orchestrator and webhook handling
"""

from .sync import (
    FailedOperation,
    IssueSyncResult,
    ProjectSyncStatus,
    SyncMetrics,
    SyncOrchestrator,
    SyncResult,
    WebhookHandler,
    WebhookResult,
)


__all__ = [
    "FailedOperation",
    "IssueSyncResult",
    "ProjectSyncStatus",
    "SyncMetrics",
    "SyncOrchestrator",
    "SyncResult",
    "WebhookHandler",
    "WebhookResult",
]
