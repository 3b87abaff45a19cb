"""
Sync module - Orchestrates synchronization with the remote tracker.
"""

from .orchestrator import (
    FailedOperation,
    IssueSyncResult,
    ProjectSyncStatus,
    SyncMetrics,
    SyncOrchestrator,
    SyncResult,
)
from .webhook import WebhookHandler, WebhookResult


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
