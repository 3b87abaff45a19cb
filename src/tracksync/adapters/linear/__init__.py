"""
Linear Adapter - Integration with Linear.

This module provides the LinearAdapter and related components for
syncing projects and tasks with the Linear issue tracker.
"""

from tracksync.adapters.linear.adapter import LinearAdapter
from tracksync.adapters.linear.client import LinearApiClient, LinearRateLimiter
from tracksync.adapters.linear.connection import (
    TrackerFactory,
    WorkspaceConnection,
    connect_tracker,
)


__all__ = [
    "LinearAdapter",
    "LinearApiClient",
    "LinearRateLimiter",
    "TrackerFactory",
    "WorkspaceConnection",
    "connect_tracker",
]
