"""
Ports - Abstract interfaces the core depends on.
"""

from .config_provider import (
    AppConfig,
    ConfigProviderPort,
    LinearConfig,
    StorageConfig,
    SyncConfig,
)
from .remote_tracker import RemoteTrackerPort
from .repository import RepositoryPort


__all__ = [
    "AppConfig",
    "ConfigProviderPort",
    "LinearConfig",
    "RemoteTrackerPort",
    "RepositoryPort",
    "StorageConfig",
    "SyncConfig",
]
