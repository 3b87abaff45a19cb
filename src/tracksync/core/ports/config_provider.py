"""
Configuration Provider Port - Abstract interface for configuration.

Implementations:
- EnvironmentConfigProvider: Load from env vars and .env
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tracksync.core.domain.enums import OrphanPolicy


DEFAULT_LINEAR_API_URL = "https://api.linear.app/graphql"
DEFAULT_DB_PATH = "tracksync.db"


@dataclass
class LinearConfig:
    """Configuration for the Linear tracker connection."""

    api_key: str = ""
    api_url: str = DEFAULT_LINEAR_API_URL
    timeout: int = 30
    max_retries: int = 3
    requests_per_second: float | None = 1.0

    # When the stored access token stops being valid (None = never expires)
    token_expires_at: datetime | None = None

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return bool(self.api_key and self.api_url)


@dataclass
class SyncConfig:
    """Configuration for sync operations."""

    default_team_id: str | None = None
    orphan_policy: OrphanPolicy = OrphanPolicy.LEAVE
    verbose: bool = False

    # Shared secret for verifying webhook signatures (None = accept unsigned)
    webhook_secret: str | None = None


@dataclass
class StorageConfig:
    """Configuration for the local system of record."""

    db_path: str = DEFAULT_DB_PATH


@dataclass
class AppConfig:
    """Complete application configuration."""

    linear: LinearConfig = field(default_factory=LinearConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.linear.api_key:
            errors.append("Missing Linear API key (LINEAR_API_KEY)")
        if not self.linear.api_url:
            errors.append("Missing Linear API URL (LINEAR_API_URL)")
        if self.linear.timeout <= 0:
            errors.append("LINEAR_TIMEOUT must be positive")
        if self.linear.max_retries < 0:
            errors.append("LINEAR_MAX_RETRIES must not be negative")
        if not self.storage.db_path:
            errors.append("Missing database path (TRACKSYNC_DB_PATH)")

        return errors


class ConfigProviderPort(ABC):
    """
    Abstract interface for configuration providers.

    Configuration can come from various sources:
    - Environment variables
    - .env files
    - Command line arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """
        Load configuration from source.

        Returns:
            Complete application configuration
        """
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration value.

        Args:
            key: Configuration key (dot notation supported)
            default: Default value if not found

        Returns:
            Configuration value
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key: Configuration key
            value: Value to set
        """
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """
        Validate loaded configuration.

        Returns:
            List of validation errors
        """
        ...
