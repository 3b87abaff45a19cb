"""
Environment Config Provider - Load configuration from environment variables.

Supports:
- Environment variables (LINEAR_API_KEY, TRACKSYNC_DB_PATH, ...)
- .env files
- Command line argument overrides

Precedence: CLI overrides > environment > .env file.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tracksync.core.domain.enums import OrphanPolicy
from tracksync.core.exceptions import ConfigError
from tracksync.core.ports.config_provider import (
    DEFAULT_DB_PATH,
    DEFAULT_LINEAR_API_URL,
    AppConfig,
    ConfigProviderPort,
    LinearConfig,
    StorageConfig,
    SyncConfig,
)


ENV_MAPPING = {
    "LINEAR_API_KEY": "linear_api_key",
    "LINEAR_API_URL": "linear_api_url",
    "LINEAR_TIMEOUT": "linear_timeout",
    "LINEAR_MAX_RETRIES": "linear_max_retries",
    "LINEAR_REQUESTS_PER_SECOND": "linear_requests_per_second",
    "LINEAR_TOKEN_EXPIRES_AT": "linear_token_expires_at",
    "LINEAR_TEAM_ID": "team_id",
    "LINEAR_WEBHOOK_SECRET": "webhook_secret",
    "TRACKSYNC_DB_PATH": "db_path",
    "TRACKSYNC_ORPHAN_POLICY": "orphan_policy",
    "TRACKSYNC_VERBOSE": "verbose",
}

BOOLEAN_KEYS = frozenset({"verbose"})

# CLI argument name -> config key
CLI_MAPPING = {
    "api_key": "linear_api_key",
    "api_url": "linear_api_url",
    "team": "team_id",
    "db": "db_path",
    "orphan_policy": "orphan_policy",
    "verbose": "verbose",
}


def _coerce_bool(value: Any) -> Any:
    if isinstance(value, str):
        if value.lower() in ("true", "1", "yes"):
            return True
        if value.lower() in ("false", "0", "no"):
            return False
    return value


class EnvironmentConfigProvider(ConfigProviderPort):
    """
    Configuration provider that loads from environment variables and .env files.
    """

    def __init__(
        self,
        env_file: Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ):
        """
        Initialize the config provider.

        Args:
            env_file: Path to .env file (auto-detected in the working directory if not specified)
            cli_overrides: Command line argument overrides
        """
        self._values: dict[str, Any] = {}
        self._env_file = Path(env_file) if env_file else None
        self._cli_overrides = cli_overrides or {}

        # Load configuration
        self._load_env_file()
        self._load_environment()
        self._apply_cli_overrides()

    # -------------------------------------------------------------------------
    # ConfigProviderPort Implementation
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Environment"

    def load(self) -> AppConfig:
        """
        Load complete configuration.

        Raises:
            ConfigError: If a value cannot be converted to its type
        """
        rps = self.get("linear_requests_per_second")
        linear = LinearConfig(
            api_key=self.get("linear_api_key", ""),
            api_url=self.get("linear_api_url", DEFAULT_LINEAR_API_URL),
            timeout=self._get_number("linear_timeout", 30, int),
            max_retries=self._get_number("linear_max_retries", 3, int),
            requests_per_second=(
                None
                if isinstance(rps, str) and rps.lower() in ("", "none", "off")
                else self._get_number("linear_requests_per_second", 1.0, float)
            ),
            token_expires_at=self._get_datetime("linear_token_expires_at"),
        )

        sync = SyncConfig(
            default_team_id=self.get("team_id"),
            orphan_policy=self._get_orphan_policy(),
            verbose=bool(self.get("verbose", False)),
            webhook_secret=self.get("webhook_secret"),
        )

        storage = StorageConfig(db_path=self.get("db_path", DEFAULT_DB_PATH))

        return AppConfig(linear=linear, sync=sync, storage=storage)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        # Normalize key
        key = key.lower().replace("-", "_").replace(".", "_")

        # Check CLI overrides first
        if key in self._cli_overrides and self._cli_overrides[key] is not None:
            return self._cli_overrides[key]

        # Check loaded values
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        key = key.lower().replace("-", "_").replace(".", "_")
        self._values[key] = value

    def validate(self) -> list[str]:
        """Validate configuration."""
        try:
            return self.load().validate()
        except ConfigError as e:
            return [str(e)]

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _load_env_file(self) -> None:
        """Load values from .env file."""
        env_file = self._find_env_file()
        if not env_file:
            return

        for line in env_file.read_text().splitlines():
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue

            # Parse key=value
            if "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            if key.startswith("export "):
                key = key[len("export ") :].strip()
            value = value.strip().strip('"').strip("'")

            config_key = ENV_MAPPING.get(key)
            if config_key is None:
                continue
            if config_key in BOOLEAN_KEYS:
                value = _coerce_bool(value)
            self._values[config_key] = value

    def _find_env_file(self) -> Path | None:
        """Find .env file."""
        if self._env_file is not None:
            return self._env_file if self._env_file.exists() else None

        # Check current directory
        cwd_env = Path.cwd() / ".env"
        if cwd_env.exists():
            return cwd_env

        return None

    def _load_environment(self) -> None:
        """Load values from environment variables."""
        for env_key, config_key in ENV_MAPPING.items():
            raw_value = os.environ.get(env_key)
            if raw_value is None:
                continue

            final_value: Any = raw_value
            if config_key in BOOLEAN_KEYS:
                final_value = _coerce_bool(raw_value)

            self._values[config_key] = final_value

    def _apply_cli_overrides(self) -> None:
        """Apply CLI argument overrides."""
        for cli_key, config_key in CLI_MAPPING.items():
            if cli_key in self._cli_overrides and self._cli_overrides[cli_key] is not None:
                self._values[config_key] = self._cli_overrides[cli_key]

    def _get_number(self, key: str, default: Any, kind: type) -> Any:
        value = self.get(key)
        if value is None or value == "":
            return default
        try:
            return kind(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {key.upper()}: {value!r}", cause=e) from e

    def _get_datetime(self, key: str) -> datetime | None:
        value = self.get(key)
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError as e:
            raise ConfigError(f"Invalid timestamp for {key.upper()}: {value!r}", cause=e) from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _get_orphan_policy(self) -> OrphanPolicy:
        value = self.get("orphan_policy")
        if value is None or value == "":
            return OrphanPolicy.LEAVE
        if isinstance(value, OrphanPolicy):
            return value
        try:
            return OrphanPolicy.from_string(str(value))
        except ValueError as e:
            raise ConfigError(str(e), cause=e) from e
