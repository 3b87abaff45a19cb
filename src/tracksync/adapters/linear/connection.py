"""
Workspace connection - Building a tracker client from stored credentials.

There is exactly one active workspace connection. Building a client from it
fails closed: with no usable connection there is no client, and the caller
receives an Err describing why instead of an instance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from tracksync.core.ports.config_provider import LinearConfig
from tracksync.core.ports.remote_tracker import RemoteTrackerPort
from tracksync.core.result import Err, Ok, Result

from .adapter import LinearAdapter


logger = logging.getLogger("LinearConnection")


@dataclass(frozen=True)
class WorkspaceConnection:
    """The stored workspace row the tracker client is built from."""

    access_token: str | None
    integration_status: str = "active"  # active, paused, disconnected
    is_connected: bool = True
    token_expires_at: datetime | None = None
    name: str = ""

    @classmethod
    def from_config(cls, config: LinearConfig, name: str = "") -> WorkspaceConnection:
        """A connection backed by configured credentials."""
        return cls(
            access_token=config.api_key or None,
            token_expires_at=config.token_expires_at,
            name=name,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.token_expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.token_expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires <= now

    def unusable_reason(self, now: datetime | None = None) -> str | None:
        """Why no client can be built from this connection, or None if it is usable."""
        if not self.access_token:
            return "No Linear access token configured"
        if not self.is_connected:
            return "Linear workspace is disconnected"
        if self.integration_status != "active":
            return f"Linear integration is {self.integration_status}"
        if self.is_expired(now):
            return "Linear access token has expired"
        return None


def connect_tracker(
    connection: WorkspaceConnection | None,
    config: LinearConfig | None = None,
    now: datetime | None = None,
) -> Result[RemoteTrackerPort, str]:
    """
    Build a LinearAdapter from the active workspace connection.

    Args:
        connection: Stored workspace connection (None if there is none)
        config: Transport settings (URL, timeout, retries); the access token
            always comes from the connection
        now: Current time for the expiry check

    Returns:
        Ok(LinearAdapter) or Err(reason)
    """
    if connection is None:
        return Err("No active Linear workspace connection")

    reason = connection.unusable_reason(now)
    if reason is not None:
        logger.warning(reason)
        return Err(reason)

    base = config or LinearConfig()
    adapter = LinearAdapter(config=replace(base, api_key=connection.access_token or ""))
    logger.debug(f"Connected tracker for workspace {connection.name or '<unnamed>'}")
    return Ok(adapter)


class TrackerFactory:
    """
    Produces the tracker for the orchestrator, caching a successful build.

    Failures are not cached, so a later call retries once the connection is
    fixed. refresh() drops the cached client (e.g. after a token rotation).
    """

    def __init__(
        self,
        connection_loader: Callable[[], WorkspaceConnection | None],
        config: LinearConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            connection_loader: Returns the current workspace connection
            config: Transport settings passed to connect_tracker
            clock: Returns the current time (defaults to UTC now)
        """
        self._connection_loader = connection_loader
        self._config = config
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tracker: RemoteTrackerPort | None = None
        self._connection: WorkspaceConnection | None = None

    def __call__(self) -> Result[RemoteTrackerPort, str]:
        if self._tracker is not None and self._connection is not None:
            # A cached client must not outlive its token
            reason = self._connection.unusable_reason(self._clock())
            if reason is None:
                return Ok(self._tracker)
            self.refresh()

        connection = self._connection_loader()
        result = connect_tracker(connection, self._config, now=self._clock())
        if result.is_ok():
            self._tracker = result.unwrap()
            self._connection = connection
        return result

    def refresh(self) -> None:
        """Drop the cached tracker so the next call rebuilds it."""
        if isinstance(self._tracker, LinearAdapter):
            self._tracker.close()
        self._tracker = None
        self._connection = None
