"""
Exceptions - Centralized exception hierarchy for tracksync.

Two families matter to callers:

- Caller errors (NotLinkedError, NotFoundError) are raised immediately and
  never retried automatically.
- RemoteError and its subclasses describe any failure of the remote tracker
  (network, auth, malformed response, remote-side validation). The sync
  orchestrator catches them at its boundary and records them on the entity.
"""

from __future__ import annotations


__all__ = [
    "AccessDeniedError",
    "AlreadyLinkedError",
    "AuthenticationError",
    "ConfigError",
    "MalformedResponseError",
    "MissingConfigError",
    "NotFoundError",
    "NotLinkedError",
    "RateLimitError",
    "RemoteError",
    "RemoteNotFoundError",
    "RemoteValidationError",
    "TokenExpiredError",
    "TrackSyncError",
    "TrackerUnavailableError",
    "TransientError",
]


class TrackSyncError(Exception):
    """Base class for all tracksync errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"
        return self.message


# =============================================================================
# Caller Errors
# =============================================================================


class NotLinkedError(TrackSyncError):
    """An operation needs a remote id that the entity does not have."""

    def __init__(
        self,
        message: str,
        entity_id: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.entity_id = entity_id


class AlreadyLinkedError(TrackSyncError):
    """The entity already has a remote counterpart; push instead of create."""

    def __init__(
        self,
        message: str,
        entity_id: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.entity_id = entity_id


class NotFoundError(TrackSyncError):
    """A referenced local entity does not exist."""

    def __init__(
        self,
        message: str,
        entity_type: str = "",
        entity_id: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.entity_type = entity_type
        self.entity_id = entity_id


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(TrackSyncError):
    """Invalid or incomplete configuration."""


class MissingConfigError(ConfigError):
    """A required configuration key is missing."""

    def __init__(self, message: str, key: str = "", cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.key = key


# =============================================================================
# Remote Tracker Errors
# =============================================================================


class RemoteError(TrackSyncError):
    """Any failure reported by (or while talking to) the remote tracker."""

    def __init__(
        self,
        message: str,
        resource: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.resource = resource


class AuthenticationError(RemoteError):
    """The tracker rejected the credentials."""


class TokenExpiredError(AuthenticationError):
    """The workspace access token has expired."""


class AccessDeniedError(RemoteError):
    """The credentials lack permission for the resource."""


class RemoteNotFoundError(RemoteError):
    """The remote entity does not exist."""


class RateLimitError(RemoteError):
    """The tracker rate limit was exceeded."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        resource: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, resource=resource, cause=cause)
        self.retry_after = retry_after


class TransientError(RemoteError):
    """Timeouts, connection failures and 5xx responses."""


class MalformedResponseError(RemoteError):
    """A response could not be decoded into a snapshot."""


class TrackerUnavailableError(RemoteError):
    """No tracker client could be constructed (no active workspace connection)."""


class RemoteValidationError(RemoteError):
    """The request lacks fields the tracker requires; nothing was sent."""
