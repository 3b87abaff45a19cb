"""
Exit Codes - Process exit statuses for the tracksync CLI.

Scripts can branch on these instead of parsing output.
"""

from enum import IntEnum

from tracksync.core.exceptions import (
    AlreadyLinkedError,
    AuthenticationError,
    ConfigError,
    NotFoundError,
    NotLinkedError,
    RemoteError,
    TrackerUnavailableError,
)


class ExitCode(IntEnum):
    """
    Exit codes returned by ``tracksync``.

    Attributes:
        SUCCESS: Operation completed.
        ERROR: Unexpected error.
        CONFIG_ERROR: Missing or invalid configuration.
        FILE_NOT_FOUND: A referenced file does not exist.
        CONNECTION_ERROR: Linear could not be reached or rejected the credentials.
        NOT_FOUND: A local project or task does not exist.
        NOT_LINKED: The entity is not linked to Linear (or already is, for create).
        SYNC_FAILED: The operation ran and recorded a sync failure.
        PARTIAL_SUCCESS: Some issues synced and some failed.
        CANCELLED: The user declined to continue.
        SIGINT: Interrupted with Ctrl+C.
    """

    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    FILE_NOT_FOUND = 3
    CONNECTION_ERROR = 4
    NOT_FOUND = 5
    NOT_LINKED = 6
    SYNC_FAILED = 7
    PARTIAL_SUCCESS = 8
    CANCELLED = 9
    SIGINT = 130

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExitCode":
        """
        Map an exception to the exit code that best describes it.

        Args:
            exc: The exception that ended the command.

        Returns:
            Matching exit code, ERROR when nothing more specific applies.
        """
        if isinstance(exc, KeyboardInterrupt):
            return cls.SIGINT
        if isinstance(exc, ConfigError):
            return cls.CONFIG_ERROR
        if isinstance(exc, FileNotFoundError):
            return cls.FILE_NOT_FOUND
        if isinstance(exc, (AuthenticationError, TrackerUnavailableError)):
            return cls.CONNECTION_ERROR
        if isinstance(exc, NotFoundError):
            return cls.NOT_FOUND
        if isinstance(exc, (NotLinkedError, AlreadyLinkedError)):
            return cls.NOT_LINKED
        if isinstance(exc, RemoteError):
            return cls.SYNC_FAILED
        return cls.ERROR
