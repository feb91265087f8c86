from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the caller. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a referenced project, thread or record is not found."""

    def __init__(self, message: str = "Record not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when a request payload fails validation."""


class ConfigError(Exception):
    """Raised when required deployment settings are missing."""


class UpstreamError(Exception):
    """Raised when the remote record store fails or reports a non-success status."""


class CorruptDataError(Exception):
    """Raised when a stored blob cannot be decoded."""
