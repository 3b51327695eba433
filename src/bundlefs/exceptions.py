"""
Custom exceptions for bundlefs.

This module defines domain-specific exceptions that separate failures reading
from a source filesystem from failures writing the temporary destination, so
callers can tell which side of an extraction went wrong.
"""


class BundleFSError(Exception):
    """
    Base exception for all bundlefs errors.

    All custom exceptions in bundlefs inherit from this class to allow for
    easy catching of all package-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(BundleFSError):
    """
    Exception raised when configuration is invalid.

    This includes:
    - Unreadable configuration files
    - Configuration file parsing errors
    - Configuration values of the wrong type
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the configuration file cannot be read or parsed."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(BundleFSError):
    """
    Exception raised when a caller-supplied value fails validation.

    Attributes:
        field: The name of the argument that failed validation.
        value: The value that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the validation exception.

        Args:
            message: The primary error message.
            field: The name of the field that failed validation.
            value: The value that failed validation.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidNamePrefixError(ValidationError):
    """Exception raised when a temporary name prefix contains a path separator."""

    pass


# =============================================================================
# Source Errors
# =============================================================================


class SourceError(BundleFSError):
    """
    Exception raised when reading from a source filesystem fails.

    This includes:
    - Missing roots or files
    - Permission problems in the backing store
    - Listing or reading failures

    Attributes:
        path: The source path that was being accessed.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the source exception.

        Args:
            message: The primary error message.
            path: The source path that caused the error.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.path = path


class SourceNotFoundError(SourceError):
    """Exception raised when a source path does not exist."""

    pass


class SourcePermissionError(SourceError):
    """Exception raised when the backing store refuses access to a source path."""

    pass


class SourceNotADirectoryError(SourceError):
    """Exception raised when a directory operation targets a source file."""

    pass


class SourceIsADirectoryError(SourceError):
    """Exception raised when a file operation targets a source directory."""

    pass


class InvalidSourcePathError(SourceError):
    """Exception raised when a source path or entry name is malformed."""

    pass


# =============================================================================
# Destination Errors
# =============================================================================


class DestinationError(BundleFSError):
    """
    Exception raised when the on-disk destination cannot be created or written.

    Attributes:
        path: The destination path that was being written.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path


# =============================================================================
# Listener Errors
# =============================================================================


class ListenerError(BundleFSError):
    """Exception raised when a termination listener cannot be installed."""

    pass
