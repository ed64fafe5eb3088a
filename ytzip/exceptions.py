"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class YtzipError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(YtzipError):
    """Raised for issues related to configuration loading or validation."""


class RejectedJobError(YtzipError):
    """
    Raised when an archive job cannot start: the playlist reference is missing or
    invalid, the playlist is empty, or it has more items than allowed.
    """

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


class LookupFailedError(YtzipError):
    """Raised when a playlist listing or a format lookup fails."""


class TransferError(YtzipError):
    """Raised when a media stream cannot be transferred."""


class TransferLimitError(TransferError):
    """Raised when a transfer exceeds the configured size limit."""


class StagingError(YtzipError):
    """Raised when the staging directory for a job cannot be created."""


class ArchiveFatalError(YtzipError):
    """
    Raised when the archive output can no longer be written, typically because
    the client connection went away after streaming started.
    """
