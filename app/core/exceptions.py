"""Core custom exceptions for the application."""

from enum import Enum


class PipelineError(Exception):
    """Base exception for upload pipeline errors."""


class UploadErrorCode(str, Enum):
    """Stable machine-readable codes for rejected uploads."""

    NO_FILE = "NO_FILE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"


class FileUploadError(PipelineError):
    """A known, user-facing rejection of an upload batch.

    Attributes:
        message: Human-readable reason, safe to return to the client.
        code: The matching ``UploadErrorCode``.
    """

    def __init__(self, message: str, code: UploadErrorCode) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class UploadInternalError(PipelineError):
    """Unexpected failure while storing files. Never carries internal detail."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
