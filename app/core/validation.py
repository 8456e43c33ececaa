"""MIME allow-list and per-file constraint checks for uploads."""

import logging
from enum import Enum
from types import MappingProxyType

from app.core.config import DEFAULT_MAX_FILE_SIZE
from app.core.exceptions import FileUploadError
from app.core.exceptions import UploadErrorCode
from app.models.upload_models import UploadedFileRecord

logger = logging.getLogger(__name__)


class FileCategory(str, Enum):
    """Storage categories. The value doubles as the on-disk folder name."""

    IMAGE = "Image"
    PDF = "pdf"
    DOCS = "docs"
    AUDIO = "audio"
    VIDEO = "video"


# Declared MIME type -> storage category. Exact, case-sensitive keys.
SUPPORTED_TYPES: MappingProxyType[str, FileCategory] = MappingProxyType(
    {
        "image/jpeg": FileCategory.IMAGE,
        "image/png": FileCategory.IMAGE,
        "application/pdf": FileCategory.PDF,
        "application/msword": FileCategory.DOCS,
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": FileCategory.DOCS,
        "audio/mpeg": FileCategory.AUDIO,
        "video/mp4": FileCategory.VIDEO,
    }
)

__all__ = [
    "DEFAULT_MAX_FILE_SIZE",
    "FileCategory",
    "SUPPORTED_TYPES",
    "get_file_type",
    "validate_file",
]


def get_file_type(mime_type: str | None) -> FileCategory | None:
    """Return the storage category for a declared MIME type, or ``None`` if unsupported."""
    if mime_type is None:
        return None
    return SUPPORTED_TYPES.get(mime_type)


def validate_file(record: UploadedFileRecord, max_file_size: int, request_id: str = "-") -> FileCategory:
    """Check a single record against the size ceiling and the MIME allow-list.

    The size check runs first, so an oversized file of an unsupported type is
    reported as ``FILE_TOO_LARGE``.

    Args:
        record: The uploaded file as parsed from the request.
        max_file_size: Inclusive byte ceiling.
        request_id: Identifier used to prefix log lines.

    Returns:
        The category the file will be stored under.

    Raises:
        FileUploadError: ``FILE_TOO_LARGE`` or ``INVALID_FILE_TYPE``.
    """
    if record.size > max_file_size:
        logger.warning(
            "[%s] Rejected file exceeding size limit: %s (%d bytes > %d)",
            request_id,
            record.name,
            record.size,
            max_file_size,
        )
        raise FileUploadError(
            f"File size exceeds limit ({max_file_size} bytes)",
            UploadErrorCode.FILE_TOO_LARGE,
        )

    category = get_file_type(record.mimetype)
    if category is None:
        logger.warning(
            "[%s] Rejected file with unsupported type: %s (mimetype=%s)",
            request_id,
            record.name,
            record.mimetype,
        )
        raise FileUploadError("Invalid file type", UploadErrorCode.INVALID_FILE_TYPE)

    logger.debug(
        "[%s] File validation successful: %s (%d bytes, category: %s)",
        request_id,
        record.name,
        record.size,
        category.value,
    )
    return category
