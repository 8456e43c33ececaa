"""Validates and stores batches of uploaded files.

This module provides the core upload pipeline:
- Normalise the request's ``file`` entry (single record or list) into a batch.
- Validate every file against the size ceiling and the MIME allow-list.
- Store accepted files under ``<base>/<category>/<uuid>-<name>``.

Files are processed concurrently. The batch succeeds or fails as a whole: on
any failure, files already written for the same batch are removed and the
first failure in input order is reported.
"""

import asyncio
import logging
from collections.abc import Mapping
from collections.abc import Sequence
from pathlib import Path
from typing import Any
from uuid import uuid4

from app.core.config import settings
from app.core.exceptions import FileUploadError
from app.core.exceptions import UploadErrorCode
from app.core.exceptions import UploadInternalError
from app.core.naming import allocate_storage_name
from app.core.validation import validate_file
from app.models.upload_models import StorageOptions
from app.models.upload_models import StoredFile
from app.models.upload_models import UploadBody
from app.models.upload_models import UploadedFileRecord
from app.models.upload_models import UploadResult
from app.services.storage.local_storage import place
from app.services.storage.local_storage import remove_file

__all__ = [
    "collect_batch",
    "upload_files",
]

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "file"
SUCCESS_MESSAGE = "All files uploaded successfully"
NO_FILE_MESSAGE = "No file uploaded"

Batch = UploadedFileRecord | Sequence[UploadedFileRecord] | Mapping[str, Any] | None


# ---------------------------------------------------------------------------
# Batch normalisation
# ---------------------------------------------------------------------------


def _as_list(batch: Batch) -> list[UploadedFileRecord]:
    if batch is None:
        return []
    if isinstance(batch, UploadedFileRecord):
        return [batch]
    return list(batch)


def collect_batch(request_files: Mapping[str, Any] | None) -> list[UploadedFileRecord]:
    """Pull the records stored under the ``file`` key of a parsed request.

    Missing container, missing key and empty lists all yield an empty batch.
    """
    if not request_files:
        return []
    return _as_list(request_files.get(UPLOAD_FIELD))


# ---------------------------------------------------------------------------
# Per-file processing
# ---------------------------------------------------------------------------


async def _store_single_file(
    record: UploadedFileRecord,
    base_dir: Path,
    max_file_size: int,
    public_base_url: str | None,
    request_id: str,
) -> StoredFile:
    category = validate_file(record, max_file_size, request_id)
    unique_name = allocate_storage_name(record.name)
    stored = await place(base_dir, category, unique_name, record.data, public_base_url)
    logger.debug("[%s] Stored %s as %s", request_id, record.name, stored.relative_path)
    return stored


async def _rollback(stored_files: list[StoredFile], request_id: str) -> None:
    if not stored_files:
        return
    logger.warning("[%s] Rolling back %d file(s) from failed batch", request_id, len(stored_files))
    await asyncio.gather(*(remove_file(f.storage_path) for f in stored_files))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def upload_files(
    batch: Batch,
    options: StorageOptions | None = None,
    request_id: str | None = None,
) -> UploadResult:
    """Validate and store a batch of uploaded files.

    Args:
        batch: A single record, a sequence of records, a parsed request container
            holding them under ``file``, or ``None``.
        options: Per-call overrides for the storage root and the size ceiling.
        request_id: Identifier used to prefix log lines. Generated when omitted.

    Returns:
        ``UploadResult`` with ``body.uploaded_files`` holding one public path for a
        single-file batch, or a list in input order otherwise. Known rejections
        (``NO_FILE``, ``FILE_TOO_LARGE``, ``INVALID_FILE_TYPE``) come back as
        ``success=False`` with the matching ``code``.

    Raises:
        UploadInternalError: Any other failure, e.g. a filesystem error. The
            original exception is logged, not exposed.
    """
    request_id = request_id or str(uuid4())
    options = options or StorageOptions()
    files = collect_batch(batch) if isinstance(batch, Mapping) else _as_list(batch)

    if not files:
        logger.info("[%s] Upload rejected: no file provided", request_id)
        return UploadResult(success=False, message=NO_FILE_MESSAGE, code=UploadErrorCode.NO_FILE.value)

    base_dir = options.upload_base_dir or settings.upload_base_dir
    max_file_size = options.max_file_size or settings.max_file_size
    public_base_url = settings.public_base_url

    logger.info(
        "[%s] Processing %d file(s) into %s (limit %d bytes)",
        request_id,
        len(files),
        base_dir,
        max_file_size,
    )

    tasks = [_store_single_file(record, base_dir, max_file_size, public_base_url, request_id) for record in files]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    failure = next((r for r in results if isinstance(r, BaseException)), None)
    if failure is not None:
        if not isinstance(failure, Exception):
            raise failure  # cancellation and interpreter exits propagate untouched

        await _rollback([r for r in results if isinstance(r, StoredFile)], request_id)

        if isinstance(failure, FileUploadError):
            logger.warning("[%s] Upload batch rejected (%s): %s", request_id, failure.code.value, failure.message)
            return UploadResult(success=False, message=failure.message, code=failure.code.value)

        logger.error(
            "[%s] Unexpected error while storing upload batch: %s",
            request_id,
            str(failure),
            exc_info=failure,
        )
        raise UploadInternalError() from failure

    public_paths = [r.public_path for r in results]
    logger.info("[%s] Upload complete: %d file(s) stored", request_id, len(public_paths))
    return UploadResult(
        success=True,
        message=SUCCESS_MESSAGE,
        body=UploadBody(uploaded_files=public_paths[0] if len(public_paths) == 1 else public_paths),
    )
