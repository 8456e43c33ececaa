import logging
from collections.abc import Callable
from functools import wraps
from typing import Any
from uuid import uuid4

from fastapi import APIRouter
from fastapi import File
from fastapi import HTTPException
from fastapi import Request
from fastapi import UploadFile
from fastapi import status
from fastapi.responses import JSONResponse

from app.core.exceptions import PipelineError
from app.core.exceptions import UploadErrorCode
from app.core.naming import FALLBACK_FILENAME
from app.core.security import Depends
from app.core.security import verify_api_key
from app.models.upload_models import UploadedFileRecord
from app.models.upload_models import UploadResult
from app.upload_logic.file_upload import upload_files

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Rejection code -> HTTP status
ERROR_STATUS: dict[str, int] = {
    UploadErrorCode.NO_FILE.value: status.HTTP_400_BAD_REQUEST,
    UploadErrorCode.FILE_TOO_LARGE.value: status.HTTP_413_CONTENT_TOO_LARGE,
    UploadErrorCode.INVALID_FILE_TYPE.value: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
}


# --- Error Handling Decorator for upload endpoints ---
def handle_upload_errors(func: Callable) -> Callable:
    """Decorator that turns unexpected upload failures into a detail-free 500."""

    @wraps(func)
    async def wrapper(request: Request, *args: Any, **kwargs: Any) -> JSONResponse:
        request_id = str(uuid4())
        request.state.request_id = request_id

        try:
            return await func(request, *args, **kwargs)
        except HTTPException:
            raise
        except PipelineError as e:
            logger.error("[%s] Upload failed: %s", request_id, str(e), exc_info=False)
            raise HTTPException(status_code=500, detail="Internal server error") from e
        except Exception as e:
            logger.error("[%s] Unexpected error during upload: %s", request_id, str(e), exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error") from e

    return wrapper


async def _to_record(upload: UploadFile) -> UploadedFileRecord:
    data = await upload.read()
    return UploadedFileRecord(
        name=upload.filename or FALLBACK_FILENAME,
        mimetype=upload.content_type or DEFAULT_CONTENT_TYPE,
        size=len(data),
        data=data,
    )


def _result_status(result: UploadResult) -> int:
    if result.success:
        return status.HTTP_201_CREATED
    return ERROR_STATUS.get(result.code or "", status.HTTP_400_BAD_REQUEST)


@router.post(
    "/upload",
    dependencies=[Depends(verify_api_key)],
    summary="Upload one or more files",
    tags=["Upload"],
)
@handle_upload_errors
async def upload(
    request: Request,
    file: list[UploadFile] | None = File(default=None),
) -> JSONResponse:
    """Stores every multipart part named ``file`` and returns their public paths.

    Returns:
        JSONResponse: ``{success, message, body: {uploadedFiles}}`` with status 201,
        or ``{success: false, message, code}`` with 400 / 413 / 415.

    Raises:
        HTTPException:
            - 403: Invalid API Key.
            - 500: Unexpected storage failure (no internal detail exposed).
    """
    request_id = request.state.request_id
    uploads = file or []
    logger.info("[%s] /upload called with %d file part(s)", request_id, len(uploads))

    records = [await _to_record(u) for u in uploads]
    result = await upload_files({"file": records}, request_id=request_id)

    return JSONResponse(result.to_response(), status_code=_result_status(result))
