"""API key protection for the upload endpoint."""

import logging
import secrets

from fastapi import Depends
from fastapi import HTTPException
from fastapi.security import APIKeyHeader

from app.core.config import settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key")


async def verify_api_key(key: str = Depends(api_key_header)) -> bool:
    """FastAPI dependency that checks the ``X-API-Key`` header.

    Raises:
        HTTPException: 403 when the key does not match, or when the server has
            no key configured at all.
    """
    if not settings.api_key:
        logger.critical("No API_KEY is configured on the server; all upload requests will be denied.")
        raise HTTPException(status_code=403, detail="Invalid API Key")

    if not secrets.compare_digest(key.encode(), settings.api_key.encode()):
        logger.warning("Rejected request with invalid API key")
        raise HTTPException(status_code=403, detail="Invalid API Key")
    return True
