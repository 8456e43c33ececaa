# app/services/storage/local_storage.py
import asyncio
import logging
from pathlib import Path
from urllib.parse import quote

from app.core.validation import FileCategory
from app.models.upload_models import StoredFile

logger = logging.getLogger(__name__)


async def ensure_category_dir(base_dir: Path, category: FileCategory) -> Path:
    """
    Creates <base_dir>/<category> if missing.
    Safe to call concurrently for the same category.
    """
    category_dir = Path(base_dir) / category.value
    await asyncio.to_thread(category_dir.mkdir, parents=True, exist_ok=True)
    return category_dir


async def write_file(path: Path, data: bytes) -> None:
    """Writes the whole content in one shot. An existing file at `path` is overwritten."""
    await asyncio.to_thread(path.write_bytes, data)


def resolve_public_path(category: FileCategory, unique_name: str, public_base_url: str | None = None) -> str:
    """
    Returns the path reported back to the client for a stored file.
    Relative `<category>/<unique_name>` unless a public base URL is configured,
    in which case the absolute URL under that prefix.
    """
    relative_path = f"{category.value}/{unique_name}"
    if not public_base_url:
        return relative_path
    return f"{public_base_url.rstrip('/')}/{quote(relative_path)}"


async def place(
    base_dir: Path,
    category: FileCategory,
    unique_name: str,
    data: bytes,
    public_base_url: str | None = None,
) -> StoredFile:
    """Persists `data` under <base_dir>/<category>/<unique_name> and describes the result."""
    category_dir = await ensure_category_dir(base_dir, category)
    storage_path = category_dir / unique_name
    await write_file(storage_path, data)
    logger.info(f"Saved file: {storage_path} ({len(data)} bytes)")

    return StoredFile(
        relative_path=f"{category.value}/{unique_name}",
        public_path=resolve_public_path(category, unique_name, public_base_url),
        storage_path=storage_path,
    )


async def remove_file(path: Path) -> None:
    """
    Best-effort delete used to roll back a failed batch.
    Missing files are ignored; other OS errors are logged, not raised.
    """
    try:
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.info(f"Removed file from failed batch: {path}")
    except OSError as e:
        logger.error(f"Error removing file {path} during rollback: {e}", exc_info=True)
