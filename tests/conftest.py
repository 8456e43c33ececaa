import pytest

from app.core.config import settings
from app.models.upload_models import UploadedFileRecord


# Fixture factory to create upload records with filename, mimetype and content
@pytest.fixture
def make_record():
    def _make_record(name: str, mimetype: str, data: bytes = b"x" * 16, size: int | None = None) -> UploadedFileRecord:
        return UploadedFileRecord(
            name=name,
            mimetype=mimetype,
            size=len(data) if size is None else size,
            data=data,
        )

    return _make_record


# Point the storage root at a temp dir and drop any public URL picked up from the environment
@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "upload_base_dir", tmp_path, raising=False)
    monkeypatch.setattr(settings, "public_base_url", None, raising=False)
    return tmp_path
