from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class UploadedFileRecord(BaseModel):
    """A single file as parsed from the inbound request.

    ``name`` and ``mimetype`` are client-supplied and untrusted. ``size`` is
    expected to equal ``len(data)`` but is not re-checked.
    """

    name: str
    mimetype: str
    size: int = Field(ge=0)
    data: bytes


class StorageOptions(BaseModel):
    """Per-call overrides. Unset fields fall back to the application settings.

    Accepts both the snake_case names and the ``uploadBaseDir`` / ``maxFileSize``
    call-option names. Unknown options are rejected.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    upload_base_dir: Path | None = Field(default=None, alias="uploadBaseDir")
    max_file_size: int | None = Field(default=None, gt=0, alias="maxFileSize")


class StoredFile(BaseModel):
    """Where an accepted file ended up and how to refer to it."""

    relative_path: str  # <category>/<uuid>-<name>
    public_path: str  # relative_path, or an absolute URL when a public base URL is configured
    storage_path: Path


class UploadBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uploaded_files: str | list[str] = Field(..., alias="uploadedFiles")


class UploadResult(BaseModel):
    """Outcome of one upload call: either a body of public paths or an error code."""

    success: bool
    message: str
    body: UploadBody | None = None
    code: str | None = None

    def to_response(self) -> dict:
        """Serialise to the wire shape ``{success, message, body?: {uploadedFiles}, code?}``."""
        return self.model_dump(by_alias=True, exclude_none=True)
