"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pathlib import Path
from typing import Annotated
from typing import Literal

from pydantic import AliasChoices
from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import NoDecode

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "https://localhost:3000",
    "https://localhost:8000",
    "http://0.0.0.0:8000",  # Local development with 0.0.0.0 host
]

DEFAULT_UPLOAD_BASE_DIR = Path("./public")
DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MB

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        upload_base_dir: Root of the storage tree (``UPLOAD_BASE_DIR``). Category folders
            are created beneath it.
        public_base_url: When set, stored files are reported as absolute URLs under this prefix
            instead of bare relative paths. Read from ``PUBLIC_BASE_URL`` or, for older
            deployments, ``BASE_URL``. Note that ``BASE_URL`` only sets this URL prefix; it no
            longer moves the storage root, which comes from ``UPLOAD_BASE_DIR`` alone.
        max_file_size: Per-file byte ceiling used when a call does not override it.
        api_key: API key for securing the upload endpoint.
        log_level: Level of the ``app.*`` loggers.
        cors_allowed_origins: Allowed CORS origins. ``CORS_ALLOWED_ORIGINS`` takes a
            comma-separated list.
    """

    upload_base_dir: Path = Field(default=DEFAULT_UPLOAD_BASE_DIR)
    public_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("public_base_url", "base_url"),
    )
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)

    api_key: str | None = Field(default=None)

    log_level: LogLevel = Field(default="INFO")

    cors_allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),
    )

    model_config = {
        "env_file": ".env",
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("public_base_url", mode="before")  # type: ignore
    @classmethod
    def empty_url_is_unset(cls, v: str | None) -> str | None:
        """Treats an empty or blank base URL as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level", mode="before")  # type: ignore
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def split_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Parses a comma-separated origin list, dropping blank entries.

        An empty or missing value falls back to the local development origins.
        """
        if isinstance(v, str):
            origins = [origin.strip() for origin in v.split(",") if origin.strip()]
        elif isinstance(v, list):
            origins = v
        else:
            origins = []
        return origins or list(DEFAULT_CORS_ORIGINS)


settings = Settings()
