import copy
import logging
import sys
from logging.config import dictConfig
from typing import Any

from app.core.config import settings

# Emits one line per stored or removed file, so it never goes below INFO
STORAGE_LOGGER = "app.services.storage"

# Uvicorn-compatible logging configuration. The "app" logger level is filled in by setup_logging().
LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": "%(levelprefix)s %(asctime)s [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s',
        },
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": sys.stderr,
            "level": "INFO",
        },
        "access": {
            "class": "logging.StreamHandler",
            "formatter": "access",
            "stream": sys.stdout,
            "level": "INFO",
        },
        "app": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": sys.stdout,
            "level": "DEBUG",
        },
    },
    "loggers": {
        "root": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
        # app.api, app.core and app.upload_logic inherit from here
        "app": {"handlers": ["app"], "level": "INFO", "propagate": False},
    },
}


def build_logging_config(level: str) -> dict[str, Any]:
    """Return LOGGING_CONFIG with the application loggers set to `level`."""
    config = copy.deepcopy(LOGGING_CONFIG)
    level = level.upper()
    config["loggers"]["app"]["level"] = level
    storage_level = max(logging.getLevelName(level), logging.INFO)
    config["loggers"][STORAGE_LOGGER] = {"level": logging.getLevelName(storage_level)}
    return config


def setup_logging(level: str | None = None) -> None:
    """Configures application-wide logging using dictConfig.

    Args:
        level: Level for the ``app.*`` loggers. Defaults to ``settings.log_level``.
    """
    dictConfig(build_logging_config(level or settings.log_level))
