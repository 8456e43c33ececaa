"""Collision-resistant storage names for uploaded files."""

import re
from uuid import uuid4

FALLBACK_FILENAME = "unnamed"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def clean_filename(original_name: str) -> str:
    """Strip directory components and control characters from a client filename.

    Both ``/`` and ``\\`` are treated as separators regardless of platform.
    Everything else (case, spaces, unicode, extension) is kept verbatim.
    """
    base = original_name.replace("\\", "/").split("/")[-1]
    base = _CONTROL_CHARS.sub("", base)
    if base in ("", ".", ".."):
        return FALLBACK_FILENAME
    return base


def allocate_storage_name(original_name: str) -> str:
    """Return ``<uuid4>-<cleaned name>``, unique across calls and processes."""
    return f"{uuid4()}-{clean_filename(original_name)}"
