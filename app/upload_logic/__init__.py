"""Upload logic package.

This package groups the helpers that validate and store uploaded files.
Keeping them here allows `app/api/routes.py` to stay minimal and focused on
HTTP routing while the upload pipeline lives in composable modules.
"""

from .file_upload import collect_batch  # noqa: F401
from .file_upload import upload_files  # noqa: F401
