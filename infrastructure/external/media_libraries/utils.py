"""Media library utility functions."""
import mimetypes
from typing import Any, Optional

from .config import LibrarySettings


def guess_content_type(filename: str) -> str:
    """Guess content type from filename.

    Args:
        filename: File name or path

    Returns:
        MIME type string
    """
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


def build_object_key(prefix_path: str, file_name: str) -> str:
    """Join a normalized prefix (``""`` or ending in ``/``) and a file name."""
    return f"{prefix_path}{file_name.lstrip('/')}"


def strip_prefix(key: str, prefix_path: str) -> str:
    if prefix_path and key.startswith(prefix_path):
        return key[len(prefix_path):]
    return key


def coerce_settings(value: Optional[Any]) -> LibrarySettings:
    """Accept ``None``, a mapping or a ``LibrarySettings`` instance."""
    if value is None:
        return LibrarySettings()
    if isinstance(value, LibrarySettings):
        return value
    return LibrarySettings.model_validate(value)
