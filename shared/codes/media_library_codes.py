"""
Media library specific codes.
"""
from __future__ import annotations

from enum import IntEnum


class MediaLibraryCode(IntEnum):
    # Credential/configuration errors (6xxxx)
    INVALID_CREDENTIALS = 60000
    SIGNING_PRECONDITION = 60001
    MEDIA_LIBRARY_NOT_FOUND = 60002
    MEDIA_LIBRARY_UNSUPPORTED = 60003
    MEDIA_LIBRARY_NOT_CONFIGURED = 60004

    # Upstream (bucket endpoint) errors (61xxx)
    UPSTREAM_NETWORK_ERROR = 61000
    UPSTREAM_REJECTED = 61001
    UPSTREAM_PARSE_ERROR = 61002
    UPLOAD_FAILED = 61003
    ASSET_TOO_LARGE = 61004


__all__ = ["MediaLibraryCode"]
