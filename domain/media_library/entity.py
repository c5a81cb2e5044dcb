"""Domain entities for assets exposed by external media libraries."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class AssetKind(str, Enum):
    """Closed set of asset kinds."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    OTHER = "other"


_EXTENSION_KINDS: dict[str, AssetKind] = {
    **dict.fromkeys(("jpg", "jpeg", "png", "gif", "webp", "svg"), AssetKind.IMAGE),
    **dict.fromkeys(("mp4", "webm", "mov"), AssetKind.VIDEO),
    **dict.fromkeys(("mp3", "wav", "ogg"), AssetKind.AUDIO),
    **dict.fromkeys(("pdf", "doc", "docx", "txt"), AssetKind.DOCUMENT),
}

_DOCUMENT_CONTENT_TYPES = frozenset({
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
})


def kind_from_extension(file_name: str) -> AssetKind:
    """Classify a file by its extension (case-insensitive)."""
    if "." not in file_name:
        return AssetKind.OTHER
    extension = file_name.rsplit(".", 1)[-1].lower()
    return _EXTENSION_KINDS.get(extension, AssetKind.OTHER)


def kind_from_content_type(content_type: Optional[str]) -> AssetKind:
    """Classify a file by its declared MIME type."""
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime.startswith("image/"):
        return AssetKind.IMAGE
    if mime.startswith("video/"):
        return AssetKind.VIDEO
    if mime.startswith("audio/"):
        return AssetKind.AUDIO
    if "pdf" in mime or mime in _DOCUMENT_CONTENT_TYPES:
        return AssetKind.DOCUMENT
    return AssetKind.OTHER


@dataclass(frozen=True)
class ExternalAsset:
    """Provider-agnostic asset record returned by every media library."""

    id: str
    description: str
    preview_url: str
    download_url: str
    file_name: str
    kind: AssetKind
    last_modified: Optional[datetime] = None
    size: int = 0

    def sort_key(self) -> float:
        """Timestamp used for newest-first ordering; missing dates sort last."""
        if self.last_modified is None:
            return float("-inf")
        ts = self.last_modified
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts.timestamp()


@dataclass(frozen=True)
class MediaFile:
    """A file submitted for upload."""

    name: str
    data: bytes = field(repr=False)
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


def sort_newest_first(assets: list[ExternalAsset]) -> list[ExternalAsset]:
    """Stable newest-first ordering (ties keep their listing order)."""
    return sorted(assets, key=ExternalAsset.sort_key, reverse=True)
