"""Media library domain exports."""
from .entity import (
    AssetKind,
    ExternalAsset,
    MediaFile,
    kind_from_content_type,
    kind_from_extension,
    sort_newest_first,
)

__all__ = [
    "AssetKind",
    "ExternalAsset",
    "MediaFile",
    "kind_from_content_type",
    "kind_from_extension",
    "sort_newest_first",
]
