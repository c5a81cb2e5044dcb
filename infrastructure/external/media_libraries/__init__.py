"""S3-compatible (Cloudflare R2) media library infrastructure."""
from .config import BucketCredentials, EffectiveSettings, LibrarySettings
from .models import ListedObject, ListPage, SignedRequest
from .registry import (
    all_cloud_storage_services,
    all_services,
    all_stock_asset_providers,
    MediaLibraryRegistry,
    close_all_services,
    get_service,
    register_service,
    unregister_service,
)
from .signing import get_signed_request, sign
from .transport import ObjectStorageHttpClient

__all__ = [
    "BucketCredentials",
    "EffectiveSettings",
    "LibrarySettings",
    "ListedObject",
    "ListPage",
    "SignedRequest",
    "ObjectStorageHttpClient",
    "get_signed_request",
    "sign",
    "register_service",
    "unregister_service",
    "get_service",
    "all_services",
    "all_cloud_storage_services",
    "all_stock_asset_providers",
    "close_all_services",
    "MediaLibraryRegistry",
]
