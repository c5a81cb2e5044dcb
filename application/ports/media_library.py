"""Application-owned media library port (hexagonal architecture).

``MediaLibraryService`` is the single integration point callers need: a
closed capability descriptor whose ``service_type``/``auth_type`` drive
presentation, and whose ``search``/``upload`` always answer with
``ExternalAsset`` records regardless of the provider behind them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from domain.media_library import ExternalAsset, MediaFile


class ServiceType(str, Enum):
    STOCK_ASSETS = "stock_assets"
    CLOUD_STORAGE = "cloud_storage"


class AuthType(str, Enum):
    API_KEY = "api_key"
    PASSWORD = "password"
    NONE = "none"


@dataclass(frozen=True)
class SearchOptions:
    kind: Optional[str] = None
    api_key: Optional[str] = None
    user_name: Optional[str] = None
    password: Optional[str] = None
    settings: Any = None


@dataclass(frozen=True)
class UploadOptions:
    api_key: Optional[str] = None
    settings: Any = None


InitFn = Callable[[], Awaitable[bool]]
SearchFn = Callable[[str, SearchOptions], Awaitable[list[ExternalAsset]]]
UploadFn = Callable[[list[MediaFile], UploadOptions], Awaitable[list[ExternalAsset]]]
CloseFn = Callable[[], Awaitable[None]]
# Base URLs a library serves its objects from, for the given credentials
AssetOriginsFn = Callable[[SearchOptions], list[str]]


@dataclass(frozen=True)
class MediaLibraryService:
    """Capability record for one external media library."""

    service_type: ServiceType
    service_id: str
    service_label: str
    auth_type: AuthType
    hotlinking: bool
    search: SearchFn
    upload: Optional[UploadFn] = None
    init: Optional[InitFn] = None
    close: Optional[CloseFn] = None
    asset_origins: Optional[AssetOriginsFn] = None
    service_url: Optional[str] = None
    show_service_link: bool = False
    developer_url: Optional[str] = None
    api_key_url: Optional[str] = None
    api_key_pattern: Optional[re.Pattern[str]] = None
    api_key_help: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.service_type == ServiceType.CLOUD_STORAGE and self.init is None:
            raise ValueError(f"Cloud storage service '{self.service_id}' must define init")

    @property
    def supports_upload(self) -> bool:
        return self.upload is not None

    def accepts_api_key(self, api_key: str) -> bool:
        """Check ``api_key`` against the provider's pattern, if it declares one."""
        if self.api_key_pattern is None:
            return True
        return self.api_key_pattern.fullmatch(api_key) is not None


@runtime_checkable
class PreferenceStore(Protocol):
    """Key-value store for remembered API keys and logins."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


@runtime_checkable
class MediaLibraryCatalog(Protocol):
    """Lookup of registered media library services."""

    async def get_service(self, service_id: str) -> MediaLibraryService: ...

    async def all_services(
        self, service_type: Optional[ServiceType] = None
    ) -> list[MediaLibraryService]: ...


@dataclass(frozen=True)
class DownloadedAsset:
    data: bytes = field(repr=False)
    content_type: str = "application/octet-stream"


@runtime_checkable
class AssetDownloader(Protocol):
    """Fetches asset bytes for providers that do not allow hotlinking."""

    async def fetch(self, url: str) -> DownloadedAsset: ...
