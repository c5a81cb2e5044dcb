"""
API依赖项 - 媒体库应用服务的装配
"""
from typing import Optional

from fastapi import Depends

from application.ports.media_library import AssetDownloader, MediaLibraryCatalog, PreferenceStore
from application.services.media_library_service import MediaLibraryApplicationService
from core.config import settings
from infrastructure.external.media_libraries import MediaLibraryRegistry, close_all_services
from infrastructure.external.media_libraries.download import HttpAssetDownloader
from infrastructure.preferences import create_preference_store

# 进程级单例；由 lifespan 在关闭时释放
_preference_store: Optional[PreferenceStore] = None
_downloader: Optional[HttpAssetDownloader] = None


def get_preference_store() -> PreferenceStore:
    global _preference_store
    if _preference_store is None:
        _preference_store = create_preference_store()
    return _preference_store


def get_asset_downloader() -> AssetDownloader:
    global _downloader
    if _downloader is None:
        cfg = settings.media_library
        _downloader = HttpAssetDownloader(
            timeout=cfg.timeout,
            verify_ssl=cfg.verify_ssl,
            max_bytes=cfg.max_download_bytes,
        )
    return _downloader


def get_media_library_catalog() -> MediaLibraryCatalog:
    return MediaLibraryRegistry()


async def get_media_library_service(
    catalog: MediaLibraryCatalog = Depends(get_media_library_catalog),
    preferences: PreferenceStore = Depends(get_preference_store),
    downloader: AssetDownloader = Depends(get_asset_downloader),
) -> MediaLibraryApplicationService:
    return MediaLibraryApplicationService(
        catalog,
        preferences,
        downloader,
        remember_credentials=settings.media_library.remember_api_keys,
    )


async def shutdown_dependencies() -> None:
    """关闭下载客户端、偏好存储与已注册的媒体库服务"""
    global _preference_store, _downloader
    if _downloader is not None:
        await _downloader.close()
        _downloader = None
    if _preference_store is not None:
        close = getattr(_preference_store, "close", None)
        if close is not None:
            await close()
        _preference_store = None
    await close_all_services()
