"""Application layer orchestration for external media libraries (application/services)."""
from __future__ import annotations

import base64
import json
from typing import Any, Optional
from urllib.parse import urlsplit

from application.dto import (
    DefaultMediaLibraryOptionsDTO,
    ExternalAssetDTO,
    MediaLibraryServiceDTO,
    SelectedAssetDTO,
    StockAssetMediaLibraryOptionsDTO,
)
from application.ports.media_library import (
    AssetDownloader,
    AuthType,
    MediaLibraryCatalog,
    MediaLibraryService,
    PreferenceStore,
    SearchOptions,
    ServiceType,
    UploadOptions,
)
from application.utils.media_library import (
    get_default_media_library_options,
    get_stock_asset_media_library_options,
)
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException
from domain.media_library import ExternalAsset, MediaFile
from domain.media_library.exceptions import (
    InvalidCredentialsError,
    MediaLibraryNotConfiguredError,
    MediaLibraryUnsupportedError,
)

logger = get_logger(__name__)

API_KEYS_PREFIX = "media_libraries:api_keys"
LOGINS_PREFIX = "media_libraries:logins"


def api_key_preference(service_id: str) -> str:
    return f"{API_KEYS_PREFIX}:{service_id}"


def login_preference(service_id: str) -> str:
    return f"{LOGINS_PREFIX}:{service_id}"


class MediaLibraryApplicationService:
    """Search, upload and selection workflows over registered media libraries."""

    def __init__(
        self,
        catalog: MediaLibraryCatalog,
        preferences: PreferenceStore,
        downloader: Optional[AssetDownloader] = None,
        *,
        remember_credentials: bool = True,
    ):
        self._catalog = catalog
        self._preferences = preferences
        self._downloader = downloader
        self._remember_credentials = remember_credentials

    # ------------------------------------------------------------------
    # DTO helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _to_dto(asset: ExternalAsset) -> ExternalAssetDTO:
        return ExternalAssetDTO.model_validate(asset)

    @staticmethod
    def _describe(service: MediaLibraryService) -> MediaLibraryServiceDTO:
        return MediaLibraryServiceDTO(
            service_type=service.service_type.value,
            service_id=service.service_id,
            service_label=service.service_label,
            auth_type=service.auth_type.value,
            hotlinking=service.hotlinking,
            supports_upload=service.supports_upload,
            service_url=service.service_url,
            show_service_link=service.show_service_link,
            developer_url=service.developer_url,
            api_key_url=service.api_key_url,
            api_key_pattern=service.api_key_pattern.pattern if service.api_key_pattern else None,
            api_key_help=service.api_key_help,
        )

    # ------------------------------------------------------------------
    # Credential resolution
    # ------------------------------------------------------------------
    async def _resolve_api_key(
        self, service: MediaLibraryService, api_key: Optional[str], remember: bool
    ) -> Optional[str]:
        if service.auth_type != AuthType.API_KEY:
            return api_key

        explicit = bool(api_key)
        if not explicit:
            api_key = await self._preferences.get(api_key_preference(service.service_id))
        if not api_key:
            raise InvalidCredentialsError("API key is required")

        api_key = api_key.strip()
        if not service.accepts_api_key(api_key):
            raise InvalidCredentialsError()

        if explicit and remember and self._remember_credentials:
            await self._preferences.set(api_key_preference(service.service_id), api_key)
        return api_key

    async def _resolve_login(
        self,
        service: MediaLibraryService,
        user_name: Optional[str],
        password: Optional[str],
        remember: bool,
    ) -> tuple[Optional[str], Optional[str]]:
        if service.auth_type != AuthType.PASSWORD:
            return user_name, password

        if user_name and password:
            if remember and self._remember_credentials:
                await self._preferences.set(
                    login_preference(service.service_id),
                    json.dumps({"user_name": user_name, "password": password}),
                )
            return user_name, password

        stored = await self._preferences.get(login_preference(service.service_id))
        if not stored:
            raise InvalidCredentialsError("User name and password are required")
        try:
            login = json.loads(stored)
        except ValueError:
            login = None
        if not isinstance(login, dict):
            logger.warning("media_library_stored_login_corrupt", service_id=service.service_id)
            raise InvalidCredentialsError("User name and password are required")
        return login.get("user_name"), login.get("password")

    async def _ensure_ready(self, service: MediaLibraryService) -> None:
        if service.service_type != ServiceType.CLOUD_STORAGE or service.init is None:
            return
        if not await service.init():
            raise MediaLibraryNotConfiguredError(service.service_id)

    # ------------------------------------------------------------------
    # Workflow operations
    # ------------------------------------------------------------------
    async def list_services(
        self, service_type: Optional[ServiceType] = None
    ) -> list[MediaLibraryServiceDTO]:
        services = await self._catalog.all_services(service_type)
        return [self._describe(s) for s in services]

    async def search(
        self,
        service_id: str,
        query: str,
        *,
        kind: Optional[str] = None,
        api_key: Optional[str] = None,
        user_name: Optional[str] = None,
        password: Optional[str] = None,
        settings: Any = None,
        remember: bool = True,
    ) -> list[ExternalAssetDTO]:
        service = await self._catalog.get_service(service_id)
        api_key = await self._resolve_api_key(service, api_key, remember)
        user_name, password = await self._resolve_login(service, user_name, password, remember)
        await self._ensure_ready(service)

        options = SearchOptions(
            kind=kind,
            api_key=api_key,
            user_name=user_name,
            password=password,
            settings=settings,
        )
        assets = await service.search(query, options)
        logger.info("media_library_search", service_id=service_id, query=query, results=len(assets))
        return [self._to_dto(a) for a in assets]

    async def upload(
        self,
        service_id: str,
        files: list[MediaFile],
        *,
        api_key: Optional[str] = None,
        settings: Any = None,
        remember: bool = True,
    ) -> list[ExternalAssetDTO]:
        service = await self._catalog.get_service(service_id)
        if service.upload is None:
            raise MediaLibraryUnsupportedError(service_id, "upload")

        api_key = await self._resolve_api_key(service, api_key, remember)
        await self._ensure_ready(service)

        assets = await service.upload(files, UploadOptions(api_key=api_key, settings=settings))
        logger.info("media_library_upload", service_id=service_id, files=len(assets))
        return [self._to_dto(a) for a in assets]

    async def select_asset(
        self,
        service_id: str,
        asset: ExternalAssetDTO,
        *,
        api_key: Optional[str] = None,
        settings: Any = None,
        remember: bool = True,
    ) -> SelectedAssetDTO:
        """Hotlinking providers hand back the URL; others are downloaded for rehosting.

        Only URLs under one of the library's own base URLs are downloaded.
        """
        service = await self._catalog.get_service(service_id)
        if service.hotlinking:
            return SelectedAssetDTO(asset=asset, hotlinked=True, url=asset.download_url)

        if self._downloader is None or service.asset_origins is None:
            raise MediaLibraryUnsupportedError(service_id, "asset download")

        api_key = await self._resolve_api_key(service, api_key, remember)
        origins = service.asset_origins(SearchOptions(api_key=api_key, settings=settings))
        if not any(_within_base_url(asset.download_url, origin) for origin in origins):
            logger.warning(
                "media_library_asset_origin_rejected",
                service_id=service_id,
                asset_id=asset.id,
                url=asset.download_url,
            )
            raise DomainValidationException(
                "Asset URL does not belong to this media library", field="download_url"
            )

        downloaded = await self._downloader.fetch(asset.download_url)
        logger.info(
            "media_library_asset_selected",
            service_id=service_id,
            asset_id=asset.id,
            size=len(downloaded.data),
        )
        return SelectedAssetDTO(
            asset=asset,
            hotlinked=False,
            data=base64.b64encode(downloaded.data).decode("ascii"),
            content_type=downloaded.content_type,
            size=len(downloaded.data),
        )

    async def forget_credentials(self, service_id: str) -> None:
        await self._preferences.delete(api_key_preference(service_id))
        await self._preferences.delete(login_preference(service_id))

    # ------------------------------------------------------------------
    # Library options
    # ------------------------------------------------------------------
    def default_options(
        self,
        field_config: Optional[dict] = None,
        site_config: Optional[dict] = None,
    ) -> DefaultMediaLibraryOptionsDTO:
        return get_default_media_library_options(field_config, site_config)

    async def stock_asset_options(
        self,
        field_config: Optional[dict] = None,
        site_config: Optional[dict] = None,
    ) -> StockAssetMediaLibraryOptionsDTO:
        providers = await self._catalog.all_services(ServiceType.STOCK_ASSETS)
        return get_stock_asset_media_library_options(
            [p.service_id for p in providers], field_config, site_config
        )


def _within_base_url(url: str, base_url: str) -> bool:
    """``url`` has the scheme, host and port of ``base_url`` and lies under its path."""
    try:
        target, base = urlsplit(url), urlsplit(base_url)
        same_origin = (target.scheme.lower(), target.hostname, target.port) == (
            base.scheme.lower(),
            base.hostname,
            base.port,
        )
    except ValueError:
        return False
    if not same_origin or target.scheme.lower() not in ("http", "https"):
        return False
    if target.username or target.password:
        return False
    base_path = base.path.rstrip("/")
    return not base_path or target.path == base_path or target.path.startswith(f"{base_path}/")
