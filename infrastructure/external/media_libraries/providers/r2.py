"""Cloudflare R2 bucket media library.

Lists and uploads objects through the S3-compatible API using SigV4 signed
requests. Credentials travel with every call in the colon-delimited API key,
so one client instance serves any number of buckets.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Optional

from application.ports.media_library import (
    AuthType,
    MediaLibraryService,
    SearchOptions,
    ServiceType,
    UploadOptions,
)
from core.config import settings
from core.logging_config import get_logger, mask_key_id
from domain.media_library import (
    AssetKind,
    ExternalAsset,
    MediaFile,
    kind_from_content_type,
    kind_from_extension,
    sort_newest_first,
)
from domain.media_library.exceptions import (
    NetworkFailureError,
    ParseFailureError,
    RemoteRejectionError,
    UploadFailedError,
)
from ..config import DEFAULT_REGION, BucketCredentials, EffectiveSettings
from ..listing import parse_list_objects
from ..models import ListedObject
from ..request_builder import (
    LIST_OBJECTS_MAX_KEYS,
    build_list_objects_request,
    build_put_object_request,
)
from ..signing import DEFAULT_STORAGE_HOST
from ..transport import ObjectStorageHttpClient
from ..utils import build_object_key, coerce_settings, guess_content_type, strip_prefix

logger = get_logger(__name__)

SERVICE_ID = "r2"
DEFAULT_MAX_LIST_PAGES = 20

# accountId:accessKeyId:accessKeySecret:bucketName[:bucketRegion][:customDomain]
R2_API_KEY_PATTERN = re.compile(
    r"^[A-Za-z0-9-]+:[^:]+:[^:]+:[A-Za-z0-9][A-Za-z0-9.-]*(?::[^:]*)?(?::.*)?$"
)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class R2BucketClient:
    """Search and upload against one R2 endpoint host."""

    def __init__(
        self,
        http: ObjectStorageHttpClient,
        *,
        storage_host: str = DEFAULT_STORAGE_HOST,
        default_region: str = DEFAULT_REGION,
        max_keys: int = LIST_OBJECTS_MAX_KEYS,
        max_list_pages: int = DEFAULT_MAX_LIST_PAGES,
        now: Optional[Clock] = None,
    ):
        self.http = http
        self.storage_host = storage_host
        self.default_region = default_region
        self.max_keys = max_keys
        self.max_list_pages = max_list_pages
        self._now = now or _utcnow

    async def init(self) -> bool:
        # Nothing to prepare; credentials arrive with each call.
        return True

    async def close(self) -> None:
        await self.http.close()

    def _resolve(self, api_key: Optional[str], raw_settings) -> tuple[BucketCredentials, EffectiveSettings]:
        credentials = BucketCredentials.parse(api_key, self.default_region)
        effective = EffectiveSettings.resolve(
            credentials, coerce_settings(raw_settings), self.storage_host
        )
        return credentials, effective

    def asset_origins(self, options: SearchOptions) -> list[str]:
        """Base URL that public object URLs for these credentials start with."""
        _, effective = self._resolve(options.api_key, options.settings)
        return [effective.base_url] if effective.public_path else []

    async def search(self, query: str, options: SearchOptions) -> list[ExternalAsset]:
        """List the bucket and return the objects whose name contains ``query``.

        Listing failures are logged and yield an empty result; credential
        errors propagate before any request is made.
        """
        credentials, effective = self._resolve(options.api_key, options.settings)
        search_prefix = (query or "").lower()

        try:
            objects = await self._fetch_all_objects(credentials, effective.prefix_path)
        except (NetworkFailureError, ParseFailureError) as exc:
            logger.error(
                "r2_list_failed",
                bucket=credentials.bucket,
                access_key_id=mask_key_id(credentials.access_key_id),
                error_type=exc.error_type,
                error=exc.message,
            )
            return []

        assets: list[ExternalAsset] = []
        for obj in objects:
            if obj.is_directory_marker:
                continue
            file_name = strip_prefix(obj.key, effective.prefix_path)
            if search_prefix and search_prefix not in file_name.lower():
                continue
            assets.append(self._listed_asset(obj, file_name, effective))

        logger.info(
            "r2_search_completed",
            bucket=credentials.bucket,
            query=query,
            listed=len(objects),
            matched=len(assets),
        )
        return sort_newest_first(assets)

    async def _fetch_all_objects(
        self, credentials: BucketCredentials, prefix: str
    ) -> list[ListedObject]:
        objects: list[ListedObject] = []
        token: Optional[str] = None

        for page_number in range(1, self.max_list_pages + 1):
            build_request = partial(
                build_list_objects_request,
                credentials,
                prefix=prefix,
                continuation_token=token,
                max_keys=self.max_keys,
                storage_host=self.storage_host,
            )
            response = await self.http.send(build_request)
            page = parse_list_objects(response.content)
            objects.extend(page.objects)
            logger.debug(
                "r2_list_page",
                bucket=credentials.bucket,
                page=page_number,
                objects=len(page.objects),
                truncated=page.is_truncated,
            )

            if not page.is_truncated:
                break
            if not page.next_continuation_token:
                logger.warning(
                    "r2_list_missing_token", bucket=credentials.bucket, page=page_number
                )
                break
            token = page.next_continuation_token
        else:
            logger.warning(
                "r2_list_page_limit_reached",
                bucket=credentials.bucket,
                max_pages=self.max_list_pages,
                objects=len(objects),
            )

        return objects

    @staticmethod
    def _listed_asset(
        obj: ListedObject, file_name: str, effective: EffectiveSettings
    ) -> ExternalAsset:
        kind = kind_from_extension(file_name)
        url = effective.object_url(obj.key)
        return ExternalAsset(
            id=obj.key,
            description=file_name,
            preview_url=url if kind == AssetKind.IMAGE else "",
            download_url=url,
            file_name=file_name,
            kind=kind,
            last_modified=obj.last_modified,
            size=obj.size,
        )

    async def upload(self, files: list[MediaFile], options: UploadOptions) -> list[ExternalAsset]:
        """Upload ``files`` one after another.

        Raises:
            InvalidCredentialsError: Before any request when the key is unusable.
            UploadFailedError: On the first file that fails; later files are
                not attempted.
        """
        credentials, effective = self._resolve(options.api_key, options.settings)

        uploaded: list[ExternalAsset] = []
        for media_file in files:
            uploaded.append(await self._upload_one(credentials, effective, media_file))

        logger.info("r2_upload_completed", bucket=credentials.bucket, files=len(uploaded))
        return uploaded

    async def _upload_one(
        self,
        credentials: BucketCredentials,
        effective: EffectiveSettings,
        media_file: MediaFile,
    ) -> ExternalAsset:
        key = build_object_key(effective.prefix_path, media_file.name)
        content_type = media_file.content_type or guess_content_type(media_file.name)
        build_request = partial(
            build_put_object_request,
            credentials,
            key,
            content_type=content_type,
            body=media_file.data,
            storage_host=self.storage_host,
        )

        try:
            await self.http.send(build_request, content=media_file.data)
        except RemoteRejectionError as exc:
            logger.error(
                "r2_upload_rejected",
                bucket=credentials.bucket,
                key=key,
                status_code=exc.status_code,
            )
            raise UploadFailedError(
                media_file.name, exc.message, status_code=exc.status_code
            ) from exc
        except NetworkFailureError as exc:
            logger.error("r2_upload_failed", bucket=credentials.bucket, key=key, error=exc.message)
            raise UploadFailedError(media_file.name, exc.message) from exc

        kind = kind_from_content_type(content_type)
        url = effective.object_url(key)
        logger.debug("r2_object_uploaded", bucket=credentials.bucket, key=key, size=media_file.size)
        return ExternalAsset(
            id=key,
            description=media_file.name,
            preview_url=url if kind == AssetKind.IMAGE else "",
            download_url=url,
            file_name=media_file.name,
            kind=kind,
            last_modified=self._now(),
            size=media_file.size,
        )


def build_r2_service(client: R2BucketClient) -> MediaLibraryService:
    """Describe ``client`` as a cloud-storage media library."""
    return MediaLibraryService(
        service_type=ServiceType.CLOUD_STORAGE,
        service_id=SERVICE_ID,
        service_label="Cloudflare R2",
        auth_type=AuthType.API_KEY,
        hotlinking=False,
        search=client.search,
        upload=client.upload,
        init=client.init,
        service_url="https://www.cloudflare.com/developer-platform/r2/",
        show_service_link=False,
        developer_url="https://developers.cloudflare.com/r2/api/s3/api/",
        api_key_url="https://dash.cloudflare.com/?to=/:account/r2/api-tokens",
        api_key_pattern=R2_API_KEY_PATTERN,
        api_key_help=(
            "Enter accountId:accessKeyId:secretAccessKey:bucketName, optionally "
            "followed by :region and :customDomain."
        ),
        close=client.close,
        asset_origins=client.asset_origins,
        metadata={"addressing": "path-style", "signature": "AWS4-HMAC-SHA256"},
    )


async def build_default_r2_service() -> MediaLibraryService:
    """Build the R2 service from application settings."""
    cfg = settings.media_library
    http = ObjectStorageHttpClient(
        timeout=cfg.timeout,
        max_retries=cfg.max_retry_attempts,
        retry_delay=cfg.retry_delay,
        max_retry_delay=cfg.max_retry_delay,
        verify_ssl=cfg.verify_ssl,
    )
    client = R2BucketClient(
        http,
        storage_host=cfg.storage_host,
        default_region=cfg.default_region,
        max_keys=cfg.max_keys,
        max_list_pages=cfg.max_list_pages,
    )
    return build_r2_service(client)
