"""Download of public asset URLs for rehosting."""
from typing import Optional

import httpx

from application.ports.media_library import DownloadedAsset
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException
from domain.media_library.exceptions import (
    AssetTooLargeError,
    NetworkFailureError,
    RemoteRejectionError,
)

logger = get_logger(__name__)

DEFAULT_MAX_DOWNLOAD_BYTES = 25 * 1024 * 1024
_BODY_EXCERPT_LIMIT = 512


class HttpAssetDownloader:
    """``AssetDownloader`` over a shared ``httpx.AsyncClient``.

    Redirects are not followed: the caller vets the URL's origin, and a
    redirect would leave it.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_bytes: int = DEFAULT_MAX_DOWNLOAD_BYTES,
    ):
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.max_bytes = max_bytes
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                verify=self.verify_ssl,
                follow_redirects=False,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> DownloadedAsset:
        """Download ``url``.

        Raises:
            DomainValidationException: If ``url`` is not an absolute http(s) URL
                (e.g. a bare object key from a non-public library).
            AssetTooLargeError: If the body is larger than ``max_bytes``.
            NetworkFailureError: On timeouts and connection errors.
            RemoteRejectionError: On a non-2xx response, redirects included.
        """
        if not url.startswith(("http://", "https://")):
            raise DomainValidationException(
                "Asset URL is not publicly reachable", field="download_url"
            )

        try:
            async with self.client.stream("GET", url) as response:
                if not response.is_success:
                    excerpt = await self._read_excerpt(response)
                    raise RemoteRejectionError(response.status_code, excerpt)
                data = await self._read_limited(response, url)
                content_type = response.headers.get("content-type", "application/octet-stream")
        except httpx.TimeoutException as exc:
            raise NetworkFailureError(f"Download timeout after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise NetworkFailureError(f"Network error: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkFailureError(f"HTTP error: {exc}") from exc

        logger.debug("asset_downloaded", url=url, size=len(data))
        return DownloadedAsset(data=data, content_type=content_type)

    async def _read_limited(self, response: httpx.Response, url: str) -> bytes:
        declared = response.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_bytes:
            logger.warning("asset_download_too_large", url=url, content_length=int(declared))
            raise AssetTooLargeError(url, self.max_bytes)

        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > self.max_bytes:
                logger.warning("asset_download_too_large", url=url, read=len(body))
                raise AssetTooLargeError(url, self.max_bytes)
        return bytes(body)

    @staticmethod
    async def _read_excerpt(response: httpx.Response) -> str:
        excerpt = bytearray()
        async for chunk in response.aiter_bytes():
            excerpt.extend(chunk)
            if len(excerpt) >= _BODY_EXCERPT_LIMIT:
                break
        return bytes(excerpt[:_BODY_EXCERPT_LIMIT]).decode("utf-8", errors="replace")
