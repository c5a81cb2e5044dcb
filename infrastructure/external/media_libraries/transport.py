"""
对象存储 HTTP 客户端

提供签名请求的发送功能，包括：
- 自动重试（每次尝试重新签名）
- 错误映射（NetworkFailure / RemoteRejection）
- 请求/响应日志（不记录凭据）
"""
import logging
from typing import Awaitable, Callable, Optional, Union

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from core.logging_config import get_logger
from domain.media_library.exceptions import NetworkFailureError, RemoteRejectionError
from .models import SignedRequest

logger = get_logger(__name__)
_stdlib_logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

# Error bodies are small XML documents; keep enough to show the S3 error code
_BODY_EXCERPT_LIMIT = 512

RequestFactory = Callable[[], SignedRequest]


class _RetryableResponse(Exception):
    """Transient HTTP status, retried by tenacity."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.retry_after = (
            _parse_retry_after(response.headers.get("retry-after"))
            if response.status_code == 429
            else None
        )
        super().__init__(f"Transient status {response.status_code}")


class wait_retry_after(wait_base):
    """Honour a 429 ``Retry-After`` up to ``max_delay``, else defer to ``fallback``."""

    def __init__(self, fallback: wait_base, max_delay: float):
        self.fallback = fallback
        self.max_delay = max_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        exc = outcome.exception() if outcome is not None and outcome.failed else None
        if isinstance(exc, _RetryableResponse) and exc.retry_after is not None:
            return min(exc.retry_after, self.max_delay)
        return self.fallback(retry_state)


class ObjectStorageHttpClient:
    """
    Async HTTP client for signed S3-compatible requests.

    ``send`` takes a request factory rather than a request so every attempt
    is signed with its own timestamp.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retry_delay: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Args:
            timeout: 请求超时时间（秒）
            max_retries: 最大重试次数
            retry_delay: 重试延迟（秒）
            verify_ssl: 是否验证SSL证书
            transport: 可注入的 httpx transport（测试用 MockTransport）
            max_retry_delay: 单次重试等待上限（秒），同时限制 Retry-After；默认 retry_delay * 8
            sleep: 可注入的异步 sleep（测试用）
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.verify_ssl = verify_ssl
        self.max_retry_delay = retry_delay * 8 if max_retry_delay is None else max_retry_delay
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """获取或创建HTTP客户端"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                verify=self.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ObjectStorageHttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _retrying(self) -> AsyncRetrying:
        kwargs = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_retry_after(
                wait_exponential(
                    multiplier=self.retry_delay,
                    min=self.retry_delay,
                    max=self.max_retry_delay,
                ),
                max_delay=self.max_retry_delay,
            ),
            retry=retry_if_exception_type(
                (httpx.TimeoutException, httpx.NetworkError, _RetryableResponse)
            ),
            before_sleep=before_sleep_log(_stdlib_logger, logging.WARNING),
            **kwargs,
        )

    async def send(
        self,
        build_request: RequestFactory,
        content: Optional[Union[bytes, str]] = None,
    ) -> httpx.Response:
        """Send a signed request, retrying transient failures.

        Raises:
            NetworkFailureError: Timeouts, connection errors or undecodable
                responses after retries.
            RemoteRejectionError: Any non-2xx final response.
        """

        async def _send_once() -> httpx.Response:
            signed = build_request()
            logger.debug("object_storage_request", method=signed.method, url=signed.url)
            response = await self.client.request(
                signed.method,
                signed.url,
                headers=dict(signed.headers),
                content=content,
            )
            logger.debug(
                "object_storage_response",
                method=signed.method,
                url=signed.url,
                status_code=response.status_code,
            )
            if response.status_code in RETRY_STATUS_CODES:
                raise _RetryableResponse(response)
            return response

        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await _send_once()
        except httpx.TimeoutException as exc:
            raise NetworkFailureError(f"Request timeout after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise NetworkFailureError(f"Network error: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            # e.g. DecodingError from a corrupt Content-Encoding
            raise NetworkFailureError(f"HTTP error: {exc}") from exc
        except _RetryableResponse as exc:
            response = exc.response

        if not response.is_success:
            raise RemoteRejectionError(
                response.status_code, response.text[:_BODY_EXCERPT_LIMIT]
            )
        return response


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    try:
        seconds = float(value) if value else None
    except (TypeError, ValueError):
        return None
    return max(seconds, 0.0) if seconds is not None else None
