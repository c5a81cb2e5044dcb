"""Pytest bootstrap configuration.

Settings are read at import time, so the environment is pinned before any
application module is imported. Shared fixtures drive the bucket client
against ``httpx.MockTransport``.
"""
import os

# In-memory preferences; no Redis in tests
os.environ.pop("REDIS__URL", None)
os.environ.setdefault("DEBUG", "false")

from datetime import datetime, timezone
from typing import Callable, Optional
from xml.sax.saxutils import escape

import httpx
import pytest

from infrastructure.external.media_libraries.providers.r2 import R2BucketClient
from infrastructure.external.media_libraries.transport import ObjectStorageHttpClient

API_KEY = "acc123:AKIDEXAMPLE:wJalrXUtnFEMIK7MDENGbPxRfiCYEXAMPLEKEY:media"
S3_NS = "http://s3.amazonaws.com/doc/2006-03-01/"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


def list_bucket_xml(
    objects: list[tuple],
    *,
    truncated: bool = False,
    token: Optional[str] = None,
    prefixes: tuple[str, ...] = (),
    namespace: bool = True,
) -> str:
    """Render a ListObjectsV2 page; objects are ``(key, size, last_modified)``."""
    contents = "".join(
        "<Contents>"
        f"<Key>{escape(key)}</Key>"
        f"<LastModified>{modified}</LastModified>"
        f"<Size>{size}</Size>"
        "<StorageClass>STANDARD</StorageClass>"
        "</Contents>"
        for key, size, modified in objects
    )
    common = "".join(
        f"<CommonPrefixes><Prefix>{escape(p)}</Prefix></CommonPrefixes>" for p in prefixes
    )
    token_xml = f"<NextContinuationToken>{escape(token)}</NextContinuationToken>" if token else ""
    xmlns = f' xmlns="{S3_NS}"' if namespace else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<ListBucketResult{xmlns}>"
        "<Name>media</Name>"
        f"<KeyCount>{len(objects)}</KeyCount>"
        "<MaxKeys>1000</MaxKeys>"
        f"<IsTruncated>{'true' if truncated else 'false'}</IsTruncated>"
        f"{token_xml}{contents}{common}"
        "</ListBucketResult>"
    )


@pytest.fixture
def api_key() -> str:
    return API_KEY


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_r2_client():
    """Build an ``R2BucketClient`` over a recording mock transport.

    Returns ``(client, transport)``; retries are immediate.
    """
    def _factory(handler, *, max_retries: int = 0, now=None, **kwargs):
        transport = RecordingTransport(handler)
        http = ObjectStorageHttpClient(max_retries=max_retries, retry_delay=0, transport=transport)
        return R2BucketClient(http, now=now, **kwargs), transport

    return _factory


@pytest.fixture
def xml_page():
    return list_bucket_xml


@pytest.fixture
def recording_transport():
    return RecordingTransport
