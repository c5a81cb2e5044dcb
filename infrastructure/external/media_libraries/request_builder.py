"""Signed request builders for the bucket operations the client performs."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from .config import BucketCredentials
from .models import SignedRequest
from .signing import DEFAULT_STORAGE_HOST, Payload, get_signed_request

LIST_OBJECTS_MAX_KEYS = 1000


def build_list_objects_request(
    credentials: BucketCredentials,
    *,
    prefix: str = "",
    continuation_token: Optional[str] = None,
    max_keys: int = LIST_OBJECTS_MAX_KEYS,
    date: Optional[datetime] = None,
    storage_host: str = DEFAULT_STORAGE_HOST,
) -> SignedRequest:
    """``GET /{bucket}/?list-type=2`` for one page."""
    query_params = {
        "list-type": "2",
        "max-keys": str(max_keys),
    }
    if prefix:
        query_params["prefix"] = prefix
    if continuation_token:
        query_params["continuation-token"] = continuation_token

    return get_signed_request(
        method="GET",
        region=credentials.region,
        access_key_id=credentials.access_key_id,
        secret_access_key=credentials.secret_access_key,
        account_id=credentials.account_id,
        bucket=credentials.bucket,
        query_params=query_params,
        date=date,
        storage_host=storage_host,
    )


def build_put_object_request(
    credentials: BucketCredentials,
    key: str,
    *,
    content_type: str,
    body: Payload = b"",
    date: Optional[datetime] = None,
    storage_host: str = DEFAULT_STORAGE_HOST,
) -> SignedRequest:
    """``PUT /{bucket}/{key}`` signed over the body hash."""
    return get_signed_request(
        method="PUT",
        region=credentials.region,
        access_key_id=credentials.access_key_id,
        secret_access_key=credentials.secret_access_key,
        account_id=credentials.account_id,
        bucket=credentials.bucket,
        path=key,
        headers={"Content-Type": content_type},
        payload=body,
        date=date,
        storage_host=storage_host,
    )
