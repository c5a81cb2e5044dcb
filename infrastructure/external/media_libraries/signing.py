"""AWS Signature Version 4 signing for S3-compatible endpoints.

Pure functions, no I/O. The building blocks are public so they can be checked
against host-agnostic vectors; ``get_signed_request`` composes them for
path-style bucket requests.
"""
from __future__ import annotations

import hashlib
import hmac
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional, Union

from domain.media_library.exceptions import InvalidCredentialsError, SigningPreconditionError
from .models import SignedRequest

ALGORITHM = "AWS4-HMAC-SHA256"
DEFAULT_SERVICE = "s3"
DEFAULT_STORAGE_HOST = "r2.cloudflarestorage.com"

# The account id becomes the leftmost label of the endpoint host
ACCOUNT_ID_PATTERN = re.compile(r"[A-Za-z0-9-]+")

EMPTY_PAYLOAD_HASH = hashlib.sha256(b"").hexdigest()

_AWS_UNRESERVED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)

# Supplied by the transport layer, never returned to callers
_TRANSPORT_HEADERS = frozenset({"host"})

Payload = Union[str, bytes]


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------


def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """URI-encode ``value`` with the AWS rules.

    Unreserved characters (A-Z, a-z, 0-9, ``-_.~``) pass through; every other
    UTF-8 byte becomes ``%XX`` with uppercase hex. ``!'()*`` are therefore
    escaped, unlike most form encoders.
    """
    result: list[str] = []
    for ch in value:
        if ch in _AWS_UNRESERVED:
            result.append(ch)
        elif ch == "/" and not encode_slash:
            result.append("/")
        else:
            result.extend(f"%{byte:02X}" for byte in ch.encode("utf-8"))
    return "".join(result)


def format_amz_date(date: datetime) -> tuple[str, str]:
    """Return ``(amz_date, date_stamp)`` for ``date``; naive values are UTC."""
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    else:
        date = date.astimezone(timezone.utc)
    amz_date = date.strftime("%Y%m%dT%H%M%SZ")
    return amz_date, amz_date[:8]


def hash_payload(payload: Payload) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


# ---------------------------------------------------------------------------
# Canonical request
# ---------------------------------------------------------------------------


def canonical_uri(bucket: str, path: str = "") -> str:
    """Path-style canonical URI; the trailing slash is mandatory for listing."""
    if path:
        return f"/{uri_encode(bucket)}/{uri_encode(path.lstrip('/'), encode_slash=False)}"
    return f"/{uri_encode(bucket)}/"


def canonical_query_string(params: Optional[Mapping[str, str]]) -> str:
    """Encode and sort query parameters by key."""
    if not params:
        return ""
    encoded = sorted((uri_encode(str(k)), uri_encode(str(v))) for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in encoded)


def canonical_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """Return ``(canonical_headers, signed_headers)``.

    Keys are lower-cased and sorted; values are trimmed with inner whitespace
    collapsed to single spaces.
    """
    lowered: dict[str, str] = {}
    for name, value in headers.items():
        lowered[name.lower()] = " ".join(str(value).split())

    names = sorted(lowered)
    canonical = "".join(f"{name}:{lowered[name]}\n" for name in names)
    return canonical, ";".join(names)


def build_canonical_request(
    method: str,
    uri: str,
    query: str,
    headers_block: str,
    signed_headers: str,
    payload_hash: str,
) -> str:
    return "\n".join([method, uri, query, headers_block, signed_headers, payload_hash])


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------


def credential_scope(date_stamp: str, region: str, service: str = DEFAULT_SERVICE) -> str:
    return f"{date_stamp}/{region}/{service}/aws4_request"


def build_string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    return "\n".join(
        [
            ALGORITHM,
            amz_date,
            scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ]
    )


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_access_key: str, date_stamp: str, region: str, service: str = DEFAULT_SERVICE
) -> bytes:
    """HMAC chain over raw digests: date, region, service, terminator."""
    k_date = _hmac_sha256(f"AWS4{secret_access_key}".encode("utf-8"), date_stamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, "aws4_request")


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def build_authorization_header(
    access_key_id: str, scope: str, signed_headers: str, signature: str
) -> str:
    return (
        f"{ALGORITHM} Credential={access_key_id}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )


@dataclass(frozen=True)
class SignatureResult:
    """Every intermediate value of one signing pass."""

    amz_date: str
    date_stamp: str
    payload_hash: str
    canonical_request: str
    string_to_sign: str
    signed_headers: str
    signature: str
    authorization: str
    headers: dict[str, str]


def sign(
    *,
    method: str,
    host: str,
    uri: str,
    access_key_id: str,
    secret_access_key: str,
    region: str,
    service: str = DEFAULT_SERVICE,
    headers: Optional[Mapping[str, str]] = None,
    query_params: Optional[Mapping[str, str]] = None,
    payload: Payload = "",
    date: Optional[datetime] = None,
) -> SignatureResult:
    """Sign a request for an already canonical ``uri`` on ``host``.

    Caller headers are merged over ``host``, ``x-amz-date`` and
    ``x-amz-content-sha256``. A caller ``x-amz-content-sha256`` (for example
    ``UNSIGNED-PAYLOAD``) replaces the computed payload hash.
    """
    amz_date, date_stamp = format_amz_date(date or datetime.now(timezone.utc))

    all_headers: dict[str, str] = {
        "host": host,
        "x-amz-date": amz_date,
        "x-amz-content-sha256": hash_payload(payload),
    }
    for name, value in (headers or {}).items():
        # Same header in another case replaces the mandatory entry
        for existing in [k for k in all_headers if k.lower() == name.lower()]:
            del all_headers[existing]
        all_headers[name] = value

    payload_hash = next(
        v for k, v in all_headers.items() if k.lower() == "x-amz-content-sha256"
    )
    headers_block, signed_headers = canonical_headers(all_headers)
    canonical_request = build_canonical_request(
        method.upper(),
        uri,
        canonical_query_string(query_params),
        headers_block,
        signed_headers,
        payload_hash,
    )

    scope = credential_scope(date_stamp, region, service)
    string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)
    signing_key = derive_signing_key(secret_access_key, date_stamp, region, service)
    signature = compute_signature(signing_key, string_to_sign)

    return SignatureResult(
        amz_date=amz_date,
        date_stamp=date_stamp,
        payload_hash=payload_hash,
        canonical_request=canonical_request,
        string_to_sign=string_to_sign,
        signed_headers=signed_headers,
        signature=signature,
        authorization=build_authorization_header(
            access_key_id, scope, signed_headers, signature
        ),
        headers=all_headers,
    )


def _check_preconditions(**values: Optional[str]) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise SigningPreconditionError(missing)


def get_signed_request(
    *,
    method: str,
    region: str,
    access_key_id: str,
    secret_access_key: str,
    account_id: str,
    bucket: str,
    path: str = "",
    headers: Optional[Mapping[str, str]] = None,
    query_params: Optional[Mapping[str, str]] = None,
    service: str = DEFAULT_SERVICE,
    date: Optional[datetime] = None,
    payload: Payload = "",
    storage_host: str = DEFAULT_STORAGE_HOST,
) -> SignedRequest:
    """Build a signed path-style request against ``{account_id}.{storage_host}``.

    The returned URL carries the canonical (sorted) query string, so it must
    not be re-encoded or reordered by the caller. ``host`` is left to the
    transport.

    Raises:
        SigningPreconditionError: If a credential or addressing input is empty.
        InvalidCredentialsError: If ``account_id`` is not a single host label.
    """
    _check_preconditions(
        method=method,
        region=region,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        account_id=account_id,
        bucket=bucket,
    )

    if not ACCOUNT_ID_PATTERN.fullmatch(account_id):
        raise InvalidCredentialsError("Invalid account id")

    host = f"{account_id}.{storage_host}"
    uri = canonical_uri(bucket, path)
    result = sign(
        method=method,
        host=host,
        uri=uri,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        region=region,
        service=service,
        headers=headers,
        query_params=query_params,
        payload=payload,
        date=date,
    )

    url = f"https://{host}{uri}"
    query = canonical_query_string(query_params)
    if query:
        url = f"{url}?{query}"

    send_headers = {
        k: v for k, v in result.headers.items() if k.lower() not in _TRANSPORT_HEADERS
    }
    send_headers["Authorization"] = result.authorization

    return SignedRequest(
        method=method.upper(),
        url=url,
        headers=send_headers,
        amz_date=result.amz_date,
    )
