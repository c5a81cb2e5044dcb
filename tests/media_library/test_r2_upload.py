import hashlib
from dataclasses import replace
from datetime import timedelta

import httpx
import pytest

from application.ports.media_library import UploadOptions
from domain.media_library import AssetKind, MediaFile, kind_from_content_type, kind_from_extension
from domain.media_library.exceptions import InvalidCredentialsError, UploadFailedError


def _accept(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"ETag": '"abc"'})


@pytest.mark.asyncio
async def test_upload_puts_each_file_under_prefix(make_r2_client, api_key, fixed_now):
    client, transport = make_r2_client(_accept, now=lambda: fixed_now)
    files = [
        MediaFile(name="cat.png", data=b"png-bytes", content_type="image/png"),
        MediaFile(name="notes.txt", data=b"hello", content_type="text/plain"),
    ]

    assets = await client.upload(files, UploadOptions(api_key=api_key, settings={"path_prefix": "uploads/"}))

    assert [r.method for r in transport.requests] == ["PUT", "PUT"]
    first = transport.requests[0]
    assert first.url.path == "/media/uploads/cat.png"
    assert first.content == b"png-bytes"
    assert first.headers["Content-Type"] == "image/png"
    assert first.headers["x-amz-content-sha256"] == hashlib.sha256(b"png-bytes").hexdigest()
    assert "content-type;host;x-amz-content-sha256;x-amz-date" in first.headers["Authorization"]

    cat, notes = assets
    assert cat.id == "uploads/cat.png"
    assert cat.file_name == "cat.png"
    assert cat.description == "cat.png"
    assert cat.kind == AssetKind.IMAGE
    assert cat.download_url == "https://media.acc123.r2.cloudflarestorage.com/uploads/cat.png"
    assert cat.preview_url == cat.download_url
    assert cat.size == len(b"png-bytes")
    assert cat.last_modified == fixed_now
    assert notes.kind == AssetKind.DOCUMENT
    assert notes.preview_url == ""


@pytest.mark.asyncio
async def test_reupload_is_idempotent(make_r2_client, api_key, fixed_now):
    times = iter([fixed_now, fixed_now + timedelta(seconds=5)])
    client, transport = make_r2_client(_accept, now=lambda: next(times))
    media = MediaFile(name="same.jpg", data=b"x", content_type="image/jpeg")

    (first,) = await client.upload([media], UploadOptions(api_key=api_key))
    (second,) = await client.upload([media], UploadOptions(api_key=api_key))

    assert transport.requests[0].url == transport.requests[1].url
    assert first != second
    assert replace(first, last_modified=None) == replace(second, last_modified=None)


@pytest.mark.asyncio
async def test_failure_aborts_remaining_batch(make_r2_client, api_key):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/b.png"):
            return httpx.Response(403, text="<Error><Code>AccessDenied</Code></Error>")
        return httpx.Response(200)

    client, transport = make_r2_client(handler)
    files = [MediaFile(name=n, data=b"1", content_type="image/png") for n in ("a.png", "b.png", "c.png")]

    with pytest.raises(UploadFailedError) as exc_info:
        await client.upload(files, UploadOptions(api_key=api_key))

    assert exc_info.value.file_name == "b.png"
    assert exc_info.value.status_code == 403
    assert [r.url.path for r in transport.requests] == ["/media/a.png", "/media/b.png"]


@pytest.mark.asyncio
async def test_server_errors_are_retried_then_reported(make_r2_client, api_key):
    client, transport = make_r2_client(lambda r: httpx.Response(503), max_retries=1)
    with pytest.raises(UploadFailedError) as exc_info:
        await client.upload([MediaFile(name="a.png", data=b"1")], UploadOptions(api_key=api_key))
    assert exc_info.value.status_code == 503
    assert len(transport.requests) == 2


@pytest.mark.asyncio
async def test_network_failure_becomes_upload_failed(make_r2_client, api_key):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client, _ = make_r2_client(handler)
    with pytest.raises(UploadFailedError, match="a.mp4"):
        await client.upload([MediaFile(name="a.mp4", data=b"1")], UploadOptions(api_key=api_key))


@pytest.mark.asyncio
async def test_invalid_credentials_make_no_requests(make_r2_client):
    client, transport = make_r2_client(_accept)
    with pytest.raises(InvalidCredentialsError):
        await client.upload([MediaFile(name="a.png", data=b"1")], UploadOptions(api_key="broken"))
    assert transport.requests == []


@pytest.mark.asyncio
async def test_missing_content_type_is_guessed(make_r2_client, api_key):
    client, transport = make_r2_client(_accept)
    (asset,) = await client.upload([MediaFile(name="clip.mp4", data=b"1")], UploadOptions(api_key=api_key))
    assert transport.requests[0].headers["Content-Type"] == "video/mp4"
    assert asset.kind == AssetKind.VIDEO


@pytest.mark.parametrize(
    "file_name, content_type",
    [
        ("a.jpg", "image/jpeg"),
        ("a.jpeg", "image/jpeg"),
        ("a.png", "image/png"),
        ("a.gif", "image/gif"),
        ("a.webp", "image/webp"),
        ("a.svg", "image/svg+xml"),
        ("a.mp4", "video/mp4"),
        ("a.webm", "video/webm"),
        ("a.mov", "video/quicktime"),
        ("a.mp3", "audio/mpeg"),
        ("a.wav", "audio/wav"),
        ("a.ogg", "audio/ogg"),
        ("a.pdf", "application/pdf"),
        ("a.doc", "application/msword"),
        ("a.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("a.txt", "text/plain"),
    ],
)
def test_extension_and_content_type_agree(file_name, content_type):
    assert kind_from_extension(file_name) == kind_from_content_type(content_type)


def test_unknown_content_type_is_other():
    assert kind_from_content_type("application/zip") == AssetKind.OTHER
    assert kind_from_content_type("") == AssetKind.OTHER
    assert kind_from_content_type("Image/PNG; charset=binary") == AssetKind.IMAGE
