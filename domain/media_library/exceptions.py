"""Media library error taxonomy.

Listing degrades network, rejection and parse failures to an empty result;
upload surfaces every failure. Credential and signing errors are always
fatal and raised before any network I/O.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes.media_library_codes import MediaLibraryCode


class MediaLibraryError(BusinessException):
    """Base media library exception."""

    def __init__(
        self,
        message: str,
        *,
        code: int = MediaLibraryCode.UPSTREAM_NETWORK_ERROR,
        error_type: str = "MediaLibraryError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=details,
            field=field,
        )


class InvalidCredentialsError(MediaLibraryError):
    """Missing or malformed credential string."""

    def __init__(self, message: str = "Invalid API key format"):
        super().__init__(
            message,
            code=MediaLibraryCode.INVALID_CREDENTIALS,
            error_type="InvalidCredentials",
            field="api_key",
        )


class SigningPreconditionError(MediaLibraryError):
    """A required signing input is missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            f"Missing required signing inputs: {', '.join(missing)}",
            code=MediaLibraryCode.SIGNING_PRECONDITION,
            error_type="SigningPrecondition",
            details={"missing": missing},
        )


class NetworkFailureError(MediaLibraryError):
    """Transport-level failure talking to the bucket endpoint."""

    def __init__(
        self,
        message: str,
        *,
        code: int = MediaLibraryCode.UPSTREAM_NETWORK_ERROR,
        error_type: str = "NetworkFailure",
        details: Optional[dict] = None,
    ):
        super().__init__(message, code=code, error_type=error_type, details=details)


class RemoteRejectionError(NetworkFailureError):
    """The endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body_excerpt: str = ""):
        self.status_code = status_code
        self.body_excerpt = body_excerpt
        super().__init__(
            f"Request rejected with status {status_code}",
            code=MediaLibraryCode.UPSTREAM_REJECTED,
            error_type="RemoteRejection",
            details={"status_code": status_code, "body": body_excerpt},
        )


class ParseFailureError(MediaLibraryError):
    """Malformed listing response."""

    def __init__(self, message: str):
        super().__init__(
            message,
            code=MediaLibraryCode.UPSTREAM_PARSE_ERROR,
            error_type="ParseFailure",
        )


class UploadFailedError(MediaLibraryError):
    """Uploading one file of a batch failed; the rest of the batch is aborted."""

    def __init__(self, file_name: str, reason: str, status_code: Optional[int] = None):
        self.file_name = file_name
        self.status_code = status_code
        details: dict = {"file_name": file_name}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            f"Upload of {file_name} failed: {reason}",
            code=MediaLibraryCode.UPLOAD_FAILED,
            error_type="UploadFailed",
            details=details,
        )


class MediaLibraryNotFoundError(MediaLibraryError):
    def __init__(self, service_id: str):
        super().__init__(
            f"Media library '{service_id}' is not registered",
            code=MediaLibraryCode.MEDIA_LIBRARY_NOT_FOUND,
            error_type="MediaLibraryNotFound",
            details={"service_id": service_id},
        )


class MediaLibraryUnsupportedError(MediaLibraryError):
    def __init__(self, service_id: str, operation: str):
        super().__init__(
            f"Media library '{service_id}' does not support {operation}",
            code=MediaLibraryCode.MEDIA_LIBRARY_UNSUPPORTED,
            error_type="MediaLibraryUnsupported",
            details={"service_id": service_id, "operation": operation},
        )


class MediaLibraryNotConfiguredError(MediaLibraryError):
    def __init__(self, service_id: str):
        super().__init__(
            f"Media library '{service_id}' is not configured",
            code=MediaLibraryCode.MEDIA_LIBRARY_NOT_CONFIGURED,
            error_type="MediaLibraryNotConfigured",
            details={"service_id": service_id},
        )


class AssetTooLargeError(MediaLibraryError):
    """A downloaded asset exceeded the configured byte limit."""

    def __init__(self, url: str, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(
            f"Asset exceeds the {max_bytes} byte download limit",
            code=MediaLibraryCode.ASSET_TOO_LARGE,
            error_type="AssetTooLarge",
            details={"url": url, "max_bytes": max_bytes},
        )
