"""Bucket credentials and per-library settings."""
from __future__ import annotations

import re
from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from domain.media_library.exceptions import InvalidCredentialsError
from .signing import ACCOUNT_ID_PATTERN, DEFAULT_STORAGE_HOST, uri_encode

DEFAULT_REGION = "auto"

# accountId:accessKeyId:accessKeySecret:bucketName[:bucketRegion][:customDomain]
_REQUIRED_FIELDS = ("account_id", "access_key_id", "secret_access_key", "bucket")

# Bucket names also appear as host labels in the public object URL
_BUCKET_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9.-]*")


class BucketCredentials(BaseModel):
    """Credentials parsed from the colon-delimited API key."""
    model_config = ConfigDict(frozen=True)

    account_id: str
    access_key_id: str
    secret_access_key: str
    bucket: str
    region: str = DEFAULT_REGION
    custom_domain: Optional[str] = None

    @classmethod
    def parse(cls, api_key: Optional[str], default_region: str = DEFAULT_REGION) -> "BucketCredentials":
        """Parse ``api_key``.

        Everything after the region field is the custom domain, so a value
        such as ``https://cdn.example.com`` survives the split.

        Raises:
            InvalidCredentialsError: If the key is missing or malformed. An
                account id or bucket that cannot be used in a host name
                counts as malformed.
        """
        if not api_key:
            raise InvalidCredentialsError("API key is required")

        parts = api_key.strip().split(":")
        if len(parts) < len(_REQUIRED_FIELDS):
            raise InvalidCredentialsError()

        required = dict(zip(_REQUIRED_FIELDS, (p.strip() for p in parts[:4])))
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise InvalidCredentialsError(
                f"Invalid API key format: missing {', '.join(missing)}"
            )

        if not ACCOUNT_ID_PATTERN.fullmatch(required["account_id"]):
            raise InvalidCredentialsError("Invalid API key format: malformed account id")
        if not _BUCKET_PATTERN.fullmatch(required["bucket"]):
            raise InvalidCredentialsError("Invalid API key format: malformed bucket name")

        region = parts[4].strip() if len(parts) > 4 else ""
        custom_domain = ":".join(parts[5:]).strip() if len(parts) > 5 else ""

        return cls(
            **required,
            region=region or default_region,
            custom_domain=custom_domain or None,
        )


class LibrarySettings(BaseModel):
    """Caller-supplied library settings (snake_case or the UI's camelCase keys)."""
    model_config = ConfigDict(populate_by_name=True)

    public_path: bool = Field(default=True, validation_alias=AliasChoices("public_path", "publicPath"))
    custom_domain: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("custom_domain", "customDomain")
    )
    path_prefix: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("path_prefix", "pathPrefix")
    )


def normalize_domain(domain: str) -> str:
    domain = domain.strip().rstrip("/")
    if "://" not in domain:
        domain = f"https://{domain}"
    return domain


def normalize_prefix(path_prefix: Optional[str]) -> str:
    """``images`` / ``images/`` / ``images//`` all become ``images/``."""
    if not path_prefix:
        return ""
    stripped = path_prefix.strip().rstrip("/")
    return f"{stripped}/" if stripped else ""


class EffectiveSettings(BaseModel):
    """Settings merged with the credential string for one operation."""
    model_config = ConfigDict(frozen=True)

    public_path: bool
    base_url: str
    prefix_path: str

    @classmethod
    def resolve(
        cls,
        credentials: BucketCredentials,
        settings: Optional[LibrarySettings] = None,
        storage_host: str = DEFAULT_STORAGE_HOST,
    ) -> "EffectiveSettings":
        """Explicit settings win over the credential-string custom domain."""
        settings = settings or LibrarySettings()
        domain = settings.custom_domain or credentials.custom_domain
        if domain:
            base_url = normalize_domain(domain)
        else:
            base_url = f"https://{credentials.bucket}.{credentials.account_id}.{storage_host}"
        return cls(
            public_path=settings.public_path,
            base_url=base_url,
            prefix_path=normalize_prefix(settings.path_prefix),
        )

    def object_url(self, key: str) -> str:
        if not self.public_path:
            return key
        return f"{self.base_url}/{uri_encode(key, encode_slash=False)}"
