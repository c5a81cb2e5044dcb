import pytest

from domain.media_library.exceptions import InvalidCredentialsError
from infrastructure.external.media_libraries.config import (
    BucketCredentials,
    EffectiveSettings,
    LibrarySettings,
    normalize_domain,
    normalize_prefix,
)
from infrastructure.external.media_libraries.utils import coerce_settings


def test_parse_minimal_key_defaults_region():
    creds = BucketCredentials.parse("acc:key:secret:bucket")
    assert creds.account_id == "acc"
    assert creds.access_key_id == "key"
    assert creds.secret_access_key == "secret"
    assert creds.bucket == "bucket"
    assert creds.region == "auto"
    assert creds.custom_domain is None


def test_parse_region_and_custom_domain_with_scheme():
    creds = BucketCredentials.parse("acc:key:secret:bucket:eu:https://cdn.example.com")
    assert creds.region == "eu"
    assert creds.custom_domain == "https://cdn.example.com"


def test_empty_region_falls_back_to_default():
    creds = BucketCredentials.parse("acc:key:secret:bucket::cdn.example.com", default_region="wnam")
    assert creds.region == "wnam"
    assert creds.custom_domain == "cdn.example.com"


@pytest.mark.parametrize("api_key", [None, "", "acc:key:secret", "acc::secret:bucket", "acc:key:secret: "])
def test_invalid_keys_rejected(api_key):
    with pytest.raises(InvalidCredentialsError) as exc_info:
        BucketCredentials.parse(api_key)
    assert exc_info.value.field == "api_key"


@pytest.mark.parametrize(
    "api_key",
    [
        "evil.example/x:key:secret:bucket",
        "acc.evil.example:key:secret:bucket",
        "acc@evil:key:secret:bucket",
        "acc:key:secret:bucket/x",
        "acc:key:secret:-bucket",
    ],
)
def test_host_breaking_account_or_bucket_rejected(api_key):
    with pytest.raises(InvalidCredentialsError, match="malformed"):
        BucketCredentials.parse(api_key)


def test_missing_key_message():
    with pytest.raises(InvalidCredentialsError, match="API key is required"):
        BucketCredentials.parse(None)


def test_normalize_prefix():
    assert normalize_prefix(None) == ""
    assert normalize_prefix("") == ""
    assert normalize_prefix("/") == ""
    assert normalize_prefix("images") == "images/"
    assert normalize_prefix("images//") == "images/"


def test_normalize_domain():
    assert normalize_domain("cdn.example.com/") == "https://cdn.example.com"
    assert normalize_domain("http://cdn.example.com") == "http://cdn.example.com"


def test_effective_settings_default_base_url():
    creds = BucketCredentials.parse("acc:key:secret:media")
    effective = EffectiveSettings.resolve(creds)
    assert effective.base_url == "https://media.acc.r2.cloudflarestorage.com"
    assert effective.object_url("a b/c.jpg") == "https://media.acc.r2.cloudflarestorage.com/a%20b/c.jpg"


def test_explicit_custom_domain_wins_over_credentials():
    creds = BucketCredentials.parse("acc:key:secret:media::cdn-from-key.example.com")
    effective = EffectiveSettings.resolve(creds, LibrarySettings(custom_domain="assets.example.com/"))
    assert effective.base_url == "https://assets.example.com"

    from_key = EffectiveSettings.resolve(creds, LibrarySettings())
    assert from_key.base_url == "https://cdn-from-key.example.com"


def test_non_public_path_returns_bare_key():
    creds = BucketCredentials.parse("acc:key:secret:media")
    effective = EffectiveSettings.resolve(creds, LibrarySettings(public_path=False, path_prefix="up"))
    assert effective.prefix_path == "up/"
    assert effective.object_url("up/file name.pdf") == "up/file name.pdf"


def test_settings_accept_camel_case_keys():
    settings = coerce_settings({"publicPath": False, "customDomain": "cdn.x", "pathPrefix": "p"})
    assert settings == LibrarySettings(public_path=False, custom_domain="cdn.x", path_prefix="p")
    assert coerce_settings(None) == LibrarySettings()
    assert coerce_settings(settings) is settings
