from core.logging_config import REDACTED, mask_key_id, redact_sensitive


def test_credentials_are_redacted():
    event = {
        "event": "r2_request",
        "api_key": "acc:key:secret:bucket",
        "Authorization": "AWS4-HMAC-SHA256 Credential=...",
        "password": "pw",
        "bucket": "media",
    }
    redacted = redact_sensitive(None, "info", dict(event))
    assert redacted["api_key"] == REDACTED
    assert redacted["Authorization"] == REDACTED
    assert redacted["password"] == REDACTED
    assert redacted["bucket"] == "media"


def test_empty_values_are_left_alone():
    assert redact_sensitive(None, "info", {"api_key": None}) == {"api_key": None}


def test_mask_key_id():
    assert mask_key_id("AKIDEXAMPLE") == "AKID****"
    assert mask_key_id("abc") == "****"
