from __future__ import annotations

from evconnect._redact import mask_token, redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "grant_type": "refresh_token",
        "client_id": "client-abc",
        "client_secret": "secret-xyz",
        "refresh_token": "refresh-1",
        "nested": {"Authorization": "Bearer access-1", "code": "auth-code"},
        "items": [{"access_token": "access-1"}],
    }

    redacted = redact_for_log(payload)

    assert redacted["grant_type"] == "refresh_token"
    assert redacted["client_id"] == "client-abc"
    assert redacted["client_secret"] == "<redacted>"
    assert redacted["refresh_token"] == "<redacted>"
    assert redacted["nested"]["Authorization"] == "<redacted>"
    assert redacted["nested"]["code"] == "<redacted>"
    assert redacted["items"][0]["access_token"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_mask_token() -> None:
    assert mask_token(None) == "<none>"
    assert mask_token("short") == "****"
    assert mask_token("eyJhbGciOiJSUzI1NiJ9") == "eyJh…J9"
