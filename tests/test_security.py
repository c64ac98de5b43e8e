"""
test_security.py — Password hashing, JWT, and webhook signature utilities.
"""

from datetime import timedelta

import pytest

from spotmarket.core.security import (
    WebhookSignatureError,
    create_access_token,
    decode_access_token,
    hash_password,
    sign_webhook_payload,
    verify_password,
    verify_webhook_signature,
)

SECRET = "whsec_unit"
BODY = b'{"type":"payment_intent.succeeded"}'
NOW = 1_700_000_000


class TestPasswordHashing:
    def test_hash_differs_from_plain(self):
        assert hash_password("mysecret") != "mysecret"

    def test_verify_correct_password(self):
        hashed = hash_password("correct-horse-battery-staple")
        assert verify_password("correct-horse-battery-staple", hashed) is True

    def test_verify_wrong_password(self):
        assert verify_password("wrong", hash_password("correct")) is False


class TestJWT:
    def test_encode_decode_roundtrip(self):
        token = create_access_token("user-id-123")
        assert decode_access_token(token) == "user-id-123"

    def test_expired_token_returns_none(self):
        token = create_access_token("user-123", expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None

    def test_tampered_token_returns_none(self):
        token = create_access_token("user-123")
        assert decode_access_token(token[:-5] + "XXXXX") is None

    def test_garbage_token_returns_none(self):
        assert decode_access_token("not.a.jwt") is None


class TestWebhookSignature:
    def test_valid_signature(self):
        header = sign_webhook_payload(BODY, SECRET, timestamp=NOW)
        verify_webhook_signature(BODY, header, SECRET, now=NOW + 10)

    def test_any_v1_entry_may_match(self):
        good = sign_webhook_payload(BODY, SECRET, timestamp=NOW).split("v1=")[1]
        header = f"t={NOW},v1=0000,v1={good}"
        verify_webhook_signature(BODY, header, SECRET, now=NOW)

    def test_tampered_body(self):
        header = sign_webhook_payload(BODY, SECRET, timestamp=NOW)
        with pytest.raises(WebhookSignatureError, match="mismatch"):
            verify_webhook_signature(BODY + b" ", header, SECRET, now=NOW)

    def test_wrong_secret(self):
        header = sign_webhook_payload(BODY, "whsec_other", timestamp=NOW)
        with pytest.raises(WebhookSignatureError):
            verify_webhook_signature(BODY, header, SECRET, now=NOW)

    def test_stale_timestamp(self):
        header = sign_webhook_payload(BODY, SECRET, timestamp=NOW)
        with pytest.raises(WebhookSignatureError, match="tolerance"):
            verify_webhook_signature(BODY, header, SECRET, tolerance=300, now=NOW + 301)

    @pytest.mark.parametrize("header", [None, "", "garbage", "t=abc,v1=00", f"t={NOW}", "v1=00"])
    def test_missing_or_malformed_header(self, header):
        with pytest.raises(WebhookSignatureError):
            verify_webhook_signature(BODY, header, SECRET, now=NOW)

    def test_unconfigured_secret_rejects_everything(self):
        header = sign_webhook_payload(BODY, "", timestamp=NOW)
        with pytest.raises(WebhookSignatureError, match="not configured"):
            verify_webhook_signature(BODY, header, "", now=NOW)
