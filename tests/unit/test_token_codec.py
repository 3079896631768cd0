"""Unit tests for the signed response token codec."""

import base64
import hashlib
import hmac
import json

import pytest

from app.services.token_codec import (
    InvalidTokenError,
    TokenCodec,
    b64url_decode,
    b64url_encode,
)
from tests.conftest import TEST_SECRET

FOURTEEN_DAYS = 14 * 24 * 60 * 60


def sign_payload(record, secret=TEST_SECRET) -> str:
    """Build a token by hand, the way any issuer of the wire format would."""
    payload = base64.urlsafe_b64encode(
        json.dumps(record, separators=(",", ":")).encode()
    ).rstrip(b"=").decode()
    signature = base64.urlsafe_b64encode(
        hmac.new(secret.encode(), payload.encode(), hashlib.sha256).digest()
    ).rstrip(b"=").decode()
    return f"{payload}.{signature}"


class TestEncodeDecode:
    """Round-trip and wire format."""

    def test_round_trip(self, codec, clock):
        """Decoding an encoded token recovers sid/rid/ans."""
        token = codec.encode("s1", "r1", "optA")
        decoded = codec.decode(token)

        assert decoded.sid == "s1"
        assert decoded.rid == "r1"
        assert decoded.ans == "optA"
        assert decoded.is_expired(clock()) is False

    def test_expiry_is_now_plus_window(self, codec, clock):
        token = codec.encode("s1", "r1", "optA", expiration_days=14)
        decoded = codec.decode(token)

        expected = int(clock().timestamp()) + FOURTEEN_DAYS
        assert abs(decoded.exp - expected) <= 1

    def test_custom_expiration_window(self, codec, clock):
        decoded = codec.decode(codec.encode("s1", "r1", "optA", expiration_days=3))
        assert decoded.exp == int(clock().timestamp()) + 3 * 24 * 60 * 60

    def test_issued_at_is_recorded(self, codec, clock):
        decoded = codec.decode(codec.encode("s1", "r1", "optA", expiration_days=3))

        assert decoded.iat == int(clock().timestamp())
        assert codec.issued_at(decoded) == int(clock().timestamp())

    def test_nonce_makes_tokens_unique(self, codec):
        first = codec.encode("s1", "r1", "optA")
        second = codec.encode("s1", "r1", "optA")

        assert first != second
        assert len(codec.decode(first).nonce) == 16  # 8 random bytes, hex

    def test_wire_format(self, codec):
        """payload is base64url JSON, signature is base64url HMAC-SHA256 of payload."""
        token = codec.encode("s1", "r1", "optA")
        payload, signature = token.split(".")

        assert "=" not in token
        record = json.loads(b64url_decode(payload))
        assert list(record)[:5] == ["sid", "rid", "ans", "exp", "nonce"]

        expected = hmac.new(TEST_SECRET.encode(), payload.encode(), hashlib.sha256).digest()
        assert b64url_decode(signature) == expected

    def test_token_is_url_safe(self, codec):
        token = codec.encode("survey with spaces", "r/1+2", "opt?&=")
        assert all(c.isalnum() or c in "-_." for c in token)

    def test_legacy_token_without_iat(self, codec, clock):
        """Tokens from issuers that only set exp still verify."""
        now = int(clock().timestamp())
        token = sign_payload({
            "sid": "s1", "rid": "r1", "ans": "optA",
            "exp": now + FOURTEEN_DAYS - 60, "nonce": "00ff00ff00ff00ff",
        })

        decoded = codec.decode(token)

        assert decoded.iat is None
        # issuance back-computed from expiry minus the default window
        assert codec.issued_at(decoded) == now - 60

    def test_b64url_helpers_round_trip_without_padding(self):
        for data in (b"", b"a", b"ab", b"abc", b"\xff\xfe\xfd\xfc"):
            encoded = b64url_encode(data)
            assert "=" not in encoded
            assert b64url_decode(encoded) == data


class TestRejection:
    """Tokens that must not verify."""

    def test_every_single_bit_flip_is_rejected(self, codec):
        """Flipping any bit of any character invalidates the token."""
        token = codec.encode("s1", "r1", "optA")

        for position, char in enumerate(token):
            for bit in range(8):
                flipped = chr(ord(char) ^ (1 << bit))
                tampered = token[:position] + flipped + token[position + 1:]
                with pytest.raises(InvalidTokenError):
                    codec.decode(tampered)

    def test_swapped_payload_is_rejected(self, codec):
        payload_a, _ = codec.encode("s1", "r1", "optA").split(".")
        _, signature_b = codec.encode("s1", "r1", "optB").split(".")

        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode(f"{payload_a}.{signature_b}")
        assert exc_info.value.reason == "bad_signature"

    def test_other_secret_is_rejected(self, clock):
        issuer = TokenCodec(key_provider=lambda: "another-secret-entirely", default_expiration_days=14, clock=clock)
        verifier = TokenCodec(key_provider=lambda: TEST_SECRET, default_expiration_days=14, clock=clock)

        with pytest.raises(InvalidTokenError) as exc_info:
            verifier.decode(issuer.encode("s1", "r1", "optA"))
        assert exc_info.value.reason == "bad_signature"

    def test_expired_token_is_rejected(self, codec, clock):
        token = codec.encode("s1", "r1", "optA", expiration_days=14)

        clock.advance(days=14, seconds=1)

        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode(token)
        assert exc_info.value.reason == "expired"

    def test_token_is_invalid_at_exact_expiry(self, codec, clock):
        token = codec.encode("s1", "r1", "optA", expiration_days=1)

        clock.advance(days=1)

        with pytest.raises(InvalidTokenError):
            codec.decode(token)

    def test_token_valid_just_before_expiry(self, codec, clock):
        token = codec.encode("s1", "r1", "optA", expiration_days=1)

        clock.advance(days=1, seconds=-1)

        assert codec.decode(token).sid == "s1"

    def test_expired_even_with_valid_signature(self, codec, clock):
        now = int(clock().timestamp())
        token = sign_payload({"sid": "s1", "rid": "r1", "ans": "optA", "exp": now - 1, "nonce": "ab"})

        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode(token)
        assert exc_info.value.reason == "expired"

    @pytest.mark.parametrize("token", ["", "nodot", ".signature", "payload.", "."])
    def test_malformed_tokens(self, codec, token):
        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode(token)
        assert exc_info.value.reason == "malformed"

    def test_signed_garbage_payload(self, codec):
        """A correctly signed payload that is not JSON is still rejected."""
        payload = b64url_encode(b"not json at all")
        signature = b64url_encode(
            hmac.new(TEST_SECRET.encode(), payload.encode(), hashlib.sha256).digest()
        )

        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode(f"{payload}.{signature}")
        assert exc_info.value.reason == "bad_payload"

    def test_signed_payload_missing_fields(self, codec, clock):
        token = sign_payload({"sid": "s1", "exp": int(clock().timestamp()) + 60})

        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode(token)
        assert exc_info.value.reason == "bad_payload"

    def test_error_message_does_not_include_token(self, codec):
        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode("abc.def")
        assert "abc" not in str(exc_info.value)


class TestRecipientIds:

    def test_generate_recipient_id_from_email_is_stable(self, codec):
        assert codec.generate_recipient_id("alice@example.com") == codec.generate_recipient_id("alice@example.com")

    def test_generate_recipient_id_without_email_is_random(self, codec):
        assert codec.generate_recipient_id() != codec.generate_recipient_id()
