"""Tests for the authorization cookie codec."""

import base64

import pytest

from journal.core.cookie_codec import CookieDecodeError, decrypt_key, encrypt_key
from journal.core.models import AuthKey, Role

SECRET = "0123456789abcdef0123456789abcdef"
OTHER_SECRET = "fedcba9876543210fedcba9876543210"


class TestRoundTrip:
    """Tests for encrypt_key/decrypt_key."""

    @pytest.mark.parametrize("role", list(Role))
    def test_round_trip_reproduces_key(self, role):
        """Decrypting with the same secret gives back id, email and role."""
        key = AuthKey(id=42, email="a@x.com", role=role)
        assert decrypt_key(encrypt_key(key, SECRET), SECRET) == key

    def test_short_secret_round_trip(self):
        """AES-128 secrets work too."""
        key = AuthKey(id=1, email="a@x.com", role=Role.ADMIN)
        secret = "0123456789abcdef"
        assert decrypt_key(encrypt_key(key, secret), secret) == key

    def test_different_secret_fails(self):
        """A cookie sealed with another secret is rejected."""
        key = AuthKey(id=1, email="a@x.com", role=Role.ADMIN)
        value = encrypt_key(key, SECRET)
        with pytest.raises(CookieDecodeError):
            decrypt_key(value, OTHER_SECRET)

    def test_each_encryption_uses_fresh_nonce(self):
        """Two encryptions of the same key differ."""
        key = AuthKey(id=1, email="a@x.com", role=Role.ADMIN)
        assert encrypt_key(key, SECRET) != encrypt_key(key, SECRET)

    def test_value_is_base64(self):
        key = AuthKey(id=1, email="a@x.com", role=Role.ADMIN)
        raw = base64.b64decode(encrypt_key(key, SECRET), validate=True)
        assert len(raw) > 12


class TestDecodeErrors:
    """Malformed cookie values raise CookieDecodeError."""

    def test_not_base64(self):
        with pytest.raises(CookieDecodeError):
            decrypt_key("not base64 !!!", SECRET)

    def test_too_short(self):
        with pytest.raises(CookieDecodeError):
            decrypt_key(base64.b64encode(b"short").decode(), SECRET)

    def test_tampered(self):
        key = AuthKey(id=1, email="a@x.com", role=Role.ADMIN)
        raw = bytearray(base64.b64decode(encrypt_key(key, SECRET)))
        raw[-1] ^= 0x01
        with pytest.raises(CookieDecodeError):
            decrypt_key(base64.b64encode(bytes(raw)).decode(), SECRET)

    def test_invalid_secret_length(self):
        key = AuthKey(id=1, email="a@x.com", role=Role.ADMIN)
        with pytest.raises(ValueError):
            encrypt_key(key, "too-short")
