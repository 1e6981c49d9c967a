"""Authorization cache codec.

Encrypts an AuthKey into the opaque value of the `role` cookie so that the
authentication middleware can skip the database lookup on later requests.

Format: base64(nonce || AES-GCM(json({id, email, role}))), keyed directly by
the service secret (16, 24 or 32 bytes).
"""

from __future__ import annotations

import base64
import binascii
import json
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from journal.core.models import AuthKey

NONCE_SIZE = 12
VALID_KEY_SIZES = (16, 24, 32)


class CookieDecodeError(Exception):
    """Cookie value could not be decrypted into an AuthKey."""

    pass


def _cipher(secret: str) -> AESGCM:
    key = secret.encode("utf-8")
    if len(key) not in VALID_KEY_SIZES:
        raise ValueError(
            f"secret must be 16, 24 or 32 bytes long, got {len(key)}"
        )
    return AESGCM(key)


def encrypt_key(key: AuthKey, secret: str) -> str:
    """Encrypt an AuthKey into a cookie value.

    Args:
        key: Authorization descriptor to cache
        secret: Service secret used as the AES key

    Returns:
        Standard base64 string safe to use as a cookie value
    """
    payload = json.dumps(key.to_dict(), separators=(",", ":")).encode("utf-8")
    nonce = os.urandom(NONCE_SIZE)
    sealed = _cipher(secret).encrypt(nonce, payload, None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt_key(value: str, secret: str) -> AuthKey:
    """Decrypt a cookie value produced by encrypt_key().

    Raises:
        CookieDecodeError: If the value is malformed, was sealed with another
            secret, or does not hold a valid descriptor
    """
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CookieDecodeError("cookie is not valid base64") from e

    if len(raw) <= NONCE_SIZE:
        raise CookieDecodeError("cookie is too short")

    nonce, sealed = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
    try:
        plain = _cipher(secret).decrypt(nonce, sealed, None)
    except InvalidTag as e:
        raise CookieDecodeError("cookie authentication failed") from e

    try:
        return AuthKey.from_dict(json.loads(plain))
    except (ValueError, KeyError, TypeError) as e:
        raise CookieDecodeError("cookie payload is not a valid key") from e
