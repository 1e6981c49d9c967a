"""Bearer token handling.

Tokens are JWTs signed with the service secret. Only HMAC algorithms are
accepted on verification so a token cannot switch itself to "none" or to an
asymmetric scheme.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

DEFAULT_ALGORITHM = "HS256"
ALLOWED_ALGORITHMS = ["HS256", "HS384", "HS512"]
DEFAULT_EXPIRES_IN = 3600


class InvalidTokenError(Exception):
    """Token is malformed, expired, badly signed or lacks an email claim."""

    pass


def verify_token(token: str, secret: str) -> str:
    """Verify a bearer token and return its email claim.

    Args:
        token: Encoded JWT
        secret: Service secret the token was signed with

    Returns:
        The `email` claim

    Raises:
        InvalidTokenError: If verification fails or the claim is missing
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise InvalidTokenError("malformed token") from e

    if header.get("alg") not in ALLOWED_ALGORITHMS:
        raise InvalidTokenError(f"unexpected signing method: {header.get('alg')}")

    try:
        claims = jwt.decode(token, secret, algorithms=ALLOWED_ALGORITHMS)
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    email = claims.get("email")
    if not isinstance(email, str) or not email:
        raise InvalidTokenError("token has no email claim")

    return email


def issue_token(
    email: str,
    secret: str,
    expires_in: int = DEFAULT_EXPIRES_IN,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Create a signed token carrying an email claim.

    Args:
        email: User email placed in the `email` claim
        secret: Service secret
        expires_in: Lifetime in seconds
        algorithm: One of ALLOWED_ALGORITHMS

    Returns:
        Encoded JWT
    """
    if algorithm not in ALLOWED_ALGORITHMS:
        raise ValueError(f"unsupported algorithm: {algorithm}")

    now = datetime.now(timezone.utc)
    claims = {
        "email": email,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, secret, algorithm=algorithm)
