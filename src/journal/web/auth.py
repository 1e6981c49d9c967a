"""Authentication middleware and per-route authorization.

Every request outside PUBLIC_PATHS must carry `Authorization: Bearer <jwt>`.
The token's email is resolved to an AuthKey either from the encrypted `role`
cookie or, when the cookie is absent, unreadable or issued for another email,
from the users table. A fresh cookie is set whenever the database was used.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog
from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from journal.core.cookie_codec import CookieDecodeError, decrypt_key, encrypt_key
from journal.core.models import AuthKey, UnknownRoleError
from journal.core.policy import AccessDeniedError, AccessPolicy
from journal.core.tokens import InvalidTokenError, verify_token
from journal.db.errors import NotFoundError, StorageError
from journal.db.users_repository import resolve_user_role

logger = structlog.get_logger(__name__)

COOKIE_NAME = "role"
COOKIE_MAX_AGE = 9999
PUBLIC_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})

_STATE_KEY = "auth_key"


class MissingAuthorizationError(RuntimeError):
    """A handler asked for the AuthKey of a request that has none."""

    pass


class OldCookieError(Exception):
    """Cookie was issued for a different email than the token's."""

    pass


def bearer_token(request: Request) -> str:
    """Extract the token from `Authorization: Bearer <token>`, or ""."""
    header = request.headers.get("Authorization", "")
    parts = header.split(" ")
    if len(parts) == 2 and parts[0] == "Bearer":
        return parts[1]
    return ""


def key_from_cookie(email: str, value: str, secret: str) -> AuthKey:
    """Decrypt the role cookie and check it belongs to `email`.

    Raises:
        CookieDecodeError: If the cookie cannot be decrypted
        OldCookieError: If the cookie was issued for another email
    """
    key = decrypt_key(value, secret)
    if key.email != email:
        raise OldCookieError(f"cookie is for {key.email}, token is for {email}")
    return key


def set_role_cookie(response: Response, key: AuthKey, secret: str) -> None:
    response.set_cookie(
        COOKIE_NAME,
        encrypt_key(key, secret),
        max_age=COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
    )


def _unauthorized() -> JSONResponse:
    return JSONResponse(
        {"detail": "Unauthorized"}, status_code=status.HTTP_401_UNAUTHORIZED
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Resolve the caller's AuthKey and store it on request.state."""

    def __init__(self, app: ASGIApp, secret: str):
        super().__init__(app)
        self.secret = secret

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        log = logger.bind(fn="web.auth.dispatch", path=request.url.path)

        token = bearer_token(request)
        if not token:
            log.info("auth.missing_token")
            return _unauthorized()

        try:
            email = verify_token(token, self.secret)
        except InvalidTokenError as e:
            log.info("auth.invalid_token", error=str(e))
            return _unauthorized()

        fresh_key: AuthKey | None = None
        cookie = request.cookies.get(COOKIE_NAME, "")

        key: AuthKey | None = None
        if cookie:
            try:
                key = key_from_cookie(email, cookie, self.secret)
            except (CookieDecodeError, OldCookieError) as e:
                log.info("auth.cookie_rejected", error=str(e))

        if key is None:
            try:
                key = resolve_user_role(email)
            except (NotFoundError, StorageError, UnknownRoleError) as e:
                log.warning("auth.role_lookup_failed", email=email, error=str(e))
                return _unauthorized()
            fresh_key = key
            log.debug("auth.role_resolved", user_id=key.id, role=key.role.value)

        setattr(request.state, _STATE_KEY, key)
        response = await call_next(request)

        if fresh_key is not None:
            set_role_cookie(response, fresh_key, self.secret)

        return response


def current_key(request: Request) -> AuthKey:
    """Return the AuthKey attached by AuthMiddleware.

    Raises:
        MissingAuthorizationError: If the middleware did not run for this request
    """
    key = getattr(request.state, _STATE_KEY, None)
    if not isinstance(key, AuthKey):
        raise MissingAuthorizationError(
            f"no authorization key on request to {request.url.path}"
        )
    return key


def get_access_policy(request: Request) -> AccessPolicy:
    return request.app.state.access_policy


def authorize(route: str) -> Callable[[Request], AuthKey]:
    """Dependency factory checking the caller's role against the policy.

    Args:
        route: Literal route identifier the policy was registered with

    Usage:
        @router.post(ROUTE)
        async def handler(key: AuthKey = Depends(authorize(ROUTE))): ...
    """

    def dependency(request: Request) -> AuthKey:
        key = current_key(request)
        try:
            get_access_policy(request).check(route, key.role)
        except AccessDeniedError as e:
            logger.error(
                "auth.access_denied",
                route=e.route,
                user_id=key.id,
                role=e.role.value,
            )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
            ) from e
        return key

    return dependency
