"""JWT token creation and verification for the admin REST API.

An operator exchanges the configured admin secret for a bearer token at
``POST /api/auth/token``; every other endpoint requires that token.
Tokens are signed with the admin secret itself, so changing the secret
(and reloading) invalidates every token issued before.

Usage::

    from citysiege.network.jwt_auth import admin_dependency

    get_current_admin = admin_dependency(lambda: services.config.admin_secret)

    @app.post("/api/sieges/start")
    async def start(admin: str = Depends(get_current_admin)):
        ...
"""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

log = logging.getLogger(__name__)

JWT_ALGORITHM: str = "HS256"
JWT_EXPIRY_SECONDS: int = 8 * 3600

_bearer_scheme = HTTPBearer(auto_error=False)


def create_token(subject: str, secret: str) -> str:
    """Create a token naming the admin *subject*, signed with *secret*."""
    now = int(time.time())
    payload = {"sub": subject, "role": "siege-admin", "iat": now, "exp": now + JWT_EXPIRY_SECONDS}
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def verify_token(token: str, secret: str) -> str:
    """Verify a token against *secret* and return its subject.

    Raises:
        ValueError: If the token is invalid, expired or not an admin token.
    """
    if not secret:
        raise ValueError("No admin secret configured")
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise ValueError("Token expired")
    except jwt.InvalidTokenError as e:
        raise ValueError(f"Invalid token: {e}")
    if payload.get("role") != "siege-admin" or not payload.get("sub"):
        raise ValueError("Token is not an admin token")
    return str(payload["sub"])


def admin_dependency(secret: Callable[[], str]) -> Callable[..., Awaitable[str]]:
    """Build a FastAPI dependency checking tokens against ``secret()``.

    The secret is looked up per request so a config reload takes effect.
    """

    async def get_current_admin(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    ) -> str:
        """Return the authenticated admin name.

        Raises:
            HTTPException(401): If the token is missing, invalid, or expired.
        """
        if credentials is None:
            raise HTTPException(status_code=401, detail="Authorization header required")
        try:
            return verify_token(credentials.credentials, secret())
        except ValueError as e:
            log.warning("Rejected admin token: %s", e)
            raise HTTPException(status_code=401, detail=str(e))

    return get_current_admin
