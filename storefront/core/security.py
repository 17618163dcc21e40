"""
Storefront — Security helpers (JWT decode only, shared secret)

Tokens are issued by the identity service; this service only verifies them
and reads the `sub` (user id) and `role` claims.
"""
from typing import Any

from fastapi import HTTPException, Request, status
from jose import jwt

from storefront.core.config import get_settings

settings = get_settings()


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT. Raises JWTError on failure."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def get_optional_user(request: Request) -> dict[str, Any] | None:
    return getattr(request.state, "user", None)


def get_current_user(request: Request) -> dict[str, Any]:
    user = get_optional_user(request)
    if not user or not user.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(request: Request) -> dict[str, Any]:
    user = get_current_user(request)
    if user.get("role") != settings.ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required.")
    return user
