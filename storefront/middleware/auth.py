"""
Storefront — JWT Authentication Middleware
Decodes an optional Bearer token; anonymous requests pass through.
Route dependencies decide whether a user (or admin) is required.
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from jose import JWTError

from storefront.core.security import decode_token


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Attaches decoded claims to request.state.user when a valid token is sent,
    None when no token is sent. A malformed or expired token is always a 401.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.user = None

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return await call_next(request)

        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                status_code=401,
                content={"detail": "Invalid Authorization header. Expected: Bearer <token>"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = auth_header.split(" ", 1)[1]
        try:
            request.state.user = decode_token(token)
        except JWTError as exc:
            return JSONResponse(
                status_code=401,
                content={"detail": f"Invalid or expired JWT: {str(exc)}"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
