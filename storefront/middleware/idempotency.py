"""
Storefront — Idempotency Key Middleware

A resubmitted checkout must not place a second order. Keys are scoped to the
caller (JWT `sub`, or "anon" for guests) and bound to a hash of the body:
  - First use   → reserve the key (SET NX), run the handler, store the response
  - In flight   → 409, the first submission is still being processed
  - Completed   → replay the stored response, same body only
  - Other body  → 422, the key was already used for a different request
  - 5xx         → reservation released so the client can retry
"""
import hashlib
import json
import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.config import get_settings
from storefront.core.redis_client import get_redis, namespaced

settings = get_settings()
logger = logging.getLogger(__name__)

IDEMPOTENCY_NAMESPACE = "idempotent"
IDEMPOTENCY_METHODS = {"POST", "PUT", "PATCH"}
IDEMPOTENCY_PATHS = {"/orders", "/orders/"}


def idempotency_cache_key(user: dict | None, idem_key: str) -> str:
    owner = (user or {}).get("sub") or "anon"
    return namespaced(IDEMPOTENCY_NAMESPACE, owner, idem_key)


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """
    Applies to order creation only. Must sit inside JWTAuthMiddleware so
    `request.state.user` is already resolved.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method not in IDEMPOTENCY_METHODS:
            return await call_next(request)

        if request.url.path not in IDEMPOTENCY_PATHS:
            return await call_next(request)

        idem_key = request.headers.get("Idempotency-Key")
        if not idem_key:
            return await call_next(request)

        redis = get_redis()
        user = getattr(request.state, "user", None)
        cache_key = idempotency_cache_key(user, idem_key)
        body_hash = hashlib.sha256(await request.body()).hexdigest()
        ttl = settings.IDEMPOTENCY_KEY_TTL_SECONDS

        reserved = await redis.set(
            cache_key,
            json.dumps({"state": "in-flight", "body_hash": body_hash}),
            nx=True,
            ex=ttl,
        )
        if not reserved:
            return await self._existing(redis, cache_key, body_hash)

        try:
            response = await call_next(request)
            body_bytes = b""
            async for chunk in response.body_iterator:
                body_bytes += chunk
        except Exception:
            await redis.delete(cache_key)
            raise

        if response.status_code >= 500:
            await redis.delete(cache_key)
        else:
            try:
                body = json.loads(body_bytes)
            except ValueError:
                body = body_bytes.decode("utf-8", errors="replace")
            await redis.set(
                cache_key,
                json.dumps({
                    "state": "done",
                    "body_hash": body_hash,
                    "body": body,
                    "status_code": response.status_code,
                }),
                ex=ttl,
            )

        return Response(
            content=body_bytes,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )

    async def _existing(self, redis, cache_key: str, body_hash: str) -> Response:
        cached = await redis.get(cache_key)
        data = json.loads(cached) if cached else {"state": "in-flight"}

        if data["state"] == "in-flight":
            return JSONResponse(
                content={"detail": "A request with this Idempotency-Key is still being processed."},
                status_code=409,
            )

        if data["body_hash"] != body_hash:
            logger.warning("Idempotency-Key reused with a different body: %s", cache_key)
            return JSONResponse(
                content={"detail": "Idempotency-Key was already used with a different request body."},
                status_code=422,
            )

        return JSONResponse(
            content=data["body"],
            status_code=data["status_code"],
            headers={"X-Idempotency-Replay": "true"},
        )
