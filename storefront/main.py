"""
Storefront — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from storefront.core.config import get_settings
from storefront.core.redis_client import close_redis
from storefront.db.database import engine, Base
from storefront.middleware.auth import JWTAuthMiddleware
from storefront.middleware.idempotency import IdempotencyMiddleware
from storefront.api import orders, products, stock, health
import storefront.models  # noqa: F401  (registers tables on Base.metadata)

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables (migrations handle this in production)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Coffee Storefront API",
    description="Catalog, checkout with atomic ingredient reservation, and stock admin.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: Auth resolves the caller before Idempotency scopes the key
app.add_middleware(IdempotencyMiddleware)
app.add_middleware(JWTAuthMiddleware)

# ── Prometheus Metrics ────────────────────────────────────────────────────────
if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(orders.router)
app.include_router(products.router)
app.include_router(stock.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
