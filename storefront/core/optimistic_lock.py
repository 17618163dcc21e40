"""
Storefront — Conflict retry decorator

Stock and variant deductions are conditional updates
(`SET qty = qty - n WHERE qty >= n`). A zero row count means another
order consumed the stock between our read and our write; the placement
raises StockConflictError, rolls back, and is retried from scratch with
exponential backoff + jitter.
"""
import asyncio
import random
import functools
import logging

from storefront.core.config import get_settings
from storefront.core.errors import StorefrontError

settings = get_settings()
logger = logging.getLogger(__name__)


class StockConflictError(StorefrontError):
    """Raised when a conditional decrement matched no row:
    the quantity changed between validation and deduction,
    meaning another concurrent transaction won the race.
    """


def with_optimistic_retry(max_retries: int | None = None):
    """
    Decorator for async functions that perform conditional stock writes.
    On StockConflictError, retries with exponential backoff + jitter.

    Usage:
        @with_optimistic_retry()
        async def place_order(db, ...):
            ...
    """
    _max = max_retries or settings.OPT_LOCK_MAX_RETRIES

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, _max + 1):
                try:
                    return await func(*args, **kwargs)
                except StockConflictError:
                    if attempt == _max:
                        logger.error(
                            "Stock conflict unresolved after %d attempts for %s",
                            _max, func.__name__,
                        )
                        raise
                    # Exponential backoff: base * 2^attempt + jitter
                    base_delay = settings.OPT_LOCK_BASE_DELAY_MS / 1000.0
                    max_delay = settings.OPT_LOCK_MAX_DELAY_MS / 1000.0
                    jitter = random.uniform(0, settings.OPT_LOCK_JITTER_MS / 1000.0)
                    delay = min(base_delay * (2 ** attempt), max_delay) + jitter
                    logger.warning(
                        "Stock conflict on attempt %d/%d, retrying in %.3fs",
                        attempt, _max, delay,
                    )
                    await asyncio.sleep(delay)
        return wrapper
    return decorator
