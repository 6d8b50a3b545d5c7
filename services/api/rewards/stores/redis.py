"""Redis store for short-lived server-side markers.

Handles:
- Claim throttle markers (optional second line behind the visitor cooldown)

TTL policies:
- Claim throttle: settings.claim_throttle_seconds (0 disables the throttle)

Redis is optional for this service: callers treat RuntimeError from
_get_redis() as "not configured" and degrade.
"""

import logging

import redis.asyncio as redis

from rewards.settings import get_settings

# Key prefixes
PREFIX_CLAIM_THROTTLE = "throttle:claim:"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def set_redis(client: redis.Redis | None) -> None:
    """Install a client directly (tests, scripts)."""
    global _redis
    _redis = client


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Claim throttle
# ============================================================


async def acquire_claim_throttle(visitor_key: str, ttl: int) -> bool:
    """Mark a visitor as having just claimed.

    Args:
        visitor_key: Client IP (or other server-visible visitor key).
        ttl: Throttle window in seconds.

    Returns:
        True if the marker was set, False if one already exists.
    """
    # SET NX (only if not exists) with TTL
    result = await _get_redis().set(f"{PREFIX_CLAIM_THROTTLE}{visitor_key}", "1", nx=True, ex=ttl)
    return result is not None


async def get_claim_throttle_ttl(visitor_key: str) -> int:
    """Seconds left on a visitor's throttle marker (0 if none)."""
    ttl = await _get_redis().ttl(f"{PREFIX_CLAIM_THROTTLE}{visitor_key}")
    return max(int(ttl or 0), 0)


async def release_claim_throttle(visitor_key: str) -> None:
    """Drop a throttle marker (used when the claim itself was rejected)."""
    await _get_redis().delete(f"{PREFIX_CLAIM_THROTTLE}{visitor_key}")
