"""
backend/cleanconnect/core/blacklist.py

Revoked-token lookup.

The identity service writes the `jti` of every revoked access token to Redis
under REVOKED_PREFIX. This API only reads those keys. When Redis cannot be
reached the token is treated as not revoked and the failure is logged.
"""

import logging

import redis.asyncio as redis

from cleanconnect.core.config import settings

logger = logging.getLogger(__name__)

REVOKED_PREFIX = "jwt_blacklist:"

_client: redis.Redis | None = None  # type: ignore[type-arg]


def get_redis() -> redis.Redis:  # type: ignore[type-arg]
    """Lazily created client; no connection is opened until the first command."""
    global _client
    if _client is None:
        _client = redis.from_url(settings.redis_url, decode_responses=True)
        logger.info(f"[REDIS] Client configured for {settings.REDIS_HOST}:{settings.REDIS_PORT}")
    return _client


async def is_token_blacklisted(jti: str) -> bool:
    try:
        return await get_redis().exists(f"{REVOKED_PREFIX}{jti}") == 1
    except redis.RedisError as e:
        logger.error(f"[REDIS] Revocation check failed for jti={jti}: {e}")
        return False
