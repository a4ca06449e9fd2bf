"""
app/core/blacklist.py

Async Redis client and JWT blacklist.

The same client backs the login brute-force counters and the catalog cache.
A revoked token is stored as `jwt_blacklist:<jti>` until the token would
have expired anyway.
"""

import logging
from datetime import datetime, timezone

import redis.asyncio as redis
from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------
# Redis Client Initialization
# ---------------------------------------------------
redis_client: redis.Redis | None = None  # type: ignore[type-arg]

try:
    redis_client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    logger.info(f"[REDIS ASYNC] Client configured for {settings.redis_url}")
except redis.RedisError as e:
    logger.error(f"[REDIS ASYNC] Initialization failed: {e}")
    redis_client = None

BLACKLIST_PREFIX = "jwt_blacklist:"


# ---------------------------------------------------
# Blacklist Management Functions
# ---------------------------------------------------
async def blacklist_token(jti: str, expires_in: int) -> None:
    """Store a token id in Redis for `expires_in` seconds."""
    if not redis_client:
        logger.warning("[BLACKLIST ASYNC] Redis unavailable: Token not blacklisted.")
        return

    try:
        await redis_client.setex(f"{BLACKLIST_PREFIX}{jti}", expires_in, "true")
        logger.debug(f"[BLACKLIST ASYNC] Token blacklisted: jti={jti} for {expires_in}s")
    except redis.RedisError as e:
        logger.error(f"[BLACKLIST ASYNC] Failed to blacklist token: {e}")


async def is_token_blacklisted(jti: str) -> bool:
    """Return True when the token id has been revoked."""
    if not redis_client:
        return False

    try:
        return bool(await redis_client.exists(f"{BLACKLIST_PREFIX}{jti}"))
    except redis.RedisError as e:
        logger.error(f"[BLACKLIST ASYNC] Failed to check token blacklist status: {e}")
        return False


async def revoke_access_token(token: str) -> bool:
    """
    Blacklist an encoded access token for the rest of its lifetime.

    Returns:
        bool: True if a blacklist entry was written.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as e:
        logger.warning(f"[BLACKLIST ASYNC] Could not decode token for revocation: {e}")
        return False

    jti = payload.get("jti")
    exp = payload.get("exp")
    if not jti or not exp:
        logger.warning("[BLACKLIST ASYNC] Token missing 'jti' or 'exp'; nothing to revoke.")
        return False

    ttl = int(exp - datetime.now(timezone.utc).timestamp())
    if ttl <= 0:
        logger.info(f"[BLACKLIST ASYNC] Token already expired (jti={jti}).")
        return False

    await blacklist_token(jti, ttl)
    return True
