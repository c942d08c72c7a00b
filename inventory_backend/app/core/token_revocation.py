"""
Session token revocation using Redis.

Logging out blacklists the presented token until it would have expired
anyway, so a copied cookie stops working immediately.
"""

import logging

from inventory_backend.app.core.config import settings
from inventory_backend.app.core.redis_client import get_redis

logger = logging.getLogger("inventory.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a session token by adding it to the blacklist.

    Args:
        token: The JWT token string to revoke
        user_id: User ID who owns the token

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        client = await get_redis()
        ttl_seconds = settings.access_token_expire_minutes * 60
        await client.set(f"{TOKEN_BLACKLIST_PREFIX}{token}", str(user_id), ex=ttl_seconds)
        return True
    except Exception as e:
        logger.warning("Could not revoke token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Fails open when Redis is unreachable: signature and expiry checks still apply.
    """
    try:
        client = await get_redis()
        exists = await client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except Exception as e:
        logger.warning("Token revocation check unavailable: %s", e)
        return False
