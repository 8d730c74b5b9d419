"""JWT token revocation using a Redis blacklist.

Tokens are revoked on logout and blacklisted until their natural expiry.
Deleting or deactivating a center revokes every token issued to it.
"""

import logging
import time

from app.utils.redis_client import get_redis

logger = logging.getLogger(__name__)


class TokenRevocation:
    """Manage JWT token revocation with Redis."""

    @staticmethod
    async def revoke_token(token: str, expires_at: float) -> bool:
        """Blacklist `token` until `expires_at` (unix seconds)."""
        ttl = int(expires_at - time.time())
        if ttl <= 0:
            return True

        try:
            redis_client = await get_redis()
            await redis_client.setex(f"revoked:{token}", ttl, str(int(time.time())))
            return True
        except Exception as e:
            logger.error(f"Failed to revoke token: {e}")
            return False

    @staticmethod
    async def is_revoked(token: str) -> bool:
        try:
            redis_client = await get_redis()
            exists = await redis_client.exists(f"revoked:{token}")
            return exists > 0
        except Exception as e:
            logger.error(f"Failed to check token revocation: {e}")
            # Fail closed
            return True

    @staticmethod
    async def revoke_center_tokens(center_id: str, duration: int = 86400) -> bool:
        """Revoke every token issued to a center (deletion, deactivation)."""
        try:
            redis_client = await get_redis()
            await redis_client.setex(
                f"revoked:center:{center_id}",
                duration,
                str(int(time.time())),
            )
            return True
        except Exception as e:
            logger.error(f"Failed to revoke center tokens: {e}")
            return False

    @staticmethod
    async def is_center_revoked(center_id: str) -> bool:
        try:
            redis_client = await get_redis()
            exists = await redis_client.exists(f"revoked:center:{center_id}")
            return exists > 0
        except Exception as e:
            logger.error(f"Failed to check center revocation: {e}")
            return True

    @staticmethod
    async def clear_center_revocation(center_id: str) -> bool:
        """Lift a center-wide revocation (center reactivated)."""
        try:
            redis_client = await get_redis()
            await redis_client.delete(f"revoked:center:{center_id}")
            return True
        except Exception:
            return False
