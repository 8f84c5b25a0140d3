import logging

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class ChatCache:
    def __init__(self, redis_client):
        self.redis = redis_client

    # ----------------------------
    # REQUEST CAPS
    # ----------------------------

    async def hit(self, key, limit, window=60) -> bool:
        """Count one request against ``key``; False once ``limit`` is exceeded in the window."""
        if limit <= 0:
            return True
        counter = f"rl:{key}"
        try:
            count = await self.redis.incr(counter)
            if count == 1:
                await self.redis.expire(counter, window)
        except RedisError:
            # counting is best effort
            logger.exception("Rate limit counter unavailable for %s", key)
            return True
        return count <= limit

    async def close(self):
        await self.redis.close()
