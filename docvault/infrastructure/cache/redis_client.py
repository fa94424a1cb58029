# docvault/infrastructure/cache/redis_client.py

import redis.asyncio as redis


class RedisClient:
    def __init__(self, redis_url: str):
        self.client = redis.from_url(
            redis_url,
            decode_responses=True,
        )

    async def close(self) -> None:
        await self.client.aclose()


class RedisRateLimitBackend:
    """
    Implements RateLimitBackend on Redis. INCR and EXPIRE run in one MULTI/EXEC
    pipeline; window keys expire on their own so nothing needs sweeping.
    """

    def __init__(self, redis_client: RedisClient) -> None:
        self._redis = redis_client

    async def incr_window(self, key: str, window_seconds: int) -> int:
        async with self._redis.client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, window_seconds)
            current, _ = await pipe.execute()
        return int(current)
