"""
LeftoverSaver — Redis client singleton
"""
import redis.asyncio as aioredis
from leftoversaver.core.config import get_settings

settings = get_settings()

_redis_client: aioredis.Redis | None = None

STOCK_CACHE_KEY = "stock:{offer_id}"


def get_redis() -> aioredis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
    return _redis_client


async def close_redis():
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def stock_cache_key(offer_id: str) -> str:
    return STOCK_CACHE_KEY.format(offer_id=offer_id)
