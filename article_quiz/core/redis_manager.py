import logging

from redis.asyncio import Redis
from article_quiz.core.config import settings

logger = logging.getLogger(__name__)

_redis: Redis | None = None

async def get_redis() -> Redis:
    """
    Returns the process-wide Redis client holding live quiz sessions.
    rediss:// URLs connect over TLS.
    """
    global _redis
    if _redis is None:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            retry_on_timeout=True,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
        )
        # the client is only cached once a PING succeeded
        await client.ping()
        logger.info("Connected to Redis for session storage")
        _redis = client
    return _redis

async def close_redis():
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
