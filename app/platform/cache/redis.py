from fastapi import Request
from redis.asyncio import Redis

from app.platform.config import Settings


def create_redis(settings: Settings) -> Redis:
    """Create a Redis client for the configured URL."""
    return Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
    )


def get_redis(request: Request) -> Redis:
    """FastAPI dependency returning the application's Redis client (created lazily)."""
    client = getattr(request.app.state, "redis", None)
    if client is None:
        client = create_redis(request.app.state.settings)
        request.app.state.redis = client
    return client
