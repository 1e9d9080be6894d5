# config/cache.py
from typing import Optional
from redis.asyncio import Redis, from_url
from config.settings import settings

# One shared client per Redis URL
_clients: dict[str, Redis] = {}


async def get_redis(url: Optional[str] = None) -> Redis:
    """Return the client for `url` (settings.REDIS_URL by default), pinging it on first use."""
    target = url or settings.REDIS_URL
    if not target:
        raise RuntimeError("REDIS_URL is not configured")
    client = _clients.get(target)
    if client is None:
        client = from_url(
            target,
            encoding="utf-8",
            decode_responses=True,
            socket_keepalive=True,
            health_check_interval=30,
        )
        await client.ping()
        _clients[target] = client
    return client


async def close_redis() -> None:
    while _clients:
        _, client = _clients.popitem()
        await client.aclose()
