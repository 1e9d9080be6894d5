# repository/credential_repository.py
import logging
from typing import Optional, Protocol
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from repository.namespaces import SESSION

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    async def load(self) -> Optional[str]: ...

    async def save(self, credential: str) -> None: ...

    async def clear(self) -> None: ...


class MemoryCredentialStore:
    """Keeps the token for the lifetime of the process only."""

    def __init__(self, initial: Optional[str] = None) -> None:
        self._value = initial

    async def load(self) -> Optional[str]:
        return self._value

    async def save(self, credential: str) -> None:
        self._value = credential

    async def clear(self) -> None:
        self._value = None


class RedisCredentialStore:
    """
    Redis-backed credential persistence under one well-known key,
    so a restarted worker picks up the same login.
    """

    def __init__(
        self,
        key: str = settings.CREDENTIAL_KEY,
        redis: Optional[Redis] = None,
        url: Optional[str] = None,
    ) -> None:
        self._key_name = key
        self._redis = redis
        self._url = url

    async def _client(self) -> Redis:
        if self._redis is None:
            self._redis = await get_redis(self._url)
        return self._redis

    def _key(self) -> str:
        return f"{SESSION}:{self._key_name}"

    async def load(self) -> Optional[str]:
        r = await self._client()
        raw = await r.get(self._key())
        if raw is None:
            return None
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        return raw or None

    async def save(self, credential: str) -> None:
        r = await self._client()
        await r.set(self._key(), credential)

    async def clear(self) -> None:
        r = await self._client()
        await r.delete(self._key())


def default_credential_store() -> CredentialStore:
    """Redis when REDIS_URL is configured, otherwise process memory."""
    if settings.REDIS_URL:
        logger.info("session.store backend=redis")
        return RedisCredentialStore(url=settings.REDIS_URL)
    logger.info("session.store backend=memory")
    return MemoryCredentialStore()
