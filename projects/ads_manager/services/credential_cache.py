"""
Cache de access tokens do Facebook por dono.

O cache é injetado nos serviços (não há instância global). Um token lido
depois do TTL se comporta como se nunca tivesse sido gravado, tanto no
Redis (expiração ativa) quanto no store em memória (expiração preguiçosa).
"""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import redis.asyncio as redis

from shared.core.exceptions import UnauthorizedException, ValidationException
from shared.core.logging import get_logger
from shared.infrastructure.config.settings import settings
from projects.ads_manager.config import ads_settings

logger = get_logger(__name__)

# Convenção do comando TTL do Redis
TTL_MISSING = -2


class CredentialStore(ABC):
    """Armazenamento chave/valor com expiração."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """Segundos restantes, -2 se a chave não existe."""
        pass


class RedisCredentialStore(CredentialStore):
    """Store em Redis (SETEX / GET / DEL / EXISTS / TTL)."""

    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = None):
        self._client = client or redis.from_url(
            url or settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
        )

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._client.setex(key, ttl_seconds, value)

    async def get(self, key: str) -> Optional[str]:
        value = await self._client.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def delete(self, key: str) -> bool:
        return await self._client.delete(key) > 0

    async def exists(self, key: str) -> bool:
        return await self._client.exists(key) > 0

    async def ttl(self, key: str) -> int:
        return int(await self._client.ttl(key))

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryCredentialStore(CredentialStore):
    """Store em memória do processo; entradas expiradas são removidas na leitura."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def _live_entry(self, key: str) -> Optional[tuple[str, float]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._entries[key]
            return None
        return entry

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        async with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else None

    async def delete(self, key: str) -> bool:
        async with self._lock:
            existed = self._live_entry(key) is not None
            self._entries.pop(key, None)
            return existed

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return self._live_entry(key) is not None

    async def ttl(self, key: str) -> int:
        async with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return TTL_MISSING
            return math.ceil(entry[1] - self._clock())


class CredentialCache:
    """Tokens do Facebook endereçados por owner_id."""

    def __init__(
        self,
        store: CredentialStore,
        ttl_seconds: Optional[int] = None,
        key_prefix: Optional[str] = None,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds or ads_settings.ads_credential_ttl_seconds
        self.key_prefix = key_prefix if key_prefix is not None else ads_settings.ads_credential_key_prefix

    def _key(self, owner_id: str) -> str:
        return f"{self.key_prefix}{owner_id}"

    async def set(self, owner_id: str, token: str, ttl: Optional[int] = None) -> None:
        ttl_seconds = ttl if ttl is not None else self.ttl_seconds
        if ttl_seconds <= 0:
            raise ValidationException("ttl", "deve ser maior que zero")
        await self.store.set(self._key(owner_id), token, ttl_seconds)
        logger.info("Token do Facebook armazenado", owner_id=owner_id, ttl=ttl_seconds)

    async def get(self, owner_id: str) -> Optional[str]:
        return await self.store.get(self._key(owner_id))

    async def remove(self, owner_id: str) -> bool:
        removed = await self.store.delete(self._key(owner_id))
        logger.info("Token do Facebook removido", owner_id=owner_id, removed=removed)
        return removed

    async def has(self, owner_id: str) -> bool:
        return await self.store.exists(self._key(owner_id))

    async def ttl_remaining(self, owner_id: str) -> int:
        return await self.store.ttl(self._key(owner_id))

    async def ensure(self, owner_id: str) -> str:
        """Token do dono ou UnauthorizedException; nenhuma chamada remota sem token."""
        token = await self.get(owner_id)
        if not token:
            logger.warning("Token do Facebook ausente", owner_id=owner_id)
            raise UnauthorizedException(
                "Token de acesso do Facebook não encontrado para o usuário",
                owner_id=owner_id,
            )
        return token
