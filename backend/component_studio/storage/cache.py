"""
Key-value cache used as a best-effort side channel in front of the session store.

The document store is always the source of truth. ``SafeCache`` wraps any
backend so that read failures become misses and write failures are only logged.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class CacheInterface(ABC):
    """Contract for cache backends."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass


class MemoryCache(CacheInterface):
    """
    In-process cache with per-key expiry.
    Expired entries are dropped when read and swept on every write.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[str, Optional[float]]] = {}

    def _live_entry(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live_entry(key)

    def _purge_expired(self, now: float) -> None:
        expired = [
            key for key, (_, expires_at) in self._entries.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._entries[key]

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        now = time.monotonic()
        self._purge_expired(now)
        expires_at = now + ttl_seconds if ttl_seconds else None
        self._entries[key] = (value, expires_at)
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None


class SafeCache(CacheInterface):
    """Wraps a cache backend so its failures never reach the caller."""

    def __init__(self, backend: CacheInterface):
        self.backend = backend

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.backend.get(key)
        except Exception as e:
            logger.warning(f"Cache GET error for {key}: {e}")
            return None

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        try:
            return await self.backend.set(key, value, ttl_seconds)
        except Exception as e:
            logger.warning(f"Cache SET error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            return await self.backend.delete(key)
        except Exception as e:
            logger.warning(f"Cache DEL error for {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        try:
            return await self.backend.exists(key)
        except Exception as e:
            logger.warning(f"Cache EXISTS error for {key}: {e}")
            return False
