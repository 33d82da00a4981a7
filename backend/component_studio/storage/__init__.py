"""Storage module - document storage, session/user stores and the cache."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .session_storage import SessionStorage
from .user_storage import UserStorage
from .cache import CacheInterface, MemoryCache, SafeCache

__all__ = [
    'StorageInterface', 'LocalStorage', 'SessionStorage', 'UserStorage',
    'CacheInterface', 'MemoryCache', 'SafeCache',
]
