"""API module."""

from .auth import router as auth_router
from .sessions import router as sessions_router
from .messages import router as messages_router
from .components import router as components_router

__all__ = ['auth_router', 'sessions_router', 'messages_router', 'components_router']
