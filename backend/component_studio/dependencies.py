"""Dependency providers for FastAPI endpoints.

Service instances are built once in the application lifespan and kept on
``app.state``; routes resolve them through these functions so tests can
substitute fakes with ``app.dependency_overrides``.
"""

from fastapi import Request

from .llm.dispatcher import ProviderDispatcher
from .services.generator import ComponentGenerator
from .services.session_service import SessionService
from .storage.user_storage import UserStorage


def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service


def get_generator(request: Request) -> ComponentGenerator:
    return request.app.state.generator


def get_dispatcher(request: Request) -> ProviderDispatcher:
    return request.app.state.dispatcher


def get_user_storage(request: Request) -> UserStorage:
    return request.app.state.user_storage
