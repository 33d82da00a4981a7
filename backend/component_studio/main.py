"""
Component Studio - Main FastAPI Application
"""

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from .config import settings
from .api import auth_router, sessions_router, messages_router, components_router
from .core.errors import (
    ComponentStudioError,
    EditNotAllowed,
    GenerationFailed,
    MessageNotFound,
    NoProviderAvailable,
    ProviderCallFailed,
    RegenerateNotAllowed,
    SessionAccessDenied,
    SessionNotFound,
    SessionNotMutable,
)
from .core.logging_config import setup_logging
from .llm.factory import create_provider_dispatcher
from .middleware import RequestLoggingMiddleware
from .models.session import SessionSettings
from .services.generator import ComponentGenerator
from .services.session_service import SessionService
from .storage.cache import MemoryCache
from .storage.local_storage import LocalStorage
from .storage.session_storage import SessionStorage
from .storage.user_storage import UserStorage

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    SessionNotFound: 404,
    MessageNotFound: 404,
    SessionAccessDenied: 403,
    EditNotAllowed: 400,
    RegenerateNotAllowed: 400,
    SessionNotMutable: 409,
    NoProviderAvailable: 503,
    ProviderCallFailed: 502,
    GenerationFailed: 502,
}


def status_code_for(error: ComponentStudioError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def build_services(app: FastAPI, config=settings) -> None:
    """Construct the service graph once and publish it on ``app.state``."""
    storage = LocalStorage(config.local_storage_path)
    user_storage = UserStorage(storage)
    defaults = SessionSettings(
        model=config.default_model,
        temperature=config.default_temperature,
        max_tokens=config.default_max_tokens,
    )
    dispatcher = create_provider_dispatcher(config)
    generator = ComponentGenerator(dispatcher, default_settings=defaults)

    app.state.user_storage = user_storage
    app.state.dispatcher = dispatcher
    app.state.generator = generator
    app.state.session_service = SessionService(
        SessionStorage(storage),
        generator,
        cache=MemoryCache(),
        user_store=user_storage,
        default_settings=defaults,
        cache_ttl=config.session_cache_ttl,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)
    build_services(app)

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage path: {settings.local_storage_path}")
    logger.info(f"Providers configured: {[k.value for k in app.state.dispatcher.configured]}")
    logger.info(f"Log level: {settings.log_level.upper()}")
    logger.info(f"Debug mode: {settings.debug}")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="AI-assisted React component generation with conversational refinement",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(auth_router)
app.include_router(sessions_router)
app.include_router(messages_router)
app.include_router(components_router)


@app.exception_handler(ComponentStudioError)
async def component_studio_error_handler(request: Request, exc: ComponentStudioError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "message": "Welcome to Component Studio"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.local_storage_path,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "component_studio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
