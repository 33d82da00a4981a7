"""Core module - logging setup and domain errors."""

from .errors import (
    ComponentStudioError,
    NoProviderAvailable,
    ProviderCallFailed,
    GenerationFailed,
    StorageError,
    SessionNotFound,
    SessionAccessDenied,
    SessionNotMutable,
    MessageNotFound,
    EditNotAllowed,
    RegenerateNotAllowed,
)

__all__ = [
    'ComponentStudioError',
    'NoProviderAvailable',
    'ProviderCallFailed',
    'GenerationFailed',
    'StorageError',
    'SessionNotFound',
    'SessionAccessDenied',
    'SessionNotMutable',
    'MessageNotFound',
    'EditNotAllowed',
    'RegenerateNotAllowed',
]
