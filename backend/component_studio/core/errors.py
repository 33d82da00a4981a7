"""
Domain errors raised by the generation pipeline and the session state machine.
"""

from typing import Optional


class ComponentStudioError(Exception):
    """Base class for all Component Studio domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoProviderAvailable(ComponentStudioError):
    """No configured LLM provider can serve the requested model."""

    def __init__(self, model: str):
        super().__init__(f"No AI service available for model '{model}'")
        self.model = model


class ProviderCallFailed(ComponentStudioError):
    """An LLM provider call failed at the transport or API level."""

    def __init__(self, provider: str, cause: Exception):
        super().__init__(f"{provider} call failed: {cause}")
        self.provider = provider
        self.cause = cause


class GenerationFailed(ComponentStudioError):
    """The generate/refine pipeline failed; wraps the original cause."""

    def __init__(self, action: str, cause: Optional[Exception] = None):
        detail = getattr(cause, "message", None) or str(cause) if cause else "unknown error"
        super().__init__(f"Failed to {action} component: {detail}")
        self.action = action
        self.cause = cause


class StorageError(ComponentStudioError):
    """The document store could not persist a write."""


class SessionNotFound(ComponentStudioError):
    def __init__(self, session_id: str):
        super().__init__("Session not found")
        self.session_id = session_id


class SessionAccessDenied(ComponentStudioError):
    def __init__(self, session_id: str):
        super().__init__("Access denied")
        self.session_id = session_id


class SessionNotMutable(ComponentStudioError):
    """Raised when a deleted session is asked to change its messages or components."""

    def __init__(self, session_id: str):
        super().__init__("Session has been deleted and can no longer be modified")
        self.session_id = session_id


class MessageNotFound(ComponentStudioError):
    def __init__(self, message_id: str):
        super().__init__("Message not found")
        self.message_id = message_id


class EditNotAllowed(ComponentStudioError):
    def __init__(self, message_id: str):
        super().__init__("Only user messages can be edited")
        self.message_id = message_id


class RegenerateNotAllowed(ComponentStudioError):
    def __init__(self, message_id: str):
        super().__init__("Can only regenerate responses for user messages")
        self.message_id = message_id
