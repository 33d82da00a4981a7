"""Services module - component generation pipeline and session orchestration."""

from .artifact_parser import parse_component_response
from .context_builder import build_generation_context, build_refinement_context
from .generator import ComponentGenerator
from .session_service import SessionService, ExchangeResult

__all__ = [
    'parse_component_response',
    'build_generation_context',
    'build_refinement_context',
    'ComponentGenerator',
    'SessionService',
    'ExchangeResult',
]
