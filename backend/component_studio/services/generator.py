"""
Component Generator - the generate/refine pipeline.

context builder -> provider dispatcher -> artifact parser, with timing and
token accounting. Every failure inside the pipeline surfaces as
GenerationFailed; the generator keeps no state between calls.
"""

import logging
import time
from typing import List, Optional, Sequence

from .artifact_parser import parse_component_response
from .context_builder import build_generation_context, build_refinement_context
from ..core.errors import GenerationFailed
from ..llm.base import LLMMessage
from ..llm.dispatcher import ProviderDispatcher
from ..models.component import Component, GeneratedComponent, GenerationMetadata
from ..models.session import Message, SessionSettings

logger = logging.getLogger(__name__)


class ComponentGenerator:
    """Generates and refines components through the configured providers."""

    def __init__(self, dispatcher: ProviderDispatcher,
                 default_settings: Optional[SessionSettings] = None):
        self.dispatcher = dispatcher
        self.default_settings = default_settings or SessionSettings()

    async def generate_component(
        self,
        prompt: str,
        previous_messages: Sequence[Message] = (),
        settings: Optional[SessionSettings] = None,
    ) -> GeneratedComponent:
        """Create a new component from ``prompt``."""
        return await self._run(
            "generate",
            lambda: build_generation_context(prompt, previous_messages),
            settings,
        )

    async def refine_component(
        self,
        prompt: str,
        current_component: Component,
        previous_messages: Sequence[Message] = (),
        settings: Optional[SessionSettings] = None,
    ) -> GeneratedComponent:
        """Modify ``current_component`` according to ``prompt``."""
        return await self._run(
            "refine",
            lambda: build_refinement_context(prompt, current_component, previous_messages),
            settings,
        )

    async def _run(self, action, build_context, settings: Optional[SessionSettings]) -> GeneratedComponent:
        settings = settings or self.default_settings
        start_time = time.time()
        try:
            messages: List[LLMMessage] = build_context()
            result = await self.dispatcher.call(
                messages,
                model=settings.model,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
            draft = parse_component_response(result.text)
        except Exception as e:
            logger.error(
                f"AI {action} error: {e}",
                exc_info=True,
                extra={"extra_fields": {"action": action, "model": settings.model, "error": str(e)}}
            )
            raise GenerationFailed(action, e) from e

        processing_time = int((time.time() - start_time) * 1000)
        logger.info(
            f"Component {action}d successfully in {processing_time}ms using {result.tokens_used} tokens",
            extra={"extra_fields": {
                "action": action,
                "component": draft.name,
                "provider": result.provider.value,
                "model": settings.model,
                "tokens": result.tokens_used,
                "processing_time_ms": processing_time,
            }}
        )

        return GeneratedComponent(
            **draft.model_dump(),
            metadata=GenerationMetadata(
                model=settings.model,
                tokens=result.tokens_used,
                processing_time=processing_time,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            ),
        )
