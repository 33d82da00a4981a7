"""
Provider Dispatcher - routes a request to one of the configured LLM backends.

Routing is resolved against a table built once, when the dispatcher is
constructed, from the set of providers that are actually configured:

1. model ids starting with ``gemini`` go to the Gemini provider
2. model ids starting with ``gpt-`` go to OpenAI, when OpenAI is configured
3. anything else goes to OpenRouter, when OpenRouter is configured
4. otherwise NoProviderAvailable
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .base import LLMProvider, LLMMessage
from ..core.errors import NoProviderAvailable, ProviderCallFailed

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    OPENROUTER = "openrouter"


GEMINI_PREFIX = "gemini"
GPT_PREFIX = "gpt-"

# Catalogue exposed by GET /components/models, per provider kind
MODEL_CATALOGUE: Dict[ProviderKind, List[Dict[str, str]]] = {
    ProviderKind.OPENAI: [
        {"id": "gpt-4o-mini", "name": "GPT-4o Mini"},
        {"id": "gpt-4", "name": "GPT-4"},
        {"id": "gpt-3.5-turbo", "name": "GPT-3.5 Turbo"},
    ],
    ProviderKind.OPENROUTER: [
        {"id": "anthropic/claude-3-sonnet", "name": "Claude 3 Sonnet"},
        {"id": "meta-llama/llama-3-8b-instruct", "name": "Llama 3 8B"},
        {"id": "google/gemini-2.0-flash-exp", "name": "Gemini 2.0 Flash"},
    ],
    ProviderKind.GEMINI: [
        {"id": "gemini-1.5-flash", "name": "Gemini 1.5 Flash"},
    ],
}


@dataclass
class ProviderResult:
    """Provider-independent result of a single completion call."""
    text: str
    tokens_used: int
    provider: ProviderKind
    model: str


class ProviderDispatcher:
    """
    Routes completion calls to the provider matching the model id.
    Holds no per-call state; providers are injected at construction.
    """

    def __init__(
        self,
        openai: Optional[LLMProvider] = None,
        openrouter: Optional[LLMProvider] = None,
        gemini: Optional[LLMProvider] = None,
    ):
        self._providers: Dict[ProviderKind, LLMProvider] = {}
        if openai is not None:
            self._providers[ProviderKind.OPENAI] = openai
        if openrouter is not None:
            self._providers[ProviderKind.OPENROUTER] = openrouter
        if gemini is not None:
            self._providers[ProviderKind.GEMINI] = gemini

        # Gemini ids always claim the Gemini route; the call fails if it is not configured.
        self._routes: List[Tuple[str, ProviderKind]] = [(GEMINI_PREFIX, ProviderKind.GEMINI)]
        if openai is not None:
            self._routes.append((GPT_PREFIX, ProviderKind.OPENAI))
        self._fallback: Optional[ProviderKind] = (
            ProviderKind.OPENROUTER if openrouter is not None else None
        )

        logger.info(
            f"Provider dispatcher ready: configured={[k.value for k in self._providers]}"
        )

    @property
    def configured(self) -> List[ProviderKind]:
        return list(self._providers)

    def resolve(self, model: str) -> ProviderKind:
        """
        Map a model id to the provider kind that will serve it.

        Raises:
            NoProviderAvailable: if no route matches and no aggregator is configured
        """
        for prefix, kind in self._routes:
            if model.startswith(prefix):
                return kind
        if self._fallback is not None:
            return self._fallback
        raise NoProviderAvailable(model)

    async def call(
        self,
        messages: List[LLMMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> ProviderResult:
        """
        Send ``messages`` to the provider for ``model``.

        Raises:
            NoProviderAvailable: no provider can serve ``model``
            ProviderCallFailed: the provider call raised; the original error is the cause
        """
        kind = self.resolve(model)
        provider = self._providers.get(kind)
        if provider is None:
            raise NoProviderAvailable(model)

        try:
            response = await provider.chat_completion(
                messages, temperature=temperature, max_tokens=max_tokens, model=model
            )
        except Exception as e:
            logger.error(
                f"{kind.value} API error: {e}",
                extra={"extra_fields": {"provider": kind.value, "model": model, "error": str(e)}}
            )
            raise ProviderCallFailed(kind.value, e) from e

        return ProviderResult(
            text=response.content or "",
            tokens_used=response.total_tokens,
            provider=kind,
            model=model,
        )

    def available_models(self) -> List[Dict[str, str]]:
        """Models offered by the configured providers."""
        models = []
        for kind in (ProviderKind.OPENAI, ProviderKind.OPENROUTER, ProviderKind.GEMINI):
            if kind in self._providers:
                models.extend({**entry, "provider": kind.value} for entry in MODEL_CATALOGUE[kind])
        return models
