"""LLM module - provider clients and the model-id based dispatcher."""

from .base import LLMProvider, LLMMessage, LLMResponse
from .openai_provider import OpenAIProvider
from .openrouter_provider import OpenRouterProvider
from .gemini_provider import GeminiProvider
from .dispatcher import ProviderDispatcher, ProviderKind, ProviderResult
from .factory import create_llm_provider, create_provider_dispatcher

__all__ = [
    'LLMProvider',
    'LLMMessage',
    'LLMResponse',
    'OpenAIProvider',
    'OpenRouterProvider',
    'GeminiProvider',
    'ProviderDispatcher',
    'ProviderKind',
    'ProviderResult',
    'create_llm_provider',
    'create_provider_dispatcher',
]
