"""
LLM Provider Factory - Creates provider instances and the dispatcher from settings.
"""

from typing import Any, Optional
from .base import LLMProvider
from .dispatcher import ProviderDispatcher
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from .openrouter_provider import OpenRouterProvider

PROVIDER_CLASSES = {
    "openai": OpenAIProvider,
    "openrouter": OpenRouterProvider,
    "gemini": GeminiProvider,
}


def create_llm_provider(
    provider: str = "openai",
    api_key: Optional[str] = "",
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs
) -> Optional[LLMProvider]:
    """
    Create an LLM provider instance.

    Args:
        provider: Provider name ("openai", "openrouter" or "gemini")
        api_key: API key for the provider
        model: Default model (uses provider default if not specified)
        base_url: Custom base URL (uses provider default if not specified)
        **kwargs: Additional provider-specific parameters

    Returns:
        LLMProvider instance, or None if api_key is not configured
    """
    if provider not in PROVIDER_CLASSES:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    if not api_key:
        return None

    params: dict = {"api_key": api_key}
    if model:
        params["model"] = model
    if base_url:
        params["base_url"] = base_url
    params.update(kwargs)
    return PROVIDER_CLASSES[provider](**params)


def create_provider_dispatcher(config: Any) -> ProviderDispatcher:
    """
    Build the dispatcher from application settings.
    Providers without an API key are left out of the routing table.
    """
    common = {
        "default_temperature": config.default_temperature,
        "default_max_tokens": config.default_max_tokens,
        "timeout": config.llm_timeout,
    }
    return ProviderDispatcher(
        openai=create_llm_provider(
            "openai",
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            **common,
        ),
        openrouter=create_llm_provider(
            "openrouter",
            api_key=config.openrouter_api_key,
            base_url=config.ai_base_url,
            referer=config.frontend_url,
            **common,
        ),
        gemini=create_llm_provider(
            "gemini",
            api_key=config.gemini_api_key,
            base_url=config.gemini_api_base_url,
            **common,
        ),
    )
