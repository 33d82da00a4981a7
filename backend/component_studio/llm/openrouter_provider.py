"""
OpenRouter aggregator provider.
Same chat/completions wire format as OpenAI; the model id selects the upstream
provider (e.g. "anthropic/claude-3-sonnet").
"""

from typing import Dict

from .openai_provider import OpenAIProvider


class OpenRouterProvider(OpenAIProvider):
    """Provider for OpenRouter, passing arbitrary provider/model strings through."""

    name = "openrouter"

    def __init__(
        self,
        api_key: str,
        model: str = "openai/gpt-4o-mini",
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "http://localhost:3000",
        title: str = "Component Generator Platform",
        default_temperature: float = 0.7,
        default_max_tokens: int = 2000,
        timeout: float = 120.0,
    ):
        super().__init__(api_key, model, base_url, default_temperature,
                         default_max_tokens, timeout)
        self.referer = referer
        self.title = title

    def _get_headers(self) -> Dict[str, str]:
        headers = super()._get_headers()
        headers["HTTP-Referer"] = self.referer
        headers["X-Title"] = self.title
        return headers
