"""
Gemini provider.
The generateContent endpoint takes a single prompt, so the conversation is
flattened into a "Role: content" transcript before sending.
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any

from .base import LLMProvider, LLMMessage, LLMResponse

logger = logging.getLogger(__name__)

ROLE_LABELS = {
    "system": "System",
    "user": "User",
    "assistant": "Assistant",
}


def flatten_transcript(messages: List[LLMMessage]) -> str:
    """Join turns into one newline-separated ``Role: content`` transcript."""
    return "\n".join(
        f"{ROLE_LABELS.get(m.role, m.role.capitalize())}: {m.content}" for m in messages
    )


class GeminiProvider(LLMProvider):
    """
    Provider for the Gemini generateContent API.
    ``base_url`` is the full endpoint URL; the API key travels as the ``key`` query parameter.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = (
            "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent"
        ),
        default_temperature: float = 0.7,
        default_max_tokens: int = 2048,
        timeout: float = 120.0,
    ):
        super().__init__(api_key, model, base_url, default_temperature,
                         default_max_tokens, timeout)

    def _get_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if not parts:
            return ""
        return parts[0].get("text") or ""

    @staticmethod
    def _extract_usage(data: Dict[str, Any]) -> Dict[str, int]:
        # usageMetadata is optional in the response
        meta = data.get("usageMetadata") or {}
        if not meta:
            return {}
        return {
            "prompt_tokens": meta.get("promptTokenCount", 0),
            "completion_tokens": meta.get("candidatesTokenCount", 0),
            "total_tokens": meta.get("totalTokenCount", 0),
        }

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """Send the flattened transcript to generateContent."""
        start_time = time.time()
        model = kwargs.get("model", self.model)
        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": flatten_transcript(messages)}]}],
            "generationConfig": {
                "temperature": temperature if temperature is not None else self.default_temperature,
                "maxOutputTokens": max_tokens or self.default_max_tokens,
            },
        }

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API call starting: provider=gemini, model={model}, "
                f"{len(messages)} messages flattened"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.base_url,
                    params={"key": self.api_key},
                    json=payload,
                    headers=self._get_headers(),
                )
                resp.raise_for_status()
                data = resp.json()

            usage = self._extract_usage(data)
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                "LLM API call completed",
                extra={"extra_fields": {
                    "provider": self.name,
                    "model": model,
                    "total_tokens": usage.get("total_tokens", 0),
                    "usage_reported": bool(usage),
                    "duration_ms": round(duration_ms, 2),
                }}
            )

            return LLMResponse(
                content=self._extract_text(data),
                model=model,
                usage=usage,
                raw=data,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"LLM API call failed: {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "provider": self.name,
                    "model": model,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise
