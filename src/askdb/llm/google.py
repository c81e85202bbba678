"""Google Gemini provider."""

from __future__ import annotations

import os
from typing import Any

import httpx

from askdb.core.types import TokenUsage
from askdb.exceptions import ConfigurationError
from askdb.llm.http import DEFAULT_REQUEST_TIMEOUT, HttpLanguageModel
from askdb.llm.provider import T, parse_structured_response, structured_instruction

# Structured calls need near-deterministic output; prose can vary a little
STRUCTURED_CONFIG = {"temperature": 0.1, "topK": 1, "topP": 0.95}
TEXT_CONFIG = {"temperature": 0.3, "topK": 40, "topP": 0.95}


class GeminiModel(HttpLanguageModel):
    """Google Gemini provider (generateContent REST API).

    Gemini has no separate system role here, so system instructions are
    prepended to the user message.
    """

    provider = "google"
    display_name = "Gemini"

    DEFAULT_MODEL = "gemini-2.5-flash"
    API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize Gemini provider.

        Args:
            model: Model name.
            api_key: Gemini API key. Falls back to GEMINI_API_KEY env var.
            client: Optional httpx client to send requests with.
            timeout: Request timeout in seconds when no client is given.
        """
        api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "Gemini API key required. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        super().__init__(model, api_key, client=client, timeout=timeout)

    async def generate_structured(
        self, system: str, prompt: str, result_shape: type[T]
    ) -> tuple[T, TokenUsage]:
        text, usage = await self._generate(
            f"{system}\n\n{structured_instruction(result_shape)}\n\n{prompt}",
            STRUCTURED_CONFIG,
        )
        return parse_structured_response(self.provider, text, result_shape), usage

    async def generate_text(self, system: str, prompt: str) -> tuple[str, TokenUsage]:
        return await self._generate(f"{system}\n\n{prompt}", TEXT_CONFIG)

    async def _generate(
        self, text: str, generation_config: dict[str, Any]
    ) -> tuple[str, TokenUsage]:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": text}]}],
            "generationConfig": generation_config,
        }
        data = await self._post_json(
            f"{self.API_BASE}/{self._model}:generateContent",
            payload,
            params={"key": self._api_key},
        )

        usage = data.get("usageMetadata") or {}
        return _first_candidate_text(data), TokenUsage(
            input_tokens=usage.get("promptTokenCount") or 0,
            output_tokens=usage.get("candidatesTokenCount") or 0,
        )


def _first_candidate_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return ""
    text: str = parts[0].get("text", "")
    return text
