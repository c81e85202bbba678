"""Anthropic Messages API provider."""

from __future__ import annotations

import os
from typing import Any

import httpx

from askdb.core.types import TokenUsage
from askdb.exceptions import ConfigurationError
from askdb.llm.http import DEFAULT_REQUEST_TIMEOUT, HttpLanguageModel
from askdb.llm.provider import T, parse_structured_response, structured_instruction


class AnthropicModel(HttpLanguageModel):
    """Anthropic Claude provider.

    Example:
        >>> model = AnthropicModel()  # Uses ANTHROPIC_API_KEY env var
        >>> text, usage = await model.generate_text("Be brief.", "Hello")
    """

    provider = "anthropic"
    display_name = "Anthropic"

    DEFAULT_MODEL = "claude-3-5-haiku-latest"
    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"
    MAX_TOKENS = 4096

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize Anthropic provider.

        Args:
            model: Model name.
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY env var.
            client: Optional httpx client to send requests with.
            timeout: Request timeout in seconds when no client is given.
        """
        api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key parameter."
            )
        super().__init__(model, api_key, client=client, timeout=timeout)

    async def generate_structured(
        self, system: str, prompt: str, result_shape: type[T]
    ) -> tuple[T, TokenUsage]:
        text, usage = await self._message(
            system, f"{structured_instruction(result_shape)}\n\n{prompt}"
        )
        return parse_structured_response(self.provider, text, result_shape), usage

    async def generate_text(self, system: str, prompt: str) -> tuple[str, TokenUsage]:
        return await self._message(system, prompt)

    async def _message(self, system: str, content: str) -> tuple[str, TokenUsage]:
        payload: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self.MAX_TOKENS,
            "system": system,
            "messages": [{"role": "user", "content": content}],
        }
        data = await self._post_json(
            self.API_URL,
            payload,
            headers={"x-api-key": self._api_key, "anthropic-version": self.API_VERSION},
        )

        blocks = data.get("content") or []
        text = blocks[0].get("text", "") if blocks else ""
        usage = data.get("usage") or {}
        return text, TokenUsage(
            input_tokens=usage.get("input_tokens") or 0,
            output_tokens=usage.get("output_tokens") or 0,
        )
