"""OpenAI chat completions provider."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from askdb.core.types import TokenUsage
from askdb.exceptions import ConfigurationError, ProviderError
from askdb.llm.provider import LanguageModel, T, parse_structured_response, structured_instruction

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAIModel(LanguageModel):
    """OpenAI API provider.

    Example:
        >>> model = OpenAIModel()  # Uses OPENAI_API_KEY env var
        >>> value, usage = await model.generate_structured(system, question, SqlResponse)
    """

    provider = "openai"

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize OpenAI provider.

        Args:
            model: Model name. Defaults to gpt-4o-mini.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            client: Preconfigured AsyncOpenAI client (api_key is then ignored).
        """
        self._model = model

        if client is not None:
            self._client = client
            return

        try:
            from openai import AsyncOpenAI
        except ImportError as e:
            raise ImportError(
                "openai is required for the OpenAI provider. "
                "Install it with: pip install askdb[openai]"
            ) from e

        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key required. Set OPENAI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        self._client = AsyncOpenAI(api_key=api_key)

    @property
    def model_name(self) -> str:
        return self._model

    async def generate_structured(
        self, system: str, prompt: str, result_shape: type[T]
    ) -> tuple[T, TokenUsage]:
        text, usage = await self._complete(
            [
                {"role": "system", "content": system},
                {
                    "role": "user",
                    "content": f"{structured_instruction(result_shape)}\n\n{prompt}",
                },
            ],
            temperature=0.1,
            response_format={"type": "json_object"},
        )
        return parse_structured_response(self.provider, text, result_shape), usage

    async def generate_text(self, system: str, prompt: str) -> tuple[str, TokenUsage]:
        return await self._complete(
            [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
        )

    async def _complete(
        self, messages: list[dict[str, str]], **options: Any
    ) -> tuple[str, TokenUsage]:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                **options,
            )
        except Exception as e:
            logger.error(f"OpenAI request failed: {e}")
            raise ProviderError(self.provider, f"OpenAI API error: {e}") from e

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""

        usage = response.usage
        return text, TokenUsage(
            input_tokens=(usage.prompt_tokens or 0) if usage else 0,
            output_tokens=(usage.completion_tokens or 0) if usage else 0,
        )
