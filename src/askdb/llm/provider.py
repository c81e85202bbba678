"""Language model interface."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from askdb.core.types import TokenUsage
from askdb.exceptions import ProviderError

T = TypeVar("T", bound=BaseModel)

_FENCE_START = re.compile(r"^```(?:json)?\s*")
_FENCE_END = re.compile(r"\s*```$")


class LanguageModel(ABC):
    """Interface for language model providers.

    The pipeline only ever needs two capabilities: a structured answer shaped
    like a pydantic model, and free text. Each returns the token usage of the
    call alongside the value.
    """

    provider: str = "custom"

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier sent to the provider."""
        ...

    @abstractmethod
    async def generate_structured(
        self, system: str, prompt: str, result_shape: type[T]
    ) -> tuple[T, TokenUsage]:
        """Generate a value matching ``result_shape``.

        Args:
            system: System instructions.
            prompt: User prompt.
            result_shape: Pydantic model the response must validate against.

        Returns:
            Tuple of (validated value, token usage).

        Raises:
            ProviderError: If the call fails or the response does not fit the shape.
        """
        ...

    @abstractmethod
    async def generate_text(self, system: str, prompt: str) -> tuple[str, TokenUsage]:
        """Generate free text.

        Args:
            system: System instructions.
            prompt: User prompt.

        Returns:
            Tuple of (text, token usage).

        Raises:
            ProviderError: If the call fails.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model_name!r})"


def structured_instruction(result_shape: type[BaseModel]) -> str:
    """Prompt prefix asking for a bare JSON object matching ``result_shape``."""
    schema = json.dumps(result_shape.model_json_schema())
    return f"Respond with ONLY a JSON object matching this schema: {schema}"


def parse_json_response(provider: str, response_text: str) -> dict:
    """Extract the JSON object from a model response.

    Markdown code fences are removed and the outermost ``{...}`` is parsed.

    Raises:
        ProviderError: If no JSON object can be parsed.
    """
    clean = response_text.strip()
    if clean.startswith("```"):
        clean = _FENCE_END.sub("", _FENCE_START.sub("", clean))

    start = clean.find("{")
    end = clean.rfind("}")
    if start == -1 or end == -1 or start >= end:
        raise ProviderError(provider, "No valid JSON object found in response")

    try:
        value = json.loads(clean[start : end + 1])
    except json.JSONDecodeError as e:
        raise ProviderError(provider, f"Failed to parse JSON response: {e}") from e

    if not isinstance(value, dict):
        raise ProviderError(provider, "No valid JSON object found in response")
    return value


def parse_structured_response(provider: str, response_text: str, result_shape: type[T]) -> T:
    """Parse and validate a structured model response."""
    data = parse_json_response(provider, response_text)
    try:
        return result_shape.model_validate(data)
    except ValidationError as e:
        raise ProviderError(provider, f"Response does not match expected shape: {e}") from e
