"""Language model providers for SQL generation and result formatting.

The pipeline depends only on the LanguageModel interface. Bundled providers
call Google Gemini, OpenAI and Anthropic.

Example:
    >>> from askdb.llm import get_model
    >>>
    >>> model = get_model("google", api_key="...")
    >>> model = get_model("openai", model="gpt-4o")  # OPENAI_API_KEY from env
"""

from askdb.core.types import ProviderName
from askdb.exceptions import ConfigurationError
from askdb.llm.provider import LanguageModel, parse_json_response

__all__ = [
    "DEFAULT_MODELS",
    "LanguageModel",
    "get_model",
    "parse_json_response",
]

DEFAULT_MODELS = {
    ProviderName.GOOGLE: "gemini-2.5-flash",
    ProviderName.OPENAI: "gpt-4o-mini",
    ProviderName.ANTHROPIC: "claude-3-5-haiku-latest",
}


def get_model(
    provider: str | LanguageModel = ProviderName.GOOGLE,
    api_key: str | None = None,
    model: str | None = None,
) -> LanguageModel:
    """Get a language model by provider name or return the model if already instantiated.

    Args:
        provider: Provider name ("google", "openai", "anthropic") or LanguageModel instance.
        api_key: Provider API key. Falls back to the provider's environment variable.
        model: Model name. Defaults to the provider's entry in DEFAULT_MODELS.

    Returns:
        LanguageModel instance.

    Raises:
        ConfigurationError: If provider name is unknown or no API key is available.
        ImportError: If required dependencies are not installed.
    """
    if isinstance(provider, LanguageModel):
        return provider

    if provider not in ProviderName.values():
        raise ConfigurationError(
            f"Unsupported provider: {provider}. Available: {', '.join(ProviderName.values())}",
            {"provider": provider, "available": ProviderName.values()},
        )

    name = ProviderName(provider)
    model_name = model or DEFAULT_MODELS[name]

    if name == ProviderName.GOOGLE:
        from askdb.llm.google import GeminiModel

        return GeminiModel(model=model_name, api_key=api_key)
    elif name == ProviderName.OPENAI:
        from askdb.llm.openai import OpenAIModel

        return OpenAIModel(model=model_name, api_key=api_key)
    else:
        from askdb.llm.anthropic import AnthropicModel

        return AnthropicModel(model=model_name, api_key=api_key)
