"""Provider factory helpers."""

from vibey.config.settings import Settings
from vibey.exceptions.provider import ProviderConfigurationError
from vibey.providers.base import BaseProvider


def create_provider(settings: Settings) -> BaseProvider:
    """Instantiate the configured provider implementation."""
    provider_name = (settings.llm_provider or "ollama").strip().lower()
    if provider_name == "openai":
        from vibey.providers.openai_compatible import OpenAICompatibleProvider

        return OpenAICompatibleProvider(settings)

    if provider_name == "ollama":
        from vibey.providers.ollama import OllamaProvider

        return OllamaProvider(settings)

    raise ProviderConfigurationError(
        f"Unknown provider: {settings.llm_provider}",
        provider_name=settings.llm_provider,
        model_name=settings.model_name,
    )
