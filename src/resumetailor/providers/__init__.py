"""Text-completion provider abstraction layer."""

import os
from typing import TYPE_CHECKING

from resumetailor.exceptions import ConfigError, ProviderError
from resumetailor.providers.anthropic_provider import AnthropicProvider
from resumetailor.providers.base import BaseProvider
from resumetailor.providers.google_provider import GoogleProvider
from resumetailor.providers.groq_provider import GroqProvider
from resumetailor.providers.openai_provider import OpenAIProvider

if TYPE_CHECKING:
    from resumetailor.config import Config

__all__ = [
    "BaseProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "GoogleProvider",
    "GroqProvider",
    "PROVIDERS",
    "MODEL_PREFIX_ROUTES",
    "create_provider",
    "provider_for_model",
    "resolve_model",
    "resolve_model_alias",
]

PROVIDERS: dict[str, type[BaseProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "google": GoogleProvider,
    "groq": GroqProvider,
}

# Model-name prefix -> provider. First match wins.
MODEL_PREFIX_ROUTES: list[tuple[str, str]] = [
    ("gpt", "openai"),
    ("o1", "openai"),
    ("o3", "openai"),
    ("o4", "openai"),
    ("claude", "anthropic"),
    ("gemini", "google"),
    ("llama", "groq"),
    ("mixtral", "groq"),
    ("gemma", "groq"),
    ("qwen", "groq"),
    ("deepseek", "groq"),
]

API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
    "groq": "GROQ_API_KEY",
}


def provider_for_model(model: str) -> str:
    """
    Pick a provider from a model name.

    Args:
        model: Model identifier (e.g., "gemini-1.5-flash")

    Returns:
        Provider name

    Raises:
        ConfigError: If no prefix matches
    """
    lowered = model.strip().lower()
    for prefix, provider_name in MODEL_PREFIX_ROUTES:
        if lowered.startswith(prefix):
            return provider_name
    raise ConfigError(f"No provider route for model '{model}'")


def resolve_model_alias(model_alias: str, config: "Config") -> tuple[str, str]:
    """
    Resolve a model alias to provider name and model ID.

    Raises:
        ConfigError: If alias not found or incomplete
    """
    if model_alias not in config.models:
        raise ConfigError(f"Model alias '{model_alias}' not found in configuration")

    model_config = config.models[model_alias]
    provider_name = model_config.get("provider")
    model_id = model_config.get("model")

    if not provider_name or not model_id:
        raise ConfigError(f"Invalid model configuration for alias '{model_alias}'")

    return provider_name, model_id


def resolve_model(model: str, config: "Config") -> tuple[str, str]:
    """Alias lookup first, then prefix routing on the raw model name."""
    if model in config.models:
        return resolve_model_alias(model, config)
    return provider_for_model(model), model


def create_provider(provider_name: str, model: str, config: "Config") -> BaseProvider:
    """
    Create a provider instance from configuration.

    The API key is read from the environment (see API_KEY_ENV_VARS); callers
    never pass credentials.

    Raises:
        ConfigError: If provider not found or API key missing
        ProviderError: If provider initialization fails
    """
    if provider_name not in PROVIDERS:
        raise ConfigError(f"Unknown provider: {provider_name}")

    provider_config = config.providers.get(provider_name, {})
    timeout_seconds = provider_config.get("timeout_seconds", config.gateway.timeout_seconds)

    api_key_env_var = API_KEY_ENV_VARS[provider_name]
    api_key = os.environ.get(api_key_env_var)

    if not api_key:
        raise ConfigError(
            f"Missing API key for {provider_name}. "
            f"Set {api_key_env_var} environment variable."
        )

    try:
        return PROVIDERS[provider_name](
            api_key=api_key,
            model=model,
            timeout_seconds=timeout_seconds,
        )
    except Exception as e:
        raise ProviderError(f"Failed to initialize {provider_name} provider: {e}") from e
