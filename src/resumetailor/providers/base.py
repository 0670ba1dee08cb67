"""Base provider interface."""

from abc import ABC, abstractmethod

import structlog

from resumetailor.exceptions import ProviderError

logger = structlog.get_logger(__name__)

# Constants
DEFAULT_TIMEOUT_SECONDS = 30
CHARS_PER_TOKEN = 4


class BaseProvider(ABC):
    """
    Abstract base class for text-completion providers.

    Providers make exactly one SDK call per request. Retries, caching and the
    hard timeout live in the CompletionGateway, so SDK-level retries are
    switched off where the client allows it.
    """

    display_name = "Provider"

    def __init__(self, api_key: str, model: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize provider.

        Args:
            api_key: API key for the provider
            model: Model identifier
            timeout_seconds: Request timeout passed to the SDK client
        """
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.logger = logger.bind(provider=self.__class__.__name__, model=model)

    @abstractmethod
    def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.5,
        max_tokens: int = 4096,
        **kwargs
    ) -> str:
        """
        Generate a text completion from the model.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional provider-specific arguments

        Returns:
            Generated text response

        Raises:
            ProviderError: If the call fails or returns nothing
        """
        pass

    def complete(self, prompt: str, temperature: float, max_tokens: int = 4096) -> str:
        """Single-prompt completion, the shape the gateway calls."""
        return self.generate_text(prompt, temperature=temperature, max_tokens=max_tokens)

    def count_tokens(self, text: str) -> int:
        """Estimate tokens at ~4 characters per token."""
        return len(text) // CHARS_PER_TOKEN

    def _wrap_error(self, error: Exception) -> ProviderError:
        """Log an SDK failure and convert it to a ProviderError."""
        message = str(error)
        lowered = message.lower()
        self.logger.error("api_error", error=message, error_type=type(error).__name__)
        if "429" in message or "rate" in lowered:
            return ProviderError(f"{self.display_name} rate limit exceeded: {error}")
        if "timeout" in lowered or "timed out" in lowered:
            return ProviderError(f"{self.display_name} request timeout: {error}")
        return ProviderError(f"{self.display_name} API error: {error}")
