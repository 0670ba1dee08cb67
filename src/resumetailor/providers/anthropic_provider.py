"""Anthropic provider implementation."""

from anthropic import Anthropic, AnthropicError

from resumetailor.exceptions import ProviderError
from resumetailor.providers.base import BaseProvider, DEFAULT_TIMEOUT_SECONDS


class AnthropicProvider(BaseProvider):
    """Anthropic provider using Claude models."""

    display_name = "Anthropic"

    def __init__(self, api_key: str, model: str = "claude-3-5-sonnet-20241022", timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        super().__init__(api_key, model, timeout_seconds)
        self.client = Anthropic(api_key=api_key, timeout=timeout_seconds, max_retries=0)

    def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.5,
        max_tokens: int = 4096,
        **kwargs
    ) -> str:
        self.logger.info(
            "generating_text",
            temperature=temperature,
            max_tokens=max_tokens,
            prompt_length=len(prompt),
        )
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_prompt or "",
                messages=[{"role": "user", "content": prompt}],
                **kwargs
            )
        except AnthropicError as e:
            raise self._wrap_error(e) from e

        text_blocks = [block.text for block in response.content or [] if getattr(block, "text", None)]
        result = "".join(text_blocks)
        if not result:
            raise ProviderError("Anthropic returned empty response")

        self.logger.info("text_generated", response_length=len(result))
        return result
