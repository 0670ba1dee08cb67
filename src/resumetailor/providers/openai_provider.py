"""OpenAI provider implementation."""

from openai import OpenAI, OpenAIError
import tiktoken

from resumetailor.exceptions import ProviderError
from resumetailor.providers.base import BaseProvider, DEFAULT_TIMEOUT_SECONDS


class OpenAIProvider(BaseProvider):
    """OpenAI provider using GPT models."""

    display_name = "OpenAI"

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        super().__init__(api_key, model, timeout_seconds)
        self.client = OpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)
        try:
            self.encoding = tiktoken.encoding_for_model(model)
        except KeyError:
            self.encoding = tiktoken.get_encoding("cl100k_base")
            self.logger.warning("unknown_model_encoding", fallback="cl100k_base")

    def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.5,
        max_tokens: int = 4096,
        **kwargs
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        self.logger.info(
            "generating_text",
            temperature=temperature,
            max_tokens=max_tokens,
            prompt_length=len(prompt),
        )
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs
            )
        except OpenAIError as e:
            raise self._wrap_error(e) from e

        result = response.choices[0].message.content if response.choices else None
        if not result:
            raise ProviderError("OpenAI returned empty response")

        self.logger.info("text_generated", response_length=len(result))
        return result

    def count_tokens(self, text: str) -> int:
        """Count tokens in text using tiktoken."""
        return len(self.encoding.encode(text))
