"""Groq provider implementation."""

from groq import Groq, GroqError

from resumetailor.exceptions import ProviderError
from resumetailor.providers.base import BaseProvider

# Shorter timeout for Groq - fast inference
GROQ_TIMEOUT_SECONDS = 20


class GroqProvider(BaseProvider):
    """Groq provider for open-weight models (Llama, Mixtral, Gemma)."""

    display_name = "Groq"

    def __init__(self, api_key: str, model: str = "llama-3.1-70b-versatile", timeout_seconds: float = GROQ_TIMEOUT_SECONDS):
        super().__init__(api_key, model, timeout_seconds)
        self.client = Groq(api_key=api_key, timeout=timeout_seconds, max_retries=0)

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
        except GroqError as e:
            raise self._wrap_error(e) from e

        result = response.choices[0].message.content if response.choices else None
        if not result:
            raise ProviderError("Groq returned empty response")

        self.logger.info("text_generated", response_length=len(result))
        return result
