"""Google AI provider implementation."""

from google import genai
from google.genai import errors, types

from resumetailor.exceptions import ProviderError
from resumetailor.providers.base import BaseProvider, DEFAULT_TIMEOUT_SECONDS


class GoogleProvider(BaseProvider):
    """Google AI provider using Gemini models."""

    display_name = "Google AI"

    def __init__(self, api_key: str, model: str = "gemini-1.5-flash", timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        super().__init__(api_key, model, timeout_seconds)
        # HttpOptions.timeout is in milliseconds
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )

    def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.5,
        max_tokens: int = 4096,
        **kwargs
    ) -> str:
        config_params = {
            "temperature": temperature,
            "max_output_tokens": max_tokens,
            **kwargs
        }
        if system_prompt:
            config_params["system_instruction"] = system_prompt

        self.logger.info(
            "generating_text",
            temperature=temperature,
            max_tokens=max_tokens,
            prompt_length=len(prompt),
        )
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(**config_params),
            )
        except errors.APIError as e:
            raise self._wrap_error(e) from e

        if not response.text:
            raise ProviderError("Google AI returned empty response")

        self.logger.info("text_generated", response_length=len(response.text))
        return response.text
