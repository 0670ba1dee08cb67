"""Unit tests for provider implementations and model routing."""

import os
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import pytest

from resumetailor.config import Config, load_config
from resumetailor.exceptions import ConfigError, ProviderError
from resumetailor.providers import (
    AnthropicProvider,
    BaseProvider,
    GoogleProvider,
    GroqProvider,
    OpenAIProvider,
    create_provider,
    provider_for_model,
    resolve_model,
    resolve_model_alias,
)

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config.yaml"


class TestBaseProvider:
    """Tests for BaseProvider interface."""

    def test_base_provider_is_abstract(self):
        """Test that BaseProvider cannot be instantiated directly."""
        with pytest.raises(TypeError):
            BaseProvider(api_key="test", model="test")

    def test_complete_delegates_to_generate_text(self):
        class EchoProvider(BaseProvider):
            def generate_text(self, prompt, *, system_prompt=None, temperature=0.5, max_tokens=4096, **kwargs):
                return f"{prompt}|{temperature}|{max_tokens}"

        provider = EchoProvider(api_key="k", model="echo")
        assert provider.complete("hello", 0.3, 100) == "hello|0.3|100"
        assert provider.count_tokens("x" * 40) == 10


class TestModelRouting:
    """Tests for model-name routing."""

    @pytest.mark.parametrize(
        "model, expected",
        [
            ("gpt-4o-mini", "openai"),
            ("o3-mini", "openai"),
            ("claude-3-5-sonnet-20241022", "anthropic"),
            ("gemini-1.5-flash", "google"),
            ("llama-3.1-70b-versatile", "groq"),
            ("mixtral-8x7b-32768", "groq"),
            ("GPT-4o", "openai"),
        ],
    )
    def test_provider_for_model(self, model, expected):
        assert provider_for_model(model) == expected

    def test_unknown_prefix_raises_config_error(self):
        with pytest.raises(ConfigError, match="No provider route"):
            provider_for_model("mystery-model")

    def test_alias_resolves_before_prefix(self):
        config = load_config(CONFIG_PATH)
        assert resolve_model("precise", config) == ("anthropic", "claude-3-5-sonnet-20241022")
        assert resolve_model("gpt-4o", config) == ("openai", "gpt-4o")

    def test_resolve_model_alias_not_found(self):
        with pytest.raises(ConfigError) as exc_info:
            resolve_model_alias("nonexistent_alias", Config())
        assert "not found" in str(exc_info.value).lower()

    def test_incomplete_alias_raises_config_error(self):
        config = Config(models={"broken": {"provider": "openai"}})
        with pytest.raises(ConfigError, match="Invalid model configuration"):
            resolve_model_alias("broken", config)


class TestProviderFactory:
    """Tests for create_provider."""

    @patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"})
    @patch("resumetailor.providers.openai_provider.tiktoken")
    def test_create_provider(self, mock_tiktoken):
        provider = create_provider("openai", "gpt-4o", Config())
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o"
        assert provider.api_key == "test-key"

    @patch.dict(os.environ, {"GROQ_API_KEY": "test-key"})
    def test_provider_timeout_comes_from_config(self):
        config = load_config(CONFIG_PATH)
        provider = create_provider("groq", "llama-3.1-70b-versatile", config)
        assert isinstance(provider, GroqProvider)
        assert provider.timeout_seconds == 20

    @patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"})
    def test_gateway_timeout_is_the_default(self):
        provider = create_provider("anthropic", "claude-3-5-sonnet-20241022", Config())
        assert isinstance(provider, AnthropicProvider)
        assert provider.timeout_seconds == 30

    @patch.dict(os.environ, {}, clear=True)
    def test_create_provider_missing_api_key(self):
        with pytest.raises(ConfigError) as exc_info:
            create_provider("openai", "gpt-4o", Config())
        assert "missing api key" in str(exc_info.value).lower()

    def test_create_provider_unknown_provider(self):
        with pytest.raises(ConfigError) as exc_info:
            create_provider("unknown_provider", "model", Config())
        assert "unknown provider" in str(exc_info.value).lower()


class TestOpenAIProvider:
    """Tests for OpenAIProvider."""

    @patch("resumetailor.providers.openai_provider.tiktoken")
    @patch("resumetailor.providers.openai_provider.OpenAI")
    def test_sdk_retries_are_disabled(self, mock_openai_class, mock_tiktoken):
        OpenAIProvider(api_key="test-key", model="gpt-4o", timeout_seconds=12)
        mock_openai_class.assert_called_once_with(api_key="test-key", timeout=12, max_retries=0)

    @patch("resumetailor.providers.openai_provider.tiktoken")
    @patch("resumetailor.providers.openai_provider.OpenAI")
    def test_generate_text(self, mock_openai_class, mock_tiktoken):
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.return_value = Mock(
            choices=[Mock(message=Mock(content="Tailored text"))]
        )

        provider = OpenAIProvider(api_key="test-key", model="gpt-4o")
        assert provider.generate_text("prompt", temperature=0.3) == "Tailored text"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    @patch("resumetailor.providers.openai_provider.tiktoken")
    @patch("resumetailor.providers.openai_provider.OpenAI")
    def test_rate_limit_error_becomes_provider_error(self, mock_openai_class, mock_tiktoken):
        from openai import RateLimitError

        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.side_effect = RateLimitError(
            message="Rate limit exceeded",
            response=Mock(status_code=429),
            body={},
        )

        provider = OpenAIProvider(api_key="test-key", model="gpt-4o")
        with pytest.raises(ProviderError) as exc_info:
            provider.generate_text("test prompt")
        assert "rate limit" in str(exc_info.value).lower()

    @patch("resumetailor.providers.openai_provider.tiktoken")
    @patch("resumetailor.providers.openai_provider.OpenAI")
    def test_empty_response_raises(self, mock_openai_class, mock_tiktoken):
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.return_value = Mock(choices=[])

        provider = OpenAIProvider(api_key="test-key", model="gpt-4o")
        with pytest.raises(ProviderError, match="empty response"):
            provider.generate_text("test prompt")

    @patch("resumetailor.providers.openai_provider.tiktoken")
    @patch("resumetailor.providers.openai_provider.OpenAI")
    def test_count_tokens_uses_tiktoken(self, mock_openai_class, mock_tiktoken):
        mock_tiktoken.encoding_for_model.return_value.encode.return_value = [1, 2, 3]
        provider = OpenAIProvider(api_key="test-key", model="gpt-4o")
        assert provider.count_tokens("Hello world") == 3


class TestAnthropicProvider:
    """Tests for AnthropicProvider."""

    @patch("resumetailor.providers.anthropic_provider.Anthropic")
    def test_joins_text_blocks(self, mock_anthropic_class):
        mock_client = MagicMock()
        mock_anthropic_class.return_value = mock_client
        mock_client.messages.create.return_value = Mock(content=[Mock(text="Part one. "), Mock(text="Part two.")])

        provider = AnthropicProvider(api_key="test-key")
        assert provider.generate_text("prompt") == "Part one. Part two."

    def test_count_tokens_estimation(self):
        provider = AnthropicProvider(api_key="test-key")
        text = "Hello world " * 10  # 120 characters
        assert provider.count_tokens(text) == 30


class TestGoogleProvider:
    """Tests for GoogleProvider."""

    @patch("resumetailor.providers.google_provider.genai")
    def test_generate_text(self, mock_genai):
        mock_client = MagicMock()
        mock_genai.Client.return_value = mock_client
        mock_client.models.generate_content.return_value = Mock(text="Gemini output")

        provider = GoogleProvider(api_key="test-key", model="gemini-1.5-flash")
        assert provider.generate_text("prompt", temperature=0.7) == "Gemini output"
        assert mock_client.models.generate_content.call_args.kwargs["model"] == "gemini-1.5-flash"

    @patch("resumetailor.providers.google_provider.genai")
    def test_empty_response_raises(self, mock_genai):
        mock_genai.Client.return_value.models.generate_content.return_value = Mock(text="")

        provider = GoogleProvider(api_key="test-key")
        with pytest.raises(ProviderError, match="empty response"):
            provider.generate_text("prompt")
