"""Completion gateway: caching, timeout and retry around text providers."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable

import structlog
from tenacity import (
    Retrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from resumetailor.config import Config
from resumetailor.exceptions import ProviderError, ValidationError
from resumetailor.providers import BaseProvider, create_provider, resolve_model
from resumetailor.providers.base import CHARS_PER_TOKEN
from resumetailor.utils.cache import CompletionCache, MemoryCacheBackend
from resumetailor.utils.metrics import GatewayMetrics

logger = structlog.get_logger(__name__)

ProviderFactory = Callable[[str], BaseProvider]

# Threads stuck on a hung SDK call stay busy until the SDK gives up
COMPLETION_WORKERS = 8


class CompletionGateway:
    """
    The one place prompts leave the process.

    ``generate`` rejects degenerate prompts, serves repeats from the cache,
    routes to a provider by model name, enforces a hard per-call timeout,
    retries transient failures with exponential backoff, and refuses
    responses too short to be real output. It never looks inside the text.
    """

    def __init__(
        self,
        config: Config,
        cache: CompletionCache | None = None,
        provider_factory: ProviderFactory | None = None,
        metrics: GatewayMetrics | None = None,
    ):
        """
        Initialize gateway.

        Args:
            config: Configuration (gateway settings, model aliases, providers)
            cache: Completion cache; a bounded in-memory cache if omitted
            provider_factory: Builds a provider for a model name. Defaults to
                alias/prefix routing with API keys from the environment.
            metrics: Shared metrics collector
        """
        self.config = config
        self.settings = config.gateway
        self.cache = cache if cache is not None else CompletionCache(
            MemoryCacheBackend(max_entries=self.settings.cache_max_entries),
            ttl_seconds=self.settings.cache_ttl_seconds,
        )
        self.metrics = metrics or GatewayMetrics()
        self._provider_factory = provider_factory or self._create_provider
        self._providers: dict[str, BaseProvider] = {}
        self._providers_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=COMPLETION_WORKERS, thread_name_prefix="completion"
        )
        self.logger = logger.bind(component="CompletionGateway")

    def _create_provider(self, model: str) -> BaseProvider:
        provider_name, model_id = resolve_model(model, self.config)
        return create_provider(provider_name, model_id, self.config)

    def get_provider(self, model: str) -> BaseProvider:
        """Provider for a model, created on first use and reused afterwards."""
        with self._providers_lock:
            provider = self._providers.get(model)
            if provider is None:
                provider = self._provider_factory(model)
                self._providers[model] = provider
                self.logger.debug("provider_created", model=model, provider=type(provider).__name__)
            return provider

    def generate(
        self,
        prompt: str,
        model: str | None = None,
        temperature: float = 0.5,
        *,
        use_cache: bool = True,
    ) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Prompt text
            model: Model name or alias (defaults to gateway.default_model)
            temperature: Sampling temperature
            use_cache: Read and write the completion cache

        Returns:
            Generated text

        Raises:
            ValidationError: If the prompt is shorter than min_prompt_length
            ConfigError: If the model cannot be routed or has no API key
            ProviderError: If every attempt failed, timed out, or returned
                output shorter than min_response_length
        """
        model = model or self.settings.default_model
        if len((prompt or "").strip()) < self.settings.min_prompt_length:
            raise ValidationError(
                f"Prompt too short ({len((prompt or '').strip())} < {self.settings.min_prompt_length} characters)"
            )

        if use_cache:
            cached = self.cache.get(model, temperature, prompt)
            if cached is not None:
                self.metrics.record_cache_hit()
                self.logger.info("completion_cache_hit", model=model, response_length=len(cached))
                return cached

        provider = self.get_provider(model)
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(
                multiplier=self.settings.backoff_multiplier,
                min=self.settings.backoff_min_seconds,
                max=self.settings.backoff_max_seconds,
            ),
            retry=retry_if_exception_type(ProviderError),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            for attempt in retrying:
                with attempt:
                    text = self._invoke(provider, model, prompt, temperature)
        except ProviderError as e:
            self.metrics.record_result(success=False)
            self.logger.error("completion_failed", model=model, error=str(e))
            raise

        self.metrics.record_result(success=True)
        if use_cache:
            self.cache.set(model, temperature, prompt, text)
        return text

    def _invoke(self, provider: BaseProvider, model: str, prompt: str, temperature: float) -> str:
        """One provider call under the hard timeout."""
        start = time.perf_counter()
        future = self._executor.submit(
            provider.complete, prompt, temperature, self.settings.max_tokens
        )
        try:
            text = future.result(timeout=self.settings.timeout_seconds)
        except FutureTimeoutError as e:
            future.cancel()
            raise ProviderError(
                f"Completion timed out after {self.settings.timeout_seconds}s ({model})"
            ) from e
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Unexpected error calling {model}: {e}") from e
        finally:
            self.metrics.record_provider_call(model, time.perf_counter() - start)

        if len((text or "").strip()) < self.settings.min_response_length:
            raise ProviderError(
                f"Response too short ({len((text or '').strip())} < {self.settings.min_response_length} characters)"
            )
        return text

    def _log_retry(self, retry_state: RetryCallState) -> None:
        self.metrics.record_retry()
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.warning(
            "completion_retry",
            attempt=retry_state.attempt_number,
            max_attempts=self.settings.max_retries + 1,
            error=str(error),
        )

    def estimate_tokens(self, text: str, model: str | None = None) -> int:
        """Token count from the model's provider; a character estimate if unavailable."""
        model = model or self.settings.default_model
        try:
            return self.get_provider(model).count_tokens(text)
        except Exception as e:
            self.logger.debug("token_count_unavailable", model=model, error=str(e))
            return len(text) // CHARS_PER_TOKEN

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
