"""Completion caching with pluggable, injected backends."""

import hashlib
import json
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Callable

import structlog

from resumetailor.config import GatewaySettings

logger = structlog.get_logger(__name__)

Clock = Callable[[], float]


# ============================================================================
# Abstract Cache Backend Interface
# ============================================================================

class CacheBackend(ABC):
    """
    Abstract base class for cache backends.

    Backends are constructed and handed to the gateway explicitly, so tests
    can substitute one with a fake clock or a small capacity.
    """

    @abstractmethod
    def get(self, key: str, namespace: str) -> dict | None:
        """
        Retrieve cached value.

        Args:
            key: Cache key (typically a hash)
            namespace: Namespace/prefix for the key (e.g., "completion")

        Returns:
            Cached data dict if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    def set(self, key: str, namespace: str, value: dict, ttl_seconds: int | None = None) -> None:
        """
        Store value in cache, replacing any existing entry for the key.

        Args:
            key: Cache key
            namespace: Namespace/prefix for the key
            value: Data to cache (must be JSON-serializable)
            ttl_seconds: Optional time-to-live in seconds (None = no expiration)
        """
        pass

    @abstractmethod
    def delete(self, key: str, namespace: str) -> None:
        """Delete cached value."""
        pass

    @abstractmethod
    def clear(self, namespace: str | None = None) -> None:
        """
        Clear cache entries.

        Args:
            namespace: If provided, only clear this namespace.
                      If None, clear all entries.
        """
        pass

    def exists(self, key: str, namespace: str) -> bool:
        """Check if a live entry exists for key."""
        return self.get(key, namespace) is not None


# ============================================================================
# No-Op Cache Backend (Disables Caching)
# ============================================================================

class NoOpCacheBackend(CacheBackend):
    """
    No-operation cache backend that disables caching.

    Used when the --no-cache flag is set or ``gateway.cache_backend`` is "none".
    """

    def get(self, key: str, namespace: str) -> dict | None:
        return None

    def set(self, key: str, namespace: str, value: dict, ttl_seconds: int | None = None) -> None:
        pass

    def delete(self, key: str, namespace: str) -> None:
        pass

    def clear(self, namespace: str | None = None) -> None:
        pass


# ============================================================================
# In-Memory Cache Backend (bounded, TTL, thread-safe)
# ============================================================================

class MemoryCacheBackend(CacheBackend):
    """
    Bounded in-process cache.

    Entries expire ``ttl_seconds`` after they were written. When full, the
    oldest written entry is evicted. Entries are replaced whole, never
    mutated in place; a lock guards the table so concurrent jobs can share
    one instance.
    """

    def __init__(self, max_entries: int = 256, clock: Clock = time.monotonic):
        """
        Initialize memory cache backend.

        Args:
            max_entries: Capacity before oldest-entry eviction kicks in
            clock: Monotonic time source in seconds (injectable for tests)
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[tuple[str, str], tuple[float | None, dict]] = OrderedDict()
        self._lock = threading.Lock()
        self.logger = logger.bind(backend="MemoryCache")

    def get(self, key: str, namespace: str) -> dict | None:
        with self._lock:
            entry = self._entries.get((namespace, key))
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[(namespace, key)]
                self.logger.debug("cache_expired", namespace=namespace, key=key[:16])
                return None
            return value

    def set(self, key: str, namespace: str, value: dict, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._entries.pop((namespace, key), None)
            self._entries[(namespace, key)] = (expires_at, dict(value))
            while len(self._entries) > self.max_entries:
                (evicted_ns, evicted_key), _ = self._entries.popitem(last=False)
                self.logger.debug("cache_evicted", namespace=evicted_ns, key=evicted_key[:16])

    def delete(self, key: str, namespace: str) -> None:
        with self._lock:
            self._entries.pop((namespace, key), None)

    def clear(self, namespace: str | None = None) -> None:
        with self._lock:
            if namespace is None:
                self._entries.clear()
            else:
                for entry_key in [k for k in self._entries if k[0] == namespace]:
                    del self._entries[entry_key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ============================================================================
# File-Based Cache Backend (persists across CLI runs)
# ============================================================================

class FileCacheBackend(CacheBackend):
    """
    Local file-based cache backend.

    Stores cache entries as JSON files: {cache_dir}/{namespace}-{key_short}.json
    """

    def __init__(self, cache_dir: Path | str = "./.resumetailor/cache", clock: Clock = time.time):
        """
        Initialize file cache backend.

        Args:
            cache_dir: Directory to store cache files
            clock: Wall-clock time source in seconds
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self.logger = logger.bind(backend="FileCache")

    def _get_cache_path(self, key: str, namespace: str) -> Path:
        return self.cache_dir / f"{namespace}-{key[:16]}.json"

    def get(self, key: str, namespace: str) -> dict | None:
        cache_file = self._get_cache_path(key, namespace)
        if not cache_file.exists():
            return None

        try:
            with open(cache_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning("cache_load_failed", cache_file=str(cache_file), error=str(e))
            return None

        if data.get("hash") != key:
            self.logger.warning("cache_hash_mismatch", namespace=namespace, key=key[:16])
            return None

        expires_at = data.get("expires_at")
        if expires_at is not None and self._clock() >= expires_at:
            cache_file.unlink(missing_ok=True)
            self.logger.debug("cache_expired", namespace=namespace, key=key[:16])
            return None

        return data.get("result")

    def set(self, key: str, namespace: str, value: dict, ttl_seconds: int | None = None) -> None:
        cache_file = self._get_cache_path(key, namespace)
        now = self._clock()
        cache_data = {
            "hash": key,
            "namespace": namespace,
            "result": value,
            "cached_at": now,
            "expires_at": now + ttl_seconds if ttl_seconds else None,
        }
        # Write-then-rename so readers never see a half-written entry
        tmp_file = cache_file.with_suffix(".tmp")
        try:
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(cache_data, f, indent=2, default=str)
            tmp_file.replace(cache_file)
        except OSError as e:
            self.logger.warning("cache_save_failed", cache_file=str(cache_file), error=str(e))

    def delete(self, key: str, namespace: str) -> None:
        self._get_cache_path(key, namespace).unlink(missing_ok=True)

    def clear(self, namespace: str | None = None) -> None:
        pattern = f"{namespace}-*.json" if namespace else "*.json"
        deleted = 0
        for cache_file in self.cache_dir.glob(pattern):
            cache_file.unlink(missing_ok=True)
            deleted += 1
        self.logger.info("cache_cleared", namespace=namespace or "all", deleted=deleted)


# ============================================================================
# Completion Cache (High-Level Interface)
# ============================================================================

class CompletionCache:
    """Caches completion text keyed by (model, temperature, prompt)."""

    NAMESPACE = "completion"

    def __init__(self, backend: CacheBackend | None = None, ttl_seconds: int | None = 3600):
        """
        Initialize completion cache.

        Args:
            backend: Cache backend to use. Defaults to a fresh MemoryCacheBackend.
            ttl_seconds: Lifetime of each entry
        """
        self.backend = backend if backend is not None else MemoryCacheBackend()
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def compute_hash(*args: Any) -> str:
        """SHA256 over the JSON serialization of args."""
        json_str = json.dumps(args, sort_keys=True, default=str)
        return hashlib.sha256(json_str.encode()).hexdigest()

    def get(self, model: str, temperature: float, prompt: str) -> str | None:
        entry = self.backend.get(self.compute_hash(model, temperature, prompt), self.NAMESPACE)
        if entry is None:
            return None
        return entry.get("text")

    def set(self, model: str, temperature: float, prompt: str, text: str) -> None:
        self.backend.set(
            self.compute_hash(model, temperature, prompt),
            self.NAMESPACE,
            {"text": text, "model": model},
            ttl_seconds=self.ttl_seconds,
        )

    def clear(self) -> None:
        self.backend.clear(self.NAMESPACE)


def create_completion_cache(
    settings: GatewaySettings,
    cache_dir: Path | str | None = None,
    disable_cache: bool = False,
) -> CompletionCache:
    """
    Build a completion cache from gateway settings.

    Args:
        settings: Gateway settings (backend kind, TTL, capacity)
        cache_dir: Directory for the file backend
        disable_cache: Force a NoOpCacheBackend (e.g., --no-cache)

    Returns:
        CompletionCache instance
    """
    if disable_cache or settings.cache_backend == "none":
        backend: CacheBackend = NoOpCacheBackend()
    elif settings.cache_backend == "file":
        backend = FileCacheBackend(cache_dir or "./.resumetailor/cache")
    else:
        backend = MemoryCacheBackend(max_entries=settings.cache_max_entries)
    return CompletionCache(backend, ttl_seconds=settings.cache_ttl_seconds)
