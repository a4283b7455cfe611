"""Cache configuration for the rendered-message cache.

Provides a single frozen dataclass that encapsulates all cache-related
parameters, shared by LRUCache.from_config() and TranslatorConfig.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass

from i18ncore.constants import DEFAULT_CACHE_SIZE, DEFAULT_SWEEP_INTERVAL

__all__ = ["CacheConfig"]


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Immutable configuration for rendered-message caching.

    All fields have sensible defaults; constructing ``CacheConfig()`` with
    no arguments produces a usable configuration.

    Attributes:
        size: Maximum cache entries (default: 1000). Zero or negative
            disables caching: every set is a no-op, every get a miss.
        ttl: Default entry lifetime in seconds (default: 0.0, never expires).
        sweep_interval: Seconds between background sweeps of expired
            entries (default: 60.0). Only relevant when entries can expire.

    Example:
        >>> config = CacheConfig(size=500, ttl=300.0)
        >>> config.enabled
        True
        >>> CacheConfig(size=0).enabled
        False
    """

    size: int = DEFAULT_CACHE_SIZE
    ttl: float = 0.0
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL

    def __post_init__(self) -> None:
        """Validate configuration values at construction time.

        Raises:
            ValueError: If ttl is negative or sweep_interval is not positive.
        """
        if self.ttl < 0:
            msg = "ttl must be non-negative"
            raise ValueError(msg)
        if self.sweep_interval <= 0:
            msg = "sweep_interval must be positive"
            raise ValueError(msg)

    @property
    def enabled(self) -> bool:
        """True when the configured capacity allows caching."""
        return self.size > 0
