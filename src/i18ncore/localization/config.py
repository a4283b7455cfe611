"""Translator configuration.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from i18ncore.constants import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_FALLBACK_LOCALE,
    DEFAULT_PLURAL_SEPARATOR,
    DEFAULT_SWEEP_INTERVAL,
)
from i18ncore.locale_utils import normalize_locale
from i18ncore.runtime.cache_config import CacheConfig

__all__ = ["TranslatorConfig"]

_OPTIONS = frozenset(
    {"max_size", "ttl", "sweep_interval", "fallback_locale", "plural_separator", "escape"}
)


@dataclass(frozen=True, slots=True)
class TranslatorConfig:
    """Immutable Translator configuration.

    Attributes:
        cache: Rendered-message cache settings
        fallback_locale: Locale(s) tried after the requested locale and its
            language subtag, in order
        plural_separator: Separator between forms of delimited plural strings
        escape: HTML-escape interpolated values in rendered messages

    Example:
        >>> config = TranslatorConfig.from_mapping({"max_size": 500, "fallback_locale": "en"})
        >>> config.cache.size
        500
        >>> config.fallback_locales
        ('en',)
    """

    cache: CacheConfig = field(default_factory=CacheConfig)
    fallback_locale: str | tuple[str, ...] = DEFAULT_FALLBACK_LOCALE
    plural_separator: str = DEFAULT_PLURAL_SEPARATOR
    escape: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values at construction time.

        Raises:
            ValueError: If plural_separator is empty
            TypeError: If fallback_locale is neither a string nor a tuple of strings
        """
        if not self.plural_separator:
            msg = "plural_separator must be a non-empty string"
            raise ValueError(msg)
        match self.fallback_locale:
            case str():
                pass
            case tuple() if all(isinstance(item, str) for item in self.fallback_locale):
                pass
            case _:
                msg = (
                    "fallback_locale must be a string or tuple of strings, "
                    f"got {type(self.fallback_locale).__name__}"
                )
                raise TypeError(msg)

    @property
    def fallback_locales(self) -> tuple[str, ...]:
        """Normalized fallback locales, empty strings dropped."""
        raw = (
            (self.fallback_locale,)
            if isinstance(self.fallback_locale, str)
            else self.fallback_locale
        )
        return tuple(normalize_locale(item) for item in raw if item.strip())

    @classmethod
    def from_mapping(cls, options: Mapping[str, object]) -> TranslatorConfig:
        """Build a configuration from plain option names.

        Recognized options: max_size, ttl, sweep_interval, fallback_locale,
        plural_separator, escape. fallback_locale may be a string or a list
        of strings.

        Raises:
            ValueError: If an option name is not recognized or a value is invalid
            TypeError: If an option value has the wrong type
        """
        unknown = set(options) - _OPTIONS
        if unknown:
            msg = f"Unknown translator option(s): {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        size = options.get("max_size", DEFAULT_CACHE_SIZE)
        ttl = options.get("ttl") or 0.0
        sweep_interval = options.get("sweep_interval", DEFAULT_SWEEP_INTERVAL)
        if not isinstance(size, int) or isinstance(size, bool):
            msg = f"max_size must be an integer, got {type(size).__name__}"
            raise TypeError(msg)
        if not isinstance(ttl, int | float) or not isinstance(sweep_interval, int | float):
            msg = "ttl and sweep_interval must be numbers of seconds"
            raise TypeError(msg)

        escape = options.get("escape", False)
        if not isinstance(escape, bool):
            msg = f"escape must be a boolean, got {type(escape).__name__}"
            raise TypeError(msg)

        fallback = options.get("fallback_locale", DEFAULT_FALLBACK_LOCALE)
        if isinstance(fallback, list):
            fallback = tuple(fallback)

        return cls(
            cache=CacheConfig(size=size, ttl=float(ttl), sweep_interval=float(sweep_interval)),
            fallback_locale=fallback,  # type: ignore[arg-type]
            plural_separator=str(options.get("plural_separator", DEFAULT_PLURAL_SEPARATOR)),
            escape=escape,
        )
