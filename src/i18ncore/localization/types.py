"""Type aliases and request records for the localization domain.

Provides semantic type aliases used throughout the localization package
and by user code when annotating Translator call sites.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from i18ncore.runtime.cache import HashableValue, freeze_params
from i18ncore.runtime.plural_rules import Count

__all__ = [
    "Locale",
    "MessageKey",
    "MessageTree",
    "RequestCacheKey",
    "TranslationRequest",
]

type MessageKey = str
"""Dotted path into a message tree (e.g., 'app.title', 'cart.items')."""

type Locale = str
"""BCP-47 style locale tag (e.g., 'en', 'zh-CN'); '_' separators are accepted."""

type MessageTree = Mapping[str, object]
"""Nested messages; leaves are strings or plural-forms mappings."""

type RequestCacheKey = tuple[
    str, str, HashableValue, tuple[tuple[str, HashableValue], ...], str | None
]


@dataclass(frozen=True, slots=True)
class TranslationRequest:
    """Immutable description of one translate() call.

    Attributes:
        key: Message key to resolve
        locale: Normalized locale the request resolves in
        params: Interpolation parameters (not copied; treated as read-only)
        count: Plural count, or None
        default_value: Text returned when the key is missing everywhere
    """

    key: MessageKey
    locale: Locale
    params: Mapping[str, object] | None = None
    count: Count | None = None
    default_value: str | None = None

    def cache_key(self) -> RequestCacheKey | None:
        """Build the rendered-message cache key.

        Every input that can change the rendered text is part of the key.
        Returns None when params cannot be made hashable; such requests
        bypass the cache.

        Example:
            >>> TranslationRequest("greeting", "en", {"name": "Ada"}).cache_key()
            ('en', 'greeting', None, (('name', ('str', 'Ada')),), None)
        """
        frozen = freeze_params(self.params)
        if frozen is None:
            return None
        count: HashableValue = (
            None if self.count is None else (type(self.count).__qualname__, self.count)
        )
        return (self.locale, self.key, count, frozen, self.default_value)
