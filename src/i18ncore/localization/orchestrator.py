"""Message resolution with locale fallback, pluralization and caching.

Translator turns (key, locale, params, count) into display text:

    1. Build the cache key from every input that affects the output
    2. Return a cached rendering when present
    3. Walk the fallback chain (exact locale -> language -> configured
       fallbacks) until a message tree holds a resolvable leaf for the key
    4. Missing everywhere: return default_value, else the key itself
    5. Plain string without count: interpolate
    6. Plural-bearing leaf or explicit count: select a form, then interpolate
       ($t(key) references in the text render the referenced message in place)
    7. Cache the rendering and return it

Resolution never raises for data problems. Callbacks (on_fallback,
on_missing, locale subscribers) are caller code and their exceptions
propagate.

Key architectural decisions:
- Message trees are replaced copy-on-write, so translate() reads a
  consistent snapshot without holding the lock
- A generation counter keeps renderings computed against superseded trees
  out of the cache
- Locale changes invalidate only entries of the previous locale

Python 3.13+.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from threading import RLock
from typing import TYPE_CHECKING, Any, overload

from i18ncore.constants import MAX_NESTING_DEPTH, NESTING_PREFIX, NESTING_SUFFIX
from i18ncore.locale_utils import fallback_chain, normalize_locale
from i18ncore.localization.config import TranslatorConfig
from i18ncore.localization.events import FallbackInfo, LocaleChangeInfo, MissingKeyInfo
from i18ncore.localization.types import (
    Locale,
    MessageKey,
    MessageTree,
    RequestCacheKey,
    TranslationRequest,
)
from i18ncore.runtime.cache import LRUCache
from i18ncore.runtime.interpolation import InterpolationParams, interpolate, resolve_path
from i18ncore.runtime.pluralization import PluralizationEngine, is_plural_forms

if TYPE_CHECKING:
    from i18ncore.runtime.cache import Cache
    from i18ncore.runtime.plural_rules import Count

__all__ = ["Translator"]

logger = logging.getLogger(__name__)

type LocaleSubscriber = Callable[[LocaleChangeInfo], None]

# One capture group, so split() alternates literal text and nested keys
_NESTING = re.compile(f"{re.escape(NESTING_PREFIX)}(.+?){re.escape(NESTING_SUFFIX)}")


def _is_leaf(value: object) -> bool:
    return isinstance(value, str) or is_plural_forms(value)


def _copy_tree(value: object) -> object:
    match value:
        case Mapping():
            return {str(k): _copy_tree(v) for k, v in value.items()}
        case list() | tuple():
            return [_copy_tree(v) for v in value]
        case _:
            return value


def _merge_trees(base: Mapping[str, object], update: Mapping[str, object]) -> dict[str, object]:
    """Deep-merge update into a copy of base. Neither input is mutated."""
    merged: dict[str, object] = {str(k): _copy_tree(v) for k, v in base.items()}
    for key, value in update.items():
        current = merged.get(str(key))
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[str(key)] = _merge_trees(current, value)
        else:
            merged[str(key)] = _copy_tree(value)
    return merged


class Translator:
    """Resolve message keys to display text across a locale fallback chain.

    Example:
        >>> messages = {
        ...     "en": {"greeting": "Hello, {{name}}!", "items": "one:1 item|other:{{count}} items"},
        ...     "zh": {"greeting": "你好，{{name}}！"},
        ... }
        >>> translator = Translator("zh-CN", messages)
        >>> translator.translate("greeting", params={"name": "Ada"})
        '你好，Ada！'
        >>> translator.plural("items", 3)
        '3 items'
        >>> translator.translate("nope", default_value="Fallback")
        'Fallback'
        >>> translator.destroy()

    Attributes:
        config: Immutable configuration the translator was built with
    """

    __slots__ = (
        "_cache",
        "_destroyed",
        "_generation",
        "_locale",
        "_lock",
        "_messages",
        "_on_fallback",
        "_on_missing",
        "_plurals",
        "_subscribers",
        "_unhashable_skips",
        "config",
    )

    def __init__(
        self,
        locale: Locale,
        messages: Mapping[Locale, MessageTree] | None = None,
        *,
        config: TranslatorConfig | None = None,
        cache: Cache[RequestCacheKey, str] | None = None,
        plurals: PluralizationEngine | None = None,
        on_fallback: Callable[[FallbackInfo], None] | None = None,
        on_missing: Callable[[MissingKeyInfo], None] | None = None,
    ) -> None:
        """Initialize the translator.

        Args:
            locale: Active locale (normalized, e.g. 'zh_cn' -> 'zh-CN')
            messages: Message tree per locale; copied, never mutated
            config: Configuration (defaults to TranslatorConfig())
            cache: Rendered-message cache; defaults to an LRUCache built
                from config.cache
            plurals: Pluralization engine; defaults to one using
                config.plural_separator
            on_fallback: Called when a key resolves from another locale
            on_missing: Called when a key resolves in no locale

        Raises:
            ValueError: If locale is empty
            TypeError: If a message tree is not a mapping
        """
        normalized = normalize_locale(locale)
        if not normalized:
            msg = "locale must be a non-empty locale tag"
            raise ValueError(msg)

        self.config = config if config is not None else TranslatorConfig()
        self._locale: Locale = normalized
        self._cache: Cache[RequestCacheKey, str] = (
            cache if cache is not None else LRUCache.from_config(self.config.cache)
        )
        self._plurals = (
            plurals
            if plurals is not None
            else PluralizationEngine(self.config.plural_separator)
        )
        self._on_fallback = on_fallback
        self._on_missing = on_missing
        self._lock = RLock()
        self._messages: dict[Locale, dict[str, object]] = {}
        self._subscribers: list[LocaleSubscriber] = []
        self._generation = 0
        self._unhashable_skips = 0
        self._destroyed = False

        for tree_locale, tree in (messages or {}).items():
            self.add_messages(tree_locale, tree)

    def __repr__(self) -> str:
        """Return string representation for debugging.

        Example:
            >>> repr(Translator("en", {"en": {}}))
            "Translator(locale='en', locales=('en',))"
        """
        return f"Translator(locale={self._locale!r}, locales={self.locales!r})"

    # ------------------------------------------------------------------
    # Locale state
    # ------------------------------------------------------------------

    @property
    def locale(self) -> Locale:
        """Active locale (normalized)."""
        return self._locale

    @property
    def locales(self) -> tuple[Locale, ...]:
        """Locales that have a message tree, in registration order."""
        return tuple(self._messages)

    def fallback_chain(self, locale: Locale | None = None) -> tuple[Locale, ...]:
        """Locales tried for a request, in order.

        Example:
            >>> Translator("en").fallback_chain("zh_CN")
            ('zh-CN', 'zh', 'en')
        """
        requested = normalize_locale(locale) if locale else self._locale
        return fallback_chain(requested, self.config.fallback_locales)

    def set_locale(self, locale: Locale) -> None:
        """Switch the active locale.

        Cached renderings of the previous locale are invalidated; other
        locales' entries stay valid. Subscribers are notified after the
        switch. Setting the current locale again is a no-op.

        Raises:
            ValueError: If locale is empty
        """
        normalized = normalize_locale(locale)
        if not normalized:
            msg = "locale must be a non-empty locale tag"
            raise ValueError(msg)

        with self._lock:
            previous = self._locale
            if normalized == previous:
                return
            self._locale = normalized
            removed = self._invalidate_locale(previous)
            subscribers = tuple(self._subscribers)

        logger.debug(
            "Locale changed %s -> %s (%d cached entries invalidated)",
            previous,
            normalized,
            removed,
        )
        info = LocaleChangeInfo(previous_locale=previous, locale=normalized)
        for subscriber in subscribers:
            subscriber(info)

    def _invalidate_locale(self, locale: Locale) -> int:
        invalidate = getattr(self._cache, "invalidate", None)
        if invalidate is None:
            removed = self._cache.size
            self._cache.clear()
            return removed
        return int(invalidate(lambda cache_key: cache_key[0] == locale))

    def subscribe(self, callback: LocaleSubscriber) -> Callable[[], None]:
        """Register a locale-change listener.

        Returns:
            Function that removes the listener (idempotent)
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Message trees
    # ------------------------------------------------------------------

    def add_messages(self, locale: Locale, tree: MessageTree, *, merge: bool = True) -> None:
        """Register messages for a locale.

        With merge=True the tree is deep-merged into existing messages (new
        leaves win); otherwise it replaces them. The caller's tree is copied
        and never mutated. The rendered-message cache is cleared.

        Raises:
            ValueError: If locale is empty
            TypeError: If tree is not a mapping
        """
        normalized = normalize_locale(locale)
        if not normalized:
            msg = "locale must be a non-empty locale tag"
            raise ValueError(msg)
        if not isinstance(tree, Mapping):
            msg = f"Message tree for '{normalized}' must be a mapping, got {type(tree).__name__}"
            raise TypeError(msg)

        with self._lock:
            existing = self._messages.get(normalized)
            if merge and existing is not None:
                updated = _merge_trees(existing, tree)
            else:
                updated = _merge_trees({}, tree)
            self._messages = {**self._messages, normalized: updated}
            self._generation += 1
            self._cache.clear()
        logger.debug("Loaded %d top-level message keys for %s", len(tree), normalized)

    def remove_locale(self, locale: Locale) -> bool:
        """Drop a locale's messages. Returns True if the locale was loaded."""
        normalized = normalize_locale(locale)
        with self._lock:
            if normalized not in self._messages:
                return False
            self._messages = {k: v for k, v in self._messages.items() if k != normalized}
            self._generation += 1
            self._cache.clear()
        logger.debug("Removed messages for %s", normalized)
        return True

    def _lookup(
        self, key: MessageKey, chain: Sequence[Locale]
    ) -> tuple[Locale, object] | None:
        messages = self._messages
        for candidate in chain:
            tree = messages.get(candidate)
            if tree is None:
                continue
            found, value = resolve_path(tree, key)
            if found and _is_leaf(value):
                return (candidate, value)
        return None

    def exists(self, key: MessageKey, locale: Locale | None = None) -> bool:
        """True if any locale in the fallback chain holds a leaf for key."""
        return self._lookup(key, self.fallback_chain(locale)) is not None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def translate(
        self,
        key: MessageKey,
        *,
        locale: Locale | None = None,
        params: InterpolationParams | None = None,
        count: Count | None = None,
        default_value: str | None = None,
    ) -> str:
        """Resolve a key to display text.

        Args:
            key: Dotted message key (e.g. 'cart.items')
            locale: Locale for this call (defaults to the active locale)
            params: Interpolation parameters
            count: Plural count; also available as {{count}}
            default_value: Returned (verbatim) when the key is missing everywhere

        Returns:
            Rendered text; never raises for missing data
        """
        requested = normalize_locale(locale) if locale else self._locale
        request = TranslationRequest(key, requested, params, count, default_value)

        cache_key = request.cache_key()
        if cache_key is None:
            with self._lock:
                self._unhashable_skips += 1
        else:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        generation = self._generation
        rendered = self._render(request)

        if cache_key is not None:
            with self._lock:
                # Trees changed while rendering: do not cache a stale result
                if generation == self._generation:
                    self._cache.set(cache_key, rendered)
        return rendered

    t = translate

    def _render(self, request: TranslationRequest, depth: int = 0) -> str:
        chain = fallback_chain(request.locale, self.config.fallback_locales)
        resolved = self._lookup(request.key, chain)

        if resolved is None:
            logger.warning(
                "Missing translation for key '%s' in locale '%s'", request.key, request.locale
            )
            if self._on_missing is not None:
                self._on_missing(
                    MissingKeyInfo(locale=request.locale, key=request.key, chain=chain)
                )
            return request.default_value if request.default_value is not None else request.key

        resolved_locale, leaf = resolved
        if resolved_locale != request.locale:
            logger.debug(
                "Key '%s' resolved from %s (requested %s)",
                request.key,
                resolved_locale,
                request.locale,
            )
            if self._on_fallback is not None:
                self._on_fallback(
                    FallbackInfo(
                        requested_locale=request.locale,
                        resolved_locale=resolved_locale,
                        key=request.key,
                    )
                )

        # Forms and format hints follow the language the text is written in
        params = request.params
        if (
            isinstance(leaf, str)
            and request.count is None
            and not self._plurals.has_plural_forms(leaf)
        ):
            template = leaf
        else:
            template = self._plurals.select_plural(
                leaf,  # type: ignore[arg-type]
                request.count,
                resolved_locale,
            )
            if request.count is not None:
                merged = dict(params) if isinstance(params, Mapping) else {}
                merged["count"] = request.count
                params = merged

        if NESTING_PREFIX not in template:
            return interpolate(template, params, resolved_locale, escape=self.config.escape)

        # Literal text is interpolated; nested messages arrive already rendered
        parts = _NESTING.split(template)
        for index, part in enumerate(parts):
            if index % 2 == 0:
                parts[index] = interpolate(
                    part, params, resolved_locale, escape=self.config.escape
                )
            else:
                parts[index] = self._render_nested(part.strip(), request, depth)
        return "".join(parts)

    def _render_nested(self, key: MessageKey, request: TranslationRequest, depth: int) -> str:
        """Render a ``$t(key)`` reference with the caller's locale, params and count."""
        token = f"{NESTING_PREFIX}{key}{NESTING_SUFFIX}"
        if depth >= MAX_NESTING_DEPTH:
            logger.warning(
                "Nested reference '%s' in '%s' exceeds depth %d", key, request.key, depth
            )
            return token
        # A missing nested key keeps its reference visible
        nested = TranslationRequest(key, request.locale, request.params, request.count, token)
        return self._render(nested, depth + 1)

    def plural(self, key: MessageKey, count: Count, **options: Any) -> str:
        """Translate a plural-bearing key for a count."""
        return self.translate(key, count=count, **options)

    @overload
    def translate_many(self, keys: Mapping[str, MessageKey], **options: Any) -> dict[str, str]: ...

    @overload
    def translate_many(self, keys: Sequence[MessageKey], **options: Any) -> list[str]: ...

    def translate_many(
        self, keys: Mapping[str, MessageKey] | Sequence[MessageKey], **options: Any
    ) -> dict[str, str] | list[str]:
        """Translate several keys with shared options.

        A sequence of keys yields a list in the same order; a mapping of
        alias -> key yields a mapping of alias -> text.

        Example:
            >>> translator = Translator("en", {"en": {"ok": "OK", "cancel": "Cancel"}})
            >>> translator.translate_many(["ok", "cancel"])
            ['OK', 'Cancel']
            >>> translator.translate_many({"confirm": "ok"})
            {'confirm': 'OK'}
        """
        if isinstance(keys, Mapping):
            return {alias: self.translate(key, **options) for alias, key in keys.items()}
        return [self.translate(key, **options) for key in keys]

    # ------------------------------------------------------------------
    # Cache management and lifecycle
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        """Clear rendered messages and memoized plural categories."""
        with self._lock:
            self._cache.clear()
            self._plurals.clear_cache()

    def get_cache_stats(self) -> dict[str, int | float]:
        """Get rendered-message cache statistics.

        Returns:
            The cache's own statistics (size, max_size, hits, misses,
            hit_rate, evictions, expirations for the default LRUCache) plus:
            - unhashable_skips (int): Requests not cached because params
              could not be made hashable
            - locales (int): Number of loaded locales
        """
        get_stats = getattr(self._cache, "get_stats", None)
        stats: dict[str, int | float] = (
            dict(get_stats()) if get_stats is not None else {"size": self._cache.size}
        )
        with self._lock:
            stats["unhashable_skips"] = self._unhashable_skips
            stats["locales"] = len(self._messages)
        return stats

    @property
    def cache(self) -> Cache[RequestCacheKey, str]:
        """The rendered-message cache."""
        return self._cache

    @property
    def plurals(self) -> PluralizationEngine:
        """The pluralization engine (register locale rules here)."""
        return self._plurals

    def destroy(self) -> None:
        """Release the cache's background resources and drop listeners. Idempotent."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
            self._subscribers.clear()
        self._cache.destroy()
        logger.debug("Translator destroyed (locale %s)", self._locale)

    def __enter__(self) -> Translator:
        """Enter context manager; destroy() runs on exit."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit context manager. Does not suppress exceptions."""
        self.destroy()
