"""Pluralization engine: plural category selection and plural-form rendering.

Plural forms are written either as a mapping or as a delimited string:

    "one:item|other:items"
    "0:no items|one:one item|other:{{count}} items"

Each segment is ``key:template``; the first colon is the delimiter, so
templates may contain colons. Keys are plural category names or literal
integers.

Selection order (graceful degradation, never raises):
    1. literal key equal to the count ("0", "1", ...)
    2. the category chosen by the locale's plural rule
    3. "other"
    4. the first available form
    5. the original input unmodified

A literal key always wins over a category key.

Python 3.13+.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from threading import RLock

from i18ncore.constants import (
    DEFAULT_PLURAL_SEPARATOR,
    PLURAL_CATEGORY_CACHE_SIZE,
    PLURAL_KEY_DELIMITER,
)
from i18ncore.diagnostics import PluralRuleError
from i18ncore.enums import PluralCategory
from i18ncore.locale_utils import language_of, normalize_locale
from i18ncore.runtime.interpolation import InterpolationParams, interpolate
from i18ncore.runtime.plural_rules import (
    Count,
    PluralRule,
    cldr_categories,
    cldr_rule,
    default_plural_rule,
)

__all__ = ["PluralForms", "PluralizationEngine", "count_literal", "is_plural_forms"]

logger = logging.getLogger(__name__)

type PluralForms = Mapping[str, str]
"""Mapping from category name or literal count to template."""

_CATEGORIES = PluralCategory.values()

# Counts sampled to discover which categories a custom rule can produce
_SAMPLE_COUNTS = range(201)


def count_literal(count: Count) -> str:
    """Render a count the way literal plural keys are written.

    Integral values drop their fractional part so that 1.0 matches key "1".

    Example:
        >>> count_literal(1.0)
        '1'
        >>> count_literal(2.5)
        '2.5'
    """
    if isinstance(count, float) and not count.is_integer():
        return str(count)
    try:
        integral = int(count)
    except (OverflowError, ValueError):
        return str(count)
    return str(integral) if integral == count else str(count)


def _is_plural_key(key: object) -> bool:
    if not isinstance(key, str):
        return False
    if key in _CATEGORIES:
        return True
    digits = key[1:] if key.startswith("-") else key
    return digits.isdecimal()


def is_plural_forms(value: object) -> bool:
    """Check whether a value is a plural-forms mapping.

    A plural-forms mapping is non-empty, every key is a plural category or an
    integer literal, and every value is a string. Nested message subtrees
    fail this check.
    """
    if not isinstance(value, Mapping) or not value:
        return False
    return all(_is_plural_key(key) and isinstance(form, str) for key, form in value.items())


class PluralizationEngine:
    """Plural category selection and plural-form formatting.

    One rule is bound per locale at any time. Lookup tries the exact
    (normalized) locale, then its language subtag, then the default rule,
    so every locale has a resolvable rule.

    Categories are memoized per (count, locale) in a bounded cache. When the
    cache is full the oldest entry is evicted before inserting.

    Example:
        >>> engine = PluralizationEngine()
        >>> forms = engine.parse_plural_string("one:item|other:items")
        >>> engine.select_plural(forms, 1, "en")
        'item'
        >>> engine.format("0:no items|one:one item|other:{{count}} items", 7, "en")
        '7 items'

    Attributes:
        separator: Default form separator for delimited plural strings
    """

    __slots__ = (
        "_category_cache",
        "_category_cache_size",
        "_cldr_locales",
        "_default_rule",
        "_lock",
        "_rules",
        "separator",
    )

    def __init__(
        self,
        separator: str = DEFAULT_PLURAL_SEPARATOR,
        *,
        default_rule: PluralRule = default_plural_rule,
        category_cache_size: int = PLURAL_CATEGORY_CACHE_SIZE,
    ) -> None:
        """Initialize the engine.

        Args:
            separator: Form separator for delimited plural strings (default "|")
            default_rule: Rule for locales without a registration
            category_cache_size: Bound of the category memo (<= 0 disables it)

        Raises:
            ValueError: If separator is empty
            PluralRuleError: If default_rule is not callable
        """
        if not separator:
            msg = "separator must be a non-empty string"
            raise ValueError(msg)
        if not callable(default_rule):
            msg = f"default_rule must be callable, got {type(default_rule).__name__}"
            raise PluralRuleError(msg)

        self.separator = separator
        self._default_rule = default_rule
        self._rules: dict[str, PluralRule] = {}
        self._cldr_locales: set[str] = set()
        self._category_cache: dict[tuple[str, str], str] = {}
        self._category_cache_size = category_cache_size
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def add_rule(self, locale: str, rule: PluralRule) -> None:
        """Register or override the plural rule for a locale.

        Args:
            locale: Locale tag (normalized internally)
            rule: Pure function (count, locale) -> category name

        Raises:
            PluralRuleError: If rule is not callable
        """
        if not callable(rule):
            msg = f"Plural rule for '{locale}' must be callable, got {type(rule).__name__}"
            raise PluralRuleError(msg)

        key = normalize_locale(locale)
        with self._lock:
            self._rules[key] = rule
            self._cldr_locales.discard(key)
            self._category_cache.clear()
        logger.debug("Registered plural rule for locale: %s", key)

    def add_cldr_rule(self, locale: str) -> None:
        """Bind Babel's CLDR plural rule to a locale."""
        key = normalize_locale(locale)
        self.add_rule(key, cldr_rule(key))
        with self._lock:
            self._cldr_locales.add(key)

    def _lookup(self, locale: str) -> tuple[str | None, PluralRule]:
        key = normalize_locale(locale)
        for candidate in (key, language_of(key)):
            rule = self._rules.get(candidate)
            if rule is not None:
                return (candidate, rule)
        return (None, self._default_rule)

    def get_rule(self, locale: str) -> PluralRule:
        """Return the rule bound to a locale, or the default rule."""
        with self._lock:
            return self._lookup(locale)[1]

    def get_category(self, count: Count, locale: str) -> str:
        """Determine the plural category for a count in a locale.

        A rule returning something other than one of the six categories is
        logged and treated as 'other'.
        """
        # repr keeps 1 and 1.0 apart: CLDR treats visible fraction digits differently
        cache_key = (repr(count), normalize_locale(locale))
        with self._lock:
            cached = self._category_cache.get(cache_key)
            if cached is not None:
                return cached
            rule = self._lookup(locale)[1]

        try:
            category = str(rule(count, cache_key[1]))
        except (ArithmeticError, TypeError, ValueError) as e:
            logger.warning("Plural rule for '%s' failed on %r: %s", locale, count, e)
            category = PluralCategory.OTHER.value

        if category not in _CATEGORIES:
            logger.warning(
                "Plural rule for '%s' returned invalid category %r; using 'other'",
                locale,
                category,
            )
            category = PluralCategory.OTHER.value

        if self._category_cache_size > 0:
            with self._lock:
                if len(self._category_cache) >= self._category_cache_size:
                    # dict preserves insertion order: first key is the oldest
                    del self._category_cache[next(iter(self._category_cache))]
                self._category_cache[cache_key] = category
        return category

    def get_supported_categories(self, locale: str) -> tuple[str, ...]:
        """Return the categories the locale's rule can produce, in CLDR order.

        CLDR-bound rules report Babel's table. Other rules are sampled over
        counts 0..200. 'other' is always included.
        """
        with self._lock:
            bound, rule = self._lookup(locale)
            is_cldr = bound is not None and bound in self._cldr_locales

        if is_cldr and bound is not None:
            return PluralCategory.ordered(cldr_categories(bound))

        seen = {PluralCategory.OTHER.value}
        for n in _SAMPLE_COUNTS:
            seen.add(self.get_category(n, locale))
        return PluralCategory.ordered(seen)

    def clear_cache(self) -> None:
        """Clear the category memo."""
        with self._lock:
            self._category_cache.clear()

    @property
    def category_cache_size(self) -> int:
        """Current number of memoized categories."""
        with self._lock:
            return len(self._category_cache)

    # ------------------------------------------------------------------
    # Plural-form strings
    # ------------------------------------------------------------------

    def parse_plural_string(self, message: str, separator: str | None = None) -> dict[str, str]:
        """Split a delimited plural string into a forms mapping.

        Segments without a key become the 'other' form.

        Example:
            >>> PluralizationEngine().parse_plural_string("one:item|other:items")
            {'one': 'item', 'other': 'items'}
        """
        forms: dict[str, str] = {}
        for part in message.split(separator or self.separator):
            key, delimiter, template = part.partition(PLURAL_KEY_DELIMITER)
            if delimiter and key.strip():
                forms[key.strip()] = template.strip()
            else:
                forms[PluralCategory.OTHER.value] = part.strip()
        return forms

    def has_plural_forms(self, message: object, separator: str | None = None) -> bool:
        """Check whether a raw message carries plural forms.

        A string qualifies when it contains the separator and at least one
        segment has a key delimiter. A mapping qualifies when it is a
        plural-forms mapping.
        """
        if isinstance(message, Mapping):
            return is_plural_forms(message)
        if not isinstance(message, str) or not message:
            return False
        sep = separator or self.separator
        if sep not in message:
            return False
        return any(PLURAL_KEY_DELIMITER in part for part in message.split(sep))

    def extract_plural_forms(self, message: str, separator: str | None = None) -> list[str]:
        """Return every form template of a message (the message itself if none)."""
        if not self.has_plural_forms(message, separator):
            return [message]
        return list(self.parse_plural_string(message, separator).values())

    def validate_plural_forms(self, messages: str | PluralForms, locale: str) -> bool:
        """Check that every category required by the locale has a form.

        Literal-count keys do not satisfy category requirements. Intended for
        tooling and tests; not called on the resolution path.
        """
        forms = (
            self.parse_plural_string(messages) if isinstance(messages, str) else messages
        )
        return all(category in forms for category in self.get_supported_categories(locale))

    # ------------------------------------------------------------------
    # Selection and formatting
    # ------------------------------------------------------------------

    def select_plural(
        self,
        messages: str | PluralForms,
        count: Count | None,
        locale: str,
    ) -> str:
        """Select the form matching a count.

        Args:
            messages: Plural-forms mapping, delimited plural string, or plain string
            count: Count to select for; None skips literal and category matching
            locale: Locale whose rule decides the category

        Returns:
            Selected template (never raises)
        """
        if isinstance(messages, str):
            if not self.has_plural_forms(messages):
                return messages
            forms: Mapping[str, object] = self.parse_plural_string(messages)
        elif isinstance(messages, Mapping):
            forms = messages
        else:
            return str(messages)

        candidates: list[str] = []
        if count is not None:
            candidates.append(count_literal(count))
            candidates.append(self.get_category(count, locale))
        candidates.append(PluralCategory.OTHER.value)

        for key in candidates:
            form = forms.get(key)
            if isinstance(form, str):
                return form

        for form in forms.values():
            if isinstance(form, str):
                return form

        return messages if isinstance(messages, str) else ""

    def format(
        self,
        message: str | PluralForms,
        count: Count | None,
        locale: str,
        params: InterpolationParams | None = None,
        *,
        escape: bool = False,
    ) -> str:
        """Select a plural form and interpolate it.

        ``count`` is made available to the template as ``{{count}}``.
        ``escape`` HTML-escapes the substituted values.

        Example:
            >>> PluralizationEngine().format("one:{{count}} file|other:{{count}} files", 3, "en")
            '3 files'
        """
        selected = self.select_plural(message, count, locale)
        merged: dict[str, object] = dict(params) if isinstance(params, Mapping) else {}
        if count is not None:
            merged["count"] = count
        return interpolate(selected, merged, locale, escape=escape)
