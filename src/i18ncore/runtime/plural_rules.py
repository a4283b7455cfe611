"""CLDR plural rules implementation using Babel.

Provides the default two-category rule and CLDR rule factories backed by
Babel's plural data. A rule is a pure function ``(count, locale) -> category``.

The pluralization engine uses default_plural_rule for any locale without an
explicit registration. Callers needing the full CLDR rule set for a language
family bind it explicitly with cldr_rule() (or
PluralizationEngine.add_cldr_rule()).

Python 3.13+. Depends on Babel for CLDR data.

Reference: https://www.unicode.org/cldr/charts/47/supplemental/language_plural_rules.html
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal

from babel.core import UnknownLocaleError

from i18ncore.enums import PluralCategory
from i18ncore.locale_utils import get_babel_locale

__all__ = [
    "Count",
    "PluralRule",
    "cldr_categories",
    "cldr_rule",
    "default_plural_rule",
    "select_plural_category",
]

type Count = int | float | Decimal
"""Numeric count accepted by plural rules."""

type PluralRule = Callable[[Count, str], str]
"""Pure function mapping (count, locale) to a plural category name."""


def default_plural_rule(n: Count, locale: str = "") -> str:  # noqa: ARG001
    """Two-category rule: 'one' for exactly one item, 'other' otherwise.

    Example:
        >>> default_plural_rule(1)
        'one'
        >>> default_plural_rule(0)
        'other'
    """
    return PluralCategory.ONE.value if abs(n) == 1 else PluralCategory.OTHER.value


def select_plural_category(n: Count, locale: str) -> str:
    """Select CLDR plural category for number using Babel's CLDR data.

    Args:
        n: Number to categorize
        locale: Locale code (e.g., "lv-LV", "en_US", "ar-SA")

    Returns:
        Plural category: "zero", "one", "two", "few", "many", or "other"

    Examples:
        >>> select_plural_category(0, "lv_LV")
        'zero'
        >>> select_plural_category(1, "en_US")
        'one'
        >>> select_plural_category(5, "ru_RU")
        'many'
        >>> select_plural_category(2, "ar_SA")
        'two'
        >>> select_plural_category(42, "ja_JP")
        'other'

    Architecture:
        Uses Babel's Locale.plural_form which provides CLDR-compliant plural rules
        for all supported locales, including the CLDR operands (n, i, v, w, f, t, e)
        and automatic fallback to language-level rules.

        If locale parsing fails, falls back to the default one/other rule.
    """
    try:
        locale_obj = get_babel_locale(locale)
    except (UnknownLocaleError, ValueError):
        return default_plural_rule(n, locale)

    return locale_obj.plural_form(n)


def cldr_rule(locale: str) -> PluralRule:
    """Build a plural rule bound to one locale's CLDR data.

    The returned rule ignores its locale argument: the binding decides
    which CLDR table applies, so a rule registered for "pt" keeps
    Portuguese semantics even when called with "pt-BR".

    Args:
        locale: Locale whose CLDR rule should be bound

    Returns:
        PluralRule evaluating the bound locale's CLDR rule
    """

    def rule(n: Count, _locale: str = "") -> str:
        return select_plural_category(n, locale)

    rule.__name__ = f"cldr_rule_{locale.replace('-', '_')}"
    return rule


def cldr_categories(locale: str) -> frozenset[str]:
    """Return the plural categories CLDR defines for a locale.

    'other' is always included. Unknown locales report the default rule's
    categories.

    Example:
        >>> sorted(cldr_categories("ru"))
        ['few', 'many', 'one', 'other']
        >>> sorted(cldr_categories("ja"))
        ['other']
    """
    try:
        tags = get_babel_locale(locale).plural_form.tags
    except (UnknownLocaleError, ValueError):
        return frozenset({PluralCategory.ONE.value, PluralCategory.OTHER.value})
    return frozenset(tags) | {PluralCategory.OTHER.value}
