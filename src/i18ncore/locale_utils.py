"""Locale utilities for tag normalization and fallback chains.

Centralizes locale format normalization used throughout the codebase.
Provides canonical locale handling to ensure consistent cache keys and lookups.

Canonical form is BCP-47 style with hyphens ("zh-CN", "sr-Latn-RS"). Babel
expects POSIX underscores, so conversion happens only at the Babel boundary
via to_babel_code().

Python 3.13+.
"""

from __future__ import annotations

import functools
from collections.abc import Iterable
from typing import TYPE_CHECKING

from i18ncore.constants import MAX_LOCALE_CACHE_SIZE

if TYPE_CHECKING:
    from babel import Locale

__all__ = [
    "fallback_chain",
    "get_babel_locale",
    "language_of",
    "normalize_locale",
    "to_babel_code",
]


def normalize_locale(locale_code: str) -> str:
    """Normalize a locale tag to canonical hyphenated form.

    Comparison of locale tags is case-insensitive, so every tag is normalized
    at the system boundary and the normalized form is used for message tree
    lookups and cache keys.

    Rules:
        - "_" separators become "-"
        - language subtag lower-case
        - 4-letter script subtag title-case
        - 2-letter or 3-digit region subtag upper-case
        - any other subtag lower-case

    Args:
        locale_code: Locale tag in BCP-47 or POSIX format

    Returns:
        Canonical locale tag

    Example:
        >>> normalize_locale("zh_cn")
        'zh-CN'
        >>> normalize_locale("SR-latn-rs")
        'sr-Latn-RS'
        >>> normalize_locale("EN")
        'en'
    """
    parts = [part for part in locale_code.strip().replace("_", "-").split("-") if part]
    if not parts:
        return ""

    normalized = [parts[0].lower()]
    for part in parts[1:]:
        match len(part):
            case 4 if part.isalpha():
                normalized.append(part.title())
            case 2 if part.isalpha():
                normalized.append(part.upper())
            case 3 if part.isdigit():
                normalized.append(part)
            case _:
                normalized.append(part.lower())
    return "-".join(normalized)


def language_of(locale_code: str) -> str:
    """Return the language subtag of a locale tag.

    Example:
        >>> language_of("pt-BR")
        'pt'
        >>> language_of("en")
        'en'
    """
    return normalize_locale(locale_code).split("-", 1)[0]


def fallback_chain(locale_code: str, fallbacks: Iterable[str] = ()) -> tuple[str, ...]:
    """Build the deterministic locale fallback chain.

    Order: exact locale, its language-only subtag, then each configured
    fallback locale. Duplicates are removed while maintaining order.

    Args:
        locale_code: Requested locale
        fallbacks: Configured fallback locales in priority order

    Returns:
        Tuple of normalized locale tags

    Example:
        >>> fallback_chain("zh-CN", ["en"])
        ('zh-CN', 'zh', 'en')
        >>> fallback_chain("en-US", ["en"])
        ('en-US', 'en')
    """
    exact = normalize_locale(locale_code)
    candidates = [exact, language_of(exact)]
    candidates.extend(normalize_locale(fallback) for fallback in fallbacks)
    # dict.fromkeys() removes duplicates while maintaining insertion order
    return tuple(candidate for candidate in dict.fromkeys(candidates) if candidate)


def to_babel_code(locale_code: str) -> str:
    """Convert a locale tag to POSIX format for Babel.

    Example:
        >>> to_babel_code("en-US")
        'en_US'
    """
    return normalize_locale(locale_code).replace("-", "_")


@functools.lru_cache(maxsize=MAX_LOCALE_CACHE_SIZE)
def get_babel_locale(locale_code: str) -> Locale:
    """Get a Babel Locale object with caching.

    Parses the locale code once and caches the result. This avoids repeated
    parsing overhead in hot paths like plural rule selection.

    Thread-safe via lru_cache internal locking.

    Args:
        locale_code: Locale code (BCP-47 or POSIX format accepted)

    Returns:
        Babel Locale object

    Raises:
        babel.core.UnknownLocaleError: If locale is not recognized
        ValueError: If locale format is invalid

    Example:
        >>> locale = get_babel_locale("en-US")
        >>> locale.language
        'en'
        >>> locale.territory
        'US'
    """
    # Lazy import: Babel loads CLDR data at import time; defer until needed
    from babel import Locale  # noqa: PLC0415

    return Locale.parse(to_babel_code(locale_code))
