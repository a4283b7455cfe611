"""Observability records passed to Translator callbacks.

Components:
    FallbackInfo - A key resolved from a later locale in the fallback chain
    MissingKeyInfo - A key resolved in no locale of the chain
    LocaleChangeInfo - The active locale changed

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass

from i18ncore.localization.types import Locale, MessageKey

__all__ = [
    "FallbackInfo",
    "LocaleChangeInfo",
    "MissingKeyInfo",
]


@dataclass(frozen=True, slots=True)
class FallbackInfo:
    """Information about a locale fallback event.

    Provided to the on_fallback callback when Translator resolves a key
    from a locale other than the requested one.

    Attributes:
        requested_locale: The locale the caller asked for (normalized)
        resolved_locale: The locale that actually contained the key
        key: The message key that was resolved

    Example:
        >>> def log_fallback(info: FallbackInfo) -> None:
        ...     print(f"Fallback: {info.key} resolved from "
        ...           f"{info.resolved_locale} (requested {info.requested_locale})")
        >>> translator = Translator("zh-CN", messages, on_fallback=log_fallback)
    """

    requested_locale: Locale
    resolved_locale: Locale
    key: MessageKey


@dataclass(frozen=True, slots=True)
class MissingKeyInfo:
    """A key resolved in no locale of the fallback chain.

    Attributes:
        locale: The locale the caller asked for (normalized)
        key: The missing message key
        chain: Every locale that was tried, in order
    """

    locale: Locale
    key: MessageKey
    chain: tuple[Locale, ...] = ()


@dataclass(frozen=True, slots=True)
class LocaleChangeInfo:
    """The Translator's active locale changed.

    Attributes:
        previous_locale: Locale active before the change
        locale: Locale active after the change
    """

    previous_locale: Locale
    locale: Locale
