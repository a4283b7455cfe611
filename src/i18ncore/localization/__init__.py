"""Localization package: the Translator and its supporting types.

Submodules:
    types        - PEP 695 type aliases (Locale, MessageKey, MessageTree)
                   and TranslationRequest
    config       - TranslatorConfig
    events       - FallbackInfo, MissingKeyInfo, LocaleChangeInfo
    orchestrator - Translator (resolution, fallback, caching)

Python 3.13+.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability

from i18ncore.localization.config import TranslatorConfig
from i18ncore.localization.events import FallbackInfo, LocaleChangeInfo, MissingKeyInfo
from i18ncore.localization.orchestrator import Translator
from i18ncore.localization.types import Locale, MessageKey, MessageTree, TranslationRequest

__all__ = [
    # Main orchestrator
    "Translator",
    "TranslatorConfig",
    # Observability
    "FallbackInfo",
    "LocaleChangeInfo",
    "MissingKeyInfo",
    # Type aliases and request records
    "Locale",
    "MessageKey",
    "MessageTree",
    "TranslationRequest",
]
