"""Translator Example - Locale Fallback Chains.

Demonstrates handling incomplete translations with the fallback chain
(exact locale -> language -> configured fallbacks) and observing fallbacks
and misses through callbacks.

Scenarios covered:
1. Regional locale falling back to its language, then English
2. Multiple configured fallbacks
3. Reporting fallbacks and missing keys
4. Switching locale at runtime

Python 3.13+.
"""

from __future__ import annotations

import logging

from i18ncore import Translator, TranslatorConfig
from i18ncore.localization import FallbackInfo, LocaleChangeInfo, MissingKeyInfo

logger = logging.getLogger(__name__)

MESSAGES = {
    "en": {"welcome": "Welcome, {{name}}!", "cart": "Cart", "checkout": "Checkout"},
    "lv": {"welcome": "Sveiki, {{name}}!", "cart": "Grozs"},
    "lv-LV": {"welcome": "Labdien, {{name}}!"},
    "lt": {"checkout": "Apmokėjimas"},
}


def example_1_basic_fallback() -> None:
    """Example 1: lv-LV -> lv -> en."""
    print("=" * 60)
    print("Example 1: Basic Fallback (lv-LV -> lv -> en)")
    print("=" * 60)

    with Translator("lv_LV", MESSAGES) as translator:
        print(translator.fallback_chain())
        # Output: ('lv-LV', 'lv', 'en')
        print(translator.t("welcome", params={"name": "Anna"}))
        # Output: Labdien, Anna!
        print(translator.t("cart"))
        # Output: Grozs
        print(translator.t("checkout"))
        # Output: Checkout


def example_2_multiple_fallbacks() -> None:
    """Example 2: Baltic fallbacks before English."""
    print("\n" + "=" * 60)
    print("Example 2: Multiple Fallbacks (et -> lt -> en)")
    print("=" * 60)

    config = TranslatorConfig(fallback_locale=("lt", "en"))
    with Translator("et", MESSAGES, config=config) as translator:
        print(translator.t("checkout"))
        # Output: Apmokėjimas
        print(translator.t("cart"))
        # Output: Cart


def example_3_reporting() -> None:
    """Example 3: Collect fallbacks and misses for translators to fix."""
    print("\n" + "=" * 60)
    print("Example 3: Reporting Fallbacks and Missing Keys")
    print("=" * 60)

    fallbacks: list[FallbackInfo] = []
    missing: list[MissingKeyInfo] = []

    with Translator(
        "lv", MESSAGES, on_fallback=fallbacks.append, on_missing=missing.append
    ) as translator:
        translator.translate_many(["welcome", "cart", "checkout", "help.title"])

    for info in fallbacks:
        print(f"{info.key}: {info.requested_locale} -> {info.resolved_locale}")
    # Output: checkout: lv -> en
    for info in missing:
        print(f"missing {info.key} (tried {', '.join(info.chain)})")
    # Output: missing help.title (tried lv, en)


def example_4_switching() -> None:
    """Example 4: Runtime locale switch with a subscriber."""
    print("\n" + "=" * 60)
    print("Example 4: Switching Locale")
    print("=" * 60)

    with Translator("en", MESSAGES) as translator:

        def on_change(info: LocaleChangeInfo) -> None:
            logger.info("Locale %s -> %s", info.previous_locale, info.locale)
            print(translator.t("cart"))

        unsubscribe = translator.subscribe(on_change)
        translator.set_locale("lv")
        # Output: Grozs
        unsubscribe()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    example_1_basic_fallback()
    example_2_multiple_fallbacks()
    example_3_reporting()
    example_4_switching()
