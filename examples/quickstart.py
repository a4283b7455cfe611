"""Quickstart example for i18ncore.

Demonstrates lookup, interpolation, format hints and plurals with a single
Translator.

Python 3.13+.
"""

from __future__ import annotations

from i18ncore import Translator

MESSAGES = {
    "en": {
        "app": {"title": "Inventory", "welcome": "Welcome back, {{user.name}}!"},
        "files": "0:No files|one:{{count}} file|other:{{count}} files",
        "price": "Price: {{amount, currency:EUR}}",
        "updated": "Updated {{when, date}}",
        "owners": "Owners: {{names, list}}",
    },
    "de": {
        "app": {"title": "Inventar"},
        "price": "Preis: {{amount, currency:EUR}}",
    },
}


def example_1_lookup() -> None:
    """Example 1: Dotted keys and nested parameters."""
    print("=" * 50)
    print("Example 1: Lookup and Interpolation")
    print("=" * 50)

    with Translator("en", MESSAGES) as translator:
        print(translator.t("app.title"))
        # Output: Inventory
        print(translator.t("app.welcome", params={"user": {"name": "Ada"}}))
        # Output: Welcome back, Ada!
        print(translator.t("app.missing", default_value="(untranslated)"))
        # Output: (untranslated)


def example_2_plurals() -> None:
    """Example 2: Literal counts and plural categories."""
    print("\n" + "=" * 50)
    print("Example 2: Plurals")
    print("=" * 50)

    with Translator("en", MESSAGES) as translator:
        for count in (0, 1, 12):
            print(translator.plural("files", count))
        # Output: No files / 1 file / 12 files


def example_3_format_hints() -> None:
    """Example 3: Locale-aware number, date and list formatting."""
    from datetime import date

    print("\n" + "=" * 50)
    print("Example 3: Format Hints")
    print("=" * 50)

    with Translator("de-DE", MESSAGES) as translator:
        print(translator.t("price", params={"amount": 1234.5}))
        # Output: Preis: 1.234,50 €
        print(translator.t("updated", params={"when": date(2024, 1, 15)}))
        # Output: Updated Jan 15, 2024
        # (resolved from "en", so the date is formatted for English too)
        print(translator.t("owners", params={"names": ["Ada", "Grace", "Linus"]}))
        # Output: Owners: Ada, Grace, and Linus


if __name__ == "__main__":
    example_1_lookup()
    example_2_plurals()
    example_3_format_hints()
