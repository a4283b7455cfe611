"""Enumerations for i18ncore type-safe constants.

Uses StrEnum (Python 3.11+) for automatic string conversion.
StrEnum members are strings themselves, eliminating boilerplate __str__ methods.

Python 3.13+.
"""

from enum import StrEnum


class PluralCategory(StrEnum):
    """CLDR plural category.

    StrEnum provides automatic string conversion: str(PluralCategory.ONE) == "one".
    Members compare equal to their plain string values, so rules may return
    either the enum member or the bare string.

    Reference: https://www.unicode.org/cldr/charts/47/supplemental/language_plural_rules.html
    """

    ZERO = "zero"
    """Arabic 0, Latvian 0/10-20/30..."""

    ONE = "one"
    """Singular in most languages."""

    TWO = "two"
    """Dual (Arabic, Hebrew, Slovenian)."""

    FEW = "few"
    """Paucal (Slavic 2-4, Arabic 3-10)."""

    MANY = "many"
    """Slavic 5+, Arabic 11-99."""

    OTHER = "other"
    """General plural; valid fallback for every locale."""

    @classmethod
    def values(cls) -> frozenset[str]:
        """Return the six category names as plain strings."""
        return frozenset(member.value for member in cls)

    @classmethod
    def ordered(cls, categories: frozenset[str] | set[str]) -> tuple[str, ...]:
        """Sort category names in canonical CLDR order (zero ... other)."""
        return tuple(member.value for member in cls if member.value in categories)


__all__ = [
    "PluralCategory",
]
