"""Format hints for interpolated values.

A placeholder may carry a format hint after a comma: ``{{amount, number}}``,
``{{price, currency:EUR}}``, ``{{when, date:short}}``, ``{{name, upper}}``.
Locale-aware hints use Babel's CLDR data; the locale defaults to English when
the caller provides none.

A hint that does not apply to the value (or fails to format it) yields
None, and the caller falls back to default stringification. Formatting never
raises.

Python 3.13+. Uses Babel for i18n.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from babel import UnknownLocaleError
from babel import dates as babel_dates
from babel import lists as babel_lists
from babel import numbers as babel_numbers

from i18ncore.constants import DEFAULT_FALLBACK_LOCALE
from i18ncore.locale_utils import to_babel_code

__all__ = ["apply_format_hint", "stringify"]

logger = logging.getLogger(__name__)

# Decimal precision mask, e.g. "0.00" -> two fraction digits
_PRECISION_MASK = re.compile(r"^0\.(0+)$")

_FORMAT_ERRORS = (
    ValueError,
    TypeError,
    AttributeError,
    InvalidOperation,
    UnknownLocaleError,
)


def stringify(value: object) -> str:
    """Render a resolved value with locale-agnostic default formatting.

    Booleans render as ``true``/``false``, sequences as comma-joined elements,
    everything else via ``str()``.

    Example:
        >>> stringify(True)
        'true'
        >>> stringify(42)
        '42'
        >>> stringify(["a", 1])
        'a,1'
    """
    match value:
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case list() | tuple():
            return ",".join(stringify(item) for item in value)
        case _:
            return str(value)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _format_number(value: object, arg: str | None, locale: str) -> str | None:
    if not _is_number(value):
        return None
    return babel_numbers.format_decimal(value, locale=locale)  # type: ignore[arg-type]


def _format_percent(value: object, arg: str | None, locale: str) -> str | None:
    if not _is_number(value):
        return None
    return babel_numbers.format_percent(value, locale=locale)  # type: ignore[arg-type]


def _format_currency(value: object, arg: str | None, locale: str) -> str | None:
    if not _is_number(value):
        return None
    currency = (arg or "USD").upper()
    return babel_numbers.format_currency(value, currency, locale=locale)  # type: ignore[arg-type]


def _format_date(value: object, arg: str | None, locale: str) -> str | None:
    if not isinstance(value, date):
        return None
    return babel_dates.format_date(value, format=arg or "medium", locale=locale)


def _format_time(value: object, arg: str | None, locale: str) -> str | None:
    if not isinstance(value, (datetime, time)):
        return None
    return babel_dates.format_time(value, format=arg or "short", locale=locale)


def _format_datetime(value: object, arg: str | None, locale: str) -> str | None:
    if not isinstance(value, datetime):
        return None
    return babel_dates.format_datetime(value, format=arg or "short", locale=locale)


def _format_list(value: object, arg: str | None, locale: str) -> str | None:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return None
    return babel_lists.format_list(
        [stringify(item) for item in value], style=arg or "standard", locale=locale
    )


def _format_or_list(value: object, arg: str | None, locale: str) -> str | None:
    return _format_list(value, "or", locale)


type _HintFormatter = Callable[[object, str | None, str], str | None]


def _string_transform(transform: Callable[[str], str]) -> _HintFormatter:
    def apply(value: object, arg: str | None, locale: str) -> str | None:
        if not isinstance(value, str):
            return None
        return transform(value)

    return apply


def _capitalize(text: str) -> str:
    # Only the first character changes, unlike str.capitalize()
    return text[:1].upper() + text[1:]


_HINTS: dict[str, _HintFormatter] = {
    "number": _format_number,
    "percent": _format_percent,
    "currency": _format_currency,
    "date": _format_date,
    "time": _format_time,
    "datetime": _format_datetime,
    "list": _format_list,
    "or": _format_or_list,
    "upper": _string_transform(str.upper),
    "uppercase": _string_transform(str.upper),
    "lower": _string_transform(str.lower),
    "lowercase": _string_transform(str.lower),
    "capitalize": _string_transform(_capitalize),
    "title": _string_transform(str.title),
}


def apply_format_hint(value: object, hint: str, locale: str | None = None) -> str | None:
    """Format a value according to a placeholder format hint.

    Args:
        value: Resolved placeholder value
        hint: Hint text after the comma, e.g. "number" or "currency:EUR"
        locale: Locale for CLDR-aware hints (default: English)

    Returns:
        Formatted string, or None when the hint is unknown, does not apply
        to the value type, or formatting fails

    Example:
        >>> apply_format_hint(1234.5, "number", "en-US")
        '1,234.5'
        >>> apply_format_hint(3.14159, "0.00")
        '3.14'
        >>> apply_format_hint("hello", "upper")
        'HELLO'
    """
    name, _, arg = hint.strip().partition(":")
    name = name.strip()
    arg_value = arg.strip() or None

    mask = _PRECISION_MASK.match(name)
    if mask is not None:
        if not _is_number(value):
            return None
        digits = len(mask.group(1))
        return f"{value:.{digits}f}"

    formatter = _HINTS.get(name.lower())
    if formatter is None:
        return None

    babel_locale = to_babel_code(locale or DEFAULT_FALLBACK_LOCALE)
    try:
        return formatter(value, arg_value, babel_locale)
    except _FORMAT_ERRORS as e:
        logger.debug("Format hint '%s' failed for locale %s: %s", hint, locale, e)
        return None
