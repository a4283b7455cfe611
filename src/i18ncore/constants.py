"""Shared constants for i18ncore.

This module provides centralized configuration constants used across
the runtime and localization packages. Placing constants here avoids
circular imports and provides a single source of truth.

Constants are grouped by domain:
- Cache limits: Memory bounds for caching subsystems
- Timer settings: Intervals and delays for background activity
- Template syntax: Placeholder markers and separators

Python 3.13+. Zero external dependencies.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Cache limits
    "DEFAULT_CACHE_SIZE",
    "DEFAULT_STORAGE_MIRROR_SIZE",
    "PLURAL_CATEGORY_CACHE_SIZE",
    "MAX_LOCALE_CACHE_SIZE",
    # Timer settings
    "DEFAULT_SWEEP_INTERVAL",
    "DEFAULT_DEBOUNCE_DELAY",
    "DEFAULT_MAX_TIMERS",
    # Template syntax
    "PLACEHOLDER_PREFIX",
    "PLACEHOLDER_SUFFIX",
    "FORMAT_HINT_SEPARATOR",
    "NESTING_PREFIX",
    "NESTING_SUFFIX",
    "MAX_NESTING_DEPTH",
    "DEFAULT_PLURAL_SEPARATOR",
    "PLURAL_KEY_DELIMITER",
    # Storage
    "DEFAULT_STORAGE_PREFIX",
    "STORAGE_INDEX_KEY",
    # Locales
    "DEFAULT_FALLBACK_LOCALE",
]

# ============================================================================
# CACHE LIMITS
# ============================================================================

# Default maximum entries for the rendered-message LRU cache.
# 1000 entries is sufficient for most applications (typical UI has <500 messages).
DEFAULT_CACHE_SIZE: int = 1000

# Default bound for the in-memory mirror of the storage-backed cache.
DEFAULT_STORAGE_MIRROR_SIZE: int = 100

# Bound for the (count, locale) -> category memo of the pluralization engine.
# Categories are cheap to recompute, so a simple cap is enough.
PLURAL_CATEGORY_CACHE_SIZE: int = 1000

# Maximum cached Babel Locale instances.
MAX_LOCALE_CACHE_SIZE: int = 128

# ============================================================================
# TIMER SETTINGS
# ============================================================================

# Seconds between proactive sweeps of expired LRU entries.
DEFAULT_SWEEP_INTERVAL: float = 60.0

# Seconds of quiet before pending storage writes are flushed.
DEFAULT_DEBOUNCE_DELAY: float = 1.0

# Upper bound on scheduled TTL deadlines in the weak-identity cache. Entries
# beyond it expire lazily on read.
DEFAULT_MAX_TIMERS: int = 256

# ============================================================================
# TEMPLATE SYNTAX
# ============================================================================

PLACEHOLDER_PREFIX: str = "{{"
PLACEHOLDER_SUFFIX: str = "}}"

# Separates the path from an optional format hint: {{amount, number}}
FORMAT_HINT_SEPARATOR: str = ","

# Reference to another message, rendered in place: $t(common.appName)
NESTING_PREFIX: str = "$t("
NESTING_SUFFIX: str = ")"

# Nested references deeper than this are left verbatim
MAX_NESTING_DEPTH: int = 5

# Separates plural forms: "one:item|other:items"
DEFAULT_PLURAL_SEPARATOR: str = "|"

# Separates a plural key from its template; the first occurrence wins.
PLURAL_KEY_DELIMITER: str = ":"

# ============================================================================
# STORAGE
# ============================================================================

DEFAULT_STORAGE_PREFIX: str = "i18n_cache_"

# Suffix (after the prefix) of the persisted key index.
STORAGE_INDEX_KEY: str = "__index__"

# ============================================================================
# LOCALES
# ============================================================================

DEFAULT_FALLBACK_LOCALE: str = "en"
