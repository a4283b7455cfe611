"""Error types for i18ncore.

Python 3.13+. Zero external dependencies.
"""

from .errors import I18nError, PluralRuleError, StorageBackendError

__all__ = [
    "I18nError",
    "PluralRuleError",
    "StorageBackendError",
]
