"""i18ncore runtime package.

Provides placeholder interpolation, format hints, plural selection, and the
cache policies used by the Translator. Independent of the localization
package.

Python 3.13+.
"""

from .cache import Cache, LRUCache, freeze_params, make_hashable
from .cache_config import CacheConfig
from .formatters import apply_format_hint, stringify
from .interpolation import (
    extract_placeholders,
    has_placeholders,
    interpolate,
    validate_params,
)
from .plural_rules import default_plural_rule, select_plural_category
from .pluralization import PluralizationEngine
from .scheduling import DeadlineQueue, Debouncer, RepeatingTimer
from .storage import JsonFileStorage, MemoryStorage, StorageBackend
from .storage_cache import StorageCache
from .weak_cache import WeakIdentityCache

__all__ = [
    "Cache",
    "CacheConfig",
    "DeadlineQueue",
    "Debouncer",
    "JsonFileStorage",
    "LRUCache",
    "MemoryStorage",
    "PluralizationEngine",
    "RepeatingTimer",
    "StorageBackend",
    "StorageCache",
    "WeakIdentityCache",
    "apply_format_hint",
    "default_plural_rule",
    "extract_placeholders",
    "freeze_params",
    "has_placeholders",
    "interpolate",
    "make_hashable",
    "select_plural_category",
    "stringify",
    "validate_params",
]
