"""i18ncore - message resolution and caching core for internationalized apps.

Resolves a dotted message key in a locale to display text, applying locale
fallback, CLDR-style plural selection and placeholder interpolation, and
caches renderings so repeated lookups stay cheap.

Public API:
    Translator - Resolution orchestrator (fallback chain, plurals, caching)
    TranslatorConfig - Immutable translator configuration
    CacheConfig - Rendered-message cache settings
    PluralizationEngine - Plural category selection and form rendering
    LRUCache - O(1) LRU cache with TTL and background sweep
    WeakIdentityCache - Cache whose entries vanish with their key objects
    StorageCache - Bounded mirror over a persistent key/value backend
    interpolate - {{placeholder}} substitution
    normalize_locale - Canonical locale tags

Exceptions:
    I18nError - Base exception class
    PluralRuleError - Non-callable plural rule at registration
    StorageBackendError - Storage backend failure

Submodules:
    i18ncore.runtime - Interpolation, pluralization, caches, scheduling
    i18ncore.localization - Translator, configuration, events, types
    i18ncore.diagnostics - Error types
"""

# Essential Public API - Minimal exports for clean namespace
from .diagnostics import I18nError, PluralRuleError, StorageBackendError
from .enums import PluralCategory
from .locale_utils import normalize_locale
from .localization import Translator, TranslatorConfig
from .runtime import (
    CacheConfig,
    LRUCache,
    PluralizationEngine,
    StorageCache,
    WeakIdentityCache,
    interpolate,
)

# Version information - Auto-populated from package metadata
# SINGLE SOURCE OF TRUTH: pyproject.toml [project] version
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

try:
    __version__ = _get_version("i18ncore")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "CacheConfig",
    "I18nError",
    "LRUCache",
    "PluralCategory",
    "PluralRuleError",
    "PluralizationEngine",
    "StorageBackendError",
    "StorageCache",
    "Translator",
    "TranslatorConfig",
    "WeakIdentityCache",
    "__version__",
    "interpolate",
    "normalize_locale",
]
