"""i18ncore exception hierarchy.

Resolution and cache hot paths never raise for data problems (missing keys,
malformed plural tables, unresolved placeholders, storage outages). These
exceptions cover contract violations detected at registration time and
failures reported by storage backends, which the storage-backed cache
absorbs.

Python 3.13+. Zero external dependencies.
"""


class I18nError(Exception):
    """Base exception for all i18ncore errors."""


class PluralRuleError(I18nError, TypeError):
    """Plural rule rejected at registration.

    Raised by PluralizationEngine.add_rule() when the rule is not callable.
    Subclasses TypeError so generic callers can treat it as a type contract
    violation.
    """


class StorageBackendError(I18nError):
    """Persistent storage backend failed.

    Raised by StorageBackend implementations. StorageCache catches it and
    keeps operating from its in-memory mirror.

    Attributes:
        key: Storage key involved in the failed operation (may be empty)
        operation: Backend operation name ('read', 'write', 'remove')
    """

    def __init__(self, message: str, *, key: str = "", operation: str = "") -> None:
        """Initialize StorageBackendError.

        Args:
            message: Error message
            key: Storage key involved in the failed operation
            operation: Backend operation name
        """
        super().__init__(message)
        self.key = key
        self.operation = operation
