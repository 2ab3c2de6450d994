"""
Custom exceptions for the repository layer.
Centralized error taxonomy shared by the local and API backends.
"""

from typing import Any, Optional


class RepositoryError(Exception):
    """Base class for every error raised by a repository."""

    pass


class ConfigurationError(RepositoryError):
    """Raised when a RepositoryConfig is invalid (unknown backend type, bad values)."""

    pass


class ValidationError(RepositoryError, ValueError):
    """
    Exception raised when a payload violates an entity business rule.
    Always raised before anything is written.
    """

    pass


class NotFoundError(RepositoryError, LookupError):
    """
    Exception raised when an operation addresses a nonexistent identifier.
    get_by_id variants return None instead of raising.
    """

    def __init__(self, message: str, entity_id: Optional[str] = None):
        super().__init__(message)
        self.entity_id = entity_id


class StorageError(RepositoryError):
    """
    Exception raised when the local backend fails to persist a collection
    (quota exceeded, serialization failure, store unavailable).
    """

    def __init__(self, message: str, storage_key: Optional[str] = None):
        super().__init__(message)
        self.storage_key = storage_key


class PartialWriteError(StorageError):
    """
    Raised when the primary collection was written but the follow-up write to a
    side collection (usage log, session log, sale items, kardex) failed.

    Attributes:
        result: What the operation would have returned.
        applied: The primary record that was already persisted.
    """

    def __init__(
        self,
        message: str,
        storage_key: Optional[str] = None,
        result: Any = None,
        applied: Any = None,
    ):
        super().__init__(message, storage_key)
        self.result = result
        self.applied = applied


class TransportError(RepositoryError):
    """
    Exception raised when an API request fails (network, timeout, non-2xx
    status or malformed envelope). Carries the server-supplied message when
    one is available.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_unavailable(self) -> bool:
        """True when the API could not serve the request at all (no status or 5xx)."""
        return self.status_code is None or self.status_code >= 500
