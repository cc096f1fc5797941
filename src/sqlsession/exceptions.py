"""Exception hierarchy for sqlsession.

All errors raised or reported by the store inherit from SessionStoreException,
so callers can handle every failure uniformly or target a specific category.

Categories:
- ConfigurationException: invalid store construction (raised synchronously)
- InvalidExpiryException: malformed cookie expiry hints (reported via callback)
- SessionEncodeException / SessionDecodeException: payload codec failures
- StorageException: failures reported by the storage engine
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class SessionStoreException(Exception):
    """Base exception for all sqlsession errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "STORAGE_ERROR").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(SessionStoreException):
    """The store or its sweeper was constructed with invalid options."""


# =============================================================================
# Input Exceptions
# =============================================================================


class InvalidExpiryException(SessionStoreException):
    """A cookie ``maxAge`` or ``expires`` hint could not be turned into an instant."""


class SessionEncodeException(SessionStoreException):
    """A session payload could not be serialized to JSON."""


class SessionDecodeException(SessionStoreException):
    """Stored session text is not valid JSON."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class StorageException(SessionStoreException):
    """The storage engine rejected or failed to execute a statement."""
