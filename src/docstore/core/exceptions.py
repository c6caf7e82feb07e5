"""
Core Exceptions
================

Exceptions raised while resolving document store configuration and
bootstrapping the client.

Every error carries a human readable ``message`` plus a ``details`` dict
so callers (usually application startup) can log structured context.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DocumentStoreError(ApplicationException):
    """Base exception for document store bootstrap failures."""


class ConfigurationError(DocumentStoreError):
    """
    Configuration is missing or invalid.

    Always detected before any network call and never retried automatically.
    """


class ClientInitializationError(DocumentStoreError):
    """The database client failed to initialize (network, auth, driver)."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        database: Optional[str] = None
    ):
        self.database = database
        super().__init__(message, details)
