"""
Core Module
============

Framework-agnostic building blocks shared by every layer.
"""

from docstore.core.exceptions import (
    ApplicationException,
    DocumentStoreError,
    ConfigurationError,
    ClientInitializationError,
)

__all__ = [
    "ApplicationException",
    "DocumentStoreError",
    "ConfigurationError",
    "ClientInitializationError",
]
