"""
docstore
========

Resolves layered document database configuration and provides a single,
lazily initialized client handle.

Typical use:
    from docstore import IDocumentStore, Registry, add_document_store

    registry = add_document_store(Registry())
    store = registry.get(IDocumentStore)
"""

from docstore.core import (
    ApplicationException,
    DocumentStoreError,
    ConfigurationError,
    ClientInitializationError,
)
from docstore.domain import (
    StoreSettings,
    StoreConventions,
    ClientCertificate,
    StoreOptions,
)
from docstore.application.interfaces import IConfigSource, IDocumentStore
from docstore.application.factory import DocumentStoreFactory, build_client
from docstore.application.resolver import RESOLUTION_STAGES, resolve_options
from docstore.application.registry import Registry, SingletonSlot
from docstore.application.provider import DocumentStoreProvider, add_document_store
from docstore.infrastructure.config_sources import (
    MappingConfigSource,
    YamlConfigSource,
    EnvironmentConfigSource,
    LayeredConfigSource,
    build_config_source,
)
from docstore.infrastructure.settings_source import load_settings
from docstore.infrastructure.certificates import load_certificate
from docstore.infrastructure.document_store import MongoDocumentStore

__version__ = "1.0.0"

__all__ = [
    # Errors
    "ApplicationException",
    "DocumentStoreError",
    "ConfigurationError",
    "ClientInitializationError",
    # Domain
    "StoreSettings",
    "StoreConventions",
    "ClientCertificate",
    "StoreOptions",
    # Pipeline
    "IConfigSource",
    "IDocumentStore",
    "load_settings",
    "load_certificate",
    "resolve_options",
    "RESOLUTION_STAGES",
    "DocumentStoreFactory",
    "build_client",
    # Registry
    "Registry",
    "SingletonSlot",
    "DocumentStoreProvider",
    "add_document_store",
    # Infrastructure
    "MappingConfigSource",
    "YamlConfigSource",
    "EnvironmentConfigSource",
    "LayeredConfigSource",
    "build_config_source",
    "MongoDocumentStore",
]
