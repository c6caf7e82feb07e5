"""
Document Store Factory
======================

Builds and initializes a document store from resolved options.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from docstore.application.interfaces import IDocumentStore
from docstore.core import ClientInitializationError, ConfigurationError, DocumentStoreError
from docstore.domain.options import BeforeInitialize, StoreOptions
from docstore.domain.value_objects import ClientCertificate, StoreSettings
from docstore.shared.infrastructure.logging import get_logger, log_latency, redact_urls

logger = get_logger(__name__)

StoreClass = Callable[[Sequence[str], str], IDocumentStore]


@dataclass(frozen=True)
class DocumentStoreFactory:
    """
    Default client builder bound by the resolver.

    Carries the resolved settings and certificate so two resolutions of the
    same configuration produce equal builders.
    """

    settings: StoreSettings
    store_class: StoreClass
    certificate: Optional[ClientCertificate] = None

    def __call__(self, before_initialize: Optional[BeforeInitialize] = None) -> IDocumentStore:
        """
        Validate settings, construct the store and initialize it.

        Steps:
        1. database name must be set
        2. at least one URL must be set
        3. construct the uninitialized store
        4. attach the certificate
        5. run ``before_initialize`` exactly once
        6. ``initialize()``

        Args:
            before_initialize: Last chance to change conventions

        Returns:
            IDocumentStore: Initialized store

        Raises:
            ConfigurationError: Database name or URLs are missing
            ClientInitializationError: ``initialize()`` failed
        """
        settings = self.settings
        if not settings.database_name:
            raise ConfigurationError(
                "missing database name",
                {"hint": "Ensure the configuration contains a DatabaseName in the settings section."}
            )
        if not settings.urls:
            raise ConfigurationError(
                "missing database urls",
                {"hint": "Ensure the configuration contains Urls in the settings section."}
            )

        store = self.store_class(list(settings.urls), settings.database_name)

        if self.certificate is not None:
            store.certificate = self.certificate

        if before_initialize is not None:
            before_initialize(store)

        try:
            with log_latency(
                logger,
                "document_store_initialize",
                database=settings.database_name,
                url_count=len(settings.urls),
            ):
                store.initialize()
        except DocumentStoreError:
            raise
        except Exception as e:
            raise ClientInitializationError(
                f"Failed to initialize document store for database '{settings.database_name}': {e}",
                {"database": settings.database_name},
                database=settings.database_name
            ) from e

        logger.info(
            "Document store initialized",
            extra={"database": settings.database_name, "urls": redact_urls(settings.urls)}
        )
        return store


def build_client(resolved: StoreOptions) -> IDocumentStore:
    """
    Build the client described by resolved options.

    Args:
        resolved: Output of ``resolve_options``

    Returns:
        IDocumentStore: Initialized store
    """
    if resolved.client_builder is None:
        raise ConfigurationError(
            "Options are not resolved: no client builder is set",
            {"section_name": resolved.section_name}
        )
    return resolved.client_builder(resolved.before_initialize)
