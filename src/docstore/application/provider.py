"""
Document Store Provider
=======================

Wires configuration, resolution and construction into a registry.

Callers never build ``StoreOptions`` or the store themselves: they hand a
configure function to ``add_document_store`` and later ask the registry for
``IDocumentStore``.
"""

import threading
from pathlib import Path
from typing import Callable, Optional, Union

from docstore.application.factory import StoreClass, build_client
from docstore.application.interfaces import IConfigSource, IDocumentStore
from docstore.application.registry import Registry
from docstore.application.resolver import resolve_options
from docstore.config import get_settings
from docstore.domain.options import StoreOptions
from docstore.infrastructure.config_sources import build_config_source
from docstore.infrastructure.document_store import MongoDocumentStore
from docstore.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

ConfigureOptions = Callable[[StoreOptions], None]


class DocumentStoreProvider:
    """
    Resolves options once and builds the store on request.

    Resolved options are kept only after a successful resolution, so a
    missing certificate can be fixed and retried without restarting.
    """

    def __init__(
        self,
        config_source: IConfigSource,
        host_root_path: Union[str, Path],
        configure: Optional[ConfigureOptions] = None,
        store_class: StoreClass = MongoDocumentStore
    ):
        self._config_source = config_source
        self._host_root_path = str(host_root_path)
        self._configure = configure
        self._store_class = store_class
        self._options: Optional[StoreOptions] = None
        self._lock = threading.Lock()

    @property
    def options(self) -> StoreOptions:
        """Resolved options, computed on first access."""
        if self._options is not None:
            return self._options

        with self._lock:
            if self._options is None:
                overrides = StoreOptions()
                if self._configure is not None:
                    self._configure(overrides)
                self._options = resolve_options(
                    overrides,
                    self._config_source,
                    self._host_root_path,
                    store_class=self._store_class,
                )
        return self._options

    def create(self) -> IDocumentStore:
        """Build a new initialized store from the resolved options."""
        try:
            return build_client(self.options)
        except Exception as e:
            logger.error(
                f"Document store construction failed: {e}",
                extra={"error_type": type(e).__name__}
            )
            raise


def add_document_store(
    registry: Registry,
    configure: Optional[ConfigureOptions] = None,
    config_source: Optional[IConfigSource] = None,
    host_root_path: Optional[Union[str, Path]] = None,
    store_class: StoreClass = MongoDocumentStore
) -> Registry:
    """
    Register the document store singleton.

    The store is configured from the ``Settings`` section of the host's
    configuration unless ``configure`` says otherwise.

    Example:
        registry = add_document_store(
            Registry(),
            lambda options: setattr(options, "section_name", "Databases:Orders"),
        )
        store = registry.get(IDocumentStore)

    Args:
        registry: Registry to add to
        configure: Mutates the caller's ``StoreOptions`` before resolution
        config_source: Defaults to ``build_config_source(get_settings())``
        host_root_path: Defaults to ``get_settings().content_root``
        store_class: Store implementation to construct

    Returns:
        Registry: The same registry
    """
    if config_source is None or host_root_path is None:
        app_settings = get_settings()
        if config_source is None:
            config_source = build_config_source(app_settings)
        if host_root_path is None:
            host_root_path = app_settings.content_root

    provider = DocumentStoreProvider(
        config_source=config_source,
        host_root_path=host_root_path,
        configure=configure,
        store_class=store_class,
    )
    registry.add_singleton(DocumentStoreProvider, lambda: provider)
    registry.add_singleton(IDocumentStore, provider.create)
    return registry
