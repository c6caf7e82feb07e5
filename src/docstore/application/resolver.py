"""
Options Resolver
================

Completes caller-supplied ``StoreOptions`` with defaults.

Resolution is an ordered pipeline of stages. Each stage takes the options
and the environment and returns a new ``StoreOptions`` in which only unset
fields have been filled; values the caller set always win.

Stage order:
1. ``apply_configuration_defaults``: section name, settings, host root path,
   configuration source
2. ``apply_post_configuration_defaults``: certificate (reads
   ``settings.cert_file_path``), client builder
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from docstore.application.interfaces import IConfigSource
from docstore.application.factory import DocumentStoreFactory, StoreClass
from docstore.config import DEFAULT_SECTION_NAME
from docstore.domain.options import StoreOptions
from docstore.infrastructure.certificates import load_certificate
from docstore.infrastructure.document_store import MongoDocumentStore
from docstore.infrastructure.settings_source import load_settings
from docstore.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolutionContext:
    """What the host provides to resolution."""
    config_source: IConfigSource
    host_root_path: str
    store_class: StoreClass = MongoDocumentStore


ResolutionStage = Callable[[StoreOptions, ResolutionContext], StoreOptions]


def apply_configuration_defaults(
    options: StoreOptions,
    context: ResolutionContext
) -> StoreOptions:
    """
    Fill the fields that come from configuration and the host environment.

    Settings are bound from the options' own config source when the caller
    supplied one, otherwise from the environment's.
    """
    section_name = options.section_name or DEFAULT_SECTION_NAME
    config_source = options.config_source or context.config_source
    settings = options.settings
    if settings is None:
        settings = load_settings(config_source, section_name)

    return replace(
        options,
        section_name=section_name,
        settings=settings,
        host_root_path=options.host_root_path or context.host_root_path,
        config_source=config_source,
    )


def apply_post_configuration_defaults(
    options: StoreOptions,
    context: ResolutionContext
) -> StoreOptions:
    """Fill the certificate and the client builder once settings are known."""
    certificate = options.certificate
    if certificate is None:
        certificate = load_certificate(
            options.settings.cert_file_path,
            options.host_root_path,
            options.settings.cert_password,
        )

    client_builder = options.client_builder
    if client_builder is None:
        client_builder = DocumentStoreFactory(
            settings=options.settings,
            certificate=certificate,
            store_class=context.store_class,
        )

    return replace(options, certificate=certificate, client_builder=client_builder)


RESOLUTION_STAGES: Tuple[ResolutionStage, ...] = (
    apply_configuration_defaults,
    apply_post_configuration_defaults,
)


def resolve_options(
    overrides: Optional[StoreOptions],
    config_source: IConfigSource,
    host_root_path: str,
    store_class: StoreClass = MongoDocumentStore
) -> StoreOptions:
    """
    Resolve caller overrides into fully populated options.

    Does not construct the client. The input is never mutated.

    Args:
        overrides: Options as left by the caller's configure function
        config_source: Configuration provider of the host
        host_root_path: Content root for relative certificate paths
        store_class: Store implementation the default builder constructs

    Returns:
        StoreOptions: Resolved options

    Raises:
        ConfigurationError: Settings cannot be bound or the certificate
            cannot be loaded
    """
    context = ResolutionContext(
        config_source=config_source,
        host_root_path=str(host_root_path),
        store_class=store_class,
    )
    options = overrides if overrides is not None else StoreOptions()
    for stage in RESOLUTION_STAGES:
        options = stage(options, context)

    logger.debug("Resolved document store options", extra=options.describe())
    return options
