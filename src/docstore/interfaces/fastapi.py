"""
FastAPI Integration
===================

Exposes the registry's document store to FastAPI applications.

Usage:
    registry = add_document_store(Registry())
    app = FastAPI(lifespan=document_store_lifespan(registry, app_settings=get_settings()))

    @app.get("/orders/{order_id}")
    def get_order(order_id: str, store: IDocumentStore = Depends(get_document_store)):
        ...
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional

from fastapi import FastAPI, Request

from docstore.application.interfaces import IDocumentStore
from docstore.application.registry import Registry
from docstore.config import AppSettings
from docstore.core import ConfigurationError
from docstore.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


def document_store_lifespan(
    registry: Registry,
    warm_up: bool = True,
    app_settings: Optional[AppSettings] = None
) -> Callable[[FastAPI], AsyncGenerator]:
    """
    Build a lifespan handler that owns the registry.

    STARTUP:
    1. Configure JSON logging from ``app_settings`` (when given)
    2. Attach the registry to ``app.state``
    3. Build the document store (when ``warm_up``), failing startup on error

    SHUTDOWN:
    1. Close every singleton the registry built

    Args:
        registry: Registry with a document store registration
        warm_up: Build the store at startup instead of on first request
        app_settings: Host settings supplying the log level and environment
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        if app_settings is not None:
            setup_logging(level=app_settings.log_level, environment=app_settings.environment)
            logger.info(
                f"Starting {app_settings.app_name}",
                extra={"app_name": app_settings.app_name, "environment": app_settings.environment}
            )

        app.state.registry = registry
        if warm_up:
            logger.info("Initializing document store at startup")
            registry.get(IDocumentStore)
        try:
            yield
        finally:
            logger.info("Closing document store")
            registry.close()

    return lifespan


def get_document_store(request: Request) -> IDocumentStore:
    """
    FastAPI dependency returning the process-wide document store.

    Declared sync so FastAPI runs a first-use build in its threadpool.

    Raises:
        ConfigurationError: The application has no registry attached
    """
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise ConfigurationError(
            "No registry attached to the application. Use document_store_lifespan()."
        )
    return registry.get(IDocumentStore)
