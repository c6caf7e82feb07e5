"""
Document Store Domain Layer
============================

Domain layer for the document store bootstrap.

Contains:
- Value Objects: StoreSettings, StoreConventions, ClientCertificate
- Options: StoreOptions, the aggregate completed by resolution
"""

from docstore.domain.value_objects import (
    StoreSettings,
    StoreConventions,
    ClientCertificate,
)
from docstore.domain.options import (
    StoreOptions,
    BeforeInitialize,
    ClientBuilder,
)

__all__ = [
    "StoreSettings",
    "StoreConventions",
    "ClientCertificate",
    "StoreOptions",
    "BeforeInitialize",
    "ClientBuilder",
]
