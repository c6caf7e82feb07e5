"""
Document Store Options
=======================

The aggregate a caller customizes and the resolver completes before a
client is built.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from docstore.config import DEFAULT_SECTION_NAME
from docstore.domain.value_objects import ClientCertificate, StoreSettings

if TYPE_CHECKING:
    from docstore.application.interfaces import IConfigSource, IDocumentStore


BeforeInitialize = Callable[["IDocumentStore"], None]
ClientBuilder = Callable[[Optional[BeforeInitialize]], "IDocumentStore"]


@dataclass
class StoreOptions:
    """
    Everything needed to build a document store client.

    Fields left as ``None`` are filled by the resolver; fields a caller sets
    are never replaced. The configure function passed at registration time
    mutates an instance in place, after which every resolution stage works
    on copies and the resolved instance is treated as read-only.

    Example:
        def configure(options: StoreOptions) -> None:
            options.section_name = "Databases:Orders"
            options.before_initialize = lambda store: setattr(
                store.conventions, "identity_parts_separator", "-"
            )
    """

    settings: Optional[StoreSettings] = None
    section_name: Optional[str] = DEFAULT_SECTION_NAME
    config_source: Optional["IConfigSource"] = None
    host_root_path: Optional[str] = None
    certificate: Optional[ClientCertificate] = None
    before_initialize: Optional[BeforeInitialize] = None
    client_builder: Optional[ClientBuilder] = None

    @property
    def is_resolved(self) -> bool:
        """Whether every field the resolver owns has been populated."""
        return all(
            value is not None
            for value in (
                self.settings,
                self.section_name,
                self.config_source,
                self.host_root_path,
                self.client_builder,
            )
        )

    def describe(self) -> dict[str, Any]:
        """Non-secret summary for logs."""
        return {
            "section_name": self.section_name,
            "database": self.settings.database_name if self.settings else None,
            "url_count": len(self.settings.urls) if self.settings else 0,
            "host_root_path": self.host_root_path,
            "certificate": self.certificate.short_fingerprint() if self.certificate else None,
            "has_before_initialize": self.before_initialize is not None,
        }
