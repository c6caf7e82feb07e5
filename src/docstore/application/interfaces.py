"""
Application Interfaces
=======================

Abstractions the bootstrap pipeline depends on. Concrete implementations
live in ``docstore.infrastructure``.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from docstore.config import SECTION_DELIMITER
from docstore.domain.value_objects import ClientCertificate, StoreConventions


# ========== Configuration Source ==========

class IConfigSource(ABC):
    """
    Key/value configuration provider.

    Implementations expose their whole tree; ``bind`` walks a section path
    such as ``"Databases:Orders"`` case-insensitively.
    """

    @abstractmethod
    def as_tree(self) -> Mapping[str, Any]:
        """Return the full configuration tree as nested mappings."""

    def bind(self, section_name: str) -> Mapping[str, Any]:
        """
        Return the subtree stored under ``section_name``.

        Args:
            section_name: Section path, nested levels separated by ``:``

        Returns:
            The section mapping, or an empty mapping when it is absent
        """
        node: Any = self.as_tree()
        for part in section_name.split(SECTION_DELIMITER):
            if not isinstance(node, Mapping):
                return {}
            node = lookup(node, part)
            if node is None:
                return {}
        return node if isinstance(node, Mapping) else {}


def lookup(tree: Mapping[str, Any], key: str) -> Any:
    """Case-insensitive mapping lookup, exact match first."""
    if key in tree:
        return tree[key]
    folded = key.casefold()
    for candidate, value in tree.items():
        if str(candidate).casefold() == folded:
            return value
    return None


# ========== Document Store ==========

class IDocumentStore(ABC):
    """
    Handle to a document database.

    Constructed uninitialized; ``initialize()`` establishes connection state
    and freezes the conventions.
    """

    def __init__(self, urls: Sequence[str], database: str):
        self.urls: tuple[str, ...] = tuple(urls)
        self.database = database
        self.certificate: Optional[ClientCertificate] = None
        self.conventions = StoreConventions()

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        """Whether ``initialize()`` completed successfully."""

    @abstractmethod
    def initialize(self) -> "IDocumentStore":
        """Establish connection/session state. May block on network I/O."""

    @abstractmethod
    def close(self) -> None:
        """Release connection state. Safe to call more than once."""
