"""
Service Registry
================

Minimal composition root holding lazily built singletons.

Each registered factory gets its own ``SingletonSlot``. The first ``get``
runs the factory under the slot's lock; concurrent callers wait for it.
A factory that raises leaves the slot empty, so the next caller builds
again instead of seeing a cached failure.
"""

import threading
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

from docstore.core import ConfigurationError
from docstore.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SingletonSlot(Generic[T]):
    """Value built on first use and cached until ``reset``."""

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._value: Optional[T] = None
        self._filled = False
        self._lock = threading.Lock()

    @property
    def is_filled(self) -> bool:
        return self._filled

    def get(self) -> T:
        if self._filled:
            return self._value

        with self._lock:
            if not self._filled:
                value = self._factory()
                self._value = value
                self._filled = True
        return self._value

    def peek(self) -> Optional[T]:
        """The cached value, without building it."""
        return self._value if self._filled else None

    def reset(self) -> Optional[T]:
        """Empty the slot and hand back what it held."""
        with self._lock:
            value = self._value if self._filled else None
            self._value = None
            self._filled = False
        return value


class Registry:
    """
    Keyed singleton registry.

    Usage:
        registry = Registry()
        registry.add_singleton(IDocumentStore, factory)
        store = registry.get(IDocumentStore)
    """

    def __init__(self):
        self._slots: Dict[Hashable, SingletonSlot] = {}
        self._lock = threading.Lock()

    def add_singleton(self, key: Hashable, factory: Callable[[], Any]) -> "Registry":
        """
        Register ``factory`` to build the singleton for ``key``.

        Registering a key again replaces the previous registration.
        """
        with self._lock:
            if key in self._slots:
                logger.warning(f"Replacing registration for {_key_name(key)}")
            self._slots[key] = SingletonSlot(factory)
        return self

    def __contains__(self, key: Hashable) -> bool:
        return key in self._slots

    def get(self, key: Hashable) -> Any:
        """
        Return the singleton for ``key``, building it on first use.

        Raises:
            ConfigurationError: Nothing is registered for ``key``
            Exception: Whatever the factory raises; the slot stays empty
        """
        slot = self._slots.get(key)
        if slot is None:
            raise ConfigurationError(
                f"No service registered for {_key_name(key)}",
                {"key": _key_name(key)}
            )
        return slot.get()

    def close(self) -> None:
        """Close and drop every built singleton that has a ``close`` method."""
        for key, slot in list(self._slots.items()):
            value = slot.reset()
            close = getattr(value, "close", None)
            if callable(close):
                logger.info(f"Closing {_key_name(key)}")
                close()


def _key_name(key: Hashable) -> str:
    return getattr(key, "__name__", str(key))
