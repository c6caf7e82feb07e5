"""
MongoDB Document Store
======================

``IDocumentStore`` implementation over PyMongo.

The driver client is created in ``initialize()``, not in the constructor,
so conventions and the certificate can still be adjusted by a
``before_initialize`` hook. Initialization ends with a ``ping`` so an
unreachable server or rejected credentials surface at startup.
"""

import os
import secrets
import tempfile
import threading
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from docstore.application.interfaces import IDocumentStore
from docstore.core import ClientInitializationError, ConfigurationError
from docstore.shared.infrastructure.logging import get_logger, redact_url, redact_urls

logger = get_logger(__name__)

MONGO_SCHEMES = ("mongodb", "mongodb+srv")


class MongoDocumentStore(IDocumentStore):
    """
    Document store backed by a ``pymongo.MongoClient``.

    Usage:
        store = MongoDocumentStore(["mongodb://db:27017"], "orders")
        store.conventions.app_name = "orders-api"
        store.initialize()
        orders = store.get_database()["orders"]
    """

    def __init__(self, urls: Sequence[str], database: str):
        super().__init__(urls, database)
        self._client: Optional[MongoClient] = None
        self._key_file: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> MongoClient:
        """The driver client; only available after ``initialize()``."""
        if self._client is None:
            raise ClientInitializationError(
                "Document store is not initialized. Call initialize() first.",
                database=self.database
            )
        return self._client

    def initialize(self) -> "MongoDocumentStore":
        """
        Create the driver client and verify the server answers.

        Calling it again after success does nothing.

        Returns:
            MongoDocumentStore: self

        Raises:
            ConfigurationError: The URL list cannot be mapped to driver hosts
            ClientInitializationError: The driver rejected the configuration
                or the server could not be reached
        """
        with self._lock:
            if self._client is not None:
                return self

            hosts, use_tls = mongo_hosts(self.urls)
            self.conventions.freeze()

            client: Optional[MongoClient] = None
            try:
                kwargs = self._client_kwargs(use_tls)
                client = MongoClient(hosts, **kwargs)
                client.admin.command("ping")
            except PyMongoError as e:
                self._discard(client)
                raise ClientInitializationError(
                    f"Failed to initialize document store for database '{self.database}': {e}",
                    {"database": self.database, "urls": redact_urls(self.urls)},
                    database=self.database
                ) from e
            except Exception:
                # Driver option validators raise ValueError/TypeError
                self._discard(client)
                raise

            self._client = client
            return self

    def get_database(self, name: Optional[str] = None) -> Database:
        """
        Return a driver database handle.

        Args:
            name: Database name, defaults to the configured database
        """
        return self.client[name or self.database]

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
            self._remove_key_file()

    def _client_kwargs(self, use_tls: bool) -> Dict[str, Any]:
        conventions = self.conventions
        kwargs: Dict[str, Any] = {
            "serverSelectionTimeoutMS": conventions.server_selection_timeout_ms,
            "maxPoolSize": conventions.max_pool_size,
            "retryWrites": conventions.retry_writes,
            "tz_aware": conventions.tz_aware,
        }
        if conventions.app_name:
            kwargs["appname"] = conventions.app_name

        if self.certificate is not None:
            key_password = secrets.token_urlsafe(24)
            self._key_file = self._write_key_file(key_password)
            kwargs.update(
                tls=True,
                tlsCertificateKeyFile=self._key_file,
                tlsCertificateKeyFilePassword=key_password,
            )
        elif use_tls:
            kwargs["tls"] = True

        return kwargs

    def _write_key_file(self, key_password: str) -> str:
        # mkstemp creates the file readable by the owner only
        fd, path = tempfile.mkstemp(prefix="docstore-", suffix=".pem")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(self.certificate.to_pem(key_password.encode("utf-8")))
        except Exception:
            os.remove(path)
            raise
        return path

    def _discard(self, client: Optional[MongoClient]) -> None:
        """Undo a failed ``initialize()``: close the client and drop the key file."""
        if client is not None:
            client.close()
        self._remove_key_file()

    def _remove_key_file(self) -> None:
        if self._key_file is not None:
            try:
                os.remove(self._key_file)
            except FileNotFoundError:
                pass
            self._key_file = None

    def __repr__(self) -> str:
        return (
            f"MongoDocumentStore(database={self.database!r}, urls={redact_urls(self.urls)!r}, "
            f"initialized={self.is_initialized})"
        )


def mongo_hosts(urls: Sequence[str]) -> tuple[List[str], bool]:
    """
    Map configured URLs to PyMongo ``host`` values.

    - A single ``mongodb://`` or ``mongodb+srv://`` URI is passed through.
    - ``http(s)://host:port`` and other schemes contribute ``host:port``;
      ``https`` asks for TLS.
    - Bare ``host[:port]`` entries are used as they are.

    Args:
        urls: Configured server URLs

    Returns:
        Tuple of (hosts, use_tls)

    Raises:
        ConfigurationError: A MongoDB URI is mixed with other entries, or an
            entry has no host
    """
    hosts: List[str] = []
    use_tls = False

    for url in urls:
        if "://" not in url:
            hosts.append(url)
            continue

        parts = urlsplit(url)
        if parts.scheme in MONGO_SCHEMES:
            if len(urls) > 1:
                raise ConfigurationError(
                    "A mongodb:// URI must be the only configured URL",
                    {"urls": redact_urls(urls)}
                )
            return [url], False

        if not parts.hostname:
            raise ConfigurationError(
                f"Configured URL has no host: {redact_url(url)}",
                {"url": redact_url(url)}
            )
        host = parts.hostname
        hosts.append(f"{host}:{parts.port}" if parts.port else host)
        use_tls = use_tls or parts.scheme == "https"

    return hosts, use_tls
