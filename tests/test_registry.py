"""
Tests for the singleton slot, the registry and add_document_store.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from conftest import CERT_PASSWORD, RecordingStore
from docstore.application.interfaces import IDocumentStore
from docstore.application.provider import DocumentStoreProvider, add_document_store
from docstore.application.registry import Registry, SingletonSlot
from docstore.core import ClientInitializationError, ConfigurationError
from docstore.infrastructure.config_sources import MappingConfigSource


# ═══════════════════════════════════════════════════════════════════════════
# 1. SingletonSlot
# ═══════════════════════════════════════════════════════════════════════════


class TestSingletonSlot:
    def test_builds_once(self):
        calls = []
        slot = SingletonSlot(lambda: calls.append(1) or object())

        first = slot.get()
        second = slot.get()

        assert first is second
        assert calls == [1]
        assert slot.is_filled

    def test_concurrent_requesters_share_one_build(self):
        calls = []
        start = threading.Barrier(16)

        def factory():
            calls.append(1)
            time.sleep(0.05)
            return object()

        slot = SingletonSlot(factory)

        def request():
            start.wait()
            return slot.get()

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: request(), range(16)))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    def test_failure_is_not_cached(self):
        attempts = []

        def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise ConnectionError("first attempt fails")
            return "ready"

        slot = SingletonSlot(factory)

        with pytest.raises(ConnectionError):
            slot.get()
        assert not slot.is_filled

        assert slot.get() == "ready"
        assert len(attempts) == 2

    def test_waiting_requesters_retry_after_failure(self):
        attempts = []
        lock = threading.Lock()
        start = threading.Barrier(8)

        def factory():
            with lock:
                attempts.append(1)
            time.sleep(0.02)
            raise ConnectionError("unreachable")

        slot = SingletonSlot(factory)

        def request():
            start.wait()
            try:
                slot.get()
            except ConnectionError:
                return "failed"
            return "ok"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(lambda _: request(), range(8)))

        assert outcomes == ["failed"] * 8
        assert len(attempts) == 8

    def test_reset_returns_value_and_empties(self):
        slot = SingletonSlot(object)
        value = slot.get()

        assert slot.reset() is value
        assert slot.peek() is None
        assert slot.get() is not value


# ═══════════════════════════════════════════════════════════════════════════
# 2. Registry
# ═══════════════════════════════════════════════════════════════════════════


class TestRegistry:
    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            Registry().get(IDocumentStore)

    def test_close_closes_built_values_only(self):
        closed = []

        class Closable:
            def close(self):
                closed.append(self)

        registry = Registry()
        registry.add_singleton("built", Closable)
        registry.add_singleton("never-built", Closable)
        built = registry.get("built")

        registry.close()

        assert closed == [built]
        assert registry.get("built") is not built


# ═══════════════════════════════════════════════════════════════════════════
# 3. add_document_store
# ═══════════════════════════════════════════════════════════════════════════


class TestAddDocumentStore:
    def test_registers_lazy_singleton(self, config_source, tmp_path: Path):
        registry = add_document_store(
            Registry(),
            config_source=config_source,
            host_root_path=tmp_path,
            store_class=RecordingStore,
        )

        assert RecordingStore.instances == []

        store = registry.get(IDocumentStore)

        assert registry.get(IDocumentStore) is store
        assert store.database == "orders"
        assert RecordingStore.instances == [store]
        assert store.initialize_calls == 1

    def test_configure_overrides_section_and_hook(self, tmp_path: Path):
        source = MappingConfigSource({
            "Databases": {"Orders": {"Urls": ["http://orders:8080"], "DatabaseName": "orders"}}
        })

        def configure(options):
            options.section_name = "Databases:Orders"
            options.before_initialize = lambda store: setattr(
                store.conventions, "identity_parts_separator", "-"
            )

        registry = add_document_store(
            Registry(), configure, config_source=source, host_root_path=tmp_path,
            store_class=RecordingStore,
        )
        store = registry.get(IDocumentStore)

        assert store.urls == ("http://orders:8080",)
        assert store.conventions.identity_parts_separator == "-"

    def test_concurrent_requests_build_one_store(self, config_source, tmp_path: Path):
        registry = add_document_store(
            Registry(), config_source=config_source, host_root_path=tmp_path,
            store_class=RecordingStore,
        )

        with ThreadPoolExecutor(max_workers=12) as pool:
            stores = list(pool.map(lambda _: registry.get(IDocumentStore), range(12)))

        assert len(RecordingStore.instances) == 1
        assert all(store is stores[0] for store in stores)

    def test_failed_initialization_is_retried(self, config_source, tmp_path: Path):
        registry = add_document_store(
            Registry(), config_source=config_source, host_root_path=tmp_path,
            store_class=RecordingStore,
        )
        RecordingStore.fail_with = ConnectionError("down")

        with pytest.raises(ClientInitializationError):
            registry.get(IDocumentStore)

        RecordingStore.fail_with = None
        store = registry.get(IDocumentStore)

        assert store.is_initialized
        assert len(RecordingStore.instances) == 2

    def test_invalid_settings_surface_at_first_request(self, tmp_path: Path):
        registry = add_document_store(
            Registry(),
            config_source=MappingConfigSource({"Settings": {"Urls": ["http://db:8080"]}}),
            host_root_path=tmp_path,
            store_class=RecordingStore,
        )

        with pytest.raises(ConfigurationError, match="missing database name"):
            registry.get(IDocumentStore)

    def test_registers_provider(self, config_source, tmp_path: Path):
        registry = add_document_store(
            Registry(), config_source=config_source, host_root_path=tmp_path,
            store_class=RecordingStore,
        )

        provider = registry.get(DocumentStoreProvider)

        assert provider.options.settings.database_name == "orders"

    def test_defaults_come_from_app_settings(self, tmp_path: Path, monkeypatch):
        from docstore.config import get_settings

        (tmp_path / "appsettings.yaml").write_text(
            "Settings:\n  Urls: [http://db:8080]\n  DatabaseName: from-file\n"
        )
        monkeypatch.setenv("DOCSTORE_CONTENT_ROOT", str(tmp_path))
        get_settings.cache_clear()
        try:
            registry = add_document_store(Registry(), store_class=RecordingStore)
            store = registry.get(IDocumentStore)
        finally:
            get_settings.cache_clear()

        assert store.database == "from-file"


class TestDocumentStoreProvider:
    def test_options_resolved_once(self, tmp_path: Path, pfx_file: Path):
        calls = []
        source = MappingConfigSource({
            "Settings": {
                "Urls": ["http://db:8080"],
                "DatabaseName": "orders",
                "CertFilePath": "certs/client.pfx",
                "CertPassword": CERT_PASSWORD,
            }
        })
        provider = DocumentStoreProvider(
            source, tmp_path, configure=calls.append, store_class=RecordingStore
        )

        first = provider.options
        second = provider.options

        assert first is second
        assert first.certificate is second.certificate
        assert len(calls) == 1

    def test_failed_resolution_is_retried(self, tmp_path: Path, pfx_file: Path):
        source = MappingConfigSource({
            "Settings": {
                "Urls": ["http://db:8080"],
                "DatabaseName": "orders",
                "CertFilePath": "late.pfx",
                "CertPassword": CERT_PASSWORD,
            }
        })
        provider = DocumentStoreProvider(source, tmp_path, store_class=RecordingStore)

        with pytest.raises(ConfigurationError, match="certificate file missing"):
            provider.create()

        (tmp_path / "late.pfx").write_bytes(pfx_file.read_bytes())

        store = provider.create()

        assert store.certificate is not None
