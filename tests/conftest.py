"""
Shared fixtures: in-memory document stores and generated client certificates.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Sequence

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from docstore.application.interfaces import IDocumentStore
from docstore.infrastructure.config_sources import MappingConfigSource


CERT_PASSWORD = "s3cret"


# ---------------------------------------------------------------------------
# Document store doubles
# ---------------------------------------------------------------------------


class RecordingStore(IDocumentStore):
    """Store that records the calls made on it instead of connecting."""

    instances: List["RecordingStore"] = []
    fail_with: Optional[BaseException] = None
    _instances_lock = threading.Lock()

    def __init__(self, urls: Sequence[str], database: str):
        super().__init__(urls, database)
        self.events: List[str] = ["constructed"]
        self.initialize_calls = 0
        self.closed = False
        self._initialized = False
        with self._instances_lock:
            RecordingStore.instances.append(self)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> "RecordingStore":
        self.initialize_calls += 1
        self.events.append("initialize")
        if RecordingStore.fail_with is not None:
            raise RecordingStore.fail_with
        self.conventions.freeze()
        self._initialized = True
        return self

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_recording_store():
    RecordingStore.instances = []
    RecordingStore.fail_with = None
    yield
    RecordingStore.instances = []
    RecordingStore.fail_with = None


@pytest.fixture
def config_source() -> MappingConfigSource:
    return MappingConfigSource({
        "Settings": {
            "Urls": ["http://db:8080"],
            "DatabaseName": "orders",
        }
    })


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------


def make_key_and_certificate(common_name: str = "docstore-client"):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=1))
        .not_valid_after(now + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return key, certificate


@pytest.fixture
def key_and_certificate():
    return make_key_and_certificate()


@pytest.fixture
def pfx_file(tmp_path: Path, key_and_certificate) -> Path:
    """Password-protected PKCS#12 bundle at ``<tmp>/certs/client.pfx``."""
    key, certificate = key_and_certificate
    path = tmp_path / "certs" / "client.pfx"
    path.parent.mkdir(parents=True)
    path.write_bytes(
        pkcs12.serialize_key_and_certificates(
            b"client",
            key,
            certificate,
            None,
            serialization.BestAvailableEncryption(CERT_PASSWORD.encode()),
        )
    )
    return path


@pytest.fixture
def pem_file(tmp_path: Path, key_and_certificate) -> Path:
    """Certificate followed by an encrypted private key at ``<tmp>/client.pem``."""
    key, certificate = key_and_certificate
    path = tmp_path / "client.pem"
    path.write_bytes(
        certificate.public_bytes(serialization.Encoding.PEM)
        + key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.BestAvailableEncryption(CERT_PASSWORD.encode()),
        )
    )
    return path
