"""
Client Certificates
===================

Loads the optional TLS client certificate from the filesystem.

Accepts PKCS#12 bundles (``.pfx``/``.p12``) and PEM files holding both the
certificate and its private key. This is the only part of the bootstrap that
reads files; nothing is cached here.
"""

import re
from pathlib import Path
from typing import Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from docstore.core import ConfigurationError
from docstore.domain.value_objects import ClientCertificate
from docstore.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_PEM_MARKER = b"-----BEGIN"
_CERT_BLOCK = re.compile(
    rb"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----", re.DOTALL
)
_KEY_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z ]*PRIVATE KEY)-----.+?-----END \1-----", re.DOTALL
)


def load_certificate(
    relative_path: Optional[str],
    root_path: str,
    password: Optional[str] = None
) -> Optional[ClientCertificate]:
    """
    Load a client certificate relative to the content root.

    Args:
        relative_path: Certificate path from configuration; empty means none
        root_path: Content root the relative path is joined to
        password: Private key password; empty means unprotected

    Returns:
        ClientCertificate, or None when no certificate is configured

    Raises:
        ConfigurationError: The file is missing or cannot be parsed
    """
    if not relative_path:
        return None

    cert_path = Path(root_path) / relative_path
    if not cert_path.is_file():
        raise ConfigurationError(
            "certificate file missing",
            {
                "cert_file_path": relative_path,
                "expected_path": str(cert_path),
            }
        )

    data = cert_path.read_bytes()
    secret = password.encode("utf-8") if password else None

    try:
        if _PEM_MARKER in data:
            certificate = _load_pem(data, secret, cert_path)
        else:
            certificate = _load_pkcs12(data, secret, cert_path)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        # Wrong password and corrupt file are reported the same way
        raise ConfigurationError(
            "certificate invalid",
            {"cert_file_path": relative_path, "path": str(cert_path), "error": str(e)}
        ) from e

    logger.info(
        "Loaded client certificate",
        extra={
            "path": str(cert_path),
            "subject": certificate.subject,
            "fingerprint": certificate.short_fingerprint(),
        }
    )
    return certificate


def _load_pkcs12(data: bytes, password: Optional[bytes], path: Path) -> ClientCertificate:
    private_key, certificate, additional = pkcs12.load_key_and_certificates(data, password)
    if certificate is None:
        raise ValueError("bundle does not contain a certificate")
    if private_key is None:
        raise ValueError("bundle does not contain a private key")
    return ClientCertificate.create(certificate, private_key, path, additional)


def _load_pem(data: bytes, password: Optional[bytes], path: Path) -> ClientCertificate:
    cert_blocks = _CERT_BLOCK.findall(data)
    key_match = _KEY_BLOCK.search(data)
    if not cert_blocks:
        raise ValueError("PEM file does not contain a certificate")
    if key_match is None:
        raise ValueError("PEM file does not contain a private key")
    certificates = x509.load_pem_x509_certificates(b"\n".join(cert_blocks))
    private_key = serialization.load_pem_private_key(key_match.group(0), password=password)
    return ClientCertificate.create(certificates[0], private_key, path, certificates[1:])
