"""
Document Store Value Objects
=============================

Immutable value objects describing how to reach a document database.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared between threads.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from pydantic import BaseModel, ConfigDict, Field, field_validator

from docstore.core import ConfigurationError


class StoreSettings(BaseModel):
    """
    Connection parameters bound from a configuration section.

    Fields absent from the section stay empty; required fields are checked
    when the client is built, not here.
    """

    # YAML and environment sources hand out ints for values like ``2024``
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    urls: Tuple[str, ...] = Field(
        default=(),
        description="Ordered server URLs"
    )
    database_name: str = Field(
        default="",
        description="Database to open on the server"
    )
    cert_file_path: Optional[str] = Field(
        default=None,
        description="Client certificate path, relative to the content root"
    )
    cert_password: Optional[str] = Field(
        default=None,
        description="Password protecting the certificate's private key",
        repr=False
    )

    @field_validator("urls", mode="before")
    @classmethod
    def coerce_urls(cls, v: Any) -> Any:
        """
        Accept the shapes configuration providers hand out for a list.

        - ``None`` -> empty
        - ``"a, b"`` -> ``("a", "b")`` (environment variable convenience)
        - ``{"0": "a", "1": "b"}`` -> ``("a", "b")`` (indexed keys)
        """
        if v is None:
            return ()
        if isinstance(v, str):
            return tuple(part.strip() for part in v.split(",") if part.strip())
        if isinstance(v, dict) and all(str(k).isdigit() for k in v):
            return tuple(v[k] for k in sorted(v, key=lambda k: int(k)))
        return v

    @field_validator("database_name", mode="before")
    @classmethod
    def coerce_database_name(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def has_certificate(self) -> bool:
        return bool(self.cert_file_path)


@dataclass
class StoreConventions:
    """
    Client-wide conventions applied when the client initializes.

    Adjust them from a ``before_initialize`` hook. Once the owning store is
    initialized the conventions are frozen and any assignment raises
    ``ConfigurationError``.
    """

    app_name: Optional[str] = None
    identity_parts_separator: str = "/"
    server_selection_timeout_ms: int = 30000
    max_pool_size: int = 100
    retry_writes: bool = True
    tz_aware: bool = False
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if name != "_frozen" and getattr(self, "_frozen", False):
            raise ConfigurationError(
                f"Conventions cannot be changed after the document store was initialized "
                f"(attempted to set '{name}')",
                {"convention": name}
            )
        super().__setattr__(name, value)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.init}


@dataclass(frozen=True)
class ClientCertificate:
    """
    Loaded client certificate and its private key.

    Two instances are equal when they come from the same file and carry the
    same certificate (SHA-256 fingerprint); key objects are not compared.
    """

    certificate: x509.Certificate = field(compare=False)
    private_key: Any = field(compare=False, repr=False)
    source_path: Path
    fingerprint: str
    additional_certificates: Tuple[x509.Certificate, ...] = field(
        default=(), compare=False, repr=False
    )

    @classmethod
    def create(
        cls,
        certificate: x509.Certificate,
        private_key: Any,
        source_path: Path,
        additional_certificates: Optional[List[x509.Certificate]] = None
    ) -> "ClientCertificate":
        return cls(
            certificate=certificate,
            private_key=private_key,
            source_path=source_path,
            fingerprint=certificate.fingerprint(hashes.SHA256()).hex(),
            additional_certificates=tuple(additional_certificates or ()),
        )

    @property
    def subject(self) -> str:
        return self.certificate.subject.rfc4514_string()

    def to_pem(self, password: Optional[bytes] = None) -> bytes:
        """
        Render certificate, chain and private key as a single PEM document.

        Args:
            password: Encrypts the private key when given

        Returns:
            PEM bytes suitable for a driver's certificate-key file
        """
        encryption = (
            serialization.BestAvailableEncryption(password)
            if password
            else serialization.NoEncryption()
        )
        parts = [self.certificate.public_bytes(serialization.Encoding.PEM)]
        parts.extend(
            extra.public_bytes(serialization.Encoding.PEM)
            for extra in self.additional_certificates
        )
        parts.append(
            self.private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=encryption,
            )
        )
        return b"".join(parts)

    def short_fingerprint(self) -> str:
        """First 16 hex chars of the fingerprint, for logs."""
        return self.fingerprint[:16]

