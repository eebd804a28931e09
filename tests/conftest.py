import base64
import datetime
import json
from unittest.mock import AsyncMock

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from rekor_mirror.core.models import LogEntry


def make_certificate(emails=("a@example.com",), uris=()) -> x509.Certificate:
    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([]))
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, "sigstore.dev")]))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(minutes=10))
    )
    names = [x509.RFC822Name(e) for e in emails] + [x509.UniformResourceIdentifier(u) for u in uris]
    if names:
        builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=True)
    return builder.sign(key, hashes.SHA256())


def hashedrekord_body(pem: bytes) -> str:
    """base64 body of a hashedrekord entry whose public key is `pem`."""
    record = {
        "apiVersion": "0.0.1",
        "kind": "hashedrekord",
        "spec": {
            "data": {"hash": {"algorithm": "sha256", "value": "ab" * 32}},
            "signature": {
                "content": base64.b64encode(b"sig").decode(),
                "publicKey": {"content": base64.b64encode(pem).decode()},
            },
        },
    }
    return base64.b64encode(json.dumps(record).encode()).decode()


@pytest.fixture
def cert_pem() -> bytes:
    return make_certificate().public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def make_entry(cert_pem: bytes):
    def _make(uuid: str = "u1", integrated_time: int | None = 1_700_000_000, body: str | None = None) -> LogEntry:
        return LogEntry(
            uuid=uuid,
            integrated_time=integrated_time,
            log_id="c0d23d6ad406973f9559f3ba2d1ca01f84147d8ffc5b8445c224f98b9591801d",
            body=hashedrekord_body(cert_pem) if body is None else body,
            log_index=42,
        )

    return _make


@pytest.fixture
def mock_rekor():
    rekor = AsyncMock()
    rekor.search_index = AsyncMock(return_value=[])
    rekor.get_entry = AsyncMock()
    rekor.aclose = AsyncMock()
    return rekor


def duplicate_san_pem() -> bytes:
    """PEM of a certificate carrying two SubjectAlternativeName extensions.

    Built with a SAN and an IssuerAltName, then the IssuerAltName OID
    (2.5.29.18) is rewritten to the SAN OID (2.5.29.17). The DER still
    parses; extension access raises DuplicateExtension.
    """
    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([]))
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, "sigstore.dev")]))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(minutes=10))
        .add_extension(x509.SubjectAlternativeName([x509.RFC822Name("a@example.com")]), critical=True)
        .add_extension(x509.IssuerAlternativeName([x509.RFC822Name("b@example.com")]), critical=False)
        .sign(key, hashes.SHA256())
    )
    der = cert.public_bytes(serialization.Encoding.DER)
    der = der.replace(b"\x06\x03\x55\x1d\x12", b"\x06\x03\x55\x1d\x11")
    return b"-----BEGIN CERTIFICATE-----\n" + base64.encodebytes(der) + b"-----END CERTIFICATE-----\n"
