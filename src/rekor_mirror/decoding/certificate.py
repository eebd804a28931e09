"""Certificate extraction from Rekor entry bodies.

`extract_certificate` walks four independent stages, each with its own
error type so a skipped entry can be traced back to what went wrong:

1. base64 envelope       -> BodyDecodeError
2. hashedrekord record   -> BodyParseError
3. PEM armor             -> PemDecodeError
4. DER certificate       -> CertificateParseError
"""

from __future__ import annotations

import base64
import binascii
import re

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from pydantic import ValidationError

from rekor_mirror.core.errors import (
    BodyDecodeError,
    BodyParseError,
    CertificateParseError,
    PemDecodeError,
)
from rekor_mirror.core.models import DecodedCertificate, LogEntry
from rekor_mirror.decoding.records import HashedRekord

# First armored block of any type; the type is checked by the DER parse.
_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----\r?\n(.*?)-----END \1-----",
    re.DOTALL,
)


# ---------- stages ----------


def decode_body(entry: LogEntry) -> bytes:
    """Stage 1: strict base64 decode of the entry body."""
    try:
        return base64.b64decode(entry.body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise BodyDecodeError(entry.uuid, str(e)) from e


def parse_public_key(uuid: str, raw: bytes) -> bytes:
    """Stage 2: locate the public-key material (PEM text) in a hashedrekord record."""
    try:
        record = HashedRekord.model_validate_json(raw)
    except ValidationError as e:
        raise BodyParseError(uuid, f"not a hashedrekord record ({e.error_count()} errors)") from e
    try:
        return base64.b64decode(record.spec.signature.publicKey.content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise BodyParseError(uuid, f"publicKey.content is not base64: {e}") from e


def decode_pem(uuid: str, pem: bytes) -> bytes:
    """Stage 3: return the DER bytes of the first PEM block."""
    m = _PEM_BLOCK.search(pem)
    if m is None:
        raise PemDecodeError(uuid, "no PEM block found")
    try:
        return base64.b64decode(b"".join(m.group(2).split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise PemDecodeError(uuid, f"bad base64 in {m.group(1).decode()} block") from e


def parse_certificate(entry: LogEntry, der: bytes) -> DecodedCertificate:
    """Stage 4: parse DER and project the fields we keep."""
    try:
        cert = x509.load_der_x509_certificate(der)
        emails, uris = _subject_alt_names(cert)
        return DecodedCertificate(
            uuid=entry.uuid,
            log_id=entry.log_id,
            integrated_time=int(entry.integrated_time or 0),
            log_index=entry.log_index,
            serial_number=str(cert.serial_number),
            subject=cert.subject.rfc4514_string(),
            issuer=cert.issuer.rfc4514_string(),
            not_before=cert.not_valid_before_utc.isoformat(),
            not_after=cert.not_valid_after_utc.isoformat(),
            emails=tuple(emails),
            uris=tuple(uris),
            fingerprint_sha256=cert.fingerprint(hashes.SHA256()).hex(),
            raw=base64.b64encode(der).decode("ascii"),
        )
    except (ValueError, x509.DuplicateExtension, x509.UnsupportedGeneralNameType) as e:
        # cryptography parses extensions lazily, so the property reads stay inside the try
        raise CertificateParseError(entry.uuid, str(e)) from e


def _subject_alt_names(cert: x509.Certificate) -> tuple[list[str], list[str]]:
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return [], []
    return (
        san.value.get_values_for_type(x509.RFC822Name),
        san.value.get_values_for_type(x509.UniformResourceIdentifier),
    )


# ---------- main entry point ----------


def extract_certificate(entry: LogEntry) -> DecodedCertificate:
    """Decode the signing certificate embedded in `entry`.

    Raises one of the `ExtractionError` subclasses; callers treat them as
    per-entry, non-fatal failures.
    """
    raw = decode_body(entry)
    pem = parse_public_key(entry.uuid, raw)
    der = decode_pem(entry.uuid, pem)
    return parse_certificate(entry, der)
