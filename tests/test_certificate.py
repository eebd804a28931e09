import base64
import json

import pytest
from cryptography.hazmat.primitives import hashes, serialization

from conftest import duplicate_san_pem, hashedrekord_body, make_certificate
from rekor_mirror.core.errors import (
    BodyDecodeError,
    BodyParseError,
    CertificateParseError,
    ExtractionError,
    PemDecodeError,
)
from rekor_mirror.decoding.certificate import extract_certificate


def _b64(obj) -> str:
    return base64.b64encode(json.dumps(obj).encode()).decode()


def test_extract_certificate_round_trip(make_entry) -> None:
    cert = extract_certificate(make_entry(uuid="abc", integrated_time=123))

    assert cert.emails == ("a@example.com",)
    assert cert.uuid == "abc"
    assert cert.integrated_time == 123
    assert cert.log_index == 42
    assert cert.issuer == "O=sigstore.dev"


def test_extract_certificate_projects_uris_and_fingerprint(make_entry) -> None:
    x = make_certificate(emails=(), uris=("https://github.com/org/repo/.github/workflows/release.yml@refs/heads/main",))
    pem = x.public_bytes(serialization.Encoding.PEM)

    cert = extract_certificate(make_entry(body=hashedrekord_body(pem)))

    assert cert.emails == ()
    assert cert.uris == ("https://github.com/org/repo/.github/workflows/release.yml@refs/heads/main",)
    assert cert.fingerprint_sha256 == x.fingerprint(hashes.SHA256()).hex()
    assert base64.b64decode(cert.raw) == x.public_bytes(serialization.Encoding.DER)
    assert cert.serial_number == str(x.serial_number)


def test_certificate_without_san_has_no_emails(make_entry) -> None:
    pem = make_certificate(emails=()).public_bytes(serialization.Encoding.PEM)

    cert = extract_certificate(make_entry(body=hashedrekord_body(pem)))

    assert cert.emails == ()
    assert cert.uris == ()


def test_to_json_line_is_one_compact_object(make_entry) -> None:
    line = extract_certificate(make_entry()).to_json_line()

    assert line.endswith("\n")
    assert line.count("\n") == 1
    rec = json.loads(line)
    assert rec["emails"] == ["a@example.com"]
    assert rec["log_id"].startswith("c0d23d6a")


def test_malformed_base64_body(make_entry) -> None:
    with pytest.raises(BodyDecodeError) as exc:
        extract_certificate(make_entry(uuid="bad", body="not base64 at all!"))

    assert exc.value.uuid == "bad"
    assert exc.value.stage == "body-decode"


def test_body_that_is_not_json(make_entry) -> None:
    body = base64.b64encode(b"\x00\x01 definitely not json").decode()

    with pytest.raises(BodyParseError):
        extract_certificate(make_entry(body=body))


def test_body_of_another_entry_kind(make_entry) -> None:
    body = _b64({"apiVersion": "0.0.1", "kind": "intoto", "spec": {"content": {"envelope": "..."}}})

    with pytest.raises(BodyParseError):
        extract_certificate(make_entry(body=body))


def test_public_key_content_not_base64(make_entry) -> None:
    body = _b64({"spec": {"signature": {"publicKey": {"content": "%%%"}}}})

    with pytest.raises(BodyParseError):
        extract_certificate(make_entry(body=body))


def test_public_key_without_pem_block(make_entry) -> None:
    body = hashedrekord_body(b"just some bytes, no armor")

    with pytest.raises(PemDecodeError) as exc:
        extract_certificate(make_entry(body=body))

    assert exc.value.stage == "pem-decode"


def test_pem_block_with_garbage_der(make_entry) -> None:
    pem = b"-----BEGIN CERTIFICATE-----\n" + base64.encodebytes(b"garbage der") + b"-----END CERTIFICATE-----\n"

    with pytest.raises(CertificateParseError):
        extract_certificate(make_entry(body=hashedrekord_body(pem)))


def test_bare_public_key_is_not_a_certificate(make_entry) -> None:
    key = make_certificate().public_key()
    pem = key.public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo)

    with pytest.raises(CertificateParseError):
        extract_certificate(make_entry(body=hashedrekord_body(pem)))


def test_all_stage_errors_are_extraction_errors() -> None:
    for cls in (BodyDecodeError, BodyParseError, PemDecodeError, CertificateParseError):
        assert issubclass(cls, ExtractionError)


def test_duplicate_extension_is_a_certificate_parse_error(make_entry) -> None:
    with pytest.raises(CertificateParseError) as exc:
        extract_certificate(make_entry(uuid="dup", body=hashedrekord_body(duplicate_san_pem())))

    assert exc.value.uuid == "dup"
    assert exc.value.stage == "certificate-parse"
