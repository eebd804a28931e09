"""Run-scoped value types.

- `LogEntry`: one Rekor entry, minimally normalized from the API response.
- `DecodedCertificate`: signing certificate extracted from an entry, in the
  shape written to the output artifact.
- `EntryFailure`: record of an entry skipped because extraction failed.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Literal

Stage = Literal["body-decode", "body-parse", "pem-decode", "certificate-parse"]


@dataclass(slots=True, frozen=True)
class LogEntry:
    """Raw log entry as fetched from Rekor."""

    uuid: str
    integrated_time: int | None  # None until the entry is integrated
    log_id: str
    body: str  # base64 of the kind-specific record
    log_index: int | None = None


@dataclass(slots=True, frozen=True)
class DecodedCertificate:
    """Certificate fields kept for the analytical store."""

    uuid: str
    log_id: str
    integrated_time: int
    log_index: int | None
    serial_number: str  # decimal, arbitrary size
    subject: str  # RFC 4514
    issuer: str  # RFC 4514
    not_before: str  # ISO-8601 UTC
    not_after: str  # ISO-8601 UTC
    emails: tuple[str, ...]
    uris: tuple[str, ...]
    fingerprint_sha256: str
    raw: str  # base64 DER

    def to_json_line(self) -> str:
        """Serialize as a compact JSON line."""
        return json.dumps(asdict(self), separators=(",", ":")) + "\n"


@dataclass(slots=True, frozen=True)
class EntryFailure:
    """An entry the mirror failed to capture."""

    uuid: str
    stage: Stage
    error: str
