"""Error taxonomy for a synchronization run.

Two families:
- fatal errors (everything deriving directly from `SyncError`) abort the run
  and leave no artifact behind;
- `ExtractionError` and its subclasses are per-entry: the entry is recorded
  as skipped and the run carries on.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for every error raised by a sync run."""


class ConfigError(SyncError):
    """Missing or invalid configuration value."""


class ResolutionError(SyncError):
    """The high-water mark could not be read from the analytical store."""


class IndexQueryError(SyncError):
    """The Rekor index search failed."""


class FetchError(SyncError):
    """A single log entry could not be fetched."""

    def __init__(self, uuid: str, message: str) -> None:
        super().__init__(f"fetch entry {uuid}: {message}")
        self.uuid = uuid


class WriteError(SyncError):
    """The output artifact could not be written."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"write artifact {name}: {message}")
        self.name = name


class RunCancelled(SyncError):
    """The run was cancelled before it could finish."""


class ExtractionError(SyncError):
    """Recoverable failure to extract a certificate from one entry."""

    stage = "extract"

    def __init__(self, uuid: str, message: str) -> None:
        super().__init__(f"{self.stage} failed for entry {uuid}: {message}")
        self.uuid = uuid


class BodyDecodeError(ExtractionError):
    stage = "body-decode"


class BodyParseError(ExtractionError):
    stage = "body-parse"


class PemDecodeError(ExtractionError):
    stage = "pem-decode"


class CertificateParseError(ExtractionError):
    stage = "certificate-parse"
