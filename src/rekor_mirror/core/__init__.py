"""Core data models, configuration, errors and interfaces.

This package provides:
- Data models (LogEntry, DecodedCertificate, EntryFailure)
- Run configuration (SyncConfig)
- Error taxonomy (SyncError and its fatal / per-entry families)
"""

from rekor_mirror.core.config import SyncConfig
from rekor_mirror.core.errors import (
    BodyDecodeError,
    BodyParseError,
    CertificateParseError,
    ConfigError,
    ExtractionError,
    FetchError,
    IndexQueryError,
    PemDecodeError,
    ResolutionError,
    RunCancelled,
    SyncError,
    WriteError,
)
from rekor_mirror.core.models import DecodedCertificate, EntryFailure, LogEntry

__all__ = [
    "SyncConfig",
    "DecodedCertificate",
    "EntryFailure",
    "LogEntry",
    "SyncError",
    "ConfigError",
    "ResolutionError",
    "IndexQueryError",
    "FetchError",
    "WriteError",
    "RunCancelled",
    "ExtractionError",
    "BodyDecodeError",
    "BodyParseError",
    "PemDecodeError",
    "CertificateParseError",
]
