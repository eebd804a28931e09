from __future__ import annotations

__version__ = "0.1.0"

from .core.config import SyncConfig
from .core.errors import ExtractionError, SyncError
from .core.models import DecodedCertificate, LogEntry
from .decoding.certificate import extract_certificate

__all__ = [
    "__version__",
    "SyncConfig",
    "SyncError",
    "ExtractionError",
    "DecodedCertificate",
    "LogEntry",
    "extract_certificate",
]
