"""Entry-body decoding.

This package provides:
- Wire models for Rekor responses and hashedrekord bodies
- `extract_certificate`, the four-stage certificate extractor
"""

from rekor_mirror.decoding.certificate import extract_certificate
from rekor_mirror.decoding.records import HashedRekord, RekorLogEntry

__all__ = [
    "extract_certificate",
    "HashedRekord",
    "RekorLogEntry",
]
