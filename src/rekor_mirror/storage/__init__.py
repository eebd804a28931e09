"""Storage adapters for the analytical store and the output bucket.

This package provides:
- DuckDBHighWaterMark: reads the high-water mark from a DuckDB table
- LocalArtifactStore: atomic, directory-backed artifact store
- BatchWriter: JSON-lines serialization of a run's certificates
"""

from rekor_mirror.storage.artifacts import BatchWriter, LocalArtifactStore, artifact_name
from rekor_mirror.storage.highwater import DuckDBHighWaterMark

__all__ = [
    "BatchWriter",
    "DuckDBHighWaterMark",
    "LocalArtifactStore",
    "artifact_name",
]
