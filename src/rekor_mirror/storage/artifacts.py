"""Batch output: one JSON-lines artifact per run.

- `artifact_name`: deterministic object name from the run's high-water mark.
- `LocalArtifactStore`: filesystem-backed store with atomic tmp + replace writes.
- `BatchWriter`: renders a batch of certificates and hands it to a store.
"""

from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from rekor_mirror.core.errors import WriteError
from rekor_mirror.core.interfaces import IArtifactStore
from rekor_mirror.core.models import DecodedCertificate

logger = logging.getLogger(__name__)


def artifact_name(highwater: int) -> str:
    """Name of the artifact produced by a run starting at `highwater`."""
    return f"rekor-{highwater}.json"


class LocalArtifactStore(IArtifactStore):
    """Artifact store rooted at a local directory (the "bucket")."""

    def __init__(self, root: str | Path) -> None:
        root = str(root)
        if root.startswith("file://"):
            root = root[len("file://"):]
        self.root = Path(root)

    def put(self, name: str, data: bytes) -> str:
        """Write atomically (tmp + replace); nothing is visible under `name` on failure."""
        out_path = self.root / name
        tmp = out_path.with_name(out_path.name + ".tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(tmp, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, out_path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise WriteError(name, str(e)) from e
        return out_path.as_posix()


class BatchWriter:
    """Serialize a batch of certificates as JSON lines into one artifact."""

    def __init__(self, store: IArtifactStore) -> None:
        self.store = store

    def write(self, batch: Sequence[DecodedCertificate], highwater: int) -> str:
        """Write `batch` as `rekor-<highwater>.json`; an empty batch yields an empty artifact.

        Returns the location reported by the store.
        """
        name = artifact_name(highwater)
        payload = "".join(cert.to_json_line() for cert in batch).encode("utf-8")
        logger.info("writing artifact %s (%d certificates, %d bytes)", name, len(batch), len(payload))
        return self.store.put(name, payload)
