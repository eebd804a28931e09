from __future__ import annotations

from dataclasses import dataclass

from rekor_mirror.core.errors import ConfigError

DEFAULT_REKOR_URL = "https://rekor.sigstore.dev"


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for one synchronization run."""

    project: str  # DuckDB database file of the analytical store
    bucket: str  # output directory for rekor-<highwater>.json
    dataset: str
    table: str
    identity: str  # tracked email address
    rekor_url: str = DEFAULT_REKOR_URL
    concurrency: int = 1
    timeout_s: int = 20
    timestamp_column: str = "timestamp"

    def __post_init__(self) -> None:
        for name in ("project", "bucket", "dataset", "table", "identity"):
            if not getattr(self, name):
                raise ConfigError(f"{name.upper()} must be set")
        if self.concurrency < 1:
            raise ConfigError("CONCURRENCY must be >= 1")
        if self.timeout_s <= 0:
            raise ConfigError("TIMEOUT_S must be > 0")
