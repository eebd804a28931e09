"""Orchestration of a full sync run.

This package provides:
- `sync_rekor`: wires the default adapters around `SyncService`
"""

from rekor_mirror.orchestration.orchestrator import sync_rekor

__all__ = ["sync_rekor"]
