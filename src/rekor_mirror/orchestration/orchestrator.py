"""Run wiring: Rekor → filter → extract → JSON-lines artifact.

`SyncService` (core.use_cases.sync) is the pure use case and depends only on
interfaces. `sync_rekor(...)` is the convenience wrapper that instantiates
the concrete adapters (RekorClient, DuckDBHighWaterMark, LocalArtifactStore)
from a `SyncConfig`, runs the use case and closes the HTTP client.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from rekor_mirror.clients.rekor import RekorClient
from rekor_mirror.core.config import SyncConfig
from rekor_mirror.core.use_cases.sync import SyncResult, SyncRunConfig, SyncService, SyncStats
from rekor_mirror.storage.artifacts import BatchWriter, LocalArtifactStore
from rekor_mirror.storage.highwater import DuckDBHighWaterMark

logger = logging.getLogger(__name__)

MIN_HTTP_CONNECTIONS = 4


async def sync_rekor(
    *,
    config: SyncConfig,
    cancel_event: asyncio.Event | None = None,
    stats: SyncStats | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SyncResult:
    """Run one incremental sync with the default adapters.

    Raises the run's fatal `SyncError`s unchanged; the caller decides the
    exit status.
    """
    logger.info(
        "Starting up project=%s dataset=%s table=%s bucket=%s identity=%s",
        config.project,
        config.dataset,
        config.table,
        config.bucket,
        config.identity,
    )
    rekor = RekorClient(
        config.rekor_url,
        timeout_s=config.timeout_s,
        max_connections=max(MIN_HTTP_CONNECTIONS, 2 * config.concurrency),
        transport=transport,
    )
    service = SyncService(
        resolver=DuckDBHighWaterMark(
            config.project,
            dataset=config.dataset,
            table=config.table,
            column=config.timestamp_column,
        ),
        index=rekor,
        entries=rekor,
        writer=BatchWriter(LocalArtifactStore(config.bucket)),
    )
    try:
        return await service.run(
            config=SyncRunConfig(identity=config.identity, concurrency=config.concurrency),
            cancel_event=cancel_event,
            stats=stats,
        )
    finally:
        await rekor.aclose()
