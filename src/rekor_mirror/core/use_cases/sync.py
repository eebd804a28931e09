from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal

from rekor_mirror.core.errors import ExtractionError, RunCancelled
from rekor_mirror.core.interfaces import IHighWaterMarkResolver, IRekorEntries, IRekorIndex
from rekor_mirror.core.models import DecodedCertificate, EntryFailure
from rekor_mirror.decoding.certificate import extract_certificate
from rekor_mirror.storage.artifacts import BatchWriter

logger = logging.getLogger(__name__)

State = Literal["idle", "resolving-mark", "querying", "iterating", "done", "aborted"]


# ---------------------------------------------------------------------------
# Domain configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SyncRunConfig:
    """
    Domain-level configuration for the sync use case.

    Free of infrastructure concerns (no URLs, database paths or buckets).
    """

    identity: str
    concurrency: int = 1


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class SyncStats:
    """
    Counters for one run, mutated as entries are processed.

    `state` follows the run through resolving-mark -> querying -> iterating
    -> done | aborted; `aborted_in` keeps the state the run was in when a
    fatal error stopped it.
    """

    state: State = "idle"
    aborted_in: State | None = None
    refs: int = 0
    fetched: int = 0
    excluded_unintegrated: int = 0
    excluded_old: int = 0
    decoded: int = 0
    failures: list[EntryFailure] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.failures)


@dataclass(kw_only=True)
class SyncResult:
    """Outcome of a successful run."""

    highwater: int
    artifact: str
    certificates: int
    stats: SyncStats


# ---------------------------------------------------------------------------
# Entry filter
# ---------------------------------------------------------------------------


def should_include(integrated_time: int | None, highwater: int) -> bool:
    """Return True if an entry integrated at `integrated_time` is new at `highwater`.

    Entries that are not integrated yet are never included; entries strictly
    older than the mark are already represented in the store.
    """
    if integrated_time is None:
        return False
    return integrated_time >= highwater


# ---------------------------------------------------------------------------
# Processing context
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SyncContext:
    """Shared state for entry processing (keeps worker signatures small)."""

    entries: IRekorEntries
    highwater: int
    sem: asyncio.Semaphore
    stats: SyncStats
    cancel_event: asyncio.Event | None

    def checkpoint(self, where: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RunCancelled(f"run cancelled {where}")


async def process_entry(ctx: SyncContext, uuid: str) -> DecodedCertificate | None:
    """Fetch, filter and decode one entry.

    FetchError and RunCancelled propagate (fatal); extraction failures are
    recorded in `ctx.stats.failures` and yield None.
    """
    async with ctx.sem:
        ctx.checkpoint(f"before entry {uuid}")
        entry = await ctx.entries.get_entry(uuid)
    ctx.stats.fetched += 1

    if not should_include(entry.integrated_time, ctx.highwater):
        if entry.integrated_time is None:
            ctx.stats.excluded_unintegrated += 1
        else:
            ctx.stats.excluded_old += 1
        return None

    logger.info(
        "Found entry uuid=%s integratedTime=%d logID=%s",
        uuid,
        entry.integrated_time,
        entry.log_id,
    )
    try:
        cert = extract_certificate(entry)
    except ExtractionError as e:
        logger.error("skipping entry %s: %s", uuid, e)
        ctx.stats.failures.append(EntryFailure(uuid=uuid, stage=e.stage, error=str(e)))
        return None

    logger.info("Found certificate uuid=%s emails=%s", uuid, list(cert.emails))
    ctx.stats.decoded += 1
    return cert


# ---------------------------------------------------------------------------
# Domain service – SyncService
# ---------------------------------------------------------------------------


class SyncService:
    """
    Domain service for one incremental mirror run.

    Depends only on abstract providers (interfaces) plus the batch writer;
    wiring of concrete clients is done by `orchestration.sync_rekor`.
    """

    def __init__(
        self,
        *,
        resolver: IHighWaterMarkResolver,
        index: IRekorIndex,
        entries: IRekorEntries,
        writer: BatchWriter,
    ) -> None:
        self._resolver = resolver
        self._index = index
        self._entries = entries
        self._writer = writer

    async def run(
        self,
        *,
        config: SyncRunConfig,
        cancel_event: asyncio.Event | None = None,
        stats: SyncStats | None = None,
    ) -> SyncResult:
        """
        Resolve the mark, query the index, process every entry, write the batch.

        Parameters
        ----------
        config : SyncRunConfig
            Tracked identity and entry concurrency.
        cancel_event : asyncio.Event | None
            When set, the run aborts with RunCancelled at the next entry
            boundary and nothing is written.
        stats : SyncStats | None
            Caller-owned counters, so progress stays readable after an abort.

        Notes
        -----
        - Any fatal SyncError propagates after pending entry tasks are cancelled.
        - The artifact is written only once every ref has been visited.
        """
        stats = stats if stats is not None else SyncStats()
        try:
            return await self._run(config, cancel_event, stats)
        except BaseException:
            stats.aborted_in = stats.state
            stats.state = "aborted"
            raise

    async def _run(
        self,
        config: SyncRunConfig,
        cancel_event: asyncio.Event | None,
        stats: SyncStats,
    ) -> SyncResult:
        # 1) High-water mark (blocking DB read off the event loop)
        stats.state = "resolving-mark"
        highwater = await asyncio.to_thread(self._resolver.resolve)

        # 2) Index search; repeated UUIDs are processed once
        stats.state = "querying"
        refs = list(dict.fromkeys(await self._index.search_index(email=config.identity)))
        stats.refs = len(refs)
        logger.info("found %d entries for %s", len(refs), config.identity)

        # 3) Per-entry fetch -> filter -> extract
        stats.state = "iterating"
        ctx = SyncContext(
            entries=self._entries,
            highwater=highwater,
            sem=asyncio.Semaphore(config.concurrency),
            stats=stats,
            cancel_event=cancel_event,
        )
        tasks = [asyncio.create_task(process_entry(ctx, uuid)) for uuid in refs]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        # gather keeps ref order, independent of completion order
        batch = [cert for cert in results if cert is not None]
        ctx.checkpoint("before writing the artifact")

        # 4) Finalize the artifact
        artifact = await asyncio.to_thread(self._writer.write, batch, highwater)
        stats.state = "done"
        return SyncResult(
            highwater=highwater,
            artifact=artifact,
            certificates=len(batch),
            stats=stats,
        )
