"""Async client for the Rekor transparency-log REST API.

This module provides:
- `RekorClient`: index search and entry fetch with sane timeouts/connection limits

It returns `LogEntry` records ready for filtering and certificate extraction.
Every failure is translated into the run's error taxonomy (IndexQueryError,
FetchError) so callers never see raw httpx exceptions.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx
from pydantic import ValidationError

from rekor_mirror import __version__
from rekor_mirror.core.config import DEFAULT_REKOR_URL
from rekor_mirror.core.errors import FetchError, IndexQueryError
from rekor_mirror.core.models import LogEntry
from rekor_mirror.decoding.records import IndexResponse, LogEntryResponse

USER_AGENT = f"rekor-mirror/{__version__}"


class RekorClient:
    """Minimal async Rekor client.

    Parameters
    ----------
    url : str
        Rekor base URL.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (tests use `httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str = DEFAULT_REKOR_URL,
        *,
        timeout_s: int = 20,
        max_connections: int = 16,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
            transport=transport,
        )

    async def search_index(self, *, email: str) -> list[str]:
        """Return the entry UUIDs attributed to `email`."""
        try:
            r = await self.client.post("/api/v1/index/retrieve", json={"email": email})
            r.raise_for_status()
            return IndexResponse.validate_json(r.content)
        except httpx.HTTPError as e:
            raise IndexQueryError(f"index search for {email!r} failed: {type(e).__name__}: {e}") from e
        except ValidationError as e:
            raise IndexQueryError(f"index search for {email!r} returned an unexpected payload") from e

    async def get_entry(self, uuid: str) -> LogEntry:
        """Fetch one entry by UUID."""
        try:
            r = await self.client.get(f"/api/v1/log/entries/{quote(uuid, safe='')}")
            r.raise_for_status()
            payload = LogEntryResponse.validate_json(r.content)
        except httpx.HTTPError as e:
            raise FetchError(uuid, f"{type(e).__name__}: {e}") from e
        except ValidationError as e:
            raise FetchError(uuid, "unexpected response payload") from e

        rec = payload.get(uuid)
        if rec is None:
            if len(payload) != 1:
                raise FetchError(uuid, f"response holds {len(payload)} entries, none matching")
            # lookups by short UUID come back keyed by the tree-prefixed entry ID
            rec = next(iter(payload.values()))

        return LogEntry(
            uuid=uuid,
            integrated_time=rec.integratedTime,
            log_id=rec.logID,
            body=rec.body,
            log_index=rec.logIndex,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
