from __future__ import annotations

from typing import Protocol, runtime_checkable

from rekor_mirror.core.models import LogEntry


# ---------------------------------------------------------------------------
# IHighWaterMarkResolver
# ---------------------------------------------------------------------------

@runtime_checkable
class IHighWaterMarkResolver(Protocol):
    """
    Read-only view of how far the analytical store has progressed.

    Domain expectations:
    - Returns the largest timestamp already recorded, or 0 if none.
    - Raises ResolutionError when the store cannot be queried.
    """

    def resolve(self) -> int:
        """
        Return the current high-water mark (epoch seconds).

        Implementations:
        - DuckDB table (`DuckDBHighWaterMark`)
        - Static value for testing
        """
        ...


# ---------------------------------------------------------------------------
# IRekorIndex
# ---------------------------------------------------------------------------

@runtime_checkable
class IRekorIndex(Protocol):
    """Search the transparency log's index by identity."""

    async def search_index(self, *, email: str) -> list[str]:
        """
        Return the entry UUIDs attributed to `email`, in no particular order.

        Raises IndexQueryError on transport or response-shape errors.
        """
        ...


# ---------------------------------------------------------------------------
# IRekorEntries
# ---------------------------------------------------------------------------

@runtime_checkable
class IRekorEntries(Protocol):
    """Fetch single transparency-log entries."""

    async def get_entry(self, uuid: str) -> LogEntry:
        """
        Return the entry identified by `uuid`.

        Raises FetchError (carrying the uuid) on any failure, including 404.
        """
        ...


# ---------------------------------------------------------------------------
# IArtifactStore
# ---------------------------------------------------------------------------

@runtime_checkable
class IArtifactStore(Protocol):
    """
    Sink for immutable output objects.

    Domain expectations:
    - `put` creates or overwrites `name` and only makes it visible once the
      whole payload is written.
    - On failure nothing is left behind under `name` and WriteError is raised.
    """

    def put(self, name: str, data: bytes) -> str:
        """
        Write `data` under `name`.

        Returns
        -------
        str
            Location of the finalized object (path, URL...).
        """
        ...
