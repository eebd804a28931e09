"""High-water mark resolution against the DuckDB analytical store.

The mark is the largest value of the table's timestamp column. It is an
approximation of "everything before this is durable": rows that are still
propagating into the table are invisible here, so a later run may re-emit
them. Consumers de-duplicate by certificate fingerprint.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import duckdb

from rekor_mirror.core.errors import ResolutionError

logger = logging.getLogger(__name__)

MAX_TIMESTAMP_QUERY = "SELECT MAX({column}) FROM {dataset}.{table}"

# Returned when the table holds no rows yet.
EMPTY_MARK = 0


def quote_ident(name: str) -> str:
    """Quote a SQL identifier for DuckDB."""
    return '"' + name.replace('"', '""') + '"'


@contextmanager
def get_connection(database: str | Path, threads: int = 1) -> Iterator[duckdb.DuckDBPyConnection]:
    """Read-only DuckDB connection, closed on exit."""
    con = duckdb.connect(database=str(database), read_only=True)
    try:
        con.execute(f"PRAGMA threads={threads}")
        yield con
    finally:
        con.close()


def to_epoch_seconds(value: Any) -> int:
    """Normalize a MAX() result to integer epoch seconds."""
    if value is None:
        return EMPTY_MARK
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())
    if isinstance(value, date):
        return int(datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp())
    return int(value)


class DuckDBHighWaterMark:
    """Resolve the high-water mark from `<dataset>.<table>` in a DuckDB database.

    Parameters
    ----------
    database : str | Path
        DuckDB database file.
    dataset : str
        Schema holding the table.
    table : str
        Table name.
    column : str
        Timestamp column (epoch seconds, TIMESTAMP or DATE).
    """

    def __init__(
        self,
        database: str | Path,
        *,
        dataset: str,
        table: str,
        column: str = "timestamp",
    ) -> None:
        self.database = database
        self.dataset = dataset
        self.table = table
        self.column = column

    @property
    def qualified_table(self) -> str:
        return f"{self.dataset}.{self.table}"

    def resolve(self) -> int:
        """Return MAX(column), or 0 for an empty table."""
        query = MAX_TIMESTAMP_QUERY.format(
            column=quote_ident(self.column),
            dataset=quote_ident(self.dataset),
            table=quote_ident(self.table),
        )
        try:
            with get_connection(self.database) as con:
                row = con.execute(query).fetchone()
            mark = to_epoch_seconds(row[0] if row else None)
        except duckdb.Error as e:
            raise ResolutionError(f"MAX({self.column}) on {self.qualified_table} failed: {e}") from e
        except (TypeError, ValueError) as e:
            raise ResolutionError(f"MAX({self.column}) on {self.qualified_table} is not a timestamp: {e}") from e

        logger.info("Found highwater mark %d in %s", mark, self.qualified_table)
        return mark
