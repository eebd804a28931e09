import asyncio
import contextlib
import logging
import signal
import time

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from rekor_mirror.core.config import DEFAULT_REKOR_URL, SyncConfig
from rekor_mirror.core.errors import ConfigError, SyncError
from rekor_mirror.core.use_cases.sync import SyncResult, SyncStats
from rekor_mirror.orchestration.orchestrator import sync_rekor

console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Route the package loggers through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def print_summary(stats: SyncStats) -> None:
    console.print(
        f"[bold]summary[/]: "
        f"refs={stats.refs}  fetched={stats.fetched}  "
        f"[green]decoded[/]={stats.decoded}  "
        f"[yellow]skipped[/]={stats.skipped}  "
        f"excluded_old={stats.excluded_old}  "
        f"excluded_unintegrated={stats.excluded_unintegrated}"
    )
    for failure in stats.failures:
        console.print(f"  [yellow]skipped[/] {escape(failure.uuid)} ({failure.stage}): {escape(failure.error)}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose: bool) -> None:
    """rekor-mirror: incremental Rekor certificate mirror."""
    setup_logging(verbose)


@cli.command("sync")
@click.option("--project", envvar="PROJECT", required=True, help="DuckDB database of the analytical store [env PROJECT]")
@click.option("--bucket", envvar="BUCKET", required=True, help="Output directory for the artifact [env BUCKET]")
@click.option("--dataset", envvar="DATASET", required=True, help="Schema of the high-water-mark table [env DATASET]")
@click.option("--table", envvar="TABLE", required=True, help="High-water-mark table [env TABLE]")
@click.option("--identity", envvar="IDENTITY", required=True, help="Tracked email identity [env IDENTITY]")
@click.option("--rekor-url", envvar="REKOR_URL", default=DEFAULT_REKOR_URL, show_default=True)
@click.option("--concurrency", envvar="CONCURRENCY", type=int, default=1, show_default=True, help="Max entries in flight")
@click.option("--timeout", "timeout_s", envvar="TIMEOUT_S", type=int, default=20, show_default=True, help="Per-call timeout (s)")
def sync_cmd(
    project: str,
    bucket: str,
    dataset: str,
    table: str,
    identity: str,
    rekor_url: str,
    concurrency: int,
    timeout_s: int,
) -> None:
    """Mirror new certificates for IDENTITY into BUCKET/rekor-<highwater>.json."""
    try:
        config = SyncConfig(
            project=project,
            bucket=bucket,
            dataset=dataset,
            table=table,
            identity=identity,
            rekor_url=rekor_url,
            concurrency=concurrency,
            timeout_s=timeout_s,
        )
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    stats = SyncStats()

    async def run() -> SyncResult:
        cancel_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, cancel_event.set)
        return await sync_rekor(config=config, cancel_event=cancel_event, stats=stats)

    t0 = time.time()
    try:
        result = asyncio.run(run())
    except SyncError as e:
        print_summary(stats)
        raise click.ClickException(f"aborted while {stats.aborted_in or 'starting'}: {e}") from e

    elapsed = time.time() - t0
    print_summary(result.stats)
    if result.stats.skipped:
        console.print(f"[bold]done[/]: {result.certificates} certificates, [yellow]{result.stats.skipped} entries skipped[/] • {elapsed:.2f}s")
    elif result.certificates == 0:
        console.print(f"[bold]done[/]: no new entries • {elapsed:.2f}s")
    else:
        console.print(f"[bold]done[/]: {result.certificates} certificates • {elapsed:.2f}s")
    click.echo(result.artifact)
