# price_sync/cli/runner.py

"""Headless sync runner: one reconciliation run plus a console summary."""

import asyncio
import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from price_sync.errors import PriceSyncError
from price_sync.models.reconciliation import SummaryReport
from price_sync.services.context import SyncContext, init_context

logger = logging.getLogger("price_sync.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


async def run_sync(context: SyncContext) -> SummaryReport:
    """Execute one reconciliation run.

    Raises ``StoreReadError`` or ``FetchError`` when the run cannot
    start; per-record problems are reported in the summary instead.
    """
    records = await asyncio.to_thread(
        context.store.select_linked_records
    )
    catalog = await asyncio.to_thread(context.fetcher.fetch_all)
    logger.info("Found %d products in Prisync", len(catalog))

    if context.mode == "batched":
        return await context.driver.reconcile_all_batched(
            records, catalog
        )
    return await asyncio.to_thread(
        context.driver.reconcile_all, records, catalog
    )


def _print_table(report: SummaryReport) -> None:
    """Render the run summary and failures as Rich tables."""
    console = Console()
    console.print("\n[bold]Sync Results:[/bold]")
    console.print(
        f"[green]✓ Successful updates: {report.success_count}[/green]"
    )
    console.print(
        f"[red]✗ Failed updates: {report.failure_count}[/red]"
    )
    if report.skipped:
        console.print(
            f"[yellow]Skipped (no name or link): "
            f"{len(report.skipped)}[/yellow]"
        )

    if not report.failures:
        return

    table = Table(
        title="Errors",
        show_lines=True,
        title_style="bold red",
    )
    table.add_column("Product", style="bold")
    table.add_column("Reason", overflow="fold")
    for record_id, reason in report.failures:
        table.add_row(str(record_id), reason)
    console.print(table)


async def cli_sync(
    backend: str | None,
    strategies: str | None,
    mode: str | None,
    output_format: str,
) -> int:
    """Run a sync and return an exit code (0=completed, 1=aborted)."""
    try:
        context = init_context(
            backend=backend, strategies=strategies, mode=mode,
        )
    except PriceSyncError as exc:
        logger.critical("Configuration error: %s", exc)
        _err.print(f"[red]Configuration error: {exc}[/red]")
        return 1

    _err.print(
        f"[bold]Starting Prisync price sync...[/bold] "
        f"[dim]mode={context.mode}[/dim]"
    )

    try:
        report = await run_sync(context)
    except Exception as exc:
        logger.critical("Price sync failed", exc_info=True)
        _err.print(f"[red]Price sync failed: {exc}[/red]")
        return 1

    if output_format == "json":
        json.dump(
            report.to_dict(),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
            default=str,
        )
        sys.stdout.write("\n")
    else:
        _print_table(report)

    return 0
