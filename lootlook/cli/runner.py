# lootlook/cli/runner.py

"""Headless CLI runner around the extraction pipeline."""

import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from lootlook.models.product_snapshot import ProductSnapshot
from lootlook.services.bookmark_scraper import (
    BookmarkScraper,
    scan_image_for_price,
)
from lootlook.services.price_checker import PriceCheckReport, PriceChecker
from lootlook.storage.file_manager import FileManager

logger = logging.getLogger("lootlook.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _format_price(price: float | None, currency: str) -> str:
    if price is None:
        return "N/A"
    return f"{currency} {price:,.2f}"


def _print_snapshot_table(snapshots: list[ProductSnapshot]) -> None:
    """Render a Rich table of snapshots to stdout."""
    table = Table(
        title="Extracted Bookmarks",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Source", style="magenta")
    table.add_column("Site")
    table.add_column("Screenshot", overflow="fold", style="dim")

    for idx, s in enumerate(snapshots, 1):
        table.add_row(
            str(idx),
            s.title[:60],
            _format_price(s.price if s.is_tracked else None, s.currency),
            s.price_source.value if s.price_source else "-",
            s.site_name,
            s.image_path or "-",
        )

    Console().print(table)


def _emit(snapshots: list[ProductSnapshot], output_format: str) -> None:
    if output_format == "table":
        _print_snapshot_table(snapshots)
        return
    payload: object = (
        snapshots[0].to_dict()
        if len(snapshots) == 1
        else [s.to_dict() for s in snapshots]
    )
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _save(label: str, snapshots: list[ProductSnapshot]) -> None:
    try:
        path = FileManager().save_snapshots(label, snapshots)
        _err.print(f"[dim]Saved → {path}[/dim]")
    except OSError as exc:
        logger.error("Save failed: %s", exc, exc_info=True)
        _err.print(f"[red]Save failed: {exc}[/red]")


async def cli_scrape(
    url: str,
    output_dir: str | None,
    output_format: str,
) -> int:
    """Extract one bookmark; exit 0 when a price was found."""
    _err.print(f"[bold]Extracting:[/bold] {url}")
    snapshot = await BookmarkScraper().scrape_bookmark(url, output_dir)

    if snapshot.is_tracked:
        _err.print(
            f"[green]✓ {_format_price(snapshot.price, snapshot.currency)}"
            f" via {snapshot.price_source.value if snapshot.price_source else '?'}"
            "[/green]"
        )
    else:
        _err.print("[yellow]No price found, saved as bare bookmark.[/yellow]")

    _save(snapshot.site_name, [snapshot])
    _emit([snapshot], output_format)
    return 0 if snapshot.is_tracked else 1


async def run_scan_image(image_path: str) -> int:
    """OCR re-scan of an existing screenshot."""
    _err.print(f"[bold]Scanning image:[/bold] {image_path}")
    price = await scan_image_for_price(image_path)
    if price is None:
        _err.print("[yellow]No price detected.[/yellow]")
        return 1
    json.dump({"imagePath": image_path, "price": price}, sys.stdout)
    sys.stdout.write("\n")
    return 0


def _print_changes(report: PriceCheckReport) -> None:
    table = Table(
        title="Price Changes",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Title", max_width=50)
    table.add_column("Was", justify="right")
    table.add_column("Now", justify="right", style="green")
    table.add_column("URL", overflow="fold", style="dim")

    for r in report.changes:
        currency = r.snapshot.currency
        now = _format_price(r.new_price, currency)
        table.add_row(
            r.snapshot.title[:50],
            _format_price(r.previous_price, r.bookmark.currency),
            f"[bold]{now}[/bold]" if r.dropped else now,
            r.bookmark.url,
        )

    Console().print(table)


async def run_recheck(
    bookmarks_path: str,
    output_dir: str | None,
) -> int:
    """Re-check every bookmark in a JSON file and report changes."""
    try:
        bookmarks = FileManager.load_bookmarks(Path(bookmarks_path))
    except (OSError, ValueError) as exc:
        logger.error("Cannot read bookmarks: %s", exc, exc_info=True)
        _err.print(f"[red]Cannot read bookmarks: {exc}[/red]")
        return 1

    if not bookmarks:
        _err.print("[yellow]No bookmarks to check.[/yellow]")
        return 0

    _err.print(f"[bold]Re-checking {len(bookmarks)} bookmarks...[/bold]")
    report = await PriceChecker().check_all(bookmarks, output_dir)

    for error_msg in report.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")

    tracked = sum(1 for r in report.results if r.snapshot.is_tracked)
    _err.print(
        f"[green]✓ {tracked} of {len(report.results)} priced,"
        f" {len(report.changes)} changed[/green]"
    )
    _save("recheck", [r.snapshot for r in report.results])

    if report.changes:
        _print_changes(report)
    return 0


async def run_health_check() -> int:
    """Check that Tesseract and Chromium are usable."""
    from lootlook.services.health_checker import HealthChecker

    _err.print("[bold]Running engine health check...[/bold]")
    results = await HealthChecker().check_all()

    table = Table(
        title="Engine Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Engine", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True
        latency = f"{r.latency_ms:.0f}ms" if r.latency_ms > 0 else "—"
        table.add_row(r.engine, status, latency, r.message)

    Console().print(table)
    return 1 if any_down else 0
