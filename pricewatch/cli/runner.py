# pricewatch/cli/runner.py

"""Headless CLI commands over the price checker."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from rich.console import Console
from rich.table import Table

from pricewatch.config.settings import Settings
from pricewatch.errors import PriceWatchError
from pricewatch.models.check_result import (
    CheckOutcome,
    CheckStatus,
    CheckSummary,
)
from pricewatch.models.tracked_item import ItemStatus, TrackedItem
from pricewatch.network.fetcher import ResilientFetcher
from pricewatch.network.rate_limiter import SharedRateLimiter
from pricewatch.parsing.currency_parser import format_price
from pricewatch.parsing.product_id import extract_domain
from pricewatch.services.permissions import PermissionChecker
from pricewatch.services.price_checker import PriceChecker
from pricewatch.storage.item_store import ItemStore
from pricewatch.storage.kv_store import SQLiteKeyValueStore

logger = logging.getLogger("pricewatch.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)

_STATUS_STYLES: dict[CheckStatus, str] = {
    CheckStatus.NO_CHANGE: "[dim]no change[/dim]",
    CheckStatus.PRICE_DROP: "[green]▼ drop[/green]",
    CheckStatus.PRICE_INCREASE: "[red]▲ increase[/red]",
    CheckStatus.ERROR: "[red]error[/red]",
    CheckStatus.NOT_FOUND: "[yellow]not found[/yellow]",
    CheckStatus.PERMISSION_DENIED: "[yellow]no permission[/yellow]",
    CheckStatus.CAPTCHA_DETECTED: "[magenta]captcha[/magenta]",
}


@asynccontextmanager
async def open_checker(
    db_path: Path | None = None,
) -> AsyncIterator[PriceChecker]:
    """Wire a :class:`PriceChecker` over the SQLite store.

    Domains granted in earlier runs are loaded from the store.
    """
    kv = SQLiteKeyValueStore(db_path or Settings.DB_PATH)
    store = ItemStore(kv)
    fetcher = ResilientFetcher(rate_limiter=SharedRateLimiter(kv))
    try:
        checker = PriceChecker(
            store=store,
            fetcher=fetcher,
            permissions=PermissionChecker(
                granted=await store.get_granted_domains(),
            ),
        )
        yield checker
    finally:
        await fetcher.close()
        kv.close()


def _price(amount: Decimal | None, currency: str) -> str:
    if amount is None:
        return "—"
    return format_price(amount, currency)


def _summary_table(summary: CheckSummary) -> Table:
    table = Table(
        title=(
            f"Checked {summary.checked} of {summary.total} "
            f"({summary.skipped} skipped)"
        ),
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Item", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Old", justify="right")
    table.add_column("New", justify="right", style="green")
    table.add_column("Change", justify="right")
    table.add_column("Notes", style="dim", overflow="fold")
    for outcome in summary.details:
        _add_outcome_row(table, outcome)
    return table


def _add_outcome_row(table: Table, outcome: CheckOutcome) -> None:
    change = (
        f"{outcome.change:+} ({outcome.change_percent:+.2f}%)"
        if outcome.change is not None and outcome.change_percent is not None
        else "—"
    )
    table.add_row(
        outcome.item_id,
        _STATUS_STYLES[outcome.status],
        _price(outcome.old_price, outcome.currency),
        _price(outcome.new_price, outcome.currency),
        change,
        outcome.error or outcome.detection_method,
    )


def _items_table(items: list[TrackedItem]) -> Table:
    table = Table(
        title="Tracked Items",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("ID", style="dim")
    table.add_column("Title", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Status", justify="center")
    table.add_column("Last checked", justify="right")
    table.add_column("Domain", style="magenta")

    for item in sorted(items, key=lambda i: i.tracking.last_checked):
        status = item.tracking.status.value
        if item.tracking.status is not ItemStatus.ACTIVE:
            status = f"[yellow]{status}[/yellow]"
        table.add_row(
            item.item_id,
            item.title[:50],
            _price(
                item.current_price.numeric,
                item.current_price.currency_code,
            ),
            status,
            datetime.fromtimestamp(item.tracking.last_checked).strftime(
                "%Y-%m-%d %H:%M"
            ),
            item.domain,
        )
    return table


async def run_check_all(
    batch_size: int | None = None,
    delay: float = Settings.DELAY_BETWEEN_CHECKS,
    max_age: float = Settings.MAX_AGE,
    db_path: Path | None = None,
) -> int:
    """Check every due item; exit 1 if any check errored.

    Without an explicit *batch_size* the stored ``checking.batch_size``
    user setting applies.
    """
    async with open_checker(db_path) as checker:
        if batch_size is None:
            settings = await checker.store.get_settings()
            batch_size = settings["checking"]["batch_size"]
        _err.print("[bold]Checking tracked items...[/bold]")
        summary = await checker.check_all(
            batch_size=batch_size,
            delay_between_checks=delay,
            max_age=max_age,
        )
    if summary.total == 0:
        _err.print("[yellow]No tracked items.[/yellow]")
        return 0
    Console().print(_summary_table(summary))
    _err.print(
        f"[green]✓ {summary.success} ok[/green], "
        f"{summary.errors} errors, {summary.price_drops} drops, "
        f"{summary.price_increases} increases"
    )
    return 1 if summary.errors else 0


async def run_check(item_id: str, db_path: Path | None = None) -> int:
    """Force-check one item."""
    async with open_checker(db_path) as checker:
        outcome = await checker.force_check(item_id)
    summary = CheckSummary(total=1)
    summary.record(outcome)
    Console().print(_summary_table(summary))
    return 0 if outcome.succeeded else 1


async def run_track(
    url: str,
    allow: bool = False,
    db_path: Path | None = None,
) -> int:
    """Start tracking *url*, optionally granting its domain first.

    A grant is persisted, so later checks of the item keep permission.
    """
    async with open_checker(db_path) as checker:
        if allow:
            domain = extract_domain(url)
            await checker.store.grant_domain(domain)
            checker.permissions.grant(domain)
        try:
            item = await checker.track_url(url)
        except PriceWatchError as exc:
            logger.warning("Tracking %s failed: %s", url, exc)
            _err.print(f"[red]Could not track {url}: {exc}[/red]")
            return 1
    price = item.current_price
    _err.print(
        f"[green]✓ Tracking {item.item_id}[/green] "
        f"{item.title[:60]} at {_price(price.numeric, price.currency_code)}"
    )
    return 0


async def run_list(db_path: Path | None = None) -> int:
    async with open_checker(db_path) as checker:
        items = await checker.store.get_all_items()
    if not items:
        _err.print("[yellow]No tracked items.[/yellow]")
        return 0
    Console().print(_items_table(items))
    return 0
