# lootlook/services/price_checker.py

"""Batch re-check of tracked bookmarks with per-item failure isolation."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

from lootlook.config.settings import Settings
from lootlook.models.product_snapshot import ProductSnapshot
from lootlook.services.bookmark_scraper import BookmarkScraper

logger = logging.getLogger("lootlook.price_checker")


@dataclass(frozen=True)
class TrackedBookmark:
    """A saved bookmark and the last price recorded for it."""

    url: str
    last_price: float | None = None
    currency: str = "INR"
    bookmark_id: str = ""


@dataclass(frozen=True)
class PriceCheckResult:
    """Outcome of re-checking one bookmark."""

    bookmark: TrackedBookmark
    snapshot: ProductSnapshot

    @property
    def previous_price(self) -> float | None:
        return self.bookmark.last_price

    @property
    def new_price(self) -> float | None:
        return self.snapshot.price if self.snapshot.is_tracked else None

    @property
    def changed(self) -> bool:
        """Both prices known and different."""
        if self.previous_price is None or self.new_price is None:
            return False
        return round(self.new_price, 2) != round(self.previous_price, 2)

    @property
    def dropped(self) -> bool:
        return (
            self.changed
            and self.new_price is not None
            and self.previous_price is not None
            and self.new_price < self.previous_price
        )


@dataclass
class PriceCheckReport:
    """Container for a completed batch re-check."""

    results: list[PriceCheckResult] = field(
        default_factory=lambda: list[PriceCheckResult]()
    )
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )

    @property
    def changes(self) -> list[PriceCheckResult]:
        return [r for r in self.results if r.changed]


Notifier = Callable[[PriceCheckResult], Awaitable[None]]


class PriceChecker:
    """Re-scrapes tracked bookmarks concurrently and reports price changes.

    Concurrency is bounded by ``MAX_CONCURRENT_CHECKS`` since every
    extraction owns a full browser instance. Changes are handed to an
    optional notifier; delivering them is the notifier's business.
    """

    def __init__(
        self,
        scraper: BookmarkScraper | None = None,
        notifier: Notifier | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.settings = Settings()
        self.scraper = scraper or BookmarkScraper()
        self.notifier = notifier
        self._semaphore = asyncio.Semaphore(
            max_concurrency or self.settings.MAX_CONCURRENT_CHECKS
        )

    async def _check_one(
        self, bookmark: TrackedBookmark, output_dir: Path,
    ) -> PriceCheckResult:
        async with self._semaphore:
            snapshot = await self.scraper.scrape_bookmark(
                bookmark.url, output_dir
            )
        result = PriceCheckResult(bookmark=bookmark, snapshot=snapshot)
        if result.changed:
            logger.info(
                "Price change for %s: %s -> %s",
                bookmark.url,
                result.previous_price,
                result.new_price,
            )
            await self._notify(result)
        return result

    async def _notify(self, result: PriceCheckResult) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier(result)
        except Exception as exc:
            logger.error(
                "Notifier failed for %s: %s",
                result.bookmark.url,
                exc,
                exc_info=True,
            )

    async def check_all(
        self,
        bookmarks: list[TrackedBookmark],
        output_dir: str | Path | None = None,
    ) -> PriceCheckReport:
        """Re-check every bookmark; one failure never aborts the batch."""
        target_dir = Path(output_dir or self.settings.SCREENSHOTS_DIR)
        logger.info("Starting price check for %d bookmarks", len(bookmarks))

        outcomes = await asyncio.gather(
            *(self._check_one(b, target_dir) for b in bookmarks),
            return_exceptions=True,
        )

        report = PriceCheckReport()
        for bookmark, outcome in zip(bookmarks, outcomes):
            if isinstance(outcome, PriceCheckResult):
                report.results.append(outcome)
            elif isinstance(outcome, BaseException):
                report.errors.append(f"{bookmark.url}: {outcome}")
                logger.error(
                    "Price check failed for %s: %s",
                    bookmark.url,
                    outcome,
                    exc_info=outcome,
                )

        logger.info(
            "Price check done: %d checked, %d changed, %d errors",
            len(report.results),
            len(report.changes),
            len(report.errors),
        )
        return report
