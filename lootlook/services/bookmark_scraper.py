# lootlook/services/bookmark_scraper.py

"""End-to-end bookmark extraction: render, parse HTML, fall back to OCR."""

import asyncio
import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from lootlook.config.settings import Settings
from lootlook.extractors.ocr_extractor import OcrPriceExtractor
from lootlook.extractors.structured_extractor import (
    StructuredContentExtractor,
)
from lootlook.models.candidate_price import PriceSource
from lootlook.models.product_snapshot import ProductSnapshot
from lootlook.scrapers.page_renderer import BrowserLaunchError, PageRenderer

logger = logging.getLogger("lootlook.orchestrator")


class ExtractionState(Enum):
    """Stages of a single extraction, in order."""

    INITIALIZED = "initialized"
    RENDERED = "rendered"
    EXTRACTED_FROM_HTML = "extracted_from_html"
    OCR_FALLBACK = "ocr_fallback"
    FINALIZED = "finalized"


@dataclass
class _ExtractionRun:
    """Working state of one extraction call; never shared between calls."""

    url: str
    site_name: str
    state: ExtractionState = ExtractionState.INITIALIZED
    title: str | None = None
    price: float | None = None
    currency: str | None = None
    price_source: PriceSource | None = None
    screenshot_path: Path | None = None

    def advance(self, state: ExtractionState) -> None:
        logger.debug(
            "[%s] %s -> %s", self.site_name, self.state.value, state.value
        )
        self.state = state


def derive_site_name(url: str) -> str:
    """Hostname without a leading ``www.``; ``"Web"`` when unparseable."""
    try:
        hostname = urlparse(url).hostname
    except (ValueError, TypeError, AttributeError):
        return Settings.FALLBACK_SITE_NAME
    if not hostname:
        return Settings.FALLBACK_SITE_NAME
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname or Settings.FALLBACK_SITE_NAME


def _usable_price(value: float | None) -> float | None:
    if value is None or math.isnan(value) or value <= 0:
        return None
    return value


class BookmarkScraper:
    """Composes renderer, HTML extractor and OCR into one extraction.

    ``scrape_bookmark`` never raises; every failure ends in a snapshot
    carrying whatever was recovered before it.
    """

    def __init__(
        self,
        renderer: PageRenderer | None = None,
        extractor: StructuredContentExtractor | None = None,
        ocr: OcrPriceExtractor | None = None,
    ) -> None:
        self.settings = Settings()
        self.renderer = renderer or PageRenderer()
        self.extractor = extractor or StructuredContentExtractor()
        self.ocr = ocr or OcrPriceExtractor()

    def _image_path(self, path: Path | None) -> str | None:
        """Screenshot path relative to the public dir when inside it."""
        if path is None or not path.is_file():
            return None
        try:
            relative = path.resolve().relative_to(
                self.settings.PUBLIC_DIR.resolve()
            )
        except ValueError:
            return str(path)
        return relative.as_posix()

    async def _run_pipeline(
        self, run: _ExtractionRun, output_dir: Path,
    ) -> None:
        try:
            page = await self.renderer.render(run.url, output_dir)
        except BrowserLaunchError as exc:
            logger.error("Browser unavailable for %s: %s", run.url, exc)
            return
        except Exception as exc:
            logger.error(
                "Renderer failed for %s: %s", run.url, exc, exc_info=True
            )
            return
        run.screenshot_path = page.screenshot_path
        run.advance(ExtractionState.RENDERED)

        # lxml parsing of large pages is CPU bound
        content = await asyncio.to_thread(
            self.extractor.extract,
            page.html,
            fallback_title=run.site_name,
            page_url=run.url,
        )
        run.title = content.title
        run.price = _usable_price(content.price)
        if run.price is not None:
            run.currency = content.currency
            run.price_source = content.price_source
        run.advance(ExtractionState.EXTRACTED_FROM_HTML)

        if run.price is None and run.screenshot_path is not None:
            run.advance(ExtractionState.OCR_FALLBACK)
            ocr_price = _usable_price(
                await self.ocr.extract_price(run.screenshot_path)
            )
            if ocr_price is not None:
                run.price = ocr_price
                run.price_source = PriceSource.OCR

    def _finalize(self, run: _ExtractionRun) -> ProductSnapshot:
        run.advance(ExtractionState.FINALIZED)
        snapshot = ProductSnapshot(
            title=run.title or run.site_name,
            site_name=run.site_name,
            price=run.price,
            currency=run.currency or self.settings.DEFAULT_CURRENCY,
            image_path=self._image_path(run.screenshot_path),
            url=run.url,
            price_source=run.price_source,
        )
        logger.info(
            "Extracted '%s' from %s: price=%s %s tracked=%s",
            snapshot.title,
            snapshot.site_name,
            snapshot.price,
            snapshot.currency,
            snapshot.is_tracked,
        )
        return snapshot

    async def scrape_bookmark(
        self,
        url: str,
        output_dir: str | Path | None = None,
    ) -> ProductSnapshot:
        """Extract a product snapshot from *url*. Never raises."""
        run = _ExtractionRun(url=url, site_name=derive_site_name(url))
        target_dir = Path(output_dir or self.settings.SCREENSHOTS_DIR)
        try:
            await asyncio.wait_for(
                self._run_pipeline(run, target_dir),
                timeout=self.settings.EXTRACTION_TIMEOUT_S,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Extraction of %s exceeded %.0fs, returning partial data",
                url,
                self.settings.EXTRACTION_TIMEOUT_S,
            )
        except Exception as exc:
            logger.error(
                "Extraction of %s failed in state %s: %s",
                url,
                run.state.value,
                exc,
                exc_info=True,
            )
        return self._finalize(run)

    async def scan_image_for_price(
        self, image_path: str | Path,
    ) -> float | None:
        """Re-run OCR on an existing screenshot."""
        return await self.ocr.extract_price(image_path)


async def scrape_bookmark(
    url: str,
    output_dir: str | Path | None = None,
) -> ProductSnapshot:
    """Extract a product snapshot from *url* with default components."""
    try:
        scraper = BookmarkScraper()
    except Exception as exc:
        logger.error(
            "Could not build extraction pipeline: %s", exc, exc_info=True
        )
        site_name = derive_site_name(url)
        return ProductSnapshot(title=site_name, site_name=site_name, url=url)
    return await scraper.scrape_bookmark(url, output_dir)


async def scan_image_for_price(image_path: str | Path) -> float | None:
    """Standalone OCR re-scan of an already captured screenshot."""
    try:
        ocr = OcrPriceExtractor()
    except Exception as exc:
        logger.error("Could not build OCR extractor: %s", exc, exc_info=True)
        return None
    return await ocr.extract_price(image_path)
