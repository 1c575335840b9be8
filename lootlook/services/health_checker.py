# lootlook/services/health_checker.py

"""Checks that the external engines the pipeline shells out to are usable."""

import asyncio
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass

import pytesseract  # type: ignore[import-untyped]
from playwright.async_api import async_playwright

from lootlook.config.settings import Settings

logger = logging.getLogger("lootlook.health")

_HEALTH_TIMEOUT = 30  # seconds per engine


@dataclass
class HealthResult:
    """Result of a single engine health check."""

    engine: str
    status: str  # "ok" or "down"
    latency_ms: float
    message: str


def probe_tesseract() -> HealthResult:
    """Ask the Tesseract binary for its version."""
    if Settings.TESSERACT_CMD:
        pytesseract.pytesseract.tesseract_cmd = Settings.TESSERACT_CMD
    start = time.monotonic()
    try:
        version = pytesseract.get_tesseract_version()
    except Exception as exc:
        return HealthResult(
            engine="tesseract",
            status="down",
            latency_ms=(time.monotonic() - start) * 1000,
            message=str(exc)[:80],
        )
    return HealthResult(
        engine="tesseract",
        status="ok",
        latency_ms=(time.monotonic() - start) * 1000,
        message=f"v{version}",
    )


async def probe_browser() -> HealthResult:
    """Launch and close Chromium once."""
    start = time.monotonic()
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(
                headless=True,
                args=Settings.BROWSER_ARGS,
            )
            version = browser.version
            await browser.close()
    except Exception as exc:
        return HealthResult(
            engine="chromium",
            status="down",
            latency_ms=(time.monotonic() - start) * 1000,
            message=str(exc)[:80],
        )
    return HealthResult(
        engine="chromium",
        status="ok",
        latency_ms=(time.monotonic() - start) * 1000,
        message=f"v{version}",
    )


async def _bounded(
    engine: str, probe: Awaitable[HealthResult],
) -> HealthResult:
    try:
        return await asyncio.wait_for(probe, timeout=_HEALTH_TIMEOUT)
    except asyncio.TimeoutError:
        return HealthResult(
            engine=engine,
            status="down",
            latency_ms=_HEALTH_TIMEOUT * 1000,
            message="Timed out",
        )


class HealthChecker:
    """Runs the engine probes concurrently."""

    async def check_all(self) -> list[HealthResult]:
        """Probe every engine the pipeline depends on."""
        results: list[HealthResult] = list(
            await asyncio.gather(
                _bounded(
                    "tesseract", asyncio.to_thread(probe_tesseract)
                ),
                _bounded("chromium", probe_browser()),
            )
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.engine,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
