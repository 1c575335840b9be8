# tests/test_cli_runner.py

"""Tests for the headless CLI runner."""

import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, patch

from lootlook.cli import runner
from lootlook.models.candidate_price import PriceSource
from lootlook.models.product_snapshot import ProductSnapshot
from lootlook.services.health_checker import HealthResult

TRACKED = ProductSnapshot(
    title="Cast Iron Pan",
    site_name="shop.in",
    price=1899.0,
    url="https://shop.in/pan",
    price_source=PriceSource.META,
)
BARE = ProductSnapshot(title="Web", site_name="Web", url="not a url")


class TestCliScrape(unittest.IsolatedAsyncioTestCase):
    """Single-URL extraction from the command line."""

    async def _run(self, snapshot: ProductSnapshot) -> tuple[int, str]:
        out = io.StringIO()
        with patch.object(
            runner.BookmarkScraper,
            "scrape_bookmark",
            new=AsyncMock(return_value=snapshot),
        ), patch("sys.stdout", out):
            code = await runner.cli_scrape(snapshot.url, None, "json")
        return code, out.getvalue()

    async def test_tracked_exit_zero_and_json(self) -> None:
        code, stdout = await self._run(TRACKED)
        self.assertEqual(code, 0)
        payload = json.loads(stdout)
        self.assertEqual(payload["price"], 1899.0)
        self.assertEqual(payload["source"], "meta")

    async def test_bare_bookmark_exit_one(self) -> None:
        code, stdout = await self._run(BARE)
        self.assertEqual(code, 1)
        self.assertFalse(json.loads(stdout)["isTracked"])


class TestRunScanImage(unittest.IsolatedAsyncioTestCase):

    async def test_found(self) -> None:
        out = io.StringIO()
        with patch.object(
            runner, "scan_image_for_price", new=AsyncMock(return_value=499.0)
        ), patch("sys.stdout", out):
            code = await runner.run_scan_image("shot.jpg")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out.getvalue())["price"], 499.0)

    async def test_not_found(self) -> None:
        with patch.object(
            runner, "scan_image_for_price", new=AsyncMock(return_value=None)
        ):
            code = await runner.run_scan_image("shot.jpg")
        self.assertEqual(code, 1)


class TestRunRecheck(unittest.IsolatedAsyncioTestCase):

    async def test_missing_file(self) -> None:
        code = await runner.run_recheck("/nonexistent/bookmarks.json", None)
        self.assertEqual(code, 1)

    async def test_rechecks_bookmarks(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bookmarks.json"
            path.write_text(
                json.dumps([{"url": TRACKED.url, "price": 2099}]),
                encoding="utf-8",
            )
            with patch.object(
                runner.BookmarkScraper,
                "scrape_bookmark",
                new=AsyncMock(return_value=TRACKED),
            ):
                code = await runner.run_recheck(str(path), None)
        self.assertEqual(code, 0)


class TestRunHealthCheck(unittest.IsolatedAsyncioTestCase):

    async def test_down_engine_exit_one(self) -> None:
        results = [
            HealthResult("tesseract", "ok", 3.0, "v5.3.0"),
            HealthResult("chromium", "down", 0.0, "missing"),
        ]
        with patch(
            "lootlook.services.health_checker.HealthChecker.check_all",
            new=AsyncMock(return_value=results),
        ):
            code = await runner.run_health_check()
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
