# lootlook/scrapers/page_renderer.py

"""Render a product page in Chromium and capture a screenshot."""

import logging
import secrets
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
from playwright_stealth import Stealth

from lootlook.config.settings import Settings

logger = logging.getLogger("lootlook.renderer")


class BrowserLaunchError(RuntimeError):
    """Chromium (or the Playwright driver) could not be started."""


@dataclass(frozen=True)
class RenderedPage:
    """HTML and screenshot captured from one render."""

    html: str
    screenshot_path: Path | None = None


def screenshot_filename() -> str:
    """Timestamp plus random suffix, safe across concurrent renders."""
    return f"{int(time.time() * 1000)}_{secrets.token_hex(4)}.jpg"


async def _close_quietly(
    close: Callable[[], Awaitable[Any]], label: str,
) -> None:
    """Close a Playwright object, logging rather than raising on failure."""
    try:
        await close()
    except Exception as exc:
        logger.warning("Failed to close %s: %s", label, exc)


class PageRenderer:
    """Drives an isolated Chromium instance per render call.

    Every call starts its own Playwright driver, browser and context, and
    closes all three on the way out, so nothing leaks between concurrent
    extractions.
    """

    def __init__(
        self,
        device_profile: str | None = None,
        headless: bool | None = None,
    ) -> None:
        self.settings = Settings()
        profile_name = device_profile or self.settings.DEVICE_PROFILE
        self.profile: dict[str, object] = dict(
            self.settings.DEVICE_PROFILES[profile_name]
        )
        self.headless: bool = (
            headless if headless is not None else self.settings.HEADLESS
        )

    def _context_options(self) -> dict[str, object]:
        """Device profile, locale and timezone for a new context.

        Viewport and user-agent always come from the same profile.
        """
        return {
            **self.profile,
            "locale": self.settings.BROWSER_LOCALE,
            "timezone_id": self.settings.BROWSER_TIMEZONE,
            "extra_http_headers": {
                "Accept-Language": ",".join(
                    self.settings.BROWSER_LANGUAGES
                ),
            },
        }

    async def _navigate(self, page: Page, url: str) -> None:
        """Load *url*; on timeout or error keep whatever DOM exists."""
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.settings.NAVIGATION_TIMEOUT_MS,
            )
        except PlaywrightTimeoutError:
            logger.warning(
                "Navigation timed out after %dms, continuing: %s",
                self.settings.NAVIGATION_TIMEOUT_MS,
                url,
            )
        except PlaywrightError as exc:
            logger.warning(
                "Navigation failed, continuing with partial page: %s (%s)",
                url,
                exc,
            )

    async def _try_click(self, locator: Any) -> bool:
        try:
            if not await locator.is_visible():
                return False
            await locator.click(
                timeout=self.settings.POPUP_CLICK_TIMEOUT_MS
            )
            return True
        except PlaywrightError:
            return False

    async def _dismiss_interstitials(self, page: Page) -> int:
        """Click away consent, cookie and age-gate overlays.

        Returns the number of buttons clicked.
        """
        clicked = 0
        for label in self.settings.POPUP_BUTTON_TEXTS:
            locators = (
                page.get_by_role("button", name=label, exact=True).first,
                page.locator(f'[aria-label="{label}" i]').first,
            )
            for locator in locators:
                if await self._try_click(locator):
                    logger.debug("Dismissed interstitial via '%s'", label)
                    clicked += 1
                    break
        return clicked

    async def _settle(self, page: Page) -> None:
        """Scroll down and back up to trigger lazy content."""
        pause = self.settings.SETTLE_PAUSE_MS
        try:
            await page.evaluate(
                "(f) => window.scrollTo(0, document.body.scrollHeight * f)",
                self.settings.SETTLE_SCROLL_FRACTION,
            )
            await page.wait_for_timeout(pause)
            await page.evaluate("() => window.scrollTo(0, 0)")
            await page.wait_for_timeout(pause)
        except PlaywrightError as exc:
            logger.debug("Settle scroll failed: %s", exc)

    async def _capture(
        self, page: Page, output_dir: Path,
    ) -> Path | None:
        """Save a JPEG of the current viewport."""
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            path = output_dir / screenshot_filename()
            await page.screenshot(
                path=str(path),
                type="jpeg",
                quality=self.settings.SCREENSHOT_QUALITY,
                full_page=False,
            )
            logger.debug("Screenshot saved to %s", path)
            return path
        except (PlaywrightError, OSError) as exc:
            logger.warning("Screenshot capture failed: %s", exc)
            return None

    @staticmethod
    async def _page_html(page: Page) -> str:
        try:
            html: str = await page.content()
            return html
        except PlaywrightError as exc:
            logger.warning("Could not read page HTML: %s", exc)
            return ""

    def _stealth(self) -> Stealth:
        """Evasions matching the context's locale.

        ``navigator.languages`` must agree with the Accept-Language header
        sent by the same context.
        """
        primary, secondary = self.settings.BROWSER_LANGUAGES[:2]
        return Stealth(
            navigator_webdriver=True,
            chrome_runtime=True,
            navigator_plugins=True,
            navigator_permissions=True,
            navigator_languages_override=(primary, secondary),
        )

    async def _render_in_context(
        self, context: Any, url: str, output_dir: Path,
    ) -> RenderedPage:
        await self._stealth().apply_stealth_async(context)
        page = await context.new_page()
        await self._navigate(page, url)
        await self._dismiss_interstitials(page)
        await self._settle(page)
        screenshot_path = await self._capture(page, output_dir)
        html = await self._page_html(page)
        return RenderedPage(html=html, screenshot_path=screenshot_path)

    async def render(
        self, url: str, output_dir: str | Path,
    ) -> RenderedPage:
        """Render *url* and return its HTML and screenshot.

        Raises:
            BrowserLaunchError: the browser process could not be started.
        """
        out = Path(output_dir)
        try:
            playwright = await async_playwright().start()
        except Exception as exc:
            raise BrowserLaunchError(
                f"Playwright driver failed to start: {exc}"
            ) from exc

        try:
            try:
                browser = await playwright.chromium.launch(
                    headless=self.headless,
                    args=self.settings.BROWSER_ARGS,
                    ignore_default_args=(
                        self.settings.BROWSER_IGNORE_DEFAULT_ARGS
                    ),
                )
            except Exception as exc:
                raise BrowserLaunchError(
                    f"Chromium failed to launch: {exc}"
                ) from exc

            try:
                try:
                    context = await browser.new_context(
                        **self._context_options()
                    )
                except Exception as exc:
                    raise BrowserLaunchError(
                        f"Browser context could not be created: {exc}"
                    ) from exc
                try:
                    logger.info("Rendering %s", url)
                    return await self._render_in_context(
                        context, url, out
                    )
                finally:
                    await _close_quietly(context.close, "context")
            finally:
                await _close_quietly(browser.close, "browser")
        finally:
            await _close_quietly(playwright.stop, "playwright")
