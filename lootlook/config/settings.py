# lootlook/config/settings.py

"""Central configuration for the LootLook extraction pipeline."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Central configuration for the LootLook extraction pipeline."""

    # --- Price parsing ---
    # Calibrate against real traffic: below this a number is
    # assumed to be a rating or quantity, not a price.
    MIN_VALID_PRICE: float = float(
        os.getenv("LOOTLOOK_MIN_VALID_PRICE", "10.0")
    )
    DEFAULT_CURRENCY: str = "INR"
    # Ordered by priority; first token found in the text wins.
    CURRENCY_TABLE: tuple[tuple[str, str], ...] = (
        ("₹", "INR"),
        ("$", "USD"),
        ("€", "EUR"),
        ("£", "GBP"),
        ("¥", "JPY"),
        ("Rs", "INR"),
        ("INR", "INR"),
        ("RP", "IDR"),
        ("RM", "MYR"),
        ("AED", "AED"),
        ("SAR", "SAR"),
        ("USD", "USD"),
        ("EUR", "EUR"),
        ("GBP", "GBP"),
        ("JPY", "JPY"),
        ("CAD", "CAD"),
        ("AUD", "AUD"),
        ("SGD", "SGD"),
    )

    # --- OCR ---
    # Tesseract page segmentation modes, tried in order:
    # 11 = sparse text, 6 = single uniform block, 3 = fully automatic
    OCR_PSM_MODES: tuple[int, ...] = (11, 6, 3)
    OCR_LANGUAGE: str = "eng"
    OCR_MIN_IMAGE_SIDE: int = 1000  # Upscale smaller screenshots
    TESSERACT_CMD: str | None = os.getenv("TESSERACT_CMD")
    # Calibrate against real traffic: unlabelled numbers in this
    # band look like calendar years and are skipped.
    YEAR_EXCLUSION_RANGE: tuple[int, int] = (2020, 2030)

    # --- Browser ---
    HEADLESS: bool = _env_bool("LOOTLOOK_HEADLESS", True)
    BROWSER_LOCALE: str = "en-IN"
    BROWSER_TIMEZONE: str = "Asia/Kolkata"
    BROWSER_LANGUAGES: tuple[str, ...] = ("en-IN", "en-US", "en")
    BROWSER_ARGS: list[str] = [
        "--disable-blink-features=AutomationControlled",
        "--disable-dev-shm-usage",
        "--no-sandbox",
    ]
    BROWSER_IGNORE_DEFAULT_ARGS: list[str] = ["--enable-automation"]
    DEVICE_PROFILE: str = "desktop_chrome"
    DEVICE_PROFILES: dict[str, dict[str, object]] = {
        "desktop_chrome": {
            "viewport": {"width": 1366, "height": 900},
            "device_scale_factor": 1,
            "is_mobile": False,
            "has_touch": False,
            "user_agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/131.0.0.0 Safari/537.36"
            ),
        },
        "android_pixel": {
            "viewport": {"width": 412, "height": 915},
            "device_scale_factor": 2.625,
            "is_mobile": True,
            "has_touch": True,
            "user_agent": (
                "Mozilla/5.0 (Linux; Android 14; Pixel 8) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/131.0.0.0 Mobile Safari/537.36"
            ),
        },
    }

    # --- Rendering ---
    NAVIGATION_TIMEOUT_MS: int = 30000
    POPUP_CLICK_TIMEOUT_MS: int = 1500
    POPUP_BUTTON_TEXTS: list[str] = [
        "Accept",
        "Accept All",
        "Allow",
        "I Agree",
        "Confirm",
        "Continue",
        "Close",
        "Got it",
    ]
    SETTLE_SCROLL_FRACTION: float = 0.4
    SETTLE_PAUSE_MS: int = 1000
    SCREENSHOT_QUALITY: int = 60

    # --- Extraction ---
    MIN_TITLE_LENGTH: int = 3
    CONTEXT_ANCESTOR_DEPTH: int = 3
    EXTRACTION_TIMEOUT_S: float = 120.0
    FALLBACK_SITE_NAME: str = "Web"

    # --- Batch re-check ---
    MAX_CONCURRENT_CHECKS: int = 3

    # --- Logging ---
    LOG_CONSOLE_LEVEL: str = os.getenv("LOOTLOOK_LOG_LEVEL", "WARNING")
    # Pillow logs every decoded chunk and asyncio every slow callback
    # at DEBUG; both flood any root handler a host app installs.
    QUIET_LOGGERS: tuple[str, ...] = ("PIL", "asyncio")

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "lootlook" / "config" / "selectors.json"
    PUBLIC_DIR: Path = BASE_DIR / "public"
    SCREENSHOTS_DIR: Path = PUBLIC_DIR / "screenshots"
    RESULTS_DIR: Path = BASE_DIR / "results"
    LOGS_DIR: Path = BASE_DIR / "logs"
