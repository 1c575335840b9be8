# tests/test_settings.py

"""Tests for the Settings configuration class."""

import unittest
from pathlib import Path

from lootlook.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants."""

    def test_min_valid_price_positive(self) -> None:
        """MIN_VALID_PRICE must be a positive float."""
        self.assertIsInstance(Settings.MIN_VALID_PRICE, float)
        self.assertGreater(Settings.MIN_VALID_PRICE, 0)

    def test_currency_table_glyphs_before_codes(self) -> None:
        """Symbol glyphs outrank alphabetic codes."""
        tokens = [token for token, _ in Settings.CURRENCY_TABLE]
        self.assertLess(tokens.index("₹"), tokens.index("Rs"))
        self.assertLess(tokens.index("$"), tokens.index("Rs"))

    def test_currency_codes_are_iso_like(self) -> None:
        for token, code in Settings.CURRENCY_TABLE:
            with self.subTest(token=token):
                self.assertRegex(code, r"^[A-Z]{3}$")

    def test_default_currency_in_table(self) -> None:
        codes = {code for _, code in Settings.CURRENCY_TABLE}
        self.assertIn(Settings.DEFAULT_CURRENCY, codes)

    def test_psm_modes_order(self) -> None:
        """Sparse text is tried first."""
        self.assertEqual(Settings.OCR_PSM_MODES[0], 11)
        self.assertEqual(len(set(Settings.OCR_PSM_MODES)), 3)

    def test_year_range_ordered(self) -> None:
        low, high = Settings.YEAR_EXCLUSION_RANGE
        self.assertLess(low, high)

    def test_default_device_profile_registered(self) -> None:
        self.assertIn(Settings.DEVICE_PROFILE, Settings.DEVICE_PROFILES)

    def test_device_profiles_complete(self) -> None:
        """Every profile carries viewport, flags and user-agent."""
        for name, profile in Settings.DEVICE_PROFILES.items():
            with self.subTest(profile=name):
                for key in (
                    "viewport", "device_scale_factor",
                    "is_mobile", "has_touch", "user_agent",
                ):
                    self.assertIn(key, profile)

    def test_mobile_profiles_use_mobile_user_agent(self) -> None:
        """Mobile flags and user-agent never disagree."""
        for name, profile in Settings.DEVICE_PROFILES.items():
            with self.subTest(profile=name):
                self.assertEqual(
                    profile["is_mobile"],
                    "Mobile" in str(profile["user_agent"]),
                )

    def test_automation_flag_suppressed(self) -> None:
        self.assertIn(
            "--enable-automation", Settings.BROWSER_IGNORE_DEFAULT_ARGS
        )
        self.assertIn(
            "--disable-blink-features=AutomationControlled",
            Settings.BROWSER_ARGS,
        )

    def test_timeouts_positive(self) -> None:
        self.assertGreater(Settings.NAVIGATION_TIMEOUT_MS, 0)
        self.assertGreater(Settings.POPUP_CLICK_TIMEOUT_MS, 0)
        self.assertGreater(
            Settings.EXTRACTION_TIMEOUT_S * 1000,
            Settings.NAVIGATION_TIMEOUT_MS,
        )

    def test_screenshot_quality_in_range(self) -> None:
        self.assertGreater(Settings.SCREENSHOT_QUALITY, 0)
        self.assertLessEqual(Settings.SCREENSHOT_QUALITY, 100)

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.SELECTORS_PATH, Path)
        self.assertIsInstance(Settings.SCREENSHOTS_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_selectors_path_exists(self) -> None:
        """The selectors.json file must exist on disk."""
        self.assertTrue(Settings.SELECTORS_PATH.exists())


if __name__ == "__main__":
    unittest.main()
