# tests/test_ocr_extractor.py

"""Tests for the OCR price fallback."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytesseract  # type: ignore[import-untyped]
from PIL import Image

from lootlook.extractors.ocr_extractor import (
    OcrPriceExtractor,
    clean_ocr_text,
)

OCR_PATH = "lootlook.extractors.ocr_extractor.pytesseract.image_to_string"


def _write_image(directory: str, size: tuple[int, int] = (200, 100)) -> Path:
    """Save a small blank JPEG and return its path."""
    path = Path(directory) / "shot.jpg"
    Image.new("RGB", size, "white").save(path, "JPEG")
    return path


class TestCleanOcrText(unittest.TestCase):
    """Digit look-alike repair."""

    def test_fixes_letters_inside_numbers(self) -> None:
        """'l,299' becomes '1,299'."""
        self.assertEqual(clean_ocr_text("l,299"), "1,299")
        self.assertEqual(clean_ocr_text("₹ 2,O99"), "₹ 2,099")

    def test_leaves_words_alone(self) -> None:
        """Words made of look-alike letters are untouched."""
        self.assertEqual(
            clean_ocr_text("SOLD OUT l,299"), "SOLD OUT 1,299"
        )
        self.assertEqual(clean_ocr_text("OIL"), "OIL")

    def test_currency_prefix_glued_to_number(self) -> None:
        """'Rs.l,499' is repaired after the currency prefix."""
        self.assertEqual(clean_ocr_text("Rs.l,499"), "Rs.1,499")


class TestFindPriceInText(unittest.TestCase):
    """Regex passes over recognised text."""

    def setUp(self) -> None:
        self.ocr = OcrPriceExtractor()

    def test_symbol_prefixed_first(self) -> None:
        """A currency-prefixed amount wins over bare numbers."""
        text = "Ships 1,000.00 units\nPrice: ₹ 1,299.00  M.R.P ₹1,999"
        self.assertEqual(self.ocr.find_price_in_text(text), 1299.0)

    def test_repairs_ocr_confusions(self) -> None:
        """'Rs.l,499' is read as 1499."""
        self.assertEqual(self.ocr.find_price_in_text("Rs.l,499"), 1499.0)

    def test_grouped_fallback_skips_years(self) -> None:
        """An unlabelled year-like value is skipped."""
        text = "Offer valid till 2,025.00 only 1,499.00"
        self.assertEqual(self.ocr.find_price_in_text(text), 1499.0)

    def test_bare_integers_ignored(self) -> None:
        """Bare integers without separators are never prices."""
        self.assertIsNone(
            self.ocr.find_price_in_text("Since 2024 we sold 5000 items")
        )

    def test_small_values_rejected(self) -> None:
        """Ratings below the threshold are rejected."""
        self.assertIsNone(self.ocr.find_price_in_text("Rated 4.50 by 120"))

    def test_sentence_full_stop_not_decimal(self) -> None:
        """'₹1,499.00.' reads as 1499, not 149900."""
        self.assertEqual(
            self.ocr.find_price_in_text("Deal price ₹1,499.00. Buy now"),
            1499.0,
        )
        self.assertEqual(
            self.ocr.find_price_in_text("Total 1,499.00."), 1499.0
        )

    def test_table_border_before_number(self) -> None:
        """A '|' border glued to a price is not read as a digit."""
        self.assertEqual(clean_ocr_text("|1,499"), "|1,499")
        self.assertEqual(self.ocr.find_price_in_text("|1,499 |"), 1499.0)

    def test_rs_inside_word_is_not_a_currency(self) -> None:
        """'hours 12' must not be read as Rs 12."""
        self.assertIsNone(self.ocr.find_price_in_text("Delivery in hours 12"))


class TestOcrExtractPrice(unittest.IsolatedAsyncioTestCase):
    """Strategy iteration and failure handling."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.image_path = _write_image(self._tmp.name)
        self.ocr = OcrPriceExtractor()

    @patch(OCR_PATH)
    async def test_stops_at_first_successful_mode(
        self, mock_ocr: MagicMock,
    ) -> None:
        """Later segmentation modes are not run after a hit."""
        mock_ocr.side_effect = ["no price here", "₹ 2,499", "₹ 9,999"]
        price = await self.ocr.extract_price(self.image_path)
        self.assertEqual(price, 2499.0)
        self.assertEqual(mock_ocr.call_count, 2)
        configs = [c.kwargs["config"] for c in mock_ocr.call_args_list]
        self.assertEqual(configs, ["--psm 11", "--psm 6"])

    @patch(OCR_PATH)
    async def test_all_modes_exhausted(self, mock_ocr: MagicMock) -> None:
        """No price in any mode returns None."""
        mock_ocr.return_value = "Add to cart"
        price = await self.ocr.extract_price(self.image_path)
        self.assertIsNone(price)
        self.assertEqual(mock_ocr.call_count, 3)

    @patch(OCR_PATH)
    async def test_missing_file_skips_engine(
        self, mock_ocr: MagicMock,
    ) -> None:
        """A missing image never reaches Tesseract."""
        price = await self.ocr.extract_price(
            Path(self._tmp.name) / "missing.jpg"
        )
        self.assertIsNone(price)
        mock_ocr.assert_not_called()

    @patch(OCR_PATH)
    async def test_missing_binary_returns_none(
        self, mock_ocr: MagicMock,
    ) -> None:
        """A missing Tesseract binary degrades to None."""
        mock_ocr.side_effect = pytesseract.TesseractNotFoundError()
        price = await self.ocr.extract_price(self.image_path)
        self.assertIsNone(price)
        self.assertEqual(mock_ocr.call_count, 1)

    @patch(OCR_PATH)
    async def test_failed_mode_moves_to_next(
        self, mock_ocr: MagicMock,
    ) -> None:
        """An error in one mode does not stop the others."""
        mock_ocr.side_effect = [RuntimeError("boom"), "Rs. 750"]
        price = await self.ocr.extract_price(self.image_path)
        self.assertEqual(price, 750.0)

    @patch(OCR_PATH)
    async def test_corrupt_image_returns_none(
        self, mock_ocr: MagicMock,
    ) -> None:
        """A file that is not an image degrades to None."""
        bad = Path(self._tmp.name) / "bad.jpg"
        bad.write_bytes(b"not an image")
        price = await self.ocr.extract_price(bad)
        self.assertIsNone(price)
        mock_ocr.assert_not_called()

    async def test_small_images_upscaled_to_grayscale(self) -> None:
        """Screenshots below the minimum side are enlarged."""
        image = self.ocr._load_image(self.image_path)
        self.assertEqual(image.mode, "L")
        self.assertEqual(image.size, (1000, 500))


if __name__ == "__main__":
    unittest.main()
