# lootlook/extractors/ocr_extractor.py

"""OCR fallback: read a price off a page screenshot with Tesseract."""

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from pathlib import Path

import pytesseract  # type: ignore[import-untyped]
from PIL import Image, UnidentifiedImageError

from lootlook.config.settings import Settings
from lootlook.parsers.price_parser import PriceParser

logger = logging.getLogger("lootlook.ocr")

# Characters Tesseract commonly confuses with digits
_DIGIT_CONFUSIONS = str.maketrans({
    "l": "1",
    "I": "1",
    "O": "0",
    "o": "0",
    "S": "5",
    "B": "8",
})

# A run of digits, separators and digit look-alikes that is not glued to
# other letters (a currency abbreviation directly in front is allowed)
_NUMERIC_TOKEN_RE = re.compile(
    r"(?:(?<![A-Za-z])|(?<=Rs)|(?<=INR)|(?<=AED))"
    r"[0-9OoIlSB][0-9OoIlSB,.]*"
    r"(?![A-Za-z])"
)

# Pass (a): amount directly after a currency symbol or code
_SYMBOL_PRICE_RE = re.compile(
    r"(?:₹|\$|€|£|(?<![A-Za-z])(?:Rs\.?|INR|AED|USD))\s*(\d(?:[\d,.]*\d)?)",
    re.IGNORECASE,
)

# Pass (b): unlabelled amount with at least one grouping separator
_GROUPED_PRICE_RE = re.compile(
    r"(?<![\d.,])(\d{1,3}(?:[,.]\d{2,3})+)(?!\d)"
)


def clean_ocr_text(text: str) -> str:
    """Fix digit look-alikes, but only inside numeric-looking tokens."""

    def _fix(match: re.Match[str]) -> str:
        token = match.group(0)
        if not any(ch.isdigit() for ch in token):
            return token
        return token.translate(_DIGIT_CONFUSIONS)

    return _NUMERIC_TOKEN_RE.sub(_fix, text)


class OcrPriceExtractor:
    """Runs Tesseract under several segmentation modes until a price shows up."""

    def __init__(
        self,
        parser: PriceParser | None = None,
        psm_modes: tuple[int, ...] | None = None,
    ) -> None:
        self.settings = Settings()
        self.parser = parser or PriceParser()
        self.psm_modes: tuple[int, ...] = (
            psm_modes if psm_modes is not None else self.settings.OCR_PSM_MODES
        )
        if self.settings.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = (
                self.settings.TESSERACT_CMD
            )

    def _looks_like_year(self, value: float) -> bool:
        low, high = self.settings.YEAR_EXCLUSION_RANGE
        return low <= value <= high

    def find_price_in_text(self, text: str) -> float | None:
        """Return the first valid price in recognised *text*.

        Currency-prefixed amounts are tried before bare grouped numbers;
        bare numbers that fall in the year band are skipped.
        """
        cleaned = clean_ocr_text(text)

        for match in _SYMBOL_PRICE_RE.finditer(cleaned):
            amount = self.parser.extract_amount(match.group(1))
            if self.parser.is_valid_amount(amount):
                return amount

        for match in _GROUPED_PRICE_RE.finditer(cleaned):
            amount = self.parser.extract_amount(match.group(1))
            if amount is None or not self.parser.is_valid_amount(amount):
                continue
            if self._looks_like_year(amount):
                logger.debug("Skipping year-like value %s", amount)
                continue
            return amount

        return None

    def _load_image(self, image_path: Path) -> Image.Image:
        """Grayscale the screenshot and upscale it when small."""
        with Image.open(image_path) as img:
            img.load()
            prepared = img.convert("L")
        width, height = prepared.size
        min_side = self.settings.OCR_MIN_IMAGE_SIDE
        if 0 < max(width, height) < min_side:
            scale = min_side / max(width, height)
            prepared = prepared.resize(
                (int(width * scale), int(height * scale)),
                Image.Resampling.LANCZOS,
            )
        return prepared

    def _run_tesseract(self, image: Image.Image, psm: int) -> str:
        """Blocking Tesseract call for one segmentation mode."""
        text: str = pytesseract.image_to_string(
            image,
            lang=self.settings.OCR_LANGUAGE,
            config=f"--psm {psm}",
        )
        return text

    async def _recognised_texts(
        self, image: Image.Image,
    ) -> AsyncIterator[tuple[int, str]]:
        """Yield ``(psm, text)`` per segmentation mode, lazily."""
        for psm in self.psm_modes:
            try:
                text = await asyncio.to_thread(
                    self._run_tesseract, image, psm
                )
            except pytesseract.TesseractNotFoundError:
                logger.error(
                    "Tesseract binary not found, OCR unavailable"
                )
                return
            except Exception as exc:
                logger.warning(
                    "OCR failed with psm %d: %s",
                    psm,
                    exc,
                    exc_info=True,
                )
                continue
            yield psm, text

    async def extract_price(self, image_path: str | Path) -> float | None:
        """Scan a screenshot for a price. Never raises."""
        path = Path(image_path)
        try:
            if not path.is_file():
                logger.error("OCR skipped, image not found: %s", path)
                return None

            logger.info("Scanning image for price: %s", path)
            try:
                image = await asyncio.to_thread(self._load_image, path)
            except (OSError, UnidentifiedImageError) as exc:
                logger.error("Unreadable image %s: %s", path, exc)
                return None

            async for psm, text in self._recognised_texts(image):
                price = self.find_price_in_text(text)
                if price is not None:
                    logger.info(
                        "OCR detected price %s (psm %d)", price, psm
                    )
                    return price
                logger.debug("No price with psm %d", psm)

            logger.info("OCR found no price in %s", path)
            return None
        except Exception as exc:
            logger.error(
                "OCR extraction crashed for %s: %s",
                path,
                exc,
                exc_info=True,
            )
            return None
