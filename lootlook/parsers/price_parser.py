# lootlook/parsers/price_parser.py

"""Text to (amount, currency) conversion with noise filtering."""

import math
import re

from lootlook.config.settings import Settings
from lootlook.models.candidate_price import CandidatePrice, PriceSource

# First number-looking run; separators only count between digits
_NUMBER_RUN_RE = re.compile(r"\d(?:[\d,.]*\d)?")
_NON_NUMERIC_RE = re.compile(r"[^\d.]")


def _token_pattern(token: str) -> re.Pattern[str]:
    """Compile a matcher for a currency token.

    Glyphs match anywhere; alphabetic codes must not touch other
    letters so ``RP`` does not fire inside ``MRP``.
    """
    if token.isalpha():
        return re.compile(
            rf"(?<![A-Za-z]){re.escape(token)}(?![A-Za-z])",
            re.IGNORECASE,
        )
    return re.compile(re.escape(token))


class PriceParser:
    """Parse price strings against an immutable currency table.

    The table is an ordered sequence of ``(token, iso_code)`` pairs; the
    first entry present anywhere in the text decides the currency, so
    ``"$49.99 (Rs. 4,000 MRP)"`` resolves to ``USD`` with the default
    table.
    """

    def __init__(
        self,
        currency_table: tuple[tuple[str, str], ...] | None = None,
        min_price: float | None = None,
    ) -> None:
        table = (
            currency_table
            if currency_table is not None
            else Settings.CURRENCY_TABLE
        )
        self.currency_table: tuple[tuple[str, str], ...] = tuple(table)
        self.min_price: float = (
            min_price if min_price is not None else Settings.MIN_VALID_PRICE
        )
        self._matchers: tuple[tuple[re.Pattern[str], str], ...] = tuple(
            (_token_pattern(token), code)
            for token, code in self.currency_table
        )

    def detect_currency(self, text: str) -> str | None:
        """Return the ISO code of the highest-priority token in *text*."""
        for pattern, code in self._matchers:
            if pattern.search(text):
                return code
        return None

    @staticmethod
    def extract_amount(text: str) -> float | None:
        """Pull the first numeric amount out of *text*.

        Every character other than digits and dots is stripped. When
        several dots survive (``"1.200.00"``) only the last one is kept
        as the decimal separator.
        """
        match = _NUMBER_RUN_RE.search(text)
        if not match:
            return None
        cleaned = _NON_NUMERIC_RE.sub("", match.group(0))
        if cleaned.count(".") > 1:
            head, _, tail = cleaned.rpartition(".")
            cleaned = head.replace(".", "") + "." + tail
        if not cleaned or cleaned == ".":
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None

    def is_valid_amount(self, value: float | None) -> bool:
        """Reject NaN, infinities and implausibly small values."""
        if value is None:
            return False
        if math.isnan(value) or math.isinf(value):
            return False
        return value >= self.min_price

    def parse(
        self,
        text: str | None,
        source: PriceSource | None = None,
    ) -> CandidatePrice | None:
        """Parse *text* into a candidate price, or ``None`` on reject."""
        if not text:
            return None
        amount = self.extract_amount(text)
        if amount is None or not self.is_valid_amount(amount):
            return None
        return CandidatePrice(
            amount=amount,
            currency_hint=self.detect_currency(text),
            source=source,
        )


_DEFAULT_PARSER = PriceParser()


def parse_price_and_currency(
    text: str | None,
    source: PriceSource | None = None,
) -> CandidatePrice | None:
    """Parse *text* with the default currency table and threshold."""
    return _DEFAULT_PARSER.parse(text, source)
