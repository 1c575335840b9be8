# lootlook/models/candidate_price.py

"""Intermediate price candidate passed between extraction layers."""

from dataclasses import dataclass
from enum import Enum


class PriceSource(Enum):
    """Where a candidate price was found, in fallback order."""

    STRUCTURED_DATA = "structured-data"
    SELECTOR = "selector"
    META = "meta"
    OCR = "ocr"


@dataclass(frozen=True)
class CandidatePrice:
    """A parsed amount with an optional currency hint."""

    amount: float
    currency_hint: str | None = None
    source: PriceSource | None = None
