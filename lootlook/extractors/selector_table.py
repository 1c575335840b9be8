# lootlook/extractors/selector_table.py

"""Versioned table of price selectors loaded from selectors.json."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lootlook.config.settings import Settings

logger = logging.getLogger("lootlook.selectors")


@dataclass(frozen=True)
class PriceSelector:
    """A CSS selector known to point at a price display element."""

    selector: str
    site: str = ""
    exclude: tuple[str, ...] = ()

    def applies_to(self, hostname: str | None) -> bool:
        """Site-specific entries only run on their own site."""
        if not self.site or not hostname:
            return True
        return self.site in hostname.lower()


@dataclass(frozen=True)
class SelectorTable:
    """Ordered selectors plus the context phrases that disqualify a match."""

    version: int
    price_selectors: tuple[PriceSelector, ...]
    exclusion_keywords: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SelectorTable":
        """Build a table from the parsed JSON document."""
        selectors = tuple(
            PriceSelector(
                selector=str(entry["selector"]),
                site=str(entry.get("site", "") or ""),
                exclude=tuple(
                    str(kw).lower() for kw in entry.get("exclude", [])
                ),
            )
            for entry in data.get("price_selectors", [])
            if entry.get("selector")
        )
        keywords = tuple(
            str(kw).lower() for kw in data.get("exclusion_keywords", [])
        )
        return cls(
            version=int(data.get("version", 1)),
            price_selectors=selectors,
            exclusion_keywords=keywords,
        )


def load_selector_table(path: Path | None = None) -> SelectorTable:
    """Load the selector table from disk."""
    selectors_path = path or Settings.SELECTORS_PATH
    with open(selectors_path, encoding="utf-8") as f:
        data: dict[str, Any] = json.load(f)
    table = SelectorTable.from_dict(data)
    logger.debug(
        "Loaded selector table v%d (%d selectors) from %s",
        table.version,
        len(table.price_selectors),
        selectors_path,
    )
    return table
