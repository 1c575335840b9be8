# lootlook/storage/file_manager.py

"""Saves extraction results to disk and loads bookmark lists."""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from lootlook.config.settings import Settings
from lootlook.models.product_snapshot import ProductSnapshot
from lootlook.services.price_checker import TrackedBookmark

logger = logging.getLogger("lootlook.storage")

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_.-]+")


class FileManager:
    """Handles saving snapshots to disk and reading bookmark files."""

    def __init__(self, results_dir: Path | None = None) -> None:
        self.results_dir: Path = results_dir or Settings.RESULTS_DIR
        self.results_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(
            "FileManager initialised, results_dir=%s", self.results_dir
        )

    def save_snapshots(
        self, label: str, snapshots: list[ProductSnapshot],
    ) -> Path:
        """Save snapshots to a timestamped JSON file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        safe_label = _UNSAFE_CHARS_RE.sub("_", label).strip("_") or "run"
        filepath = self.results_dir / f"{safe_label}_{timestamp}.json"

        data = [s.to_dict() for s in snapshots]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info(
            "Saved %d snapshots for '%s' to %s",
            len(snapshots),
            label,
            filepath,
        )
        return filepath

    @staticmethod
    def load_bookmarks(path: Path) -> list[TrackedBookmark]:
        """Read a JSON list of ``{url, price?, currency?, id?}`` entries.

        Entries without a URL are skipped.
        """
        with open(path, encoding="utf-8") as f:
            raw: Any = json.load(f)
        if not isinstance(raw, list):
            raise ValueError(
                f"Expected a JSON list of bookmarks in {path}"
            )

        bookmarks: list[TrackedBookmark] = []
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("url"):
                logger.debug("Skipping bookmark entry: %r", entry)
                continue
            price = entry.get("price")
            try:
                last_price = float(price) if price is not None else None
            except (TypeError, ValueError):
                last_price = None
            bookmarks.append(
                TrackedBookmark(
                    url=str(entry["url"]),
                    last_price=last_price,
                    currency=str(
                        entry.get("currency") or Settings.DEFAULT_CURRENCY
                    ),
                    bookmark_id=str(entry.get("id", "") or ""),
                )
            )
        logger.info("Loaded %d bookmarks from %s", len(bookmarks), path)
        return bookmarks
