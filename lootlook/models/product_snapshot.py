# lootlook/models/product_snapshot.py

"""Product snapshot returned by a single bookmark extraction."""

import math
from dataclasses import dataclass

from lootlook.models.candidate_price import PriceSource


@dataclass(frozen=True)
class ProductSnapshot:
    """Best-effort view of a product page at extraction time.

    ``is_tracked`` is derived from ``price`` so the two can never
    disagree.
    """

    title: str
    site_name: str
    price: float | None = None
    currency: str = "INR"
    image_path: str | None = None
    url: str = ""
    price_source: PriceSource | None = None

    @property
    def is_tracked(self) -> bool:
        """True when the snapshot carries a usable price."""
        return (
            self.price is not None
            and not math.isnan(self.price)
            and self.price > 0
        )

    def to_dict(self) -> dict[str, object]:
        """Serialise to the JSON shape used by the bookmark service."""
        return {
            "title": self.title,
            "price": self.price if self.is_tracked else None,
            "currency": self.currency,
            "imagePath": self.image_path,
            "isTracked": self.is_tracked,
            "siteName": self.site_name,
            "url": self.url,
            "source": (
                self.price_source.value if self.price_source else None
            ),
        }
