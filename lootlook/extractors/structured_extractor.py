# lootlook/extractors/structured_extractor.py

"""Pull title, price and currency out of rendered product HTML.

Price layers are tried in order of trust and the first hit wins:

1. Embedded JSON-LD product schema (machine generated by the site).
2. CSS selector heuristics from the versioned selector table, skipping
   matches that sit inside promotional or rating context.
3. Price meta tags.

OCR is not attempted here; escalating to it is the orchestrator's call.
"""

import json
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from lootlook.config.settings import Settings
from lootlook.extractors.selector_table import (
    PriceSelector,
    SelectorTable,
    load_selector_table,
)
from lootlook.models.candidate_price import CandidatePrice, PriceSource
from lootlook.parsers.price_parser import PriceParser

logger = logging.getLogger("lootlook.extractor")

_WHITESPACE_RE = re.compile(r"\s+")

SchemaKind = Literal["product", "product_group", "other"]

_PRICE_META_KEYS: tuple[tuple[str, str], ...] = (
    ("property", "product:price:amount"),
    ("property", "og:price:amount"),
    ("itemprop", "price"),
)

_CURRENCY_META_KEYS: tuple[tuple[str, str], ...] = (
    ("property", "product:price:currency"),
    ("property", "og:price:currency"),
    ("itemprop", "priceCurrency"),
)


@dataclass(frozen=True)
class ProductSchema:
    """A JSON-LD node classified as Product, ProductGroup or other."""

    kind: SchemaKind
    node: dict[str, Any] = field(default_factory=lambda: dict[str, Any]())

    @property
    def name(self) -> str | None:
        value = self.node.get("name")
        return str(value) if value else None


@dataclass(frozen=True)
class ExtractedContent:
    """Fields recovered from HTML; every one may be absent."""

    title: str | None = None
    price: float | None = None
    currency: str | None = None
    price_source: PriceSource | None = None


def _collapse(text: str | None) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def _schema_types(node: dict[str, Any]) -> set[str]:
    raw = node.get("@type")
    if isinstance(raw, list):
        return {str(t) for t in raw}
    if raw:
        return {str(raw)}
    return set()


def classify_schema_node(node: Any) -> ProductSchema:
    """Interpret a JSON-LD node as one of the known product shapes."""
    if not isinstance(node, dict):
        return ProductSchema(kind="other")
    types = _schema_types(node)
    if "ProductGroup" in types:
        return ProductSchema(kind="product_group", node=node)
    if "Product" in types or "IndividualProduct" in types:
        return ProductSchema(kind="product", node=node)
    return ProductSchema(kind="other", node=node)


def iter_schema_nodes(data: Any) -> Iterator[dict[str, Any]]:
    """Walk top-level arrays and ``@graph`` containers of a JSON-LD block."""
    if isinstance(data, list):
        for item in data:
            yield from iter_schema_nodes(item)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                yield from iter_schema_nodes(item)


class StructuredContentExtractor:
    """Extract product title and price from rendered HTML."""

    def __init__(
        self,
        parser: PriceParser | None = None,
        selector_table: SelectorTable | None = None,
    ) -> None:
        self.settings = Settings()
        self.parser = parser or PriceParser()
        self.selector_table = selector_table or load_selector_table()

    # ── Structured data ──────────────────────────────────

    def _offer_candidate(self, offer: Any) -> CandidatePrice | None:
        """Read price and currency from a single Offer/AggregateOffer."""
        if not isinstance(offer, dict):
            return None
        raw_price = offer.get("price")
        if raw_price in (None, ""):
            spec = offer.get("priceSpecification")
            if isinstance(spec, list) and spec:
                spec = spec[0]
            if isinstance(spec, dict):
                raw_price = spec.get("price")
        if raw_price in (None, ""):
            raw_price = offer.get("lowPrice")
        if raw_price in (None, ""):
            return None

        if isinstance(raw_price, (int, float)) and not isinstance(
            raw_price, bool
        ):
            amount: float | None = float(raw_price)
        else:
            amount = self.parser.extract_amount(str(raw_price))
        if amount is None or not self.parser.is_valid_amount(amount):
            return None

        currency = offer.get("priceCurrency")
        return CandidatePrice(
            amount=amount,
            currency_hint=str(currency) if currency else None,
            source=PriceSource.STRUCTURED_DATA,
        )

    def _product_candidate(
        self, node: dict[str, Any],
    ) -> CandidatePrice | None:
        offers = node.get("offers")
        if isinstance(offers, list):
            offers = offers[0] if offers else None
        candidate = self._offer_candidate(offers)
        if candidate is None and isinstance(offers, dict):
            # AggregateOffer may nest its own offers list
            nested = offers.get("offers")
            if isinstance(nested, list) and nested:
                candidate = self._offer_candidate(nested[0])
        return candidate

    def _schema_candidate(
        self, schema: ProductSchema,
    ) -> CandidatePrice | None:
        if schema.kind == "product":
            return self._product_candidate(schema.node)
        if schema.kind == "product_group":
            variants = schema.node.get("hasVariant") or []
            if isinstance(variants, dict):
                variants = [variants]
            for variant in variants:
                if isinstance(variant, dict):
                    candidate = self._product_candidate(variant)
                    if candidate is not None:
                        return candidate
            return self._product_candidate(schema.node)
        return None

    def extract_structured_data(
        self, soup: BeautifulSoup,
    ) -> tuple[str | None, CandidatePrice | None]:
        """Scan JSON-LD blocks for a product name and priced offer."""
        name: str | None = None
        for script in soup.find_all(
            "script", attrs={"type": "application/ld+json"}
        ):
            raw = str(script.string or script.get_text() or "")
            if not raw.strip():
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as exc:
                logger.debug("Skipping malformed JSON-LD block: %s", exc)
                continue

            for node in iter_schema_nodes(data):
                schema = classify_schema_node(node)
                if schema.kind == "other":
                    continue
                if name is None and schema.name:
                    name = _collapse(schema.name)
                candidate = self._schema_candidate(schema)
                if candidate is not None:
                    return name or None, candidate
        return name, None

    # ── Selector heuristics ──────────────────────────────

    @staticmethod
    def _contains_keyword(text: str, keywords: tuple[str, ...]) -> str | None:
        lowered = text.lower()
        for keyword in keywords:
            if re.search(
                rf"(?<![a-z]){re.escape(keyword)}(?![a-z])", lowered
            ):
                return keyword
        return None

    def _context_texts(self, element: Tag) -> Iterator[str]:
        """The element's text plus the direct text of a few ancestors."""
        yield element.get_text(" ", strip=True)
        depth = 0
        for ancestor in element.parents:
            if depth >= self.settings.CONTEXT_ANCESTOR_DEPTH:
                break
            if not isinstance(ancestor, Tag) or ancestor.name in (
                "body",
                "html",
                "[document]",
            ):
                break
            own = " ".join(
                s.strip()
                for s in ancestor.find_all(string=True, recursive=False)
            )
            if own.strip():
                yield own
            depth += 1

    def is_excluded_context(
        self, element: Tag, entry: PriceSelector | None = None,
    ) -> bool:
        """True when the element sits in promotional or rating context."""
        keywords = self.selector_table.exclusion_keywords
        if entry is not None:
            keywords = keywords + entry.exclude
        for text in self._context_texts(element):
            hit = self._contains_keyword(text, keywords)
            if hit:
                logger.debug(
                    "Rejected price element in '%s' context: %.60s",
                    hit,
                    text,
                )
                return True
        return False

    def extract_from_selectors(
        self,
        soup: BeautifulSoup,
        hostname: str | None = None,
    ) -> CandidatePrice | None:
        """Apply ranked selectors and return the first qualifying price."""
        for entry in self.selector_table.price_selectors:
            if not entry.applies_to(hostname):
                continue
            try:
                elements = soup.select(entry.selector)
            except Exception as exc:
                logger.warning(
                    "Bad selector '%s': %s", entry.selector, exc
                )
                continue
            for element in elements:
                text = element.get_text(" ", strip=True)
                if not text:
                    text = str(element.get("content", "") or "")
                if not text:
                    continue
                if self.is_excluded_context(element, entry):
                    continue
                candidate = self.parser.parse(text, PriceSource.SELECTOR)
                if candidate is not None:
                    logger.debug(
                        "Selector '%s' matched price %s",
                        entry.selector,
                        candidate.amount,
                    )
                    return candidate
        return None

    # ── Meta tags ────────────────────────────────────────

    @staticmethod
    def _meta_content(
        soup: BeautifulSoup, keys: tuple[tuple[str, str], ...],
    ) -> str | None:
        for attr, value in keys:
            tag = soup.find("meta", attrs={attr: value})
            if isinstance(tag, Tag):
                content = tag.get("content")
                if content:
                    return str(content).strip()
        return None

    def extract_from_meta(
        self, soup: BeautifulSoup,
    ) -> CandidatePrice | None:
        """Last-resort price from explicit price meta properties."""
        raw_price = self._meta_content(soup, _PRICE_META_KEYS)
        if not raw_price:
            return None
        amount = self.parser.extract_amount(raw_price)
        if amount is None or not self.parser.is_valid_amount(amount):
            return None
        currency = self._meta_content(
            soup, _CURRENCY_META_KEYS
        ) or self.parser.detect_currency(raw_price)
        return CandidatePrice(
            amount=amount,
            currency_hint=currency,
            source=PriceSource.META,
        )

    # ── Title ────────────────────────────────────────────

    @staticmethod
    def _is_hidden(tag: Tag) -> bool:
        if tag.has_attr("hidden"):
            return True
        if str(tag.get("aria-hidden", "")).lower() == "true":
            return True
        style = str(tag.get("style", "")).replace(" ", "").lower()
        return "display:none" in style or "visibility:hidden" in style

    def resolve_title(
        self,
        soup: BeautifulSoup,
        structured_name: str | None,
        fallback_title: str,
    ) -> str:
        """Pick the first non-trivial title from the fallback chain."""
        candidates: list[str | None] = []
        for h1 in soup.find_all("h1"):
            if not isinstance(h1, Tag) or self._is_hidden(h1):
                continue
            heading = h1.get_text(" ", strip=True)
            # Logo-only headings carry an image and no text
            if heading:
                candidates.append(heading)
                break
        candidates.append(structured_name)
        candidates.append(
            self._meta_content(soup, (("property", "og:title"),))
        )
        if soup.title is not None:
            candidates.append(soup.title.get_text())

        for candidate in candidates:
            title = _collapse(candidate)
            if len(title) > self.settings.MIN_TITLE_LENGTH:
                return title
        return fallback_title

    # ── Entry point ──────────────────────────────────────

    @staticmethod
    def _page_hostname(
        soup: BeautifulSoup, page_url: str | None,
    ) -> str | None:
        sources: list[str] = []
        if page_url:
            sources.append(page_url)
        canonical = soup.find("link", attrs={"rel": "canonical"})
        if isinstance(canonical, Tag) and canonical.get("href"):
            sources.append(str(canonical["href"]))
        og_url = soup.find("meta", attrs={"property": "og:url"})
        if isinstance(og_url, Tag) and og_url.get("content"):
            sources.append(str(og_url["content"]))
        for source in sources:
            try:
                hostname = urlparse(source).hostname
            except ValueError:
                continue
            if hostname:
                return hostname
        return None

    def extract(
        self,
        html: str,
        fallback_title: str = "",
        page_url: str | None = None,
    ) -> ExtractedContent:
        """Extract title, price and currency from *html*."""
        if not html:
            return ExtractedContent(title=fallback_title or None)

        soup = BeautifulSoup(html, "lxml")
        structured_name, candidate = self.extract_structured_data(soup)
        if candidate is None:
            candidate = self.extract_from_selectors(
                soup, self._page_hostname(soup, page_url)
            )
        if candidate is None:
            candidate = self.extract_from_meta(soup)

        title = self.resolve_title(soup, structured_name, fallback_title)
        if candidate is None:
            logger.info("No price found in HTML for '%s'", title)
            return ExtractedContent(title=title)

        logger.info(
            "HTML price %s %s via %s",
            candidate.currency_hint or "?",
            candidate.amount,
            candidate.source.value if candidate.source else "?",
        )
        return ExtractedContent(
            title=title,
            price=candidate.amount,
            currency=candidate.currency_hint,
            price_source=candidate.source,
        )
