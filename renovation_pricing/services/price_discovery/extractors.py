"""Price extraction from fetched documents.

Two independent strategies feed the price parser:

* structured data: ``application/ld+json`` blocks describing a ``Product``;
* selectors: an ordered list of CSS selectors, then a small generic guess set.

Neither raises on a miss; an empty result is a normal outcome.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Iterator, List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .models import PriceCandidate
from .utils import normalize_whitespace, parse_price

logger = logging.getLogger("price_discovery.extractors")

GUESS_PRICE_SELECTOR = (
    '[class*="price"], [class*="prix"], [class*="amount"], [id*="price"], [itemprop="price"]'
)
PRODUCT_LINK_SELECTOR = 'a[href*="product"], a[href*="/products/"]'
TITLE_SELECTOR = 'h1, [itemprop="name"], .product-title, .page-title'

_OFFER_KEYS = ("offers", "aggregateOffer", "aggregateOffers", "Offer")
_PRICE_KEYS = ("price", "lowPrice", "highPrice")


def parse_html(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def _is_product(node: dict) -> bool:
    kind = node.get("@type")
    if isinstance(kind, list):
        return "Product" in kind
    return kind == "Product"


def _iter_products(data: Any) -> Iterator[dict]:
    """Yield product nodes from a JSON-LD document, top-level arrays and ``@graph`` included."""
    if isinstance(data, list):
        for item in data:
            yield from _iter_products(item)
    elif isinstance(data, dict):
        if _is_product(data):
            yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            yield from _iter_products(graph)


def _offer_price(offer: dict) -> Any:
    for key in _PRICE_KEYS:
        if offer.get(key):
            return offer[key]
    specification = offer.get("priceSpecification")
    if isinstance(specification, dict):
        return specification.get("price")
    return None


def extract_from_json_ld(soup: BeautifulSoup) -> List[PriceCandidate]:
    """Every offer price found in the page's product structured data."""
    candidates: List[PriceCandidate] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw.strip())
        except ValueError:
            logger.debug("Skipping malformed JSON-LD block.")
            continue

        for product in _iter_products(data):
            offers = next(
                (product[key] for key in _OFFER_KEYS if product.get(key)), None
            )
            if isinstance(offers, dict):
                offers = [offers]
            for offer in offers or []:
                if not isinstance(offer, dict):
                    continue
                candidate = parse_price(_offer_price(offer))
                if candidate is None:
                    continue
                currency = offer.get("priceCurrency")
                if isinstance(currency, str) and currency.strip():
                    candidate = PriceCandidate(
                        value=candidate.value, currency=currency.strip().upper()
                    )
                candidates.append(candidate)
    return candidates


def _element_price(element: Optional[Tag]) -> Optional[PriceCandidate]:
    if element is None:
        return None
    return parse_price(element.get_text(strip=True) or element.get("content"))


def extract_by_selectors(
    soup: BeautifulSoup, selectors: Iterable[Optional[str]] = ()
) -> Optional[PriceCandidate]:
    """First parseable price among ``selectors``, then among common price patterns."""
    for selector in selectors:
        if not selector:
            continue
        candidate = _element_price(soup.select_one(selector))
        if candidate:
            return candidate
    return _element_price(soup.select_one(GUESS_PRICE_SELECTOR))


def find_product_link(
    soup: BeautifulSoup, page_url: str, selector: Optional[str] = None
) -> Optional[str]:
    """Absolute URL of the first product link on a listing page."""
    for candidate_selector in (selector, PRODUCT_LINK_SELECTOR):
        if not candidate_selector:
            continue
        anchor = soup.select_one(candidate_selector)
        href = anchor.get("href") if anchor is not None else None
        if href and href.strip():
            return urljoin(page_url, href.strip())
    return None


def extract_title(soup: BeautifulSoup) -> str:
    element = soup.select_one(TITLE_SELECTOR)
    return normalize_whitespace(element.get_text()) if element is not None else ""


def page_candidates(
    soup: BeautifulSoup, detail_selectors: Sequence[Optional[str]]
) -> List[PriceCandidate]:
    """Structured-data candidates plus the selector candidate of a product page."""
    candidates = extract_from_json_ld(soup)
    selected = extract_by_selectors(soup, detail_selectors)
    if selected:
        candidates.append(selected)
    return candidates
