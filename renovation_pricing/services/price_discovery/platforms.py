"""E-commerce platform profiles, platform detection and per-domain overrides."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import quote

from .extractors import parse_html

logger = logging.getLogger("price_discovery.platforms")

SearchUrlBuilder = Callable[[str, str], str]


def _path_builder(template: str) -> SearchUrlBuilder:
    """Builder for ``template`` with ``{base}`` and ``{query}`` placeholders."""

    def build(base: str, query: str) -> str:
        return template.format(base=base.rstrip("/"), query=quote(query, safe=""))

    return build


@dataclass(frozen=True)
class PlatformProfile:
    """URL and selector rules for one storefront family."""

    name: str
    build_search_url: SearchUrlBuilder
    list_item_selector: Optional[str] = None
    list_price_selector: Optional[str] = None
    detail_price_selector: Optional[str] = None


SHOPIFY_PROFILE = PlatformProfile(
    name="shopify",
    build_search_url=_path_builder("{base}/search?q={query}"),
    list_item_selector='a[href*="/products/"]',
    list_price_selector=".price-item--regular, .price .money, [data-price]",
    detail_price_selector=(
        '.price-item--regular, .price .money, [itemprop="price"], '
        'meta[property="product:price:amount"]'
    ),
)

WOOCOMMERCE_PROFILE = PlatformProfile(
    name="woocommerce",
    build_search_url=_path_builder("{base}/?s={query}&post_type=product"),
    list_item_selector=(
        ".products .product a.woocommerce-LoopProduct-link, "
        ".product a.woocommerce-loop-product__link"
    ),
    list_price_selector=".woocommerce-Price-amount, .price",
    detail_price_selector=(
        '.summary .price .amount, .woocommerce-Price-amount, [itemprop="price"]'
    ),
)

PRESTASHOP_PROFILE = PlatformProfile(
    name="prestashop",
    build_search_url=_path_builder("{base}/recherche?controller=search&s={query}"),
    list_item_selector=".product-miniature a.product-thumbnail, .thumbnail-container a",
    list_price_selector=".price, .product-price",
    detail_price_selector=".current-price, .price",
)

MAGENTO_PROFILE = PlatformProfile(
    name="magento",
    build_search_url=_path_builder("{base}/catalogsearch/result/?q={query}"),
    list_item_selector=".product-item-link",
    list_price_selector=".price-final_price .price, .price",
    detail_price_selector=".price-final_price .price, .price",
)


class Platform(str, Enum):
    """Storefront families the scraper knows how to search."""

    SHOPIFY = "shopify"
    WOOCOMMERCE = "woocommerce"
    PRESTASHOP = "prestashop"
    MAGENTO = "magento"
    UNKNOWN = "unknown"

    @property
    def profile(self) -> Optional[PlatformProfile]:
        return _PROFILES[self]


_PROFILES: Dict[Platform, Optional[PlatformProfile]] = {
    Platform.SHOPIFY: SHOPIFY_PROFILE,
    Platform.WOOCOMMERCE: WOOCOMMERCE_PROFILE,
    Platform.PRESTASHOP: PRESTASHOP_PROFILE,
    Platform.MAGENTO: MAGENTO_PROFILE,
    Platform.UNKNOWN: None,
}

# Tried in this order when no override or detected profile yields a price.
GENERIC_PATTERNS: Tuple[SearchUrlBuilder, ...] = (
    _path_builder("{base}/search?q={query}"),
    _path_builder("{base}/?s={query}"),
    _path_builder("{base}/catalogsearch/result/?q={query}"),
    _path_builder("{base}/recherche?controller=search&s={query}"),
)

GENERIC_DETAIL_SELECTORS: Tuple[str, ...] = (
    ".price-wrapper [data-price-amount]",
    "meta[itemprop='price']",
    ".price",
    ".amount",
    "[itemprop='price']",
)


def detect_platform(markup: str) -> Platform:
    """Classify a home page. First match wins, in declaration order of :class:`Platform`."""
    soup = parse_html(markup)
    generator_tag = soup.find("meta", attrs={"name": "generator"})
    generator = (generator_tag.get("content") or "").lower() if generator_tag else ""
    scripts = " ".join(
        script.get("src", "") for script in soup.find_all("script", src=True)
    )
    body = soup.find("body")
    body_classes = " ".join(body.get("class") or []) if body else ""

    if (
        "cdn.shopify.com" in scripts
        or "Shopify.theme" in markup
        or "window.Shopify" in markup
    ):
        return Platform.SHOPIFY
    if (
        "woocommerce" in generator
        or "wordpress" in generator
        or "woocommerce" in scripts
        or "wc-add-to-cart" in markup
    ):
        return Platform.WOOCOMMERCE
    if "prestashop" in generator or "prestashop" in markup.lower():
        return Platform.PRESTASHOP
    if (
        "magento" in generator
        or "mage/requirejs" in markup
        or "catalogsearch" in body_classes
    ):
        return Platform.MAGENTO
    return Platform.UNKNOWN


# Hosts (without "www.") whose storefront needs hand-written rules.
DOMAIN_OVERRIDES: Dict[str, PlatformProfile] = {}


def override_from_dict(host: str, raw: dict) -> PlatformProfile:
    """Build an override profile from its JSON description."""
    template = raw.get("search_url")
    if not template or "{query}" not in template:
        raise ValueError(f"Override for {host} needs a search_url with a {{query}} placeholder")
    try:
        template.format(base="", query="")
    except (IndexError, KeyError, ValueError) as exc:
        raise ValueError(f"Invalid search_url template for {host}: {exc}") from exc
    return PlatformProfile(
        name="override",
        build_search_url=_path_builder(template),
        list_item_selector=raw.get("list_item_selector"),
        list_price_selector=raw.get("list_price_selector"),
        detail_price_selector=raw.get("detail_price_selector"),
    )


def load_domain_overrides(path: Optional[str]) -> Dict[str, PlatformProfile]:
    """Built-in overrides merged with the ones declared in the JSON file at ``path``."""
    overrides = dict(DOMAIN_OVERRIDES)
    if not path:
        return overrides

    file_path = Path(path)
    if not file_path.exists():
        logger.warning("Domain overrides file %s not found, using built-in overrides.", path)
        return overrides

    try:
        raw_overrides = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read domain overrides from %s: %s", path, exc)
        return overrides

    if not isinstance(raw_overrides, dict):
        logger.warning("Domain overrides file %s must hold a JSON object.", path)
        return overrides

    for host, raw in raw_overrides.items():
        key = host.lower()
        key = key[4:] if key.startswith("www.") else key
        try:
            overrides[key] = override_from_dict(key, raw)
        except (AttributeError, ValueError) as exc:
            logger.warning("Ignoring domain override for %s: %s", host, exc)
    return overrides
