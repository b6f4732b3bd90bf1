"""Base class for supplier search strategies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from renovation_pricing.models.supplier_models import SupplierRef

from ..extractors import (
    extract_by_selectors,
    extract_title,
    find_product_link,
    page_candidates,
    parse_html,
)
from ..fetcher import FetchGateway
from ..models import PriceCandidate, PriceDiscoveryError, ScrapeResult
from ..platforms import PlatformProfile
from ..utils import best_price, looks_relevant_title

logger = logging.getLogger("price_discovery.strategy")


class BaseSearchStrategy(ABC):
    """One way of finding a product and its price on a supplier storefront."""

    name: str

    def __init__(self, gateway: FetchGateway) -> None:
        self.gateway = gateway

    def attempt(self, supplier: SupplierRef, query: str) -> Optional[ScrapeResult]:
        """Public entry point: a validated result, or None when this strategy found nothing."""
        try:
            return self._attempt_impl(supplier, query)
        except PriceDiscoveryError as exc:
            logger.warning(
                "Strategy %s failed for %s: %s", self.name, supplier.name, exc.message
            )
            return None
        except Exception:
            logger.exception(
                "Unexpected error in strategy %s for %s", self.name, supplier.name
            )
            return None

    @abstractmethod
    def _attempt_impl(self, supplier: SupplierRef, query: str) -> Optional[ScrapeResult]:
        """Return a result that passed both validation gates, or None."""
        raise NotImplementedError

    def _search_with_profile(
        self,
        supplier: SupplierRef,
        query: str,
        profile: PlatformProfile,
        source_platform: str,
        accept_listing_only: bool,
    ) -> Optional[ScrapeResult]:
        """Search listing, follow the first product link, price it and check relevance.

        The listing price stands in when the product page shows none. With
        ``accept_listing_only`` a listing without any product link is priced from
        the listing itself.
        """
        search_url = profile.build_search_url(supplier.base_url, query)
        listing = parse_html(self.gateway.fetch(search_url))
        list_price = extract_by_selectors(listing, [profile.list_price_selector])

        product_url = find_product_link(listing, search_url, profile.list_item_selector)
        if not product_url:
            if not accept_listing_only or list_price is None:
                logger.debug("No product link on %s", search_url)
                return None
            if not looks_relevant_title(query, extract_title(listing)):
                logger.debug("Listing %s does not look relevant to '%s'", search_url, query)
                return None
            return self._build_result(
                supplier, query, source_platform, search_url, None, list_price
            )

        product = parse_html(self.gateway.fetch(product_url))
        price = best_price(page_candidates(product, [profile.detail_price_selector]))
        price = price or list_price
        if price is None:
            logger.debug("No price found on %s", product_url)
            return None
        if not looks_relevant_title(query, extract_title(product)):
            logger.debug("Product %s does not look relevant to '%s'", product_url, query)
            return None
        return self._build_result(
            supplier, query, source_platform, search_url, product_url, price
        )

    @staticmethod
    def _build_result(
        supplier: SupplierRef,
        query: str,
        source_platform: str,
        search_url: str,
        product_url: Optional[str],
        price: PriceCandidate,
    ) -> ScrapeResult:
        return ScrapeResult(
            supplier_id=supplier.supplier_id,
            supplier_name=supplier.name,
            source_platform=source_platform,
            query=query,
            search_url=search_url,
            product_url=product_url,
            price_value=price.value,
            currency=price.currency or "EUR",
        )
