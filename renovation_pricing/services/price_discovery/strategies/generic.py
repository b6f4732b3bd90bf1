"""Strategy trying common search URL layouts one after another."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from renovation_pricing.models.supplier_models import SupplierRef

from ..extractors import extract_title, find_product_link, page_candidates, parse_html
from ..fetcher import FetchGateway
from ..models import FetchError, ScrapeResult
from ..platforms import GENERIC_DETAIL_SELECTORS, GENERIC_PATTERNS, SearchUrlBuilder
from ..utils import best_price, looks_relevant_title
from .base import BaseSearchStrategy

logger = logging.getLogger("price_discovery.strategy.generic")


class GenericPatternStrategy(BaseSearchStrategy):
    """Walk the generic search URL patterns until one leads to a relevant priced product."""

    name = "generic"

    def __init__(
        self,
        gateway: FetchGateway,
        patterns: Sequence[SearchUrlBuilder] = GENERIC_PATTERNS,
        detail_selectors: Sequence[str] = GENERIC_DETAIL_SELECTORS,
    ) -> None:
        super().__init__(gateway)
        self.patterns = patterns
        self.detail_selectors = detail_selectors

    def _attempt_impl(self, supplier: SupplierRef, query: str) -> Optional[ScrapeResult]:
        for build in self.patterns:
            search_url = build(supplier.base_url, query)
            try:
                result = self._try_pattern(supplier, query, search_url)
            except FetchError as exc:
                logger.debug("Pattern %s failed: %s", search_url, exc.message)
                continue
            if result is not None:
                return result
        return None

    def _try_pattern(
        self, supplier: SupplierRef, query: str, search_url: str
    ) -> Optional[ScrapeResult]:
        listing = parse_html(self.gateway.fetch(search_url))
        product_url = find_product_link(listing, search_url)
        if not product_url:
            return None

        product = parse_html(self.gateway.fetch(product_url))
        price = best_price(page_candidates(product, self.detail_selectors))
        if price is None:
            return None
        if not looks_relevant_title(query, extract_title(product)):
            logger.debug("Product %s does not look relevant to '%s'", product_url, query)
            return None
        return self._build_result(
            supplier, query, self.name, search_url, product_url, price
        )
