"""Strategy using the profile of the platform detected on the supplier home page."""

from __future__ import annotations

import logging
from typing import Optional

from renovation_pricing.models.supplier_models import SupplierRef

from ..models import FetchError, ScrapeResult
from ..platforms import Platform, detect_platform
from .base import BaseSearchStrategy

logger = logging.getLogger("price_discovery.strategy.platform")


class DetectedPlatformStrategy(BaseSearchStrategy):
    """Detect the storefront platform, then search with its profile."""

    name = "platform"

    def detect(self, supplier: SupplierRef) -> Platform:
        """Platform of the supplier home page; an unreachable home page is ``unknown``."""
        try:
            markup = self.gateway.fetch(supplier.base_url)
        except FetchError as exc:
            logger.debug("Home page of %s unavailable: %s", supplier.name, exc.message)
            return Platform.UNKNOWN
        return detect_platform(markup)

    def _attempt_impl(self, supplier: SupplierRef, query: str) -> Optional[ScrapeResult]:
        platform = self.detect(supplier)
        logger.debug("Platform of %s: %s", supplier.name, platform.value)

        profile = platform.profile
        if profile is None:
            return None
        return self._search_with_profile(
            supplier, query, profile, platform.value, accept_listing_only=True
        )
