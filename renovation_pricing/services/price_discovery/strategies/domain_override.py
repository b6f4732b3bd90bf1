"""Strategy using hand-written rules registered for the supplier's host."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from renovation_pricing.models.supplier_models import SupplierRef

from ..fetcher import FetchGateway
from ..models import ScrapeResult
from ..platforms import PlatformProfile
from ..utils import host_key
from .base import BaseSearchStrategy

logger = logging.getLogger("price_discovery.strategy.override")


class DomainOverrideStrategy(BaseSearchStrategy):
    """Search with the override registered for the supplier host, if any."""

    name = "override"

    def __init__(
        self, gateway: FetchGateway, overrides: Dict[str, PlatformProfile]
    ) -> None:
        super().__init__(gateway)
        self.overrides = overrides

    def _attempt_impl(self, supplier: SupplierRef, query: str) -> Optional[ScrapeResult]:
        host = host_key(supplier.base_url)
        profile = self.overrides.get(host)
        if profile is None:
            return None

        logger.debug("Using domain override for %s (%s)", supplier.name, host)
        return self._search_with_profile(
            supplier, query, profile, self.name, accept_listing_only=False
        )
