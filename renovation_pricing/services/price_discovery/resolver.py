"""Ordered fallback over search strategies for one supplier."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from renovation_pricing.models.supplier_models import SupplierRef

from .fetcher import FetchGateway
from .models import ScrapeResult
from .platforms import PlatformProfile
from .strategies import (
    BaseSearchStrategy,
    DetectedPlatformStrategy,
    DomainOverrideStrategy,
    GenericPatternStrategy,
)

logger = logging.getLogger("price_discovery.resolver")


class StrategyResolver:
    """Try each strategy in turn; the first validated result wins."""

    def __init__(self, strategies: Sequence[BaseSearchStrategy]) -> None:
        self.strategies = tuple(strategies)

    @classmethod
    def default(
        cls,
        gateway: FetchGateway,
        overrides: Optional[Dict[str, PlatformProfile]] = None,
    ) -> "StrategyResolver":
        """Domain override, then detected platform, then generic patterns."""
        return cls(
            (
                DomainOverrideStrategy(gateway, overrides or {}),
                DetectedPlatformStrategy(gateway),
                GenericPatternStrategy(gateway),
            )
        )

    def resolve(self, supplier: SupplierRef, query: str) -> Optional[ScrapeResult]:
        attempts = (strategy.attempt(supplier, query) for strategy in self.strategies)
        result = next((result for result in attempts if result is not None), None)
        if result is None:
            logger.debug("No match for '%s' at %s", query, supplier.name)
        else:
            logger.debug(
                "Found %s %s at %s via %s",
                result.price_value,
                result.currency,
                supplier.name,
                result.source_platform,
            )
        return result
