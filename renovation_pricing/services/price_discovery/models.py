"""Domain models for supplier price discovery."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True, slots=True)
class PriceCandidate:
    """A price read from a page: strictly positive amount and ISO currency code."""

    value: Decimal
    currency: str = "EUR"


class ScrapeResult(BaseModel):
    """Price found for one supplier and one query."""

    supplier_id: int
    supplier_name: str
    source_platform: str
    query: str
    search_url: str
    product_url: Optional[str] = None
    price_value: Decimal
    currency: str = "EUR"

    model_config = ConfigDict(frozen=True)


class CacheEntry(BaseModel):
    """Cached scrape result along with the epoch second it was written."""

    timestamp: float
    result: ScrapeResult


@dataclass(slots=True)
class PriceComparison:
    """Scrape result converted to EUR, with the margin against a sale price when given."""

    supplier_id: int
    supplier_name: str
    product_url: Optional[str]
    price_value: Decimal
    currency: str
    cost_eur: Decimal
    margin_abs: Optional[Decimal] = None
    margin_pct: Optional[Decimal] = None


class PriceDiscoveryError(RuntimeError):
    """Raised when a step of the pipeline cannot complete for a site."""

    def __init__(self, site: str, message: str) -> None:
        super().__init__(message)
        self.site = site
        self.message = message


class FetchError(PriceDiscoveryError):
    """HTTP failure: non-2xx status, network error or timeout."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(url, message)
        self.url = url


class CachePersistenceError(PriceDiscoveryError):
    """The cache store could not be written."""
