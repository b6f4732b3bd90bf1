"""High-level service that orchestrates price lookups across suppliers."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Collection, List, Optional, Protocol

from renovation_pricing.configs import Settings, settings
from renovation_pricing.models.supplier_models import SupplierRecord, SupplierRef
from renovation_pricing.repositories.cache.file_cache import JsonFileCacheRepository
from renovation_pricing.repositories.cache.redis_cache import RedisCacheRepository
from renovation_pricing.repositories.suppliers.json_directory import JsonSupplierDirectory

from .cache import CacheRepository, ResultCache, cache_key
from .comparison import compare_prices
from .fetcher import FetchGateway, RateLimiter
from .models import PriceComparison, ScrapeResult
from .platforms import load_domain_overrides
from .resolver import StrategyResolver
from .utils import build_headers, normalize_base

logger = logging.getLogger("price_discovery.service")


class SupplierDirectory(Protocol):
    def list_suppliers(self) -> List[SupplierRecord]: ...


class SupplierPriceService:
    """Run the cached search pipeline for every eligible supplier and rank the prices found.

    Supplier pipelines run in parallel threads; the number of requests actually
    in flight is bounded by the fetch gateway limiter shared by all of them.
    """

    DEFAULT_LIMIT = 12

    def __init__(
        self,
        directory: SupplierDirectory,
        resolver: StrategyResolver,
        cache: ResultCache,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self.directory = directory
        self.resolver = resolver
        self.cache = cache
        self.default_limit = default_limit

    def select_suppliers(
        self,
        limit: Optional[int] = None,
        supplier_ids: Optional[Collection[int]] = None,
    ) -> List[SupplierRef]:
        """Suppliers with a usable website, optionally restricted to ``supplier_ids``, capped to ``limit``."""
        eligible: List[SupplierRef] = []
        for record in self.directory.list_suppliers():
            base_url = normalize_base(record.website)
            if base_url is None:
                continue
            if supplier_ids and record.id not in supplier_ids:
                continue
            eligible.append(
                SupplierRef(supplier_id=record.id, name=record.name, base_url=base_url)
            )
        return eligible[: limit or self.default_limit]

    def scrape(
        self,
        query: str,
        limit: Optional[int] = None,
        supplier_ids: Optional[Collection[int]] = None,
    ) -> List[ScrapeResult]:
        """Prices found for ``query``, cheapest first. Suppliers without a match are left out."""
        query = (query or "").strip()
        if not query:
            return []

        suppliers = self.select_suppliers(limit, supplier_ids)
        if not suppliers:
            logger.info("No eligible supplier for '%s'.", query)
            return []

        logger.info("Looking up '%s' at %d suppliers.", query, len(suppliers))
        with ThreadPoolExecutor(
            max_workers=len(suppliers), thread_name_prefix="supplier"
        ) as pool:
            outcomes = list(
                pool.map(lambda supplier: self._run_pipeline(supplier, query), suppliers)
            )
        self.cache.flush()

        results = sorted(
            (result for result in outcomes if result is not None),
            key=lambda result: result.price_value,
        )
        logger.info("Found %d prices for '%s'.", len(results), query)
        return results

    def compare(
        self,
        query: str,
        sale_price: Optional[Decimal] = None,
        limit: Optional[int] = None,
        supplier_ids: Optional[Collection[int]] = None,
    ) -> List[PriceComparison]:
        """Scrape, then convert to EUR and compute margins against ``sale_price``."""
        return compare_prices(self.scrape(query, limit, supplier_ids), sale_price)

    def close(self) -> None:
        self.cache.close()

    def _run_pipeline(self, supplier: SupplierRef, query: str) -> Optional[ScrapeResult]:
        key = cache_key(supplier.base_url, query)
        try:
            entry = self.cache.get(key)
            if entry is not None:
                return entry.result

            logger.debug("Checking %s (%s)", supplier.name, supplier.base_url)
            result = self.resolver.resolve(supplier, query)
            if result is not None:
                self.cache.put(key, result)
            return result
        except Exception:
            logger.exception("Price lookup failed for %s", supplier.name)
            return None


def create_cache_repository(config: Settings) -> CacheRepository:
    backend = config.PRICE_CACHE_BACKEND.lower()
    if backend == "file":
        return JsonFileCacheRepository(config.PRICE_CACHE_FILE)
    if backend == "redis":
        return RedisCacheRepository(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            password=config.REDIS_PASSWORD,
            ssl=config.REDIS_SSL,
        )
    raise ValueError(f"Unknown PRICE_CACHE_BACKEND: {config.PRICE_CACHE_BACKEND}")


def create_price_service(config: Settings = settings) -> SupplierPriceService:
    """Wire the service from settings: one limiter and gateway shared by every supplier."""
    limiter = RateLimiter(
        max_concurrent=config.SCRAPER_MAX_CONCURRENT,
        min_interval=config.SCRAPER_MIN_INTERVAL_MS / 1000,
    )
    gateway = FetchGateway(
        limiter,
        timeout=config.SCRAPER_TIMEOUT_SECONDS,
        headers=build_headers(config.SCRAPER_USER_AGENT, config.SCRAPER_ACCEPT_LANGUAGE),
    )
    resolver = StrategyResolver.default(
        gateway, load_domain_overrides(config.DOMAIN_OVERRIDES_FILE)
    )
    cache = ResultCache(
        create_cache_repository(config),
        ttl_seconds=config.PRICE_CACHE_TTL_HOURS * 3600,
    )
    return SupplierPriceService(
        JsonSupplierDirectory(config.SUPPLIERS_FILE),
        resolver,
        cache,
        default_limit=config.SCRAPE_DEFAULT_LIMIT,
    )
