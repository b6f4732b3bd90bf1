"""Tests for the TTL result cache and its writer thread."""

import logging
import threading
from decimal import Decimal
from unittest.mock import MagicMock

from renovation_pricing.repositories.cache.file_cache import JsonFileCacheRepository
from renovation_pricing.services.price_discovery.cache import (
    CACHE_TTL_SECONDS,
    ResultCache,
    cache_key,
)
from renovation_pricing.services.price_discovery.models import (
    CacheEntry,
    CachePersistenceError,
    ScrapeResult,
)

HOUR = 60 * 60
T0 = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = T0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _result(price: str = "45.00") -> ScrapeResult:
    return ScrapeResult(
        supplier_id=1,
        supplier_name="Brico Pro",
        source_platform="shopify",
        query="visseuse",
        search_url="https://brico.example/search?q=visseuse",
        product_url="https://brico.example/products/visseuse-18v",
        price_value=Decimal(price),
        currency="EUR",
    )


def test_cache_key_lowercases_query() -> None:
    assert cache_key("https://brico.example", "Visseuse 18V") == "https://brico.example::visseuse 18v"


def test_default_ttl_is_twelve_hours() -> None:
    assert CACHE_TTL_SECONDS == 12 * HOUR


class TestResultCache:
    """Test cases for ResultCache."""

    def setup_method(self) -> None:
        self.repository = MagicMock()
        self.clock = FakeClock()
        self.cache = ResultCache(self.repository, clock=self.clock)

    def teardown_method(self) -> None:
        self.cache.close()

    def test_fresh_entry_is_a_hit(self) -> None:
        # Arrange
        entry = CacheEntry(timestamp=T0, result=_result())
        self.repository.get.return_value = entry
        self.clock.now = T0 + 11 * HOUR + 59 * 60

        # Act
        hit = self.cache.get("key")

        # Assert
        assert hit is entry
        self.repository.get.assert_called_once_with("key")

    def test_entry_at_ttl_is_a_miss(self) -> None:
        self.repository.get.return_value = CacheEntry(timestamp=T0, result=_result())
        self.clock.now = T0 + 12 * HOUR

        assert self.cache.get("key") is None

    def test_entry_past_ttl_is_a_miss(self) -> None:
        self.repository.get.return_value = CacheEntry(timestamp=T0, result=_result())
        self.clock.now = T0 + 12 * HOUR + 60

        assert self.cache.get("key") is None

    def test_unknown_key_is_a_miss(self) -> None:
        self.repository.get.return_value = None

        assert self.cache.get("key") is None

    def test_put_is_written_and_persisted_by_writer(self) -> None:
        # Act
        self.cache.put("key", _result())
        self.cache.flush()

        # Assert
        key, entry = self.repository.put.call_args.args
        assert key == "key"
        assert entry.timestamp == T0
        assert entry.result.price_value == Decimal("45.00")
        self.repository.persist.assert_called()

    def test_flush_without_writes_returns_immediately(self) -> None:
        self.cache.flush()

        self.repository.put.assert_not_called()
        self.repository.persist.assert_not_called()

    def test_persistence_failure_is_logged_and_writer_survives(self, caplog) -> None:
        # Arrange
        self.repository.persist.side_effect = [
            CachePersistenceError("cache", "disk full"),
            None,
        ]

        # Act
        with caplog.at_level(logging.WARNING, logger="price_discovery.cache"):
            self.cache.put("first", _result())
            self.cache.flush()
            self.cache.put("second", _result("39.90"))
            self.cache.flush()

        # Assert
        assert "disk full" in caplog.text
        assert [c.args[0] for c in self.repository.put.call_args_list] == ["first", "second"]

    def test_unexpected_persist_error_does_not_stop_the_writer(self, caplog) -> None:
        # Arrange
        self.repository.persist.side_effect = [PermissionError(13, "Permission denied"), None]
        self.cache.put("first", _result())
        with caplog.at_level(logging.ERROR, logger="price_discovery.cache"):
            self.cache.flush()

        # Act
        self.cache.put("second", _result("39.90"))
        flusher = threading.Thread(target=self.cache.flush, daemon=True)
        flusher.start()
        flusher.join(timeout=5)

        # Assert
        assert not flusher.is_alive()
        assert "Unexpected error persisting price cache" in caplog.text
        assert self.repository.persist.call_count == 2

    def test_unexpected_put_error_skips_only_that_entry(self) -> None:
        self.repository.put.side_effect = [ValueError("bad entry"), None]

        self.cache.put("first", _result())
        self.cache.flush()
        self.cache.put("second", _result("39.90"))
        self.cache.flush()

        assert [c.args[0] for c in self.repository.put.call_args_list] == ["first", "second"]

    def test_close_stops_writer_and_is_idempotent(self) -> None:
        self.cache.put("key", _result())

        self.cache.close()
        self.cache.close()

        self.repository.put.assert_called_once()


class TestResultCacheWithFileRepository:
    """ResultCache persisting through the JSON file repository."""

    def test_entries_survive_a_new_cache_instance(self, tmp_path) -> None:
        # Arrange
        path = tmp_path / "price_cache.json"
        clock = FakeClock()
        writer = ResultCache(JsonFileCacheRepository(str(path)), clock=clock)

        # Act
        writer.put("https://brico.example::visseuse", _result())
        writer.close()
        reader = ResultCache(JsonFileCacheRepository(str(path)), clock=clock)
        entry = reader.get("https://brico.example::visseuse")

        # Assert
        assert path.exists()
        assert entry is not None
        assert entry.result.price_value == Decimal("45.00")
