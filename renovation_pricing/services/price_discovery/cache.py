"""TTL cache of scrape results, owned by a single writer thread."""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, List, Optional, Protocol, Tuple

from .models import CacheEntry, CachePersistenceError, ScrapeResult

logger = logging.getLogger("price_discovery.cache")

CACHE_TTL_SECONDS = 12 * 60 * 60

_Message = Optional[Tuple[str, CacheEntry]]


class CacheRepository(Protocol):
    def get(self, key: str) -> Optional[CacheEntry]: ...

    def put(self, key: str, entry: CacheEntry) -> None: ...

    def persist(self) -> None: ...


def cache_key(base_url: str, query: str) -> str:
    return f"{base_url}::{query.lower()}"


class ResultCache:
    """Lookups read the repository directly; writes are queued to one writer thread.

    Entries expire lazily: an entry aged ``ttl_seconds`` or more reads as a miss.
    The writer drains every pending entry and persists once per batch.
    """

    def __init__(
        self,
        repository: CacheRepository,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.repository = repository
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._queue: "queue.Queue[_Message]" = queue.Queue()
        self._writer: Optional[threading.Thread] = None
        self._writer_lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        entry = self.repository.get(key)
        if entry is None:
            logger.debug("Cache miss for %s", key)
            return None
        if self._clock() - entry.timestamp >= self.ttl_seconds:
            logger.debug("Cache expired for %s", key)
            return None
        logger.debug("Cache hit for %s", key)
        return entry

    def put(self, key: str, result: ScrapeResult) -> None:
        entry = CacheEntry(timestamp=self._clock(), result=result)
        self._ensure_writer()
        self._queue.put((key, entry))

    def flush(self) -> None:
        """Block until every queued entry has been handed to the repository."""
        if self._writer is not None:
            self._queue.join()

    def close(self) -> None:
        with self._writer_lock:
            if self._writer is None:
                return
            self._queue.put(None)
            self._writer.join()
            self._writer = None

    def _ensure_writer(self) -> None:
        with self._writer_lock:
            if self._writer is None:
                self._writer = threading.Thread(
                    target=self._run_writer, name="price-cache-writer", daemon=True
                )
                self._writer.start()

    def _drain(self) -> List[_Message]:
        batch = [self._queue.get()]
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except queue.Empty:
                return batch

    def _run_writer(self) -> None:
        while True:
            batch = self._drain()
            try:
                self._write_batch([message for message in batch if message is not None])
            finally:
                for _ in batch:
                    self._queue.task_done()
            if any(message is None for message in batch):
                return

    def _write_batch(self, batch: List[Tuple[str, CacheEntry]]) -> None:
        if not batch:
            return
        for key, entry in batch:
            try:
                self.repository.put(key, entry)
            except CachePersistenceError as exc:
                logger.warning("Could not cache %s: %s", key, exc.message)
            except Exception:
                logger.exception("Unexpected error caching %s", key)
        try:
            self.repository.persist()
        except CachePersistenceError as exc:
            logger.warning("Could not persist price cache: %s", exc.message)
        except Exception:
            logger.exception("Unexpected error persisting price cache")
