"""JSON file store for the price cache."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from renovation_pricing.services.price_discovery.models import (
    CacheEntry,
    CachePersistenceError,
)

logger = logging.getLogger(__name__)


class JsonFileCacheRepository:
    """Keeps the cache map in memory and persists it as a single JSON document.

    The document maps each cache key to ``{"timestamp", "result"}``. A missing or
    corrupt file reads as an empty cache; unreadable entries are skipped.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._entries: Optional[Dict[str, CacheEntry]] = None
        self._lock = threading.Lock()

    def _read_file(self) -> Dict[str, CacheEntry]:
        try:
            if not self.path.exists():
                return {}
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring cache file %s: not a JSON object", self.path)
            return {}

        entries: Dict[str, CacheEntry] = {}
        for key, value in raw.items():
            try:
                entries[key] = CacheEntry.model_validate(value)
            except ValidationError:
                logger.debug("Skipping invalid cache entry %s", key)
        return entries

    def _loaded(self) -> Dict[str, CacheEntry]:
        if self._entries is None:
            self._entries = self._read_file()
        return self._entries

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._loaded().get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._loaded()[key] = entry

    def persist(self) -> None:
        """Merge with the file on disk (newest entry per key wins) and replace it atomically."""
        with self._lock:
            merged = self._read_file()
            for key, entry in self._loaded().items():
                current = merged.get(key)
                if current is None or entry.timestamp >= current.timestamp:
                    merged[key] = entry
            self._entries = merged

            payload = {
                key: entry.model_dump(mode="json") for key, entry in merged.items()
            }
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as handle:
                        json.dump(payload, handle, indent=2, ensure_ascii=False)
                    os.replace(tmp_path, self.path)
                except BaseException:
                    if os.path.exists(tmp_path):
                        os.unlink(tmp_path)
                    raise
            except OSError as exc:
                raise CachePersistenceError(
                    str(self.path), f"Could not write cache file {self.path}: {exc}"
                ) from exc
            logger.debug("Persisted %d cache entries to %s", len(merged), self.path)
