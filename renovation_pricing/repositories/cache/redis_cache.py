"""Redis store for the price cache, one key per cache entry."""

from __future__ import annotations

import logging
from typing import Optional, Union

import redis
from pydantic import ValidationError

from renovation_pricing.services.price_discovery.models import (
    CacheEntry,
    CachePersistenceError,
)

logger = logging.getLogger(__name__)


def str_to_bool(value: str) -> bool:
    """Convert a REDIS_SSL style env value to boolean."""
    return value.lower() in ("true", "1", "yes")


class RedisCacheRepository:
    """Stores each cache entry under its own redis key, so writers never clobber each other."""

    KEY_PREFIX = "price_cache:"

    def __init__(
        self,
        host: str,
        port: int = 6379,
        password: Optional[str] = None,
        ssl: Union[str, bool] = False,
    ) -> None:
        """
        Initialize a connection to the Redis database.

        Args:
            host (str): The hostname or IP address of the Redis server.
            port (int): The port number of the Redis server (default is 6379).
            password (str | None): Password, when the server requires one.
            ssl (str | bool): Whether to use TLS; strings such as "true" are accepted.
        """
        ssl = str_to_bool(ssl) if isinstance(ssl, str) else ssl
        self.handler = redis.Redis(
            host=host,
            port=port,
            password=password,
            ssl=ssl,
            db=0,
        )

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self.handler.get(self._key(key))
        except redis.RedisError as exc:
            logger.warning("Redis read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.debug("Skipping invalid cache entry %s", key)
            return None

    def put(self, key: str, entry: CacheEntry) -> None:
        try:
            self.handler.set(self._key(key), entry.model_dump_json())
        except redis.RedisError as exc:
            raise CachePersistenceError(key, f"Redis write failed for {key}: {exc}") from exc
        logger.debug("Saved cache entry %s", key)

    def persist(self) -> None:
        """Entries are durable as soon as they are put."""
