"""Rate-limited HTTP retrieval for storefront pages."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

import requests

from .models import FetchError
from .utils import build_headers

logger = logging.getLogger("price_discovery.fetcher")

T = TypeVar("T")


class RateLimiter:
    """Bound in-flight work and space out the start of each unit of work.

    At most ``max_concurrent`` callers hold a slot at once, and two consecutive
    starts are at least ``min_interval`` seconds apart whatever the concurrency.
    """

    def __init__(
        self,
        max_concurrent: int = 2,
        min_interval: float = 0.4,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.min_interval = max(0.0, min_interval)
        self._clock = clock
        self._sleep = sleep
        self._slots = threading.BoundedSemaphore(max_concurrent)
        self._spacing = threading.Lock()
        self._next_start: Optional[float] = None

    def _wait_for_turn(self) -> None:
        # Starts are serialized here so that spacing holds across threads.
        with self._spacing:
            now = self._clock()
            if self._next_start is not None and self._next_start > now:
                self._sleep(self._next_start - now)
                now = self._clock()
            self._next_start = now + self.min_interval

    @contextmanager
    def slot(self) -> Iterator[None]:
        with self._slots:
            self._wait_for_turn()
            yield

    def schedule(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``func`` once a slot is free and its start time has come."""
        with self.slot():
            return func(*args, **kwargs)


class FetchGateway:
    """Single funnel for outbound requests: shared limiter, fixed headers, wall-clock timeout.

    Failures are raised as :class:`FetchError`; nothing is retried.
    """

    CHUNK_SIZE = 16 * 1024

    def __init__(
        self,
        limiter: RateLimiter,
        session: Optional[requests.Session] = None,
        timeout: float = 8.0,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.limiter = limiter
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = headers or build_headers()

    def fetch(self, url: str) -> str:
        """Return the body of ``url`` or raise :class:`FetchError`."""
        logger.debug("GET %s", url)
        try:
            return self.limiter.schedule(self._download, url)
        except requests.RequestException as exc:
            raise FetchError(url, f"Request to {url} failed: {exc}") from exc

    def _download(self, url: str) -> str:
        # A blocked socket read cannot be interrupted, so the download runs on its
        # own thread and the caller stops waiting for it once the timeout elapses.
        future: "Future[str]" = Future()
        abandoned = threading.Event()
        worker = threading.Thread(
            target=self._run_download,
            args=(url, future, abandoned),
            name="fetch-download",
            daemon=True,
        )
        worker.start()
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as exc:
            abandoned.set()
            raise FetchError(url, f"Timed out after {self.timeout}s for {url}") from exc

    def _run_download(
        self, url: str, future: "Future[str]", abandoned: threading.Event
    ) -> None:
        try:
            future.set_result(self._read(url, abandoned))
        except Exception as exc:
            future.set_exception(exc)

    def _read(self, url: str, abandoned: threading.Event) -> str:
        response = self.session.get(
            url, headers=self.headers, timeout=self.timeout, stream=True
        )
        try:
            if not 200 <= response.status_code < 300:
                raise FetchError(url, f"HTTP {response.status_code} for {url}")

            body = bytearray()
            for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                if abandoned.is_set():
                    raise FetchError(url, f"Download of {url} abandoned after timeout")
                body.extend(chunk)
            return _decode(bytes(body), response.encoding)
        finally:
            response.close()


def _decode(raw: bytes, encoding: Optional[str]) -> str:
    # requests reports ISO-8859-1 for any text/html without a charset.
    declared = encoding if encoding and encoding.lower() != "iso-8859-1" else None
    for candidate in (declared, "utf-8"):
        if not candidate:
            continue
        try:
            return raw.decode(candidate)
        except (LookupError, UnicodeDecodeError):
            continue
    return raw.decode("latin-1", errors="replace")
