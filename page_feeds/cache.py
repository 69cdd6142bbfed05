"""Stale-while-revalidate cache of assembled feeds."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterator, Optional, Set

from .errors import FeedError
from .models import CacheEntry, Feed
from .pipeline import FeedPipeline

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            # Readers yield to waiting writers.
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class RefreshCache:
    """Maps site ids to their last successfully built feed.

    The pipeline never runs while the lock is held; the lock only guards
    lookups and installs.
    """

    def __init__(
        self,
        pipeline: FeedPipeline,
        ttl: timedelta = DEFAULT_TTL,
        executor: Optional[concurrent.futures.Executor] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.pipeline = pipeline
        self.ttl = ttl
        self._clock = clock or _utcnow
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="feed-refresh"
        )
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = ReadWriteLock()
        self._pending: Set[str] = set()
        self._pending_lock = threading.Lock()

    def peek(self, site_id: str) -> Optional[CacheEntry]:
        with self._lock.read():
            return self._entries.get(site_id)

    def _install(self, site_id: str, feed: Feed) -> CacheEntry:
        entry = CacheEntry(feed=feed, expires_at=self._clock() + self.ttl)
        with self._lock.write():
            self._entries[site_id] = entry
        return entry

    def get_or_refresh(self, site_id: str) -> Feed:
        """Return the cached feed, refreshing it in the background when stale.

        Only a site that has never been fetched successfully blocks on the
        pipeline, and only then can an error reach the caller.
        """
        cached = self.peek(site_id)

        if cached is not None:
            if not cached.is_fresh(self._clock()):
                logger.debug("Serving stale feed for site '%s'", site_id)
                self._trigger_refresh(site_id)
            return cached.feed

        logger.info("Cold cache for site '%s'; fetching synchronously", site_id)
        feed = self.pipeline.run(site_id)
        self._install(site_id, feed)
        return feed

    def force_refresh(self, site_id: str) -> bool:
        """Rebuild the feed for ``site_id`` now. Failures are logged, not raised."""
        logger.info("Refreshing cache for site: %s", site_id)
        try:
            feed = self.pipeline.run(site_id)
        except FeedError as exc:
            logger.warning("Failed to refresh cache for %s: %s", site_id, exc)
            return False
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error while refreshing %s", site_id)
            return False

        self._install(site_id, feed)
        logger.info("Cache refreshed for site: %s", site_id)
        return True

    def _trigger_refresh(self, site_id: str) -> None:
        with self._pending_lock:
            if site_id in self._pending:
                return
            self._pending.add(site_id)

        try:
            self._executor.submit(self._background_refresh, site_id)
        except RuntimeError:
            # Executor already shut down.
            logger.warning("Cannot schedule refresh for %s; executor is closed", site_id)
            with self._pending_lock:
                self._pending.discard(site_id)

    def _background_refresh(self, site_id: str) -> None:
        try:
            self.force_refresh(site_id)
        finally:
            with self._pending_lock:
                self._pending.discard(site_id)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
