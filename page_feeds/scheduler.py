"""Periodic background refresh of every configured site."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from datetime import timedelta
from typing import Iterable, List, Optional

from .cache import RefreshCache

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Refreshes all sites at startup and then every ``interval``.

    The site list is snapshotted on construction; sites registered later are
    not swept.
    """

    def __init__(
        self,
        cache: RefreshCache,
        site_ids: Iterable[str],
        interval: timedelta,
        executor: Optional[concurrent.futures.Executor] = None,
        concurrency: int = 10,
    ) -> None:
        self.cache = cache
        self.site_ids = sorted(site_ids)
        self.interval = interval
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=max(1, concurrency), thread_name_prefix="feed-sweep"
        )
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sweep(self) -> List[concurrent.futures.Future]:
        """Submit a refresh for every site without waiting for the results."""
        logger.info("Starting refresh sweep for %d sites", len(self.site_ids))
        return [
            self._executor.submit(self.cache.force_refresh, site_id)
            for site_id in self.site_ids
        ]

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.sweep()
            except RuntimeError:
                logger.warning("Sweep executor closed; stopping scheduler")
                return
            if self._stop.wait(self.interval.total_seconds()):
                return

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._loop, name="feed-scheduler", daemon=True
        )
        self._thread.start()

    def stop(self, wait: bool = False) -> None:
        self._stop.set()
        if self._thread is not None and wait:
            self._thread.join()
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
