"""Fetch-and-extract pipeline: site id in, assembled feed out."""

from __future__ import annotations

import logging

from .config import SiteRegistry
from .errors import FeedError, FetchFailedError, UnknownSiteError
from .extractor import extract_entries
from .feeds import assemble_feed
from .fetching import Fetcher
from .models import Feed

logger = logging.getLogger(__name__)


class FeedPipeline:
    """Builds a feed for one site. Holds no state beyond its collaborators."""

    def __init__(self, registry: SiteRegistry, fetcher: Fetcher) -> None:
        self.registry = registry
        self.fetcher = fetcher

    def run(self, site_id: str) -> Feed:
        config = self.registry.lookup(site_id)
        if config is None:
            raise UnknownSiteError(site_id)

        try:
            document = self.fetcher(config.url)
        except FeedError:
            raise
        except Exception as exc:  # noqa: BLE001 - any fetcher failure is a fetch failure
            raise FetchFailedError(config.url, exc) from exc

        entries = extract_entries(document, config)
        feed = assemble_feed(config, entries)
        logger.info("Built feed for site '%s' with %d entries", site_id, len(feed.entries))
        return feed
