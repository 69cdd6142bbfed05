"""Shared data models for page_feeds."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class SiteConfig:
    """Scraping rules for a single site.

    Every selector except ``item_selector`` is evaluated relative to the
    matched item container, not the document root.
    """

    site_id: str
    name: str
    url: str
    item_selector: str
    title_selector: str
    link_selector: str
    description_selector: str = ""
    date_selector: str = ""
    date_format: str = "%Y-%m-%d"


@dataclass(frozen=True)
class FeedEntry:
    """One article extracted from a scraped page."""

    title: str
    link: str
    description: str = ""
    published: Optional[datetime] = None

    @property
    def guid(self) -> str:
        return self.link


@dataclass(frozen=True)
class Feed:
    """An assembled feed ready to be rendered."""

    title: str
    link: str
    description: str
    entries: Tuple[FeedEntry, ...] = ()


@dataclass(frozen=True)
class CacheEntry:
    """A feed together with the moment it stops being fresh."""

    feed: Feed
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at
