"""Feed assembly helpers."""

from __future__ import annotations

from typing import Iterable

from .models import Feed, FeedEntry, SiteConfig


def describe_site(config: SiteConfig) -> str:
    return f"RSS feed for {config.name}"


def assemble_feed(config: SiteConfig, entries: Iterable[FeedEntry]) -> Feed:
    """Wrap extracted entries and site metadata into a feed."""
    return Feed(
        title=config.name,
        link=config.url,
        description=describe_site(config),
        entries=tuple(entries),
    )
