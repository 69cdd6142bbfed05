"""Errors raised while building feeds."""

from __future__ import annotations


class FeedError(RuntimeError):
    """Base class for failures that prevent a feed from being produced."""


class UnknownSiteError(FeedError):
    def __init__(self, site_id: str) -> None:
        super().__init__(f"site configuration not found: {site_id}")
        self.site_id = site_id


class FetchFailedError(FeedError):
    def __init__(self, url: str, reason: object = None) -> None:
        message = f"failed to fetch {url}"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url
