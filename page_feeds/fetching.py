"""Page retrieval: download a URL and return a queryable document."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import requests
from bs4 import BeautifulSoup

from .config import FetchConfig
from .errors import FetchFailedError

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], BeautifulSoup]

_DOCUMENT_CONTENT_TYPES = ("text/html", "application/xhtml+xml", "text/xml", "application/xml")


def fetch_document(
    url: str, timeout: float = 10.0, user_agent: Optional[str] = None
) -> BeautifulSoup:
    """Download ``url`` and parse it into a BeautifulSoup document."""
    logger.info("Fetching page %s", url)
    headers = {"User-Agent": user_agent} if user_agent else {}
    try:
        response = requests.get(url, timeout=timeout, headers=headers)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Failed to fetch page %s: %s", url, exc)
        raise FetchFailedError(url, exc) from exc

    content_type = response.headers.get("Content-Type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type and media_type not in _DOCUMENT_CONTENT_TYPES:
        logger.warning("Page %s returned non-document content type %s", url, media_type)
        raise FetchFailedError(url, f"unexpected content type {media_type}")

    return BeautifulSoup(response.content, "html.parser")


def make_fetcher(config: FetchConfig) -> Fetcher:
    """Bind fetch options into a ``url -> document`` callable."""

    def fetch(url: str) -> BeautifulSoup:
        return fetch_document(url, timeout=config.timeout, user_agent=config.user_agent)

    return fetch
