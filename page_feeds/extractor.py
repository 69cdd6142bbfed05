"""Turn a scraped page into feed entries using a site's CSS selectors."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from .models import FeedEntry, SiteConfig

logger = logging.getLogger(__name__)

ABSOLUTE_URL_PREFIXES = ("http://", "https://")

# Control characters XML 1.0 does not allow in documents.
_XML_INVALID = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def strip_xml_invalid(value: str) -> str:
    """Replace characters that cannot appear in XML with U+FFFD."""
    return _XML_INVALID.sub("\ufffd", value)


def _clean_text(value: str) -> str:
    return strip_xml_invalid(re.sub(r"\s+", " ", value).strip())


def _select_text(container: Tag, selector: str) -> str:
    if not selector:
        return ""
    match = container.select_one(selector)
    if match is None:
        return ""
    return _clean_text(match.get_text(separator=" "))


def _select_href(container: Tag, selector: str) -> str:
    if not selector:
        return ""
    match = container.select_one(selector)
    if match is None:
        return ""
    href = match.get("href")
    if isinstance(href, list):
        href = " ".join(href)
    return strip_xml_invalid((href or "").strip())


def normalize_link(link: str, base_url: str) -> str:
    """Prefix relative links with the site URL.

    The two strings are joined verbatim; the site URL decides whether a
    separator is needed.
    """
    if not link or link.startswith(ABSOLUTE_URL_PREFIXES):
        return link
    return base_url + link


def parse_date(raw: str, date_format: str) -> Optional[datetime]:
    """Parse ``raw`` with the site's format, returning ``None`` on failure."""
    if not raw:
        return None
    try:
        parsed = datetime.strptime(raw, date_format)
    except ValueError:
        logger.debug("Unparseable date %r for format %r", raw, date_format)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_entries(document: BeautifulSoup, config: SiteConfig) -> List[FeedEntry]:
    """Extract entries from ``document`` in document order."""
    containers = document.select(config.item_selector)
    if not containers:
        logger.info(
            "Item selector %r matched nothing for site '%s'",
            config.item_selector,
            config.site_id,
        )
        return []

    entries: List[FeedEntry] = []
    for container in containers:
        title = _select_text(container, config.title_selector)
        link = normalize_link(_select_href(container, config.link_selector), config.url)

        if not title or not link:
            logger.debug(
                "Skipping item without title or link on site '%s'", config.site_id
            )
            continue

        entries.append(
            FeedEntry(
                title=title,
                link=link,
                description=_select_text(container, config.description_selector),
                published=parse_date(
                    _select_text(container, config.date_selector), config.date_format
                ),
            )
        )

    logger.info(
        "Extracted %d of %d items for site '%s'",
        len(entries),
        len(containers),
        config.site_id,
    )
    return entries
