"""Jinja2 environment for rendering feed documents."""

from __future__ import annotations

import functools
from datetime import datetime
from email.utils import format_datetime
from importlib import resources
from typing import Any

from jinja2 import Environment, FileSystemLoader

from .extractor import strip_xml_invalid

TEMPLATE_PACKAGE = "page_feeds"


def _rfc822(value: datetime | None) -> str:
    """Format a timezone-aware datetime the way RSS 2.0 expects."""
    if value is None:
        return ""
    return format_datetime(value)


def _xml_safe(value: Any) -> Any:
    # Applied to every {{ }} output before escaping.
    if isinstance(value, str):
        return strip_xml_invalid(value)
    return value


@functools.lru_cache(maxsize=None)
def get_environment() -> Environment:
    """Return the shared environment for the XML templates shipped with the package."""
    template_dir = resources.files(TEMPLATE_PACKAGE).joinpath("templates")
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=True,
        finalize=_xml_safe,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["rfc822"] = _rfc822
    return env
