"""Rendering helpers for feed documents."""

from __future__ import annotations

from .models import Feed
from .templating import get_environment

RSS_CONTENT_TYPE = "application/rss+xml; charset=utf-8"


def render_rss(feed: Feed) -> str:
    """Render ``feed`` as an RSS 2.0 document using the Jinja2 template."""
    env = get_environment()
    template = env.get_template("rss.xml.j2")
    return template.render(feed=feed)
