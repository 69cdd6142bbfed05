"""HTTP front end serving cached feeds."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Query
from fastapi.responses import PlainTextResponse, Response

from .cache import RefreshCache
from .errors import FetchFailedError, UnknownSiteError
from .renderers import RSS_CONTENT_TYPE, render_rss

logger = logging.getLogger(__name__)

USAGE_TEXT = "Feed service is running.\nUsage: /rss?site=example\n"


def create_app(cache: RefreshCache) -> FastAPI:
    """Build the FastAPI app that answers feed requests from ``cache``.

    Endpoints are plain ``def`` so the blocking cold-miss fetch runs in the
    framework's threadpool rather than on the event loop.
    """
    app = FastAPI(title="Page Feeds")
    app.state.cache = cache

    @app.get("/", response_class=PlainTextResponse)
    def index():
        return USAGE_TEXT

    @app.get("/healthz", response_class=PlainTextResponse)
    def health_check():
        return "ok\n"

    @app.get("/rss")
    def rss(site: str = Query("", description="Configured site id")):
        site_id = site.strip()
        if not site_id:
            return PlainTextResponse("Missing 'site' parameter\n", status_code=400)

        try:
            feed = cache.get_or_refresh(site_id)
        except UnknownSiteError as exc:
            return PlainTextResponse(f"{exc}\n", status_code=404)
        except FetchFailedError as exc:
            logger.warning("Serving error for site '%s': %s", site_id, exc)
            return PlainTextResponse(f"Failed to generate RSS: {exc}\n", status_code=502)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error building feed for site '%s'", site_id)
            return PlainTextResponse("Internal server error\n", status_code=500)

        return Response(content=render_rss(feed), media_type=RSS_CONTENT_TYPE)

    return app
