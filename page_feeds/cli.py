"""Command-line interface for the page_feeds service."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import uvicorn

from .cache import RefreshCache
from .config import load_registry, parse_app_config
from .fetching import make_fetcher
from .pipeline import FeedPipeline
from .scheduler import RefreshScheduler
from .server import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Serve RSS feeds scraped from configured web pages."
    )
    parser.add_argument(
        "--config",
        default="configs/config.xml",
        help="Path to the main configuration XML file.",
    )

    # Overrides for logging/debugging
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    parser.add_argument("--host", default=None, help="Bind address. Overrides config.")
    parser.add_argument(
        "--port", type=int, default=None, help="Server port. Overrides config."
    )

    return parser


LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"

# uvicorn per-request logger; kept at WARNING unless running at DEBUG.
ACCESS_LOGGER = "uvicorn.access"


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Route service, refresh-worker and uvicorn logs to the console and an optional file."""
    log_level = logging.getLevelName(level_name.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(log_level)
    for handler in handlers:
        root_logger.addHandler(handler)

    access_level = log_level if log_level <= logging.DEBUG else logging.WARNING
    logging.getLogger(ACCESS_LOGGER).setLevel(access_level)

    logger.debug(
        "Logging at %s to %s",
        level_name.upper(),
        log_file or "console only",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config)

        # Determine logging settings (CLI overrides Config)
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        if args.host:
            app_config.server.host = args.host
        if args.port is not None:
            app_config.server.port = args.port

        logger.info(
            "Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(app_config))
        )

        registry = load_registry(app_config.sites_file)
        if not len(registry):
            raise RuntimeError("No sites found in the configuration.")

        ttl = timedelta(minutes=app_config.ttl_minutes)
        pipeline = FeedPipeline(registry, make_fetcher(app_config.fetch))
        cache = RefreshCache(pipeline, ttl=ttl)
        scheduler = RefreshScheduler(
            cache,
            registry.all_site_ids(),
            interval=ttl,
            concurrency=app_config.concurrency,
        )
        app = create_app(cache)
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    scheduler.start()
    try:
        # uvicorn handles SIGINT itself and returns once the server stops.
        uvicorn.run(
            app,
            host=app_config.server.host,
            port=app_config.server.port,
            log_config=None,
        )
    finally:
        logger.info("Shutting down")
        scheduler.stop()
        cache.shutdown(wait=False)
    return 0
