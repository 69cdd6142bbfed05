"""Configuration loading for scraped sites and the service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set
from xml.etree import ElementTree as ET

import soupsieve

from .models import SiteConfig

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; page-feeds/0.1)"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class FetchConfig:
    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    sites_file: str
    ttl_minutes: float = 10.0
    concurrency: int = 10
    server: ServerConfig = field(default_factory=ServerConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class SiteRegistry:
    """Read-only lookup of site configurations keyed by site id."""

    def __init__(self, sites: Iterable[SiteConfig]) -> None:
        self._sites: Dict[str, SiteConfig] = {}
        for site in sites:
            if site.site_id in self._sites:
                raise ValueError(f"Duplicate site id: {site.site_id}")
            self._sites[site.site_id] = site

    def lookup(self, site_id: str) -> Optional[SiteConfig]:
        return self._sites.get(site_id)

    def all_site_ids(self) -> Set[str]:
        return set(self._sites)

    def __len__(self) -> int:
        return len(self._sites)


def _selector(node: ET.Element, tag: str) -> str:
    return (node.findtext(tag) or "").strip()


SELECTOR_FIELDS = (
    "item_selector",
    "title_selector",
    "link_selector",
    "description_selector",
    "date_selector",
)


def check_selectors(site: SiteConfig) -> None:
    """Compile every selector of ``site``, raising ``ValueError`` on bad syntax."""
    for field_name in SELECTOR_FIELDS:
        selector = getattr(site, field_name)
        if not selector:
            continue
        try:
            soupsieve.compile(selector)
        except soupsieve.SelectorSyntaxError as exc:
            raise ValueError(
                f"Site '{site.site_id}' has an invalid {field_name} {selector!r}: {exc}"
            ) from exc


def parse_sites_config(path: str) -> List[SiteConfig]:
    """Parse the sites XML file and return the scraping rules it defines."""
    logger.info("Loading site configuration from %s", path)
    tree = ET.parse(path)
    root = tree.getroot()
    if root.tag != "sites":
        raise ValueError("Sites configuration must have a <sites> root element.")

    sites: List[SiteConfig] = []
    seen: Set[str] = set()
    for node in root.findall("site"):
        site_id = (node.attrib.get("id") or "").strip()
        url = (node.attrib.get("url") or "").strip()
        if not site_id or not url:
            raise ValueError("Each <site> needs both 'id' and 'url' attributes.")
        if site_id in seen:
            raise ValueError(f"Duplicate site id: {site_id}")

        item_selector = _selector(node, "item")
        if not item_selector:
            raise ValueError(f"Site '{site_id}' is missing an <item> selector.")

        date_node = node.find("date")
        date_format = "%Y-%m-%d"
        if date_node is not None and date_node.attrib.get("format"):
            date_format = date_node.attrib["format"]

        site = SiteConfig(
            site_id=site_id,
            name=node.attrib.get("name") or site_id,
            url=url,
            item_selector=item_selector,
            title_selector=_selector(node, "title"),
            link_selector=_selector(node, "link"),
            description_selector=_selector(node, "description"),
            date_selector=_selector(node, "date"),
            date_format=date_format,
        )
        check_selectors(site)
        sites.append(site)
        seen.add(site_id)
        logger.debug("Registered site '%s' (%s)", site_id, url)

    logger.info("Loaded %d sites from configuration", len(sites))
    return sites


def load_registry(path: str) -> SiteRegistry:
    return SiteRegistry(parse_sites_config(path))


def _config_relative(config_path: Path, value: str) -> str:
    """Paths inside a config file are relative to that file's directory."""
    return str((config_path.parent / Path(value.strip()).expanduser()).resolve())


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()

    sites_node = root.find("sites")
    if sites_node is None or not sites_node.text:
        raise ValueError("Config missing <sites> path")
    sites_file = _config_relative(config_path, sites_node.text)

    ttl_minutes = float(root.findtext("ttl-minutes", "10"))
    if ttl_minutes <= 0:
        raise ValueError("<ttl-minutes> must be positive.")
    concurrency = int(root.findtext("concurrency", "10"))
    if concurrency <= 0:
        raise ValueError("<concurrency> must be positive.")

    # Server
    server_node = root.find("server")
    server = ServerConfig()
    if server_node is not None:
        server.host = server_node.findtext("host", server.host)
        server.port = int(server_node.findtext("port", str(server.port)))

    # Fetch
    fetch_node = root.find("fetch")
    fetch = FetchConfig()
    if fetch_node is not None:
        fetch.timeout = float(fetch_node.findtext("timeout", str(fetch.timeout)))
        fetch.user_agent = fetch_node.findtext("user-agent", fetch.user_agent)

    # Logging
    log_node = root.find("logging")
    logging_config = LoggingConfig()
    if log_node is not None:
        logging_config.level = log_node.findtext("level", "INFO")
        log_file = log_node.findtext("file")
        if log_file:
            logging_config.file = _config_relative(config_path, log_file)

    return AppConfig(
        sites_file=sites_file,
        ttl_minutes=ttl_minutes,
        concurrency=concurrency,
        server=server,
        fetch=fetch,
        logging=logging_config,
    )
