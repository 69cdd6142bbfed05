import threading
from datetime import datetime, timedelta, timezone

import pytest
from bs4 import BeautifulSoup

from page_feeds.config import SiteRegistry
from page_feeds.errors import FetchFailedError
from page_feeds.models import SiteConfig


EXAMPLE_HTML = """
<html>
  <body>
    <div class="content">
      <article>
        <header><a href="/posts/1">  First   post </a></header>
        <p class="note">Summary one</p>
        <div class="meta"><time>2024-01-02</time></div>
      </article>
      <article>
        <header><span>No link here</span></header>
        <p class="note">Summary two</p>
      </article>
    </div>
  </body>
</html>
"""


def make_site(**overrides) -> SiteConfig:
    values = dict(
        site_id="example",
        name="Example Site",
        url="https://abc.com/",
        item_selector=".content article",
        title_selector="header a, header span",
        link_selector="header a",
        description_selector="p.note",
        date_selector="div.meta time",
        date_format="%Y-%m-%d",
    )
    values.update(overrides)
    return SiteConfig(**values)


class FakeFetcher:
    """Stands in for the page fetcher; records every URL it is asked for."""

    def __init__(self, html=EXAMPLE_HTML, error=None):
        self.html = html
        self.error = error
        self.calls = []
        self.gate = None
        self._lock = threading.Lock()
        self.called = threading.Event()

    def __call__(self, url):
        with self._lock:
            self.calls.append(url)
        self.called.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return BeautifulSoup(self.html, "html.parser")


class ManualClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def site():
    return make_site()


@pytest.fixture
def registry(site):
    return SiteRegistry([site])


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def failing_fetcher():
    return FakeFetcher(error=FetchFailedError("https://abc.com/", "boom"))


@pytest.fixture
def clock():
    return ManualClock()
