import sys
import os
from typing import Dict, List, Union

import pytest

# Add the parent directory to the path so the packages import without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pipelines.crawler import FetchError, FetchResponse


class FakeTransport:
    """Serves a fixed site graph; an Exception value makes that URL fail."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]):
        self.pages = pages
        self.fetched: List[str] = []
        self.closed = False

    def fetch(self, url: str) -> FetchResponse:
        self.fetched.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, "HTTP 404 Not Found", 404)
        if isinstance(page, Exception):
            raise FetchError(url, str(page))
        return FetchResponse(url=url, status_code=200, content=page,
                             content_type="text/html", final_url=url, response_time=0.01)

    def close(self):
        self.closed = True


def link_page(title: str, *hrefs: str, body: str = "") -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return f"<html><head><title>{title}</title></head><body><main><p>{body or title}</p>{anchors}</main></body></html>"


SITE_ROOT = "https://example.com/"

# A links to B and C, B and C both link to D
SITE_GRAPH = {
    "https://example.com/": link_page("A", "/b", "/c", "https://other.org/x"),
    "https://example.com/b": link_page("B", "/d", "/"),
    "https://example.com/c": link_page("C", "/d#team", "mailto:info@example.com"),
    "https://example.com/d": link_page("D", "/b"),
}

BAKERY_HTML = """
<html>
<head><title> Acme Bakery </title><style>.x { color: red; }</style></head>
<body>
  <header><a href="/">Home</a></header>
  <nav><a href="/about">About</a></nav>
  <main>
    <h1>Fresh bread</h1>
    <p>We bake   every day.</p>
    <script>var tracking = 1;</script>
  </main>
  <section class="faq">
    <h3>Do you deliver?</h3>
    <p>Yes, within 10 miles.</p>
  </section>
  <div class="product">
    <h4>Sourdough</h4>
    <p>Naturally leavened loaf</p>
    <span class="price">$6</span>
  </div>
  <div class="card"><h4>Baguette</h4></div>
  <footer>
    <div class="contact">Email: hello@acme.com Phone: (555) 123-4567 Visit 12 Baker Street, Springfield</div>
  </footer>
</body>
</html>
"""


@pytest.fixture
def site_transport():
    return FakeTransport(dict(SITE_GRAPH))


@pytest.fixture
def bakery_html():
    return BAKERY_HTML
