"""Pytest configuration and shared fixtures.

Provides:
- Quiet logging defaults (set before the logger configures itself on import)
- An HTML -> document helper
- Product page fixtures used across extractor and assembly tests
"""
import os

os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "json")

import pytest
from bs4 import BeautifulSoup

from listing_facts.adapters.document_provider import FetchError


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


@pytest.fixture
def soup_from():
    """Build a document from an HTML body fragment."""
    def _build(body: str) -> BeautifulSoup:
        return make_soup(f"<html><body>{body}</body></html>")
    return _build


PRODUCT_PAGE = """
<html><body>
  <div id="centerCol">
    <a id="bylineInfo" href="/stores/Acme">Visit the Acme Store</a>
    <div id="availability"><span>Only 4 left in stock.</span></div>
  </div>
  <div id="buybox">
    <div id="merchant-info">Dispatched from and sold by Amazon.co.uk.</div>
    <i class="a-icon a-icon-prime"></i>
  </div>
  <div id="aod-offer-list">
    <div class="aod-offer" id="aod-offer-1">
      <div id="aod-offer-price"><span class="a-price"><span class="a-offscreen">£12.99</span></span></div>
      <div id="aod-offer-soldBy"><a href="/sp?seller=A1">Bright Goods</a></div>
      <div class="aod-offer-availability">Only 3 left in stock</div>
      <span>Fulfilled by Amazon</span>
    </div>
    <div class="aod-offer" id="aod-offer-2">
      <div id="aod-offer-price"><span class="a-price"><span class="a-offscreen">£1,013.50</span></span></div>
      <div id="aod-offer-soldBy"><a href="/sp?seller=A2">Jane's Shop</a></div>
      <div class="aod-offer-availability">7 available</div>
      <span>Ships from and sold by Jane's Shop</span>
    </div>
  </div>
  <div id="detailBullets_feature_div">
    <ul>
      <li><span class="a-text-bold">Best Sellers Rank:</span> #1,234 in Kitchen &amp; Home (See Top 100 in Kitchen &amp; Home)</li>
    </ul>
  </div>
</body></html>
"""


@pytest.fixture
def product_page() -> BeautifulSoup:
    return make_soup(PRODUCT_PAGE)


class FakeProvider:
    """Document source serving fixed documents; counts calls."""

    def __init__(self, documents=None, fail_for=()):
        self.documents = documents or {}
        self.fail_for = set(fail_for)
        self.calls = []

    async def get_document(self, asin: str) -> BeautifulSoup:
        self.calls.append(asin)
        if asin in self.fail_for or asin not in self.documents:
            raise FetchError(asin, "not available", status_code=503)
        return self.documents[asin]


@pytest.fixture
def fake_provider(product_page):
    return FakeProvider({"B000TEST01": product_page}, fail_for={"B000FAIL01"})


@pytest.fixture
def provider_class():
    return FakeProvider
