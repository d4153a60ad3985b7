"""
Brand extraction from a product document.

Priority: byline > product overview table > detail bullets / tech specs.
An empty string means no brand was found; that is a valid result.
"""
import re
from typing import Optional

from bs4 import BeautifulSoup

from listing_facts.utils.text import StrategyChain, clean_text, fold, node_text

BYLINE_SELECTORS = ["#bylineInfo", "a#bylineInfo", "#brand", "a#brand"]

OVERVIEW_ROWS = "#productOverview_feature_div tr"

DETAIL_ROWS = (
    "#productDetails_techSpec_section_1 tr, "
    "#productDetails_detailBullets_sections1 tr"
)
DETAIL_BULLETS = "#detailBullets_feature_div li, #detailBulletsWrapper_feature_div li"

VISIT_STORE_RE = re.compile(r"^Visit\s+the\s+(.+?)\s+Store$", re.I)
BRAND_PREFIX_RE = re.compile(r"^Brand\s*:\s*", re.I)
# Bullet headers carry invisible direction marks around the colon
HEADER_NOISE_RE = re.compile(r"[\u200e\u200f:]")


def clean_byline(text: str) -> str:
    """Strip store boilerplate: 'Visit the X Store' -> 'X', 'Brand: X' -> 'X'."""
    text = clean_text(text)
    match = VISIT_STORE_RE.match(text)
    if match:
        text = match.group(1)
    return BRAND_PREFIX_RE.sub("", text).strip()


def _header_text(text: str) -> str:
    return fold(HEADER_NOISE_RE.sub(" ", text))


def brand_from_byline(soup: BeautifulSoup) -> Optional[str]:
    for selector in BYLINE_SELECTORS:
        byline = soup.select_one(selector)
        if byline is not None:
            return clean_byline(node_text(byline)) or None
    return None


def brand_from_overview(soup: BeautifulSoup) -> Optional[str]:
    for row in soup.select(OVERVIEW_ROWS):
        header = row.select_one("th, td.a-span3")
        if header is None or _header_text(node_text(header)) != "brand":
            continue
        value = row.select_one("td.a-span9")
        if value is None:
            cells = [c for c in row.find_all("td") if c is not header]
            value = cells[0] if cells else None
        return node_text(value) or None
    return None


def brand_from_detail_bullets(soup: BeautifulSoup) -> Optional[str]:
    for row in soup.select(DETAIL_ROWS):
        header = row.find("th")
        if header is not None and _header_text(node_text(header)).startswith("brand"):
            return node_text(row.find("td")) or None

    # Bullet list form: <span class="a-text-bold">Brand :</span><span>Acme</span>
    for item in soup.select(DETAIL_BULLETS):
        header = item.select_one(".a-text-bold")
        if header is None or not _header_text(node_text(header)).startswith("brand"):
            continue
        value = header.find_next_sibling("span")
        return node_text(value) or None
    return None


class BrandExtractor:
    """Brand cascade; the first non-empty strategy wins."""

    def __init__(self):
        self.chain: StrategyChain[str] = StrategyChain("brand_extractor", [
            ("byline", brand_from_byline),
            ("product_overview", brand_from_overview),
            ("detail_bullets", brand_from_detail_bullets),
        ])

    def extract(self, soup: BeautifulSoup) -> str:
        return self.chain.run(soup) or ""
