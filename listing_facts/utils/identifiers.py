"""
Product identifier (ASIN) parsing.

Identifiers are 8-10 alphanumeric characters, upper-cased. They come from an
explicit data attribute, a product URL path or a product anchor inside a
listing node.
"""
import re
from typing import Optional
from urllib.parse import urlparse

from bs4 import Tag

ASIN_ATTR = "data-asin"

ASIN_RE = re.compile(r"^[A-Z0-9]{8,10}$")

# Segment must end at a path/query boundary, so longer codes never match
URL_ASIN_PATTERNS = [
    re.compile(r"/dp/([A-Za-z0-9]{8,10})(?=[/?#]|$)"),
    re.compile(r"/gp/product/([A-Za-z0-9]{8,10})(?=[/?#]|$)"),
]

PRODUCT_ANCHOR_SELECTOR = "a[href*='/dp/'], a[href*='/gp/product/']"


def normalize_asin(value: Optional[str]) -> Optional[str]:
    """Upper-case and validate an identifier. Returns None when invalid."""
    if not value:
        return None
    candidate = value.strip().upper()
    if ASIN_RE.match(candidate):
        return candidate
    return None


def asin_from_url(url: Optional[str]) -> Optional[str]:
    """Extract the identifier from a product URL path."""
    if not url:
        return None
    parsed = urlparse(url)
    # Relative hrefs parse with an empty scheme; keep path and query
    path = parsed.path or url
    if parsed.query:
        path = f"{path}?{parsed.query}"
    for pattern in URL_ASIN_PATTERNS:
        match = pattern.search(path)
        if match:
            return match.group(1).upper()
    return None


def asin_from_node(node: Tag) -> Optional[str]:
    """Identifier from the node's data attribute, else from its first product anchor."""
    asin = normalize_asin(node.get(ASIN_ATTR))
    if asin:
        return asin
    anchor = node.select_one(PRODUCT_ANCHOR_SELECTOR)
    if anchor is not None:
        return asin_from_url(anchor.get("href"))
    return None
