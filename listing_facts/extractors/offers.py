"""
Seller offer reader.

Reads one offer-shaped node (an "other sellers" row, the buy box, a
more-buying-choices block) into a SellerOffer. Every attribute has its own
cascade and a defined default, so reading never fails on sparse markup.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Pattern

from bs4 import Tag

from listing_facts.models.listing import Condition, DispatchType, SellerOffer
from listing_facts.utils.text import (
    StrategyChain,
    clean_text,
    fold,
    looks_like_styling,
    node_text,
)

UNKNOWN_SELLER = "Unknown Seller"
UNKNOWN_ORIGIN = "Unknown"

# ---------------------------------------------------------------------------
# Seller name
# ---------------------------------------------------------------------------

SELLER_ANCHOR_SELECTORS = [
    "#aod-offer-soldBy a",
    ".aod-offer-soldBy a",
    "#sellerProfileTriggerId",
    "[id*='soldBy'] a",
    ".olpSellerName a",
    "a[href*='seller=']",
    "a[href*='/sp?']",
    "a",
]

SELLER_NAME_EXCLUDED = ("amazon", "details", "ratings", "reviews")

SOLD_BY_RE = re.compile(
    r"(?:sold\s+by|sold\s+from|seller\s*:)\s*:?\s*"
    r"(\S[^|,\n]*?)"
    r"(?=\s+(?:and|ships|fulfilled|dispatched|dispatches|price|condition|delivery)\b|[|,]|\.(?:\s|$)|$)",
    re.I,
)

# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

PRICE_SELECTORS = [
    ".a-price .a-offscreen",
    "#aod-offer-price .a-offscreen",
    ".apexPriceToPay .a-offscreen",
    ".a-price-whole",
    ".olpOfferPrice",
    "[class*='price']",
]

PRICE_TOKEN_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")

# ---------------------------------------------------------------------------
# Dispatch, condition, rating
# ---------------------------------------------------------------------------

FBA_OFFER_RE = re.compile(r"fulfilled\s+by\s+amazon|\bfba\b", re.I)

CONDITION_RE = re.compile(r"\b(new|used|refurbished|renewed)\b", re.I)
CONDITION_MAP = {
    "new": Condition.NEW,
    "used": Condition.USED,
    "refurbished": Condition.REFURBISHED,
    "renewed": Condition.REFURBISHED,
}

RATING_ICON_SELECTORS = ["i[class*='a-star']", ".a-icon-star", "[class*='star']"]
RATING_RE = re.compile(r"(\d(?:[.,]\d)?)\s*out\s+of\s*5", re.I)

# ---------------------------------------------------------------------------
# Delivery and origin
# ---------------------------------------------------------------------------

MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*"

DELIVERY_PATTERNS = [
    re.compile(rf"\b[A-Z][a-z]{{1,8}},\s*\d{{1,2}}\s+{MONTHS}\b"),   # Mo, 15 Sep
    re.compile(rf"\b\d{{1,2}}\s*-\s*\d{{1,2}}\s+{MONTHS}\b"),          # 17 - 18 Sep
    re.compile(rf"\b\d{{1,2}}\s+{MONTHS}\b"),                          # 15 Sep
]

DELIVERY_SELECTORS = [
    "#aod-offer-delivery",
    ".aod-delivery-promise",
    "[data-csa-c-delivery-time]",
    "[class*='delivery']",
    "[id*='delivery']",
]

SHIPS_FROM_RE = re.compile(
    r"ships\s+from\s*:?\s*(?!and\b)"
    r"(\S[^|,\n]*?)"
    r"(?=\s+(?:and|sold|fulfilled|dispatched|price|condition)\b|[|,]|\.(?:\s|$)|$)",
    re.I,
)

# ---------------------------------------------------------------------------
# Quantity
# ---------------------------------------------------------------------------

QUANTITY_PATTERNS: List[Pattern] = [
    re.compile(r"only\s+(\d+)\s+left", re.I),
    re.compile(r"(\d+)\s*\+\s*in\s+stock", re.I),
    re.compile(r"(\d+)\s+units?\s+available", re.I),
    re.compile(r"(\d+)\s+available", re.I),
    re.compile(r"stock\s*:\s*(\d+)", re.I),
    re.compile(r"quantity\s*:\s*(\d+)", re.I),
    re.compile(r"(\d+)\s*\+", re.I),
    re.compile(r"(\d+)\s+in\s+stock", re.I),
    re.compile(r"available\D{0,40}?(\d+)", re.I),
    re.compile(r"(\d+)\s+left", re.I),
]

QUANTITY_SELECTORS = [
    "#aod-offer-availability",
    ".aod-offer-availability",
    "#availability",
    "[class*='availability']",
    "[class*='stock']",
    "[class*='quantity']",
    "[id*='quantity']",
]


def parse_price(text: str) -> Optional[Decimal]:
    """First numeric token of a price display, thousands separators removed."""
    match = PRICE_TOKEN_RE.search(text or "")
    if not match:
        return None
    try:
        return Decimal(match.group().replace(",", ""))
    except InvalidOperation:
        return None


def parse_quantity(text: str) -> Optional[int]:
    """First stock phrase in priority order; None when the text has none."""
    for pattern in QUANTITY_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def find_delivery_window(text: str) -> Optional[str]:
    """First date-like delivery phrase; styling leaks are rejected."""
    if not text or looks_like_styling(text):
        return None
    for pattern in DELIVERY_PATTERNS:
        match = pattern.search(text)
        if match:
            return clean_text(match.group())
    return None


def offer_dispatch_type(text: str) -> DispatchType:
    """Offer-local dispatch: FBA when fulfilled by the platform, otherwise FBM."""
    if FBA_OFFER_RE.search(text):
        return DispatchType.FBA
    return DispatchType.FBM


class SellerOfferReader:
    """Extracts one offer's attributes from an offer-shaped node."""

    def __init__(self):
        self.seller_chain: StrategyChain[str] = StrategyChain("offer_seller_name", [
            ("seller_anchor", self._seller_from_anchors),
            ("sold_by_text", self._seller_from_text),
        ])
        self.price_chain: StrategyChain[Decimal] = StrategyChain("offer_price", [
            (selector, self._price_strategy(selector)) for selector in PRICE_SELECTORS
        ])

    def read(self, node: Tag) -> SellerOffer:
        text = node_text(node)
        seller_name = self.seller_chain.run(node) or UNKNOWN_SELLER
        return SellerOffer(
            seller_name=seller_name,
            dispatch_type=offer_dispatch_type(text),
            price=self.price_chain.run(node),
            condition=self._condition(text),
            rating=self._rating(node, text),
            delivery_window=self._delivery_window(node, text),
            ships_from=self._ships_from(text, seller_name),
            quantity=self._quantity(node),
        )

    # -- seller name ---------------------------------------------------------

    def _seller_from_anchors(self, node: Tag) -> Optional[str]:
        for selector in SELLER_ANCHOR_SELECTORS:
            for anchor in node.select(selector):
                name = node_text(anchor)
                if name and not any(term in fold(name) for term in SELLER_NAME_EXCLUDED):
                    return name
        return None

    def _seller_from_text(self, node: Tag) -> Optional[str]:
        match = SOLD_BY_RE.search(node_text(node))
        if not match:
            return None
        return clean_text(match.group(1)) or None

    # -- price ---------------------------------------------------------------

    @staticmethod
    def _price_strategy(selector: str):
        def strategy(node: Tag) -> Optional[Decimal]:
            for element in node.select(selector):
                price = parse_price(node_text(element))
                if price is not None:
                    return price
            return None
        return strategy

    # -- condition, rating ---------------------------------------------------

    def _condition(self, text: str) -> Condition:
        match = CONDITION_RE.search(text)
        if not match:
            return Condition.NEW
        return CONDITION_MAP[match.group(1).lower()]

    def _rating(self, node: Tag, text: str) -> Optional[float]:
        candidates: List[str] = []
        for selector in RATING_ICON_SELECTORS:
            for icon in node.select(selector):
                candidates.append(icon.get("title") or "")
                candidates.append(node_text(icon))
        candidates.append(text)

        for candidate in candidates:
            match = RATING_RE.search(candidate)
            if match:
                value = float(match.group(1).replace(",", "."))
                if 0.0 <= value <= 5.0:
                    return value
        return None

    # -- delivery, origin ----------------------------------------------------

    def _delivery_window(self, node: Tag, text: str) -> Optional[str]:
        for selector in DELIVERY_SELECTORS:
            for element in node.select(selector):
                sources: List[str] = [node_text(element)]
                attr = element.get("data-csa-c-delivery-time")
                if attr:
                    sources.insert(0, attr)
                for source in sources:
                    window = find_delivery_window(source)
                    if window:
                        return window

        # Whole-offer fallback: judge each date by its surrounding text
        for pattern in DELIVERY_PATTERNS:
            for match in pattern.finditer(text):
                context = text[max(match.start() - 40, 0):match.end() + 40]
                if not looks_like_styling(context):
                    return clean_text(match.group())
        return None

    def _ships_from(self, text: str, seller_name: str) -> str:
        match = SHIPS_FROM_RE.search(text)
        if match:
            origin = clean_text(match.group(1))
            if origin and not looks_like_styling(origin):
                return origin
        if seller_name and seller_name != UNKNOWN_SELLER:
            return seller_name
        return UNKNOWN_ORIGIN

    # -- quantity ------------------------------------------------------------

    def _quantity(self, node: Tag) -> int:
        """Largest stock figure among quantity-like sub-elements; 0 when none carries one."""
        best = 0
        seen = set()
        for selector in QUANTITY_SELECTORS:
            for element in node.select(selector):
                if id(element) in seen:
                    continue
                seen.add(id(element))
                quantity = parse_quantity(node_text(element))
                if quantity is not None and quantity > best:
                    best = quantity
        return best
