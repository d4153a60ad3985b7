"""
Stock aggregation.

Unions offer quantities from five independent locations. Every qualifying
block is read into a SellerOffer and counts when its quantity is positive.
When no block carries a quantity the main availability line is parsed
instead.
"""
import re
from typing import List, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag

from listing_facts.extractors.offers import SellerOfferReader
from listing_facts.models.listing import SellerOffer, StockMethod, StockSummary
from listing_facts.utils.logger import LayerLogger
from listing_facts.utils.text import node_text

# (strategy name, selector, take only the first match)
OFFER_LOCATIONS: List[Tuple[str, str, bool]] = [
    (
        "other_sellers",
        "#aod-offer-list .aod-offer, #aod-pinned-offer, #aod-offer, .aod-offer, .olpOffer",
        False,
    ),
    (
        "buy_box",
        "#buybox, #desktop_buybox, #buyBoxAccordion, #qualifiedBuybox",
        True,
    ),
    (
        "more_buying_choices",
        "#mbc .a-box, #moreBuyingChoices_feature_div .a-box, .mbc-offer-row",
        False,
    ),
    (
        "new_and_used",
        "#usedAndNewBuyingChoices, #newAccordionRow, #usedAccordionRow, #olp-upd-new-used, #olp-upd-new",
        False,
    ),
    (
        "offer_sections",
        "div[id^='offer-'], div[id*='-offer-'], div[id$='-offer'], div[id*='OfferListing']",
        False,
    ),
]

AVAILABILITY_SELECTORS = ["#availability", "#availability_feature_div", "#outOfStock"]

# (pattern, whether the figure is a lower bound shown as "N+")
AVAILABILITY_PATTERNS: List[Tuple[re.Pattern, bool]] = [
    (re.compile(r"only\s+(\d+)\s+left", re.I), False),
    (re.compile(r"(\d+)\s*\+", re.I), True),
    (re.compile(r"stock\D{0,20}?(\d+)\s*\+", re.I), True),
    (re.compile(r"available\D{0,40}?(\d+)\s*\+", re.I), True),
    (re.compile(r"(\d+)\s+in\s+stock", re.I), False),
]


def parse_availability(text: str) -> Optional[Tuple[int, str]]:
    """(quantity, raw text) from the first availability pattern that matches."""
    for pattern, lower_bound in AVAILABILITY_PATTERNS:
        match = pattern.search(text)
        if match:
            quantity = int(match.group(1))
            return quantity, f"{quantity}+" if lower_bound else str(quantity)
    return None


class StockAggregator:
    """Sums quantities across offer blocks, falling back to the availability line."""

    def __init__(self, offer_reader: Optional[SellerOfferReader] = None):
        self.offer_reader = offer_reader or SellerOfferReader()
        self.logger = LayerLogger("stock_aggregator")

    def collect_offers(self, soup: BeautifulSoup) -> List[SellerOffer]:
        """Offers with a positive quantity, in strategy order, each block counted once."""
        counted: Set[int] = set()
        offers: List[SellerOffer] = []
        for name, selector, first_only in OFFER_LOCATIONS:
            blocks = soup.select(selector)
            if first_only:
                blocks = blocks[:1]
            for block in blocks:
                if self._overlaps(block, counted):
                    continue
                offer = self.offer_reader.read(block)
                if offer.quantity <= 0:
                    continue
                counted.add(id(block))
                offers.append(offer)
                self.logger.log_decision(
                    decision="offer_counted",
                    reason=name,
                    seller=offer.seller_name,
                    quantity=offer.quantity,
                )
        return offers

    @staticmethod
    def _overlaps(block: Tag, counted: Set[int]) -> bool:
        """True when the block, an ancestor or a descendant was already counted."""
        if id(block) in counted:
            return True
        if any(id(parent) in counted for parent in block.parents):
            return True
        return any(id(child) in counted for child in block.descendants if isinstance(child, Tag))

    def main_availability(self, soup: BeautifulSoup) -> StockSummary:
        for selector in AVAILABILITY_SELECTORS:
            text = node_text(soup.select_one(selector))
            if not text:
                continue
            parsed = parse_availability(text)
            if parsed:
                quantity, raw_text = parsed
                return StockSummary(
                    total=quantity,
                    raw_text=raw_text,
                    method=StockMethod.MAIN_AVAILABILITY,
                )
        return StockSummary(method=StockMethod.MAIN_AVAILABILITY)

    def aggregate(self, soup: BeautifulSoup) -> StockSummary:
        offers = self.collect_offers(soup)
        total = sum(offer.quantity for offer in offers)
        if total > 0:
            return StockSummary(
                total=total,
                raw_text=str(total),
                method=StockMethod.MULTI_SELLER,
                seller_count=len(offers),
                seller_details=offers,
            )

        self.logger.log_fallback(
            from_source="offer_blocks",
            to_source="main_availability",
            reason="No offer block carried a quantity",
        )
        return self.main_availability(soup)
