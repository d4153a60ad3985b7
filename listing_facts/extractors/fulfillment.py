"""
Fulfillment classification.

Combines three scan phases into one FulfillmentBreakdown:

1. Main seller: merchant-info text (else buy-box text) classified once.
2. Other sellers: rows of the first "other sellers" section, each classified
   with the same precedence; falls back to counting phrases across the whole
   document when the section yields nothing.
3. Prime eligibility: badge icons or prime delivery wording.

Each phase returns a DispatchTally and the totals are summed here.
"""
import re
from typing import Callable, List, Optional, Pattern, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from listing_facts.models.listing import DispatchTally, DispatchType, FulfillmentBreakdown
from listing_facts.utils.logger import LayerLogger
from listing_facts.utils.text import StrategyChain, fold, node_text, select_first

MERCHANT_INFO_SELECTORS = [
    "#merchant-info",
    "#merchantInfoFeature_feature_div",
    "#tabular-buybox",
]

BUY_BOX_SELECTORS = [
    "#buybox",
    "#desktop_buybox",
    "#buyBoxAccordion",
    "#qualifiedBuybox",
]

OTHER_SELLERS_SECTIONS = [
    "#aod-offer-list",
    "#aod-offer",
    ".aod-offer-list",
    "#olp_feature_div",
    "#moreBuyingChoices_feature_div",
]

OTHER_SELLERS_ROWS = [
    ".aod-offer",
    ".aod-information-block",
    ".olpOffer",
    ".a-section",
]

PRIME_BADGE_SELECTORS = [
    ".a-icon-prime",
    "i.a-prime",
    ".prime-logo",
    "#prime-badge",
    "[aria-label='Amazon Prime']",
]

PRIME_CONTEXT_WORDS = ("delivery", "shipping", "free")

# Tier 1: the retailer sells and ships
AMZ_RES = [
    re.compile(r"(?:ships|dispatched|dispatches)\s+from\s+and\s+sold\s+by\s+amazon"),
    re.compile(r"sold\s+by\s+amazon"),
]

# Tier 2: third party seller, platform logistics
FBA_RES = [
    re.compile(r"fulfilled\s+by\s+amazon"),
    re.compile(r"\bfba\b"),
    re.compile(r"(?:ships|dispatched|dispatches)\s+from\s+amazon"),
    re.compile(r"dispatched\s+by\s+amazon"),
]

# Tier 3: third party seller, own logistics
FBM_RES = [
    re.compile(r"ships\s+from"),
    re.compile(r"sold\s+by"),
    re.compile(r"fulfilled\s+by\s+merchant"),
    re.compile(r"\bfbm\b"),
    re.compile(r"dispatched\s+by"),
    re.compile(r"dispatches\s+from"),
]

# Whole-document phrase counters (counted independently)
AMZ_COUNT_RE = re.compile(
    r"(?:ships|dispatched|dispatches)\s+from\s+and\s+sold\s+by\s+amazon|sold\s+by\s+amazon"
)
FBA_COUNT_RE = re.compile(r"fulfilled\s+by\s+amazon|\bfba\b")
FBM_COUNT_RE = re.compile("|".join(p.pattern for p in FBM_RES))


def _any_match(patterns: Sequence[Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def _is_amz(text: str) -> Optional[DispatchType]:
    return DispatchType.AMZ if _any_match(AMZ_RES, text) else None


def _is_fba(text: str) -> Optional[DispatchType]:
    if _any_match(FBA_RES, text):
        return DispatchType.FBA
    # Amazon logistics phrased some other way
    if "amazon" in text and "fulfil" in text:
        return DispatchType.FBA
    return None


def _is_fbm(text: str) -> Optional[DispatchType]:
    return DispatchType.FBM if _any_match(FBM_RES, text) else None


DISPATCH_TIERS: List[Tuple[str, Callable[[str], Optional[DispatchType]]]] = [
    ("amz", _is_amz),
    ("fba", _is_fba),
    ("fbm", _is_fbm),
]

dispatch_chain: StrategyChain[DispatchType] = StrategyChain("dispatch_classifier", DISPATCH_TIERS)


def classify_dispatch(text: str) -> DispatchType:
    """Three-tier precedence AMZ > FBA > FBM; UNKNOWN when nothing matches."""
    folded = fold(text)
    if not folded:
        return DispatchType.UNKNOWN
    return dispatch_chain.run(folded) or DispatchType.UNKNOWN


def count_phrases(text: str) -> DispatchTally:
    """Count AMZ, FBA and FBM phrases in text independently."""
    folded = fold(text)
    return DispatchTally(
        amz=len(AMZ_COUNT_RE.findall(folded)),
        fba=len(FBA_COUNT_RE.findall(folded)),
        fbm=len(FBM_COUNT_RE.findall(folded)),
    )


def _first_text(soup: BeautifulSoup, selectors: Sequence[str]) -> str:
    for selector in selectors:
        text = node_text(soup.select_one(selector))
        if text:
            return text
    return ""


class FulfillmentClassifier:
    """Main seller + other sellers + prime, summed into one breakdown."""

    def __init__(self):
        self.logger = LayerLogger("fulfillment_classifier")

    def main_seller_text(self, soup: BeautifulSoup) -> str:
        """Merchant-info text if present, else buy-box text."""
        return _first_text(soup, MERCHANT_INFO_SELECTORS) or _first_text(soup, BUY_BOX_SELECTORS)

    def main_seller(self, soup: BeautifulSoup) -> DispatchType:
        dispatch_type = classify_dispatch(self.main_seller_text(soup))
        self.logger.log_decision(
            decision=dispatch_type.value,
            reason="main seller classification",
        )
        return dispatch_type

    def other_sellers_rows(self, soup: BeautifulSoup) -> List[Tag]:
        """Rows of the first other-sellers section, using the first row selector that finds any."""
        section = None
        for selector in OTHER_SELLERS_SECTIONS:
            section = soup.select_one(selector)
            if section is not None:
                break
        if section is None:
            return []
        for selector in OTHER_SELLERS_ROWS:
            rows = section.select(selector)
            if rows:
                return rows
        return []

    def section_tally(self, rows: Sequence[Tag]) -> DispatchTally:
        """Classify each row; rows with no signal are not counted."""
        tally = DispatchTally()
        for row in rows:
            tally = tally + DispatchTally.for_type(classify_dispatch(node_text(row)))
        return tally

    def document_tally(self, soup: BeautifulSoup) -> DispatchTally:
        """
        Whole-document phrase counts, each non-zero count reduced by one.

        The reduction stands in for the main seller's own mention, which the
        main-seller phase already counted. It is an approximation: a main
        seller mentioned several times is still over-counted.
        """
        root = soup.body or soup
        return count_phrases(node_text(root)).discounted()

    def other_sellers(self, soup: BeautifulSoup) -> DispatchTally:
        rows = self.other_sellers_rows(soup)
        tally = self.section_tally(rows)
        if rows and not tally.is_empty():
            self.logger.log_action(
                "other_sellers_scan",
                "completed",
                rows=len(rows),
                amz=tally.amz,
                fba=tally.fba,
                fbm=tally.fbm,
            )
            return tally

        self.logger.log_fallback(
            from_source="other_sellers_section",
            to_source="document_phrase_count",
            reason="No rows found" if not rows else "No row carried a dispatch signal",
        )
        return self.document_tally(soup)

    def has_prime(self, soup: BeautifulSoup) -> bool:
        if select_first(soup, PRIME_BADGE_SELECTORS) is not None:
            return True
        text = fold(self.main_seller_text(soup))
        return "prime" in text and any(word in text for word in PRIME_CONTEXT_WORDS)

    def classify(self, soup: BeautifulSoup) -> FulfillmentBreakdown:
        main = DispatchTally.for_type(self.main_seller(soup))
        other = self.other_sellers(soup)
        total = main + other
        return FulfillmentBreakdown(
            amz=total.amz,
            fba=total.fba,
            fbm=total.fbm,
            prime=1 if self.has_prime(soup) else 0,
        )
