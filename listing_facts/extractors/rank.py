"""
Best-seller rank extraction.

Looks for `#<number> in <category>` inside the known product-detail
containers first, then anywhere in the document.
"""
import re
from typing import Optional

from bs4 import BeautifulSoup

from listing_facts.models.listing import RankFact
from listing_facts.utils.logger import LayerLogger
from listing_facts.utils.text import StrategyChain, clean_text, node_text

RANK_CONTAINERS = [
    "#detailBulletsWrapper_feature_div",
    "#detailBullets_feature_div",
    "#productDetails_detailBullets_sections1",
    "#productDetails_db_sections",
    "#prodDetails",
    "#detailBulletsId",
]

RANK_RE = re.compile(r"#\s*(\d[\d,]*)\s+in\s+([^()]+?)(?:\s*\(|$)", re.I)

# Category text runs into whatever UI block follows it
CATEGORY_TAIL_RES = [
    re.compile(r"\s+#.*$"),
    re.compile(
        r"\s+(?:[\d.,]+\s+)?(?:Brand\s*:|(?:Product|Visit|ASIN|PRO-version|ratings?|out\s+of|stars|Store|Details)\b).*$",
        re.I,
    ),
]


def clean_category(category: str) -> str:
    """Cut trailing UI noise from a captured category."""
    category = clean_text(category)
    for tail_re in CATEGORY_TAIL_RES:
        category = tail_re.sub("", category)
    return category.strip(" ,:;-")


def format_rank(number: str, category: str) -> str:
    """`#1,234 in Category` with the number re-grouped."""
    return f"#{int(number.replace(',', '')):,} in {category}"


def match_rank(text: str) -> Optional[str]:
    """Apply the rank pattern to text; None when nothing usable matched."""
    for match in RANK_RE.finditer(clean_text(text)):
        category = clean_category(match.group(2))
        if category:
            return format_rank(match.group(1), category)
    return None


class RankExtractor:
    """Rank cascade over known containers, then the whole document."""

    def __init__(self):
        self.logger = LayerLogger("rank_extractor")
        strategies = [
            (selector, self._container_strategy(selector)) for selector in RANK_CONTAINERS
        ]
        strategies.append(("whole_document", self._from_whole_document))
        self.chain: StrategyChain[str] = StrategyChain("rank_extractor", strategies)

    @staticmethod
    def _container_strategy(selector: str):
        def strategy(soup: BeautifulSoup) -> Optional[str]:
            box = soup.select_one(selector)
            if box is None:
                return None
            return match_rank(node_text(box))
        return strategy

    def _from_whole_document(self, soup: BeautifulSoup) -> Optional[str]:
        root = soup.body or soup
        rank_text = match_rank(node_text(root))
        if rank_text:
            self.logger.log_fallback(
                from_source="rank_containers",
                to_source="whole_document",
                reason="No known rank container matched",
            )
        return rank_text

    def extract(self, soup: BeautifulSoup) -> Optional[RankFact]:
        rank_text = self.chain.run(soup)
        if not rank_text:
            return None
        return RankFact(rank_text=rank_text)
