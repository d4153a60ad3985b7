"""
Text normalization and strategy-chain helpers shared by the extractors.

Product documents phrase the same fact in many ways, so every extractor is a
fixed-order cascade of small strategies. StrategyChain evaluates them in
order and returns the first non-empty value.
"""
import re
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from bs4 import Tag

from listing_facts.utils.logger import LayerLogger

T = TypeVar("T")

WHITESPACE_RE = re.compile(r"\s+")

# Markers of CSS/JS that leaked into visible text
STYLING_LEAK_TOKENS = ("px", "{", "position:")


def clean_text(value: Optional[str]) -> str:
    """Collapse whitespace runs and trim."""
    if not value:
        return ""
    return WHITESPACE_RE.sub(" ", value).strip()


def fold(value: Optional[str]) -> str:
    """Normalize text for case-insensitive matching."""
    return clean_text(value).casefold()


def node_text(node: Optional[Tag]) -> str:
    """Whitespace-collapsed text of a node, empty for a missing node."""
    if node is None:
        return ""
    return clean_text(node.get_text(" "))


def looks_like_styling(text: str) -> bool:
    """True when text looks like leaked stylesheet or script content."""
    lowered = text.lower()
    return any(token in lowered for token in STYLING_LEAK_TOKENS)


def select_first(root: Optional[Tag], selectors: Sequence[str]) -> Optional[Tag]:
    """Return the first element matched by the first selector that matches anything."""
    if root is None:
        return None
    for selector in selectors:
        found = root.select_one(selector)
        if found is not None:
            return found
    return None


Strategy = Callable[[Any], Optional[T]]


class StrategyChain(Generic[T]):
    """
    Ordered list of independent strategies sharing one signature.

    Each strategy takes the subject (a document or node) and returns a value
    or None. The first non-empty value wins. A strategy that raises is logged
    and skipped so a malformed document never aborts an extraction.
    """

    def __init__(self, name: str, strategies: Sequence[Tuple[str, Strategy]]):
        self.name = name
        self.strategies: List[Tuple[str, Strategy]] = list(strategies)
        self.logger = LayerLogger(name)

    def __len__(self) -> int:
        return len(self.strategies)

    def labels(self) -> List[str]:
        return [label for label, _ in self.strategies]

    def run(self, subject: Any) -> Optional[T]:
        for label, strategy in self.strategies:
            try:
                value = strategy(subject)
            except Exception as e:
                self.logger.log_error(
                    f"Strategy failed: {str(e)}",
                    error_type="strategy_error",
                    strategy=label,
                )
                continue
            if value is None or value == "":
                continue
            self.logger.log_decision(
                decision=label,
                reason="first strategy with a result",
            )
            return value
        return None
