"""Utils package initialization."""
from listing_facts.utils.logger import get_logger, LayerLogger, set_trace_id
from listing_facts.utils.text import StrategyChain, clean_text, fold, node_text
from listing_facts.utils.identifiers import asin_from_node, asin_from_url, normalize_asin

__all__ = [
    "get_logger",
    "LayerLogger",
    "set_trace_id",
    "StrategyChain",
    "clean_text",
    "fold",
    "node_text",
    "asin_from_node",
    "asin_from_url",
    "normalize_asin",
]
