"""Extractors package initialization."""
from listing_facts.extractors.brand import BrandExtractor
from listing_facts.extractors.rank import RankExtractor
from listing_facts.extractors.offers import SellerOfferReader
from listing_facts.extractors.fulfillment import FulfillmentClassifier, classify_dispatch
from listing_facts.extractors.stock import StockAggregator

__all__ = [
    "BrandExtractor",
    "RankExtractor",
    "SellerOfferReader",
    "FulfillmentClassifier",
    "classify_dispatch",
    "StockAggregator",
]
