"""Layers package initialization."""
from listing_facts.layers.assembly import ListingFactsAssembler
from listing_facts.layers.listing_page import (
    ListingPageLayer,
    ProductNodeClassifier,
    VariationGrouper,
    group_listing_page,
    select_product_nodes,
)

__all__ = [
    "ListingFactsAssembler",
    "ListingPageLayer",
    "ProductNodeClassifier",
    "VariationGrouper",
    "group_listing_page",
    "select_product_nodes",
]
