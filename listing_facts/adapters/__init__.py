"""Adapters package initialization."""
from listing_facts.adapters.document_provider import DocumentProvider, FetchError, parse_document

__all__ = ["DocumentProvider", "FetchError", "parse_document"]
