"""
Listing Facts Assembly Layer.
Top-level entry point: obtains the product document for an identifier and
composes brand, rank, fulfillment and stock into one ListingRecord.
"""
from typing import Optional, Protocol

from bs4 import BeautifulSoup

from listing_facts.adapters.document_provider import FetchError
from listing_facts.extractors.brand import BrandExtractor
from listing_facts.extractors.fulfillment import FulfillmentClassifier
from listing_facts.extractors.offers import SellerOfferReader
from listing_facts.extractors.rank import RankExtractor
from listing_facts.extractors.stock import StockAggregator
from listing_facts.models.listing import ListingRecord
from listing_facts.utils.identifiers import normalize_asin
from listing_facts.utils.logger import LayerLogger


class DocumentSource(Protocol):
    """Anything that can supply a product document for an identifier."""

    async def get_document(self, asin: str) -> BeautifulSoup:
        ...


class ListingFactsAssembler:
    """
    Assembly layer - pure composition of the extractors.

    This layer:
    - Awaits the document source once per call
    - Runs every extractor against the same read-only document
    - Reports a retrieval failure as "no data" (None), never as a crash

    There are no retries and no caching here; each call owns its document.
    """

    def __init__(self, provider: DocumentSource):
        self.provider = provider
        self.logger = LayerLogger("listing_assembler")
        self.brand_extractor = BrandExtractor()
        self.rank_extractor = RankExtractor()
        self.fulfillment_classifier = FulfillmentClassifier()
        self.stock_aggregator = StockAggregator(SellerOfferReader())

    async def assemble(self, asin: str) -> Optional[ListingRecord]:
        """
        Build the ListingRecord for one identifier.

        Args:
            asin: Product identifier (case-insensitive)

        Returns:
            ListingRecord, or None when the identifier is invalid or the
            document could not be retrieved
        """
        normalized = normalize_asin(asin)
        if normalized is None:
            self.logger.log_error(
                "Invalid product identifier",
                error_type="invalid_identifier",
                asin=asin,
            )
            return None

        self.logger.log_action("assemble_listing", "started", asin=normalized)
        try:
            soup = await self.provider.get_document(normalized)
        except FetchError as e:
            self.logger.log_error(
                str(e),
                error_type="fetch_error",
                asin=normalized,
                status_code=e.status_code,
            )
            return None

        return self.extract(normalized, soup)

    def extract(self, asin: str, soup: BeautifulSoup) -> ListingRecord:
        """Run every extractor against one document and compose the record."""
        rank = self.rank_extractor.extract(soup)
        record = ListingRecord(
            asin=asin,
            brand=self.brand_extractor.extract(soup),
            rank_text=rank.rank_text if rank else None,
            fulfillment_breakdown=self.fulfillment_classifier.classify(soup),
            stock=self.stock_aggregator.aggregate(soup),
        )

        self.logger.log_extraction(
            asin=asin,
            fields_present=record.get_present_fields(),
            fields_missing=record.get_missing_fields(),
        )
        return record
