"""
Unit tests for ListingFactsAssembler.

Tests cover:
    - Composition of all facts from one document
    - Output shape (camelCase nested keys, rank_text omitted when absent)
    - Retrieval failure and invalid identifiers reported as None
    - Determinism over the same document
"""
import pytest

from listing_facts.layers.assembly import ListingFactsAssembler


@pytest.fixture
def assembler(fake_provider):
    return ListingFactsAssembler(fake_provider)


class TestAssemble:
    """Tests for assemble()."""

    @pytest.mark.asyncio
    async def test_product_page_record(self, assembler):
        record = await assembler.assemble("B000TEST01")
        assert record is not None
        assert record.asin == "B000TEST01"
        assert record.brand == "Acme"
        assert record.rank_text == "#1,234 in Kitchen & Home"
        assert record.fulfillment_breakdown.amz == 1
        assert record.fulfillment_breakdown.fba == 1
        assert record.fulfillment_breakdown.fbm == 1
        assert record.fulfillment_breakdown.prime == 1
        assert record.stock.total == 10
        assert record.stock.seller_count == 2

    @pytest.mark.asyncio
    async def test_identifier_is_normalized(self, assembler, fake_provider):
        record = await assembler.assemble("b000test01")
        assert record is not None
        assert fake_provider.calls == ["B000TEST01"]

    @pytest.mark.asyncio
    async def test_fetch_failure_returns_none(self, assembler, fake_provider):
        assert await assembler.assemble("B000FAIL01") is None
        assert fake_provider.calls == ["B000FAIL01"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("asin", ["", "B0-SHORT", "TOOLONGASIN123"])
    async def test_invalid_identifier_returns_none_without_fetch(self, assembler, fake_provider, asin):
        assert await assembler.assemble(asin) is None
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_same_document_same_record(self, assembler):
        first = await assembler.assemble("B000TEST01")
        second = await assembler.assemble("B000TEST01")
        assert first == second
        assert first.to_output() == second.to_output()


class TestOutputShape:
    """Tests for the record's JSON shape."""

    @pytest.mark.asyncio
    async def test_output_keys(self, assembler):
        output = (await assembler.assemble("B000TEST01")).to_output()
        assert set(output) == {"asin", "brand", "rank_text", "fulfillment_breakdown", "stock"}
        assert output["fulfillment_breakdown"] == {"amz": 1, "prime": 1, "fba": 1, "fbm": 1}
        assert output["stock"]["rawText"] == "10"
        assert output["stock"]["method"] == "multi-seller"
        assert output["stock"]["sellerCount"] == 2
        offer = output["stock"]["sellerDetails"][0]
        assert offer["sellerName"] == "Bright Goods"
        assert offer["dispatchType"] == "FBA"
        assert offer["shipsFrom"] == "Bright Goods"

    def test_rank_text_omitted_when_absent(self, fake_provider, soup_from):
        record = ListingFactsAssembler(fake_provider).extract("B000EMPTY1", soup_from("<p>Nothing</p>"))
        output = record.to_output()
        assert "rank_text" not in output
        assert output["brand"] == ""
        assert output["fulfillment_breakdown"] == {"amz": 0, "prime": 0, "fba": 0, "fbm": 0}
        assert output["stock"]["total"] == 0
        assert output["stock"]["method"] == "main-availability"

    def test_present_and_missing_fields(self, fake_provider, soup_from):
        record = ListingFactsAssembler(fake_provider).extract(
            "B000EMPTY1", soup_from("<a id='bylineInfo'>Brand: Zeta</a>")
        )
        assert record.get_present_fields() == ["asin", "brand"]
        assert record.get_missing_fields() == ["rank_text", "fulfillment_breakdown", "stock"]
