"""Unit tests for BrandExtractor.

Tests cover:
    - Byline boilerplate removal
    - Product overview table fallback
    - Detail bullets / tech spec fallback
    - Empty result when no brand is present
"""
import pytest

from listing_facts.extractors.brand import BrandExtractor, clean_byline


class TestCleanByline:
    """Tests for byline boilerplate stripping."""

    @pytest.mark.parametrize("text,expected", [
        ("Visit the Acme Store", "Acme"),
        ("visit the  Big Bear Outdoor  store", "Big Bear Outdoor"),
        ("Brand: Acme", "Acme"),
        ("Brand:Acme", "Acme"),
        ("Acme", "Acme"),
        ("Storewide Goods", "Storewide Goods"),
    ])
    def test_clean_byline(self, text, expected):
        assert clean_byline(text) == expected


class TestBrandExtractor:
    """Tests for the brand cascade."""

    @pytest.fixture
    def extractor(self):
        return BrandExtractor()

    def test_byline_wins(self, extractor, soup_from):
        soup = soup_from("""
            <a id="bylineInfo">Visit the Acme Store</a>
            <div id="productOverview_feature_div"><table>
              <tr><td class="a-span3">Brand</td><td class="a-span9">Other</td></tr>
            </table></div>
        """)
        assert extractor.extract(soup) == "Acme"

    def test_overview_table(self, extractor, soup_from):
        soup = soup_from("""
            <div id="productOverview_feature_div"><table>
              <tr><td class="a-span3"><span>Colour</span></td><td class="a-span9">Red</td></tr>
              <tr><td class="a-span3"><span>BRAND</span></td><td class="a-span9"><span>Kettlex</span></td></tr>
            </table></div>
        """)
        assert extractor.extract(soup) == "Kettlex"

    def test_overview_header_must_equal_brand(self, extractor, soup_from):
        soup = soup_from("""
            <div id="productOverview_feature_div"><table>
              <tr><th>Brand Name</th><td>Wrong</td></tr>
            </table></div>
        """)
        assert extractor.extract(soup) == ""

    def test_detail_table_header_prefix(self, extractor, soup_from):
        soup = soup_from("""
            <table id="productDetails_techSpec_section_1">
              <tr><th>Manufacturer</th><td>Maker Ltd</td></tr>
              <tr><th>Brand Name</th><td>Lumo</td></tr>
            </table>
        """)
        assert extractor.extract(soup) == "Lumo"

    def test_detail_bullet_list(self, extractor, soup_from):
        soup = soup_from("""
            <div id="detailBullets_feature_div"><ul>
              <li><span class="a-text-bold">ASIN ‏ : ‎</span><span>B000TEST01</span></li>
              <li><span class="a-text-bold">Brand ‏ : ‎</span><span>Brightway</span></li>
            </ul></div>
        """)
        assert extractor.extract(soup) == "Brightway"

    def test_empty_byline_falls_through(self, extractor, soup_from):
        soup = soup_from("""
            <a id="bylineInfo">   </a>
            <table id="productDetails_detailBullets_sections1">
              <tr><th>Brand</th><td>Fallback Co</td></tr>
            </table>
        """)
        assert extractor.extract(soup) == "Fallback Co"

    def test_no_brand_is_empty_string(self, extractor, soup_from):
        assert extractor.extract(soup_from("<p>Nothing here</p>")) == ""
