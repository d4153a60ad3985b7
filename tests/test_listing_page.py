"""
Unit tests for the listing page layer.

Tests cover:
    - Variation predicates and their precedence
    - Grouping by shared container, shared parent and proximity
    - Unclaimed variations kept as standalone groups
"""
import pytest

from listing_facts.layers.listing_page import (
    ListingPageLayer,
    ProductNodeClassifier,
    VariationGrouper,
    group_listing_page,
    select_product_nodes,
)
from listing_facts.models.nodes import NodeType


def node_by_asin(soup, asin):
    return soup.select_one(f"[data-asin='{asin}']")


def positions(tops):
    """Geometry reading each node's top edge from a dict keyed by identifier."""
    return lambda node: tops.get(node.get("data-asin"))


@pytest.fixture
def classifier():
    return ProductNodeClassifier()


class TestSelectProductNodes:
    """Tests for node discovery."""

    def test_valid_identifiers_in_document_order(self, soup_from):
        soup = soup_from("""
            <div data-asin="B000FIRST1">one</div>
            <div data-asin="">spacer</div>
            <div data-asin="b000second">two</div>
            <div data-asin="NOPE">bad</div>
        """)
        assert [asin for asin, _ in select_product_nodes(soup)] == ["B000FIRST1", "B000SECOND"]


class TestProductNodeClassifier:
    """Tests for main/variation classification."""

    def test_plain_result_is_main(self, classifier, soup_from):
        soup = soup_from("<div data-asin='B000MAIN01'><h2>Steel Kettle 1.7L</h2></div>")
        assert classifier.classify(node_by_asin(soup, "B000MAIN01")) == NodeType.MAIN

    @pytest.mark.parametrize("html,reason", [
        (
            "<div id='variation_color_name'><ul><li data-asin='B000VAR001'>Red</li></ul></div>",
            "variation_container",
        ),
        ("<li data-asin='B000VAR001' data-defaultasin='B000VAR001'>Red</li>", "selectable_option"),
        ("<span data-asin='B000VAR001' class='a-button a-button-toggle'>Blue</span>", "selectable_option"),
        (
            "<div data-component-type='s-size-selector'><span data-asin='B000VAR001'>XL</span></div>",
            "variation_widget",
        ),
        ("<div class='twisterVariations'><span data-asin='B000VAR001'>Oak</span></div>", "variation_named_container"),
        ("<div data-asin='B000VAR001'>Kitchen Roll, Pack of 6</div>", "pack_text"),
        (
            "<div><h5>Choose a style</h5><div class='a-spacing-small'>"
            "<span data-asin='B000VAR001'>Classic</span></div></div>",
            "option_spacing_section",
        ),
    ])
    def test_variation_predicates(self, classifier, soup_from, html, reason):
        node = node_by_asin(soup_from(html), "B000VAR001")
        assert classifier.matching_predicate(node) == reason
        assert classifier.classify(node) == NodeType.VARIATION

    def test_nested_pack_text_does_not_make_main_a_variation(self, classifier, soup_from):
        soup = soup_from("""
            <div data-asin="B000MAIN01">
              <h2>Kitchen Roll</h2>
              <div data-asin="B000VAR001">Pack of 6</div>
            </div>
        """)
        assert classifier.classify(node_by_asin(soup, "B000MAIN01")) == NodeType.MAIN
        assert classifier.classify(node_by_asin(soup, "B000VAR001")) == NodeType.VARIATION


class TestVariationGrouper:
    """Tests for grouping variations under main nodes."""

    def test_variation_inside_main_container(self, soup_from):
        soup = soup_from("""
            <div data-asin="B000MAIN01" class="s-result-item">
              <h2>Steel Kettle</h2>
              <div class="colours"><a data-asin="B000VAR001" class="swatch">Red</a></div>
            </div>
        """)
        groups = group_listing_page(soup)
        assert len(groups) == 1
        assert groups[0].asin == "B000MAIN01"
        assert groups[0].type == NodeType.MAIN
        assert [v.asin for v in groups[0].variations] == ["B000VAR001"]

    def test_shared_parent_beats_failed_proximity(self, soup_from):
        soup = soup_from("""
            <div id="row">
              <div data-asin="B000MAIN02">Toaster</div>
              <div data-asin="B000VAR002">Toaster, Pack of 2</div>
            </div>
        """)
        grouper = VariationGrouper(geometry=positions({"B000MAIN02": 0, "B000VAR002": 900}))
        groups = ListingPageLayer(grouper=grouper).group_page(soup)
        assert [g.asin for g in groups] == ["B000MAIN02"]
        assert [v.asin for v in groups[0].variations] == ["B000VAR002"]

    def test_proximity_relates_separate_branches(self, soup_from):
        soup = soup_from("""
            <div><div data-asin="B000MAIN03">Desk Lamp</div></div>
            <div><div data-asin="B000VAR003">Desk Lamp, Pack of 2</div></div>
        """)
        groups = group_listing_page(soup, geometry=positions({"B000MAIN03": 100, "B000VAR003": 250}))
        assert len(groups) == 1
        assert [v.asin for v in groups[0].variations] == ["B000VAR003"]

    def test_unclaimed_variation_is_standalone(self, soup_from):
        soup = soup_from("""
            <div><div data-asin="B000MAIN03">Desk Lamp</div></div>
            <div><div data-asin="B000VAR003">Desk Lamp, Pack of 2</div></div>
        """)
        groups = group_listing_page(soup)
        assert [(g.asin, g.type) for g in groups] == [
            ("B000MAIN03", NodeType.MAIN),
            ("B000VAR003", NodeType.VARIATION),
        ]
        assert groups[0].variations == []

    def test_distant_nodes_stay_apart(self, soup_from):
        soup = soup_from("""
            <div><div data-asin="B000MAIN03">Desk Lamp</div></div>
            <div><div data-asin="B000VAR003">Desk Lamp, Pack of 2</div></div>
        """)
        groups = group_listing_page(soup, geometry=positions({"B000MAIN03": 100, "B000VAR003": 300}))
        assert len(groups) == 2

    def test_first_main_claims_variation(self, soup_from):
        soup = soup_from("""
            <div>
              <div data-asin="B000MAINA1">Mug</div>
              <div data-asin="B000MAINB1">Plate</div>
              <div data-asin="B000VARX01">Mug, Pack of 4</div>
            </div>
        """)
        groups = group_listing_page(soup)
        assert [(g.asin, [v.asin for v in g.variations]) for g in groups] == [
            ("B000MAINA1", ["B000VARX01"]),
            ("B000MAINB1", []),
        ]

    def test_same_identifier_is_never_claimed(self, soup_from):
        soup = soup_from("""
            <div>
              <div data-asin="B000MAIN01">Mug</div>
              <div data-asin="B000MAIN01">Mug, Pack of 4</div>
            </div>
        """)
        groups = group_listing_page(soup)
        assert [(g.asin, g.type) for g in groups] == [
            ("B000MAIN01", NodeType.MAIN),
            ("B000MAIN01", NodeType.VARIATION),
        ]

    def test_to_dict_uses_document_order_refs(self, soup_from):
        soup = soup_from("""
            <div>
              <div data-asin="B000MAIN01">Mug</div>
              <div data-asin="B000VAR001">Mug, Pack of 4</div>
            </div>
        """)
        assert group_listing_page(soup)[0].to_dict() == {
            "asin": "B000MAIN01",
            "type": "main",
            "nodeRef": 0,
            "variations": [{"asin": "B000VAR001", "nodeRef": 1}],
        }
