"""
Listing Page Layer.
Finds product nodes on a listing page, labels each one main or variation,
and groups variations under the main node that owns them.
"""
import re
from typing import Callable, List, Optional, Sequence, Tuple

import soupsieve as sv
from bs4 import BeautifulSoup, Tag

from listing_facts.config import config
from listing_facts.models.nodes import NodeType, ProductGroup, ProductNode, VariationRef
from listing_facts.utils.identifiers import ASIN_ATTR, asin_from_node
from listing_facts.utils.logger import LayerLogger
from listing_facts.utils.text import clean_text, fold, node_text

# Per-node vertical position (top edge). None when layout is unknown.
Geometry = Callable[[Tag], Optional[float]]

NodePredicate = Callable[[Tag], bool]

VARIATION_CONTAINERS = (
    "#variation_style_name, #variation_size_name, "
    "#variation_pattern_name, #variation_color_name"
)

OPTION_CLASS_RE = re.compile(r"swatch|a-button-toggle", re.I)

WIDGET_ATTRS = ("data-widget", "data-feature-name", "data-component-type", "data-csa-c-slot-id")
WIDGET_TAG_RE = re.compile(r"variation|style|size", re.I)

VARIATION_RE = re.compile(r"variation", re.I)

PACK_PATTERNS = [
    re.compile(r"\bpack\s+of\s+\d+", re.I),
    re.compile(r"\b\d+\s*-?\s*pack\b", re.I),
    re.compile(r"\b\d+\s*pk\b", re.I),
    re.compile(r"\bmulti\s*-?\s*pack\b", re.I),
    re.compile(r"\bbundle\b", re.I),
    re.compile(r"\bset\s+of\s+\d+", re.I),
    re.compile(r"\bcase\s+of\s+\d+", re.I),
    re.compile(r"\bbox\s+of\s+\d+", re.I),
    re.compile(r"\b\d+\s*(?:count|ct)\b", re.I),
    re.compile(r"\b\d+\s*(?:pcs?|pieces?)\b", re.I),
    re.compile(r"\b\d+\s*pairs?\b", re.I),
    re.compile(r"\b\d+\s*x\s*\d+(?:\.\d+)?\s*(?:ml|l|g|kg|oz|lb)\b", re.I),
    re.compile(r"\bvalue\s+pack\b", re.I),
    re.compile(r"\bfamily\s+(?:size|pack)\b", re.I),
    re.compile(r"\bsize\s*:\s*\S+", re.I),
]

SPACING_SECTION_RE = re.compile(r"\ba-spacing-")
SECTION_HINT_RE = re.compile(r"\b(?:style|size|pattern|colou?r|option|pack)s?\b", re.I)

PRODUCT_CONTAINERS = (
    f"[{ASIN_ATTR}], .s-result-item, [data-component-type='s-search-result']"
)


def _ancestors(node: Tag):
    for parent in node.parents:
        if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup):
            yield parent


def _closest_ancestor(node: Tag, selector: str) -> Optional[Tag]:
    for parent in _ancestors(node):
        if sv.match(selector, parent):
            return parent
    return None


def _class_text(node: Tag) -> str:
    classes = node.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


# ---------------------------------------------------------------------------
# Variation predicates, in precedence order
# ---------------------------------------------------------------------------

def in_variation_container(node: Tag) -> bool:
    return _closest_ancestor(node, VARIATION_CONTAINERS) is not None


def is_selectable_option(node: Tag) -> bool:
    if node.name == "option" or node.get("role") == "option":
        return True
    if node.has_attr("data-defaultasin"):
        return True
    return bool(OPTION_CLASS_RE.search(_class_text(node)))


def in_variation_widget(node: Tag) -> bool:
    for parent in _ancestors(node):
        for attr in WIDGET_ATTRS:
            value = parent.get(attr)
            if value and WIDGET_TAG_RE.search(str(value)):
                return True
    return False


def in_variation_named_container(node: Tag) -> bool:
    for parent in _ancestors(node):
        if VARIATION_RE.search(parent.get("id") or "") or VARIATION_RE.search(_class_text(parent)):
            return True
    return False


def own_text(node: Tag) -> str:
    """Node text without the text of product nodes nested inside it."""
    parts = []
    for string in node.find_all(string=True):
        parent = string.parent
        while parent is not None and parent is not node:
            if parent.get(ASIN_ATTR):
                break
            parent = parent.parent
        else:
            parts.append(str(string))
    return clean_text(" ".join(parts))


def has_pack_text(node: Tag) -> bool:
    text = own_text(node)
    return any(pattern.search(text) for pattern in PACK_PATTERNS)


def in_option_spacing_section(node: Tag) -> bool:
    for parent in _ancestors(node):
        if not SPACING_SECTION_RE.search(_class_text(parent)):
            continue
        enclosing = parent.parent
        if enclosing is None or isinstance(enclosing, BeautifulSoup):
            return False
        return bool(SECTION_HINT_RE.search(fold(node_text(enclosing))))
    return False


VARIATION_PREDICATES: List[Tuple[str, NodePredicate]] = [
    ("variation_container", in_variation_container),
    ("selectable_option", is_selectable_option),
    ("variation_widget", in_variation_widget),
    ("variation_named_container", in_variation_named_container),
    ("pack_text", has_pack_text),
    ("option_spacing_section", in_option_spacing_section),
]


class ProductNodeClassifier:
    """Labels a listing node "variation" when any predicate holds, else "main"."""

    def __init__(self, predicates: Sequence[Tuple[str, NodePredicate]] = VARIATION_PREDICATES):
        self.predicates = list(predicates)
        self.logger = LayerLogger("node_classifier")

    def matching_predicate(self, node: Tag) -> Optional[str]:
        """Name of the first predicate that holds, or None."""
        for name, predicate in self.predicates:
            if predicate(node):
                return name
        return None

    def classify(self, node: Tag) -> NodeType:
        reason = self.matching_predicate(node)
        if reason is None:
            return NodeType.MAIN
        self.logger.log_decision(decision=NodeType.VARIATION.value, reason=reason)
        return NodeType.VARIATION


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def no_geometry(node: Tag) -> Optional[float]:
    """Geometry for documents without layout: proximity never relates nodes."""
    return None


def product_container(node: Tag) -> Optional[Tag]:
    """Nearest enclosing product container, excluding the node itself."""
    return _closest_ancestor(node, PRODUCT_CONTAINERS)


class VariationGrouper:
    """
    Associates variation nodes with their owning main node.

    Relatedness, first true wins:
    (a) same nearest product container (the main node itself counts)
    (b) same immediate parent
    (c) vertical distance under the proximity threshold
    """

    def __init__(self, geometry: Optional[Geometry] = None, threshold: float = config.PROXIMITY_THRESHOLD):
        self.geometry = geometry or no_geometry
        self.threshold = threshold
        self.logger = LayerLogger("variation_grouper")

    def same_container(self, main: ProductNode, variation: ProductNode) -> bool:
        container = product_container(variation.node)
        if container is None:
            return False
        return container is main.node or container is product_container(main.node)

    def same_parent(self, main: ProductNode, variation: ProductNode) -> bool:
        parent = variation.node.parent
        return parent is not None and parent is main.node.parent

    def nearby(self, main: ProductNode, variation: ProductNode) -> bool:
        main_top = self.geometry(main.node)
        variation_top = self.geometry(variation.node)
        if main_top is None or variation_top is None:
            return False
        return abs(main_top - variation_top) < self.threshold

    def relation(self, main: ProductNode, variation: ProductNode) -> Optional[str]:
        """Name of the first relatedness test that holds, or None."""
        if variation.node is main.node or variation.asin == main.asin:
            return None
        for name, test in (
            ("same_container", self.same_container),
            ("same_parent", self.same_parent),
            ("proximity", self.nearby),
        ):
            if test(main, variation):
                return name
        return None

    def group(self, nodes: Sequence[ProductNode]) -> List[ProductGroup]:
        """Groups in document order of their head node."""
        variations = [n for n in nodes if n.is_variation]
        claimed = set()
        groups_by_head = {}

        for main in (n for n in nodes if not n.is_variation):
            group = ProductGroup(asin=main.asin, type=NodeType.MAIN, head=main)
            for variation in variations:
                if id(variation) in claimed:
                    continue
                relation = self.relation(main, variation)
                if relation is None:
                    continue
                claimed.add(id(variation))
                group.variations.append(VariationRef(asin=variation.asin, node_ref=variation))
                self.logger.log_decision(
                    decision="variation_claimed",
                    reason=relation,
                    asin=variation.asin,
                    main_asin=main.asin,
                )
            groups_by_head[id(main)] = group

        groups: List[ProductGroup] = []
        for node in nodes:
            if id(node) in groups_by_head:
                groups.append(groups_by_head[id(node)])
            elif id(node) not in claimed:
                groups.append(ProductGroup(asin=node.asin, type=NodeType.VARIATION, head=node))
        return groups


# ---------------------------------------------------------------------------
# Page pipeline
# ---------------------------------------------------------------------------

def select_product_nodes(root: Tag) -> List[Tuple[str, Tag]]:
    """Elements carrying a valid identifier attribute, in document order."""
    found: List[Tuple[str, Tag]] = []
    for node in root.select(f"[{ASIN_ATTR}]"):
        if not node.get(ASIN_ATTR):
            continue
        asin = asin_from_node(node)
        if asin:
            found.append((asin, node))
    return found


class ListingPageLayer:
    """Discovery, classification and grouping over one listing page."""

    def __init__(
        self,
        classifier: Optional[ProductNodeClassifier] = None,
        grouper: Optional[VariationGrouper] = None,
    ):
        self.classifier = classifier or ProductNodeClassifier()
        self.grouper = grouper or VariationGrouper()
        self.logger = LayerLogger("listing_page")

    def product_nodes(self, root: Tag) -> List[ProductNode]:
        nodes = []
        for index, (asin, node) in enumerate(select_product_nodes(root)):
            nodes.append(ProductNode(
                asin=asin,
                node=node,
                index=index,
                node_type=self.classifier.classify(node),
            ))
        return nodes

    def group_page(self, root: Tag) -> List[ProductGroup]:
        nodes = self.product_nodes(root)
        groups = self.grouper.group(nodes)
        self.logger.log_action(
            "group_listing_page",
            "completed",
            nodes=len(nodes),
            main_groups=len([g for g in groups if g.type == NodeType.MAIN]),
            standalone_variations=len([g for g in groups if g.type == NodeType.VARIATION]),
        )
        return groups


def group_listing_page(root: Tag, geometry: Optional[Geometry] = None) -> List[ProductGroup]:
    """Convenience wrapper: classify and group every product node under root."""
    return ListingPageLayer(grouper=VariationGrouper(geometry=geometry)).group_page(root)
