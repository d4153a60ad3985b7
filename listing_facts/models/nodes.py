"""
Listing page node models.
A listing page carries many product nodes; each is labelled main or variation
and variations are grouped under the main node that owns them.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from bs4 import Tag


class NodeType(str, Enum):
    """Classified role of a listing node."""
    MAIN = "main"
    VARIATION = "variation"


@dataclass
class ProductNode:
    """A listing-page node carrying an identifier."""
    asin: str
    node: Tag
    index: int  # Document order among the selected nodes
    node_type: NodeType = NodeType.MAIN

    @property
    def is_variation(self) -> bool:
        return self.node_type == NodeType.VARIATION


@dataclass
class VariationRef:
    """A variation owned by a group."""
    asin: str
    node_ref: ProductNode

    def to_dict(self) -> Dict[str, Any]:
        return {"asin": self.asin, "nodeRef": self.node_ref.index}


@dataclass
class ProductGroup:
    """A main node with its variations, or an unclaimed variation on its own."""
    asin: str
    type: NodeType
    head: ProductNode
    variations: List[VariationRef] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asin": self.asin,
            "type": self.type.value,
            "nodeRef": self.head.index,
            "variations": [v.to_dict() for v in self.variations],
        }
