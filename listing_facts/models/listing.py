"""
Listing facts models.
These models describe one product document's extracted commerce facts:
offers, fulfillment breakdown, stock summary, rank and the composed record.
"""
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DispatchType(str, Enum):
    """Who sells and who ships an offer."""
    AMZ = "AMZ"          # Retailer is the seller of record
    FBA = "FBA"          # Third-party seller, platform logistics
    FBM = "FBM"          # Third-party seller, own logistics
    UNKNOWN = "UNKNOWN"  # Not enough signal to decide


class Condition(str, Enum):
    """Offer condition."""
    NEW = "New"
    USED = "Used"
    REFURBISHED = "Refurbished"


class StockMethod(str, Enum):
    """How the stock total was obtained."""
    MULTI_SELLER = "multi-seller"
    MAIN_AVAILABILITY = "main-availability"


class CamelModel(BaseModel):
    """Base for models serialized with camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)


class SellerOffer(CamelModel):
    """One seller's offer block."""
    seller_name: str = Field(default="Unknown Seller", alias="sellerName")
    dispatch_type: DispatchType = Field(default=DispatchType.FBM, alias="dispatchType")
    price: Optional[Decimal] = None
    condition: Condition = Condition.NEW
    rating: Optional[float] = Field(default=None, ge=0.0, le=5.0)
    delivery_window: Optional[str] = Field(default=None, alias="deliveryWindow")
    ships_from: Optional[str] = Field(default=None, alias="shipsFrom")
    quantity: int = Field(default=0, ge=0)


class DispatchTally(BaseModel):
    """
    Offer counts per dispatch type produced by one scan phase.

    Phases return tallies and the caller sums them; nothing is mutated.
    """
    model_config = ConfigDict(frozen=True)

    amz: int = Field(default=0, ge=0)
    fba: int = Field(default=0, ge=0)
    fbm: int = Field(default=0, ge=0)

    @classmethod
    def for_type(cls, dispatch_type: DispatchType) -> "DispatchTally":
        """A tally counting a single offer of the given type. UNKNOWN counts nothing."""
        if dispatch_type == DispatchType.AMZ:
            return cls(amz=1)
        if dispatch_type == DispatchType.FBA:
            return cls(fba=1)
        if dispatch_type == DispatchType.FBM:
            return cls(fbm=1)
        return cls()

    def __add__(self, other: "DispatchTally") -> "DispatchTally":
        return DispatchTally(
            amz=self.amz + other.amz,
            fba=self.fba + other.fba,
            fbm=self.fbm + other.fbm,
        )

    def is_empty(self) -> bool:
        return self.amz == 0 and self.fba == 0 and self.fbm == 0

    def discounted(self) -> "DispatchTally":
        """Subtract one from every non-zero count, floored at zero."""
        return DispatchTally(
            amz=max(self.amz - 1, 0),
            fba=max(self.fba - 1, 0),
            fbm=max(self.fbm - 1, 0),
        )


class FulfillmentBreakdown(BaseModel):
    """Offer counts per dispatch type. `prime` is a 0/1 eligibility flag."""
    model_config = ConfigDict(frozen=True)

    amz: int = Field(default=0, ge=0)
    prime: int = Field(default=0, ge=0, le=1)
    fba: int = Field(default=0, ge=0)
    fbm: int = Field(default=0, ge=0)


class StockSummary(CamelModel):
    """Stock units across contributing offers, or from the main availability text."""
    total: int = Field(default=0, ge=0)
    raw_text: str = Field(default="", alias="rawText")
    method: StockMethod = StockMethod.MAIN_AVAILABILITY
    seller_count: int = Field(default=0, ge=0, alias="sellerCount")
    seller_details: List[SellerOffer] = Field(default_factory=list, alias="sellerDetails")


class RankFact(CamelModel):
    """Best-seller rank, formatted `#<grouped-number> in <category>`."""
    rank_text: str = Field(alias="rankText")


class ListingRecord(BaseModel):
    """
    Immutable result of one extraction for one identifier.

    This is the contract between the extraction core and the presentation
    layer; `to_output()` produces its JSON shape.
    """
    model_config = ConfigDict(frozen=True)

    asin: str = Field(pattern=r"^[A-Z0-9]{8,10}$")
    brand: str = ""
    rank_text: Optional[str] = None
    fulfillment_breakdown: FulfillmentBreakdown = Field(default_factory=FulfillmentBreakdown)
    stock: StockSummary = Field(default_factory=StockSummary)

    def to_output(self) -> dict:
        """JSON-ready dict; rank_text is omitted when absent."""
        data = self.model_dump(mode="json", by_alias=True)
        if data.get("rank_text") is None:
            data.pop("rank_text", None)
        return data

    def get_present_fields(self) -> List[str]:
        """Return list of facts that were found."""
        present = ["asin"]
        if self.brand:
            present.append("brand")
        if self.rank_text:
            present.append("rank_text")
        breakdown = self.fulfillment_breakdown
        if breakdown.amz or breakdown.fba or breakdown.fbm:
            present.append("fulfillment_breakdown")
        if self.stock.total:
            present.append("stock")
        return present

    def get_missing_fields(self) -> List[str]:
        """Return list of facts that fell back to their defaults."""
        present = self.get_present_fields()
        return [f for f in ["brand", "rank_text", "fulfillment_breakdown", "stock"] if f not in present]
