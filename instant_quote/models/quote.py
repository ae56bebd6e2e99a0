"""
Quote models for landed-cost calculation.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class Dimensions(BaseModel):
    """Package dimensions in inches."""
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)

    def volume_ft3(self) -> float:
        return (self.length * self.width * self.height) / 1728


class QuoteLineItem(BaseModel):
    """One product line going into a quote."""
    title: str = "Item"
    first_cost: float = Field(ge=0)  # unit price at the source
    qty: int = Field(default=1, ge=1)
    volume_ft3: Optional[float] = Field(default=None, gt=0)  # per unit
    dimensions: Optional[Dimensions] = None
    url: Optional[str] = None
    needs_manual_price: bool = False


class CostBreakdown(BaseModel):
    """Aggregate landed cost for all lines."""
    first_cost: float
    customs_cost: float
    delivery_cost: float
    entry_fees: float
    shipping_handling: float
    total: float


class QuoteCalculation(BaseModel):
    """Result of a landed-cost calculation."""
    items: List[QuoteLineItem]
    breakdown: CostBreakdown
    total_items: int
    total_volume: float
