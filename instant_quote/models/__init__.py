"""Models package initialization."""
from instant_quote.models.product import (
    FetchResult,
    FetchStrategy,
    ProductRecord,
    StructuredCandidate,
)
from instant_quote.models.quote import CostBreakdown, Dimensions, QuoteCalculation, QuoteLineItem

__all__ = [
    "FetchResult",
    "FetchStrategy",
    "ProductRecord",
    "StructuredCandidate",
    "CostBreakdown",
    "Dimensions",
    "QuoteCalculation",
    "QuoteLineItem",
]
