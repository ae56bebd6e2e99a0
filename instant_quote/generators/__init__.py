"""Generators package initialization."""
from instant_quote.generators.quote_calculator import (
    QuoteCalculator,
    calculate_profit_margin,
    estimate_dimensions,
)

__all__ = ["QuoteCalculator", "calculate_profit_margin", "estimate_dimensions"]
