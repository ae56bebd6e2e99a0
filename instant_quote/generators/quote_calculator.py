"""
Quote Calculator for the Instant Quote extractor.
Derives a landed-cost breakdown (duty, freight, entry fees, margin) from
product prices and shipment volumes.
"""
from typing import Dict, List

from instant_quote.models.quote import CostBreakdown, QuoteCalculation, QuoteLineItem
from instant_quote.utils.logger import LayerLogger


CUSTOMS_DUTY_RATE = 0.265
ENTRY_FEE_PER_ITEM = 8.0
CONTAINER_COST = 6000.0  # 20ft container
CONTAINER_VOLUME_FT3 = 1165.0
DEFAULT_VOLUME_FT3 = 11.33


def calculate_profit_margin(unit_price: float, volume_ft3: float) -> float:
    """
    Margin rate for one line.

    Higher-value items carry a lower margin; bulky items are capped so
    freight does not get marked up twice.
    """
    if unit_price > 5000:
        margin = 0.15
    elif unit_price > 3000:
        margin = 0.20
    elif unit_price > 1000:
        margin = 0.25
    elif unit_price > 500:
        margin = 0.30
    else:
        margin = 0.40

    if volume_ft3 > 50:
        margin = min(margin, 0.20)
    elif volume_ft3 > 20:
        margin = min(margin, 0.25)

    return margin


def _dims(length: float, width: float, height: float) -> Dict[str, float]:
    return {"length": length, "width": width, "height": height}


def estimate_dimensions(title: str, price: float) -> Dict[str, float]:
    """Rough package dimensions (inches) from title keywords or price band."""
    lowered = (title or "").lower()

    if "sofa" in lowered or "couch" in lowered:
        return _dims(84, 36, 32)
    if "chair" in lowered:
        return _dims(30, 30, 32)
    if "table" in lowered:
        if "dining" in lowered:
            return _dims(72, 36, 30)
        return _dims(48, 24, 30)
    if "bed" in lowered:
        if "king" in lowered:
            return _dims(80, 76, 14)
        if "queen" in lowered:
            return _dims(80, 60, 14)
        return _dims(75, 54, 14)  # full/twin
    if "dresser" in lowered or "cabinet" in lowered:
        return _dims(60, 18, 32)

    if price > 2000:
        return _dims(60, 30, 30)
    if price > 500:
        return _dims(36, 24, 24)
    return _dims(24, 18, 12)


class QuoteCalculator:
    """Landed-cost calculator for a list of quote lines."""

    def __init__(self):
        self.logger = LayerLogger("quote_calculator")

    def unit_volume(self, item: QuoteLineItem) -> float:
        """Per-unit volume: explicit, from dimensions, or the default."""
        if item.volume_ft3:
            return item.volume_ft3
        if item.dimensions:
            return item.dimensions.volume_ft3()
        return DEFAULT_VOLUME_FT3

    def calculate(self, items: List[QuoteLineItem]) -> QuoteCalculation:
        total_first_cost = 0.0
        total_volume = 0.0
        for item in items:
            total_first_cost += item.first_cost * item.qty
            total_volume += self.unit_volume(item) * item.qty

        customs_cost = total_first_cost * CUSTOMS_DUTY_RATE
        entry_fees = len(items) * ENTRY_FEE_PER_ITEM
        delivery_cost = CONTAINER_COST * (total_volume / CONTAINER_VOLUME_FT3)

        # Margin applies to each line's landed cost
        shipping_handling = 0.0
        for item in items:
            value = item.first_cost * item.qty
            line_volume = self.unit_volume(item) * item.qty
            line_delivery = delivery_cost * (line_volume / total_volume) if total_volume else 0.0
            landed = value + value * CUSTOMS_DUTY_RATE + line_delivery + ENTRY_FEE_PER_ITEM
            shipping_handling += landed * calculate_profit_margin(
                item.first_cost, self.unit_volume(item)
            )

        total = total_first_cost + customs_cost + delivery_cost + entry_fees + shipping_handling

        breakdown = CostBreakdown(
            first_cost=round(total_first_cost, 2),
            customs_cost=round(customs_cost, 2),
            delivery_cost=round(delivery_cost, 2),
            entry_fees=round(entry_fees, 2),
            shipping_handling=round(shipping_handling, 2),
            total=round(total, 2),
        )

        self.logger.log_action(
            "quote_calculated",
            "completed",
            lines=len(items),
            total_volume=round(total_volume, 2),
            total=breakdown.total,
        )

        return QuoteCalculation(
            items=items,
            breakdown=breakdown,
            total_items=len(items),
            total_volume=round(total_volume, 2),
        )
