from typing import Any, Mapping, Optional

from src.catalog import effective_price
from src.models import CartLine, Offer, RateSnapshot
from src.pricing import is_price_available, round_money

GST_RATE = 0.03


def line_total(line: CartLine, rates: RateSnapshot, offers: Optional[Mapping[int, Offer]] = None) -> float:
    return effective_price(line.product, rates, offers) * line.quantity


def cart_summary(
    lines: list[CartLine],
    rates: RateSnapshot,
    offers: Optional[Mapping[int, Offer]] = None,
) -> dict[str, Any]:
    """
    Totals the cart at the current rates, with GST on top of the subtotal.

    Lines whose price is unavailable are counted separately and left out of
    the subtotal and the tax, so the total is flagged incomplete rather than
    understated. Shipping is free.
    """
    subtotal = 0.0
    unavailable = 0
    for line in lines:
        amount = line_total(line, rates, offers)
        if is_price_available(amount):
            subtotal += amount
        else:
            unavailable += 1

    tax = subtotal * GST_RATE
    return {
        "total_items": sum(line.quantity for line in lines),
        "subtotal": round_money(subtotal),
        "tax": round_money(tax),
        "shipping": 0.0,
        "total": round_money(subtotal + tax),
        "unavailable_lines": unavailable,
        "complete": unavailable == 0,
    }
