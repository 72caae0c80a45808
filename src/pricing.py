import math
from typing import Any, Optional

from src.models import Metal, PriceOverrides, Product, RateSnapshot

KARAT_FACTORS: dict[str, float] = {
    "14K": 0.583,
    "18K": 0.75,
    "22K": 0.916,
    "24K": 1.0,
}

SILVER_PURITY_FACTORS: dict[str, float] = {
    "92.5% Sterling Silver": 0.925,
    "99.9% Fine Silver": 0.999,
}

# Zero doubles as "price unavailable"; callers must not render it as a price.
PRICE_UNAVAILABLE = 0.0


def round_money(value: float) -> float:
    return round(value, 2)


def purity_factor(product: Product) -> float:
    # Missing or unknown tags price as pure metal (24K / fine silver).
    if product.metal is Metal.SILVER:
        return SILVER_PURITY_FACTORS.get(product.purity or "", 1.0)
    return KARAT_FACTORS.get(product.karat or "", 1.0)


def base_rate(product: Product, rates: RateSnapshot) -> Optional[float]:
    if product.metal in (Metal.GOLD, Metal.SILVER):
        return rates.for_metal(product.metal)
    return product.stored_rate


def effective_making_charge(product: Product, overrides: Optional[PriceOverrides] = None) -> float:
    if overrides is not None and overrides.discounted_making_charge is not None:
        return overrides.discounted_making_charge
    return product.making_charge


def compute_price(
    product: Product,
    rates: RateSnapshot,
    overrides: Optional[PriceOverrides] = None,
) -> float:
    """
    Unrounded price of a product for the given rate snapshot.

    Returns PRICE_UNAVAILABLE when the product's rate is unknown or zero, even
    if the product carries a making charge.
    """
    rate = base_rate(product, rates)
    if not rate or rate < 0:
        return PRICE_UNAVAILABLE

    metal_value = product.weight_grams * rate * purity_factor(product)
    total = metal_value + effective_making_charge(product, overrides)
    return max(total, 0.0)


def display_price(value: float) -> int:
    # Ties round up, so 3000.5 displays as 3001.
    return int(math.floor(value + 0.5))


def is_price_available(value: float) -> bool:
    return value > PRICE_UNAVAILABLE


def format_price(value: float, currency_symbol: str = "₹") -> str:
    if not is_price_available(value):
        return "Price unavailable"
    return f"{currency_symbol}{format_indian_grouping(display_price(value))}"


def format_indian_grouping(amount: int) -> str:
    """Formats an integer with lakh/crore digit grouping, e.g. 1,00,000."""
    sign = "-" if amount < 0 else ""
    digits = str(abs(amount))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def price_breakdown(
    product: Product,
    rates: RateSnapshot,
    overrides: Optional[PriceOverrides] = None,
) -> dict[str, Any]:
    rate = base_rate(product, rates)
    factor = purity_factor(product)
    total = compute_price(product, rates, overrides)
    available = is_price_available(total)
    metal_value = product.weight_grams * rate * factor if available and rate else 0.0
    making_charge = effective_making_charge(product, overrides)

    return {
        "rate_per_gram": round_money(rate) if rate else None,
        "purity_factor": factor,
        "weight_grams": round_money(product.weight_grams),
        "metal_value": round_money(metal_value),
        "making_charge": round_money(making_charge),
        "original_making_charge": round_money(product.making_charge),
        "total": round_money(total),
        "display_total": display_price(total),
        "available": available,
    }
