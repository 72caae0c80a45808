from numbers import Integral, Real
from typing import Any

from src.models import Offer, PriceOverrides, Product, RateSnapshot
from src.pricing import compute_price, round_money


class InvalidDiscountError(ValueError):
    """Raised when an offer's discount percent is not an integer in [0, 100]."""


def validate_discount_percent(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidDiscountError("Discount must be a whole number between 0 and 100.")
    if not isinstance(value, Integral):
        if not float(value).is_integer():
            raise InvalidDiscountError("Discount must be a whole number between 0 and 100.")
        value = int(value)
    if value < 0 or value > 100:
        raise InvalidDiscountError(f"Discount must be between 0 and 100 (got {value}).")
    return int(value)


def build_offer(product: Product, discount_percent: Any) -> Offer:
    """
    Builds the offer record for a product.

    The discounted making charge is computed here, once, and stored with the
    offer. Later edits to the product's making charge do not move it.
    """
    if product.id is None:
        raise ValueError("Cannot create an offer for an unsaved product.")

    percent = validate_discount_percent(discount_percent)
    discounted = product.making_charge * (1 - percent / 100)
    return Offer(
        product_id=product.id,
        discount_percent=percent,
        discounted_making_charge=min(round_money(discounted), product.making_charge),
    )


def apply_offer(product: Product, offer: Offer | None) -> PriceOverrides:
    if offer is None or offer.product_id != product.id:
        return PriceOverrides()
    return PriceOverrides(discounted_making_charge=offer.discounted_making_charge)


def offer_price(product: Product, rates: RateSnapshot, offer: Offer | None) -> tuple[float, float]:
    """Returns (original_price, offer_price); both are 0 when the rate is unavailable."""
    original = compute_price(product, rates)
    discounted = compute_price(product, rates, apply_offer(product, offer))
    return original, discounted
