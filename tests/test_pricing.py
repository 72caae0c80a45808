import pytest

from src.models import Metal, PriceOverrides, RateSnapshot
from src.pricing import (
    compute_price,
    display_price,
    format_indian_grouping,
    format_price,
    price_breakdown,
    purity_factor,
)

RATES = RateSnapshot(gold=6000.0, silver=80.0)


def test_gold_price_applies_karat_factor(make_product):
    ring = make_product(karat="22K")
    assert compute_price(ring, RATES) == pytest.approx(10 * 6000 * 0.916 + 5000)


def test_silver_price_applies_purity_factor(make_product):
    anklet = make_product(metal=Metal.SILVER, weight=100.0, making=500.0, purity="92.5% Sterling Silver")
    assert compute_price(anklet, RATES) == pytest.approx(100 * 80 * 0.925 + 500)


@pytest.mark.parametrize("karat, factor", [("14K", 0.583), ("18K", 0.75), ("22K", 0.916), ("24K", 1.0)])
def test_karat_factors(make_product, karat, factor):
    assert purity_factor(make_product(karat=karat)) == factor


def test_missing_or_unknown_purity_prices_as_pure(make_product):
    assert purity_factor(make_product()) == 1.0
    assert purity_factor(make_product(karat="9K")) == 1.0
    assert purity_factor(make_product(metal=Metal.SILVER, purity="80% silver")) == 1.0


@pytest.mark.parametrize("rates", [RateSnapshot(), RateSnapshot(gold=0.0, silver=80.0)])
def test_missing_rate_means_unavailable_even_with_making_charge(make_product, rates):
    ring = make_product(karat="22K", making=5000.0)
    assert compute_price(ring, rates) == 0
    assert format_price(compute_price(ring, rates)) == "Price unavailable"


def test_gold_rate_change_leaves_silver_prices_alone(make_product):
    anklet = make_product(metal=Metal.SILVER, weight=50.0, making=300.0, purity="99.9% Fine Silver")
    before = compute_price(anklet, RATES)
    after = compute_price(anklet, RateSnapshot(gold=9000.0, silver=80.0))
    assert before == after


def test_other_materials_use_stored_rate(make_product):
    solitaire = make_product(metal=Metal.OTHER, weight=0.5, making=2000.0, stored_rate=60000.0)
    assert compute_price(solitaire, RateSnapshot()) == pytest.approx(0.5 * 60000 + 2000)
    assert compute_price(make_product(metal=Metal.OTHER, stored_rate=None), RATES) == 0


def test_override_replaces_making_charge(make_product):
    ring = make_product(karat="24K", weight=1.0, making=1000.0)
    overrides = PriceOverrides(discounted_making_charge=400.0)
    assert compute_price(ring, RATES, overrides) == pytest.approx(6000 + 400)


def test_display_and_grouping():
    assert display_price(59959.6) == 59960
    assert format_price(59960.0) == "₹59,960"
    assert format_price(1234567.0, "Rs ") == "Rs 12,34,567"
    assert format_indian_grouping(999) == "999"
    assert format_indian_grouping(100000) == "1,00,000"
    assert format_indian_grouping(10000000) == "1,00,00,000"


def test_price_breakdown(make_product):
    ring = make_product(karat="18K", weight=2.0, making=800.0)
    breakdown = price_breakdown(ring, RATES)
    assert breakdown["metal_value"] == pytest.approx(2 * 6000 * 0.75)
    assert breakdown["total"] == pytest.approx(9800.0)
    assert breakdown["available"] is True

    unavailable = price_breakdown(ring, RateSnapshot())
    assert unavailable["available"] is False
    assert unavailable["rate_per_gram"] is None
    assert unavailable["metal_value"] == 0.0


def test_ten_grams_of_22k_gold(make_product):
    ring = make_product(karat="22K", weight=10.0, making=4000.0)
    price = compute_price(ring, RATES)
    assert price == pytest.approx(58960.0)
    assert format_price(price) == "₹58,960"


def test_half_unit_prices_round_up(make_product):
    coin = make_product(karat="24K", weight=0.5, making=0.0)
    price = compute_price(coin, RateSnapshot(gold=6001.0))
    assert price == 3000.5
    assert format_price(price) == "₹3,001"
    assert display_price(2.5) == 3
    assert display_price(2.4999) == 2
