import pytest

from src.catalog import (
    ALL_JEWELLERY,
    GOLD_PRICE_RANGES,
    SILVER_PRICE_RANGES,
    CatalogFilters,
    PriceRange,
    SortKey,
    derive_view,
    matches_query,
    price_ranges_for,
)
from src.models import Metal, RateSnapshot
from src.offers import build_offer

RATES = RateSnapshot(gold=6000.0, silver=80.0)


def ids(products):
    return [product.id for product in products]


@pytest.fixture
def catalog(make_product):
    return [
        make_product(1, karat="22K", weight=10.0, making=5000.0, age_days=3, type="Necklace", gender="Women"),
        make_product(2, karat="18K", weight=2.0, making=1000.0, age_days=1, type="Ring", gender="Men"),
        make_product(3, metal=Metal.SILVER, weight=50.0, making=200.0, age_days=5, purity="92.5% Sterling Silver"),
        make_product(4, karat="22K", weight=2.0, making=1000.0, age_days=2, type="Ring", gender="Women"),
    ]


def test_best_match_keeps_input_order(catalog):
    assert ids(derive_view(catalog, CatalogFilters(), SortKey.BEST_MATCH, RATES)) == [1, 2, 3, 4]


def test_sort_by_price(catalog):
    assert ids(derive_view(catalog, CatalogFilters(), "price-low", RATES)) == [3, 2, 4, 1]
    assert ids(derive_view(catalog, CatalogFilters(), "price-high", RATES)) == [1, 4, 2, 3]


def test_price_sort_is_stable_for_ties(make_product):
    twins = [make_product(pid, karat="22K", weight=1.0, making=100.0) for pid in (7, 3, 5)]
    assert ids(derive_view(twins, CatalogFilters(), SortKey.PRICE_LOW, RATES)) == [7, 3, 5]
    assert ids(derive_view(twins, CatalogFilters(), SortKey.PRICE_HIGH, RATES)) == [7, 3, 5]


def test_newest_first(catalog):
    assert ids(derive_view(catalog, CatalogFilters(), SortKey.NEWEST, RATES)) == [2, 4, 1, 3]


def test_unknown_sort_key_raises(catalog):
    with pytest.raises(ValueError):
        derive_view(catalog, CatalogFilters(), "popular", RATES)


def test_filters_are_conjunctive(catalog):
    view = derive_view(catalog, CatalogFilters(type="Ring", karat="22K"), SortKey.BEST_MATCH, RATES)
    assert ids(view) == [4]


def test_unset_filters_and_all_jewellery_are_ignored(catalog):
    filters = CatalogFilters(category=ALL_JEWELLERY, gender=None, occasion="")
    assert filters.active_equality_filters() == {}
    assert ids(derive_view(catalog, filters, SortKey.BEST_MATCH, RATES)) == [1, 2, 3, 4]


def test_filtered_view_is_subset_in_input_order(catalog):
    view = derive_view(catalog, CatalogFilters(gender="Women"), SortKey.BEST_MATCH, RATES)
    assert ids(view) == [1, 4]
    assert all(product in catalog for product in view)


def test_price_range_filter(catalog):
    under_25k = PriceRange("Under 25k", 0, 25_000)
    view = derive_view(catalog, CatalogFilters(price_range=under_25k), SortKey.PRICE_LOW, RATES)
    assert ids(view) == [3, 2, 4]


def test_price_range_excludes_unavailable_prices(catalog):
    view = derive_view(catalog, CatalogFilters(price_range=GOLD_PRICE_RANGES[0]), SortKey.BEST_MATCH, RateSnapshot(silver=80.0))
    assert ids(view) == [3]


def test_offers_feed_price_sort(catalog):
    offers = {1: build_offer(catalog[0], 100)}
    view = derive_view(catalog, CatalogFilters(), SortKey.PRICE_HIGH, RATES, offers)
    assert ids(view) == [1, 4, 2, 3]
    cheap = derive_view(catalog, CatalogFilters(karat="22K"), SortKey.PRICE_LOW, RATES, offers)
    assert ids(cheap) == [4, 1]


def test_query_matches_name_description_and_category(make_product):
    piece = make_product(name="Kundan Choker", description="Bridal set with polki")
    assert matches_query(piece, "kundan")
    assert matches_query(piece, "POLKI")
    assert matches_query(piece, "gold")
    assert matches_query(piece, "  ")
    assert not matches_query(piece, "platinum")


def test_query_filter_in_view(catalog, make_product):
    products = catalog + [make_product(9, name="Kundan Choker")]
    view = derive_view(products, CatalogFilters(query="choker"), SortKey.BEST_MATCH, RATES)
    assert ids(view) == [9]


def test_price_ranges_for_category():
    assert price_ranges_for("Silver") is SILVER_PRICE_RANGES
    assert price_ranges_for("Gold") is GOLD_PRICE_RANGES
    assert price_ranges_for(None) is GOLD_PRICE_RANGES


def test_category_and_karat_filters_combine(make_product):
    products = [
        make_product(1, karat="22K", category="Gold"),
        make_product(2, karat="22K", category="Bridal"),
        make_product(3, karat="18K", category="Gold"),
        make_product(4, karat="22K", category="New Arrival"),
        make_product(5, karat="22K", category="Gold"),
    ]
    view = derive_view(products, CatalogFilters(category="Gold", karat="22K"), SortKey.BEST_MATCH, RATES)
    assert ids(view) == [1, 5]
