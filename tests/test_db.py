import pandas as pd
import pytest

from src.db import (
    add_product,
    add_review,
    add_to_cart,
    add_visit_request,
    average_rating,
    cart_counts_by_product,
    clear_cart,
    delete_product,
    favorite_counts_by_product,
    favorite_product_ids,
    get_all_settings,
    get_metal_rate_rows,
    get_metal_rates,
    get_offers_by_product,
    get_product,
    import_products_from_df,
    init_db,
    list_cart_lines,
    list_favorites,
    list_offers,
    list_products,
    list_reviews,
    list_visit_requests,
    save_settings,
    toggle_favorite,
    update_cart_quantity,
    update_product,
    upsert_metal_rates,
    upsert_offer,
)
from src.models import Metal, Offer
from src.offers import InvalidDiscountError, build_offer


def record(**overrides):
    data = {
        "name": "Classic Band",
        "category": "Gold",
        "metal": "gold",
        "karat": "22K",
        "type": "Ring",
        "weight_grams": 5.0,
        "making_charge": 1500,
    }
    data.update(overrides)
    return data


def test_init_db_is_idempotent(conn):
    init_db(conn)
    assert get_all_settings(conn)["currency_code"] == "INR"


def test_settings_round_trip(conn):
    settings = get_all_settings(conn)
    settings.update({"currency_code": "usd", "currency_symbol": "$", "rate_refresh_seconds": 15})
    save_settings(conn, settings)

    saved = get_all_settings(conn)
    assert saved["currency_code"] == "USD"
    assert saved["currency_symbol"] == "$"
    assert saved["rate_refresh_seconds"] == 15


def test_metal_rates_upsert(conn):
    assert get_metal_rates(conn) == {"gold": None, "silver": None}

    upsert_metal_rates(conn, {"Gold": 6000, "silver": "80.5"})
    upsert_metal_rates(conn, {"gold": 6100}, source="goldapi")

    assert get_metal_rates(conn) == {"gold": 6100.0, "silver": 80.5}
    rows = get_metal_rate_rows(conn)
    assert rows["gold"]["source"] == "goldapi"
    assert rows["silver"]["source"] == "admin"


@pytest.mark.parametrize("bad", [{"platinum": 10}, {"gold": -1}, {"gold": float("nan")}, {"gold": "abc"}])
def test_invalid_rates_write_nothing(conn, bad):
    with pytest.raises(ValueError):
        upsert_metal_rates(conn, {"silver": 80, **bad})
    assert get_metal_rates(conn) == {"gold": None, "silver": None}


def test_product_crud(conn):
    product_id = add_product(conn, record(metal=" GOLD ", description="  "))
    product = get_product(conn, product_id)
    assert product.metal is Metal.GOLD
    assert product.description is None
    assert product.created_at is not None

    update_product(conn, product_id, record(name="Wide Band", making_charge=2000))
    assert get_product(conn, product_id).name == "Wide Band"
    assert get_product(conn, product_id).making_charge == 2000.0

    delete_product(conn, product_id)
    assert get_product(conn, product_id) is None


@pytest.mark.parametrize(
    "overrides",
    [{"name": ""}, {"category": None}, {"weight_grams": -1}, {"making_charge": -5}, {"stored_rate": -2}],
)
def test_product_validation(conn, overrides):
    with pytest.raises(ValueError):
        add_product(conn, record(**overrides))


def test_list_products_newest_first_and_by_category(conn):
    first = add_product(conn, record(name="Old"))
    second = add_product(conn, record(name="New", category="Silver", metal="silver"))
    assert [p.id for p in list_products(conn)] == [second, first]
    assert [p.id for p in list_products(conn, "Silver")] == [second]


def test_import_products_from_dataframe(conn):
    df = pd.DataFrame(
        [
            {"name": "Chain", "category": "Gold", "metal": "gold", "weight_grams": 8, "making_charge": 900, "karat": None},
            {"name": "Toe Ring", "category": "Silver", "metal": "silver", "weight_grams": 3, "making_charge": 50, "karat": None},
        ]
    )
    assert import_products_from_df(conn, df) == 2
    assert {p.name for p in list_products(conn)} == {"Chain", "Toe Ring"}

    with pytest.raises(ValueError):
        import_products_from_df(conn, pd.DataFrame([{"name": "No category"}]))


def test_one_offer_per_product(conn):
    product_id = add_product(conn, record(making_charge=1000))
    product = get_product(conn, product_id)

    upsert_offer(conn, build_offer(product, 10))
    upsert_offer(conn, build_offer(product, 25))

    offers = list_offers(conn)
    assert len(offers) == 1
    offer, offered_product = offers[0]
    assert offer.discount_percent == 25
    assert offer.discounted_making_charge == 750.0
    assert offered_product.id == product_id
    assert get_offers_by_product(conn)[product_id].discount_percent == 25


@pytest.mark.parametrize(
    "bad_offer",
    [
        {"discount_percent": 150, "discounted_making_charge": -500.0},
        {"discount_percent": 10, "discounted_making_charge": -1.0},
        {"discount_percent": 10, "discounted_making_charge": 1200.0},
        {"discount_percent": 10, "discounted_making_charge": float("nan")},
    ],
)
def test_invalid_offer_write_leaves_table_unchanged(conn, bad_offer):
    product_id = add_product(conn, record(making_charge=1000))
    upsert_offer(conn, build_offer(get_product(conn, product_id), 25))

    with pytest.raises(ValueError):
        upsert_offer(conn, Offer(product_id=product_id, **bad_offer))

    offers = get_offers_by_product(conn)
    assert len(offers) == 1
    assert offers[product_id].discount_percent == 25
    assert offers[product_id].discounted_making_charge == 750.0


def test_out_of_range_discount_is_an_invalid_discount(conn):
    product_id = add_product(conn, record(making_charge=1000))
    with pytest.raises(InvalidDiscountError):
        upsert_offer(conn, Offer(product_id=product_id, discount_percent=101, discounted_making_charge=0.0))
    assert list_offers(conn) == []


def test_offer_for_missing_product_is_rejected(conn):
    with pytest.raises(ValueError):
        upsert_offer(conn, Offer(product_id=999, discount_percent=10, discounted_making_charge=0.0))


def test_deleting_product_removes_its_offer_and_cart_lines(conn):
    product_id = add_product(conn, record())
    upsert_offer(conn, build_offer(get_product(conn, product_id), 10))
    add_to_cart(conn, "asha", product_id)

    delete_product(conn, product_id)

    assert list_offers(conn) == []
    assert list_cart_lines(conn, "asha") == []


def test_cart_quantities(conn):
    product_id = add_product(conn, record())
    add_to_cart(conn, "asha", product_id)
    add_to_cart(conn, "asha", product_id, 2)

    lines = list_cart_lines(conn, "asha")
    assert len(lines) == 1
    assert lines[0].quantity == 3

    update_cart_quantity(conn, "asha", lines[0].id, 0)
    assert list_cart_lines(conn, "asha") == []

    with pytest.raises(ValueError):
        add_to_cart(conn, "asha", product_id, 0)

    add_to_cart(conn, "asha", product_id)
    assert clear_cart(conn, "asha") == 1


def test_toggle_favorite_tracks_likes(conn):
    product_id = add_product(conn, record())

    assert toggle_favorite(conn, "asha", product_id) is True
    assert toggle_favorite(conn, "ravi", product_id) is True
    assert get_product(conn, product_id).likes == 2
    assert favorite_product_ids(conn, "asha") == {product_id}
    assert [f.product.id for f in list_favorites(conn, "asha")] == [product_id]

    assert toggle_favorite(conn, "asha", product_id) is False
    assert get_product(conn, product_id).likes == 1
    assert favorite_product_ids(conn, "asha") == set()


def test_reviews(conn):
    assert average_rating(conn) is None
    add_review(conn, "Meera", "Chennai", 5, "Lovely bangles")
    add_review(conn, "Karan", "Pune", 4, "Quick delivery", phone="9876543210")

    assert average_rating(conn) == pytest.approx(4.5)
    assert {review.name for review in list_reviews(conn)} == {"Meera", "Karan"}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "M"},
        {"location": ""},
        {"rating": 6},
        {"comment": "ok"},
        {"comment": "x" * 501},
        {"phone": "12345"},
    ],
)
def test_review_validation(conn, kwargs):
    values = {"name": "Meera", "location": "Chennai", "rating": 5, "comment": "Lovely bangles"}
    values.update(kwargs)
    with pytest.raises(ValueError):
        add_review(conn, **values)


def test_visit_requests(conn):
    add_visit_request(conn, {"name": "Meera", "phone": "9876543210", "visit_date": "2024-06-02", "visit_time": "11:00"})
    with pytest.raises(ValueError):
        add_visit_request(conn, {"name": "Meera", "phone": "98765", "visit_date": "2024-06-02", "visit_time": "11:00"})

    rows = list_visit_requests(conn)
    assert len(rows) == 1
    assert rows[0]["email"] is None


def test_cart_and_favorite_counts_by_product(conn):
    necklace = add_product(conn, record(name="Necklace"))
    band = add_product(conn, record(name="Band"))
    add_product(conn, record(name="Unloved"))

    add_to_cart(conn, "asha", necklace, 2)
    add_to_cart(conn, "ravi", necklace)
    add_to_cart(conn, "ravi", band)
    toggle_favorite(conn, "asha", band)
    toggle_favorite(conn, "ravi", band)
    toggle_favorite(conn, "ravi", necklace)

    carts = [(row["name"], row["carts"], row["quantity"]) for row in cart_counts_by_product(conn)]
    assert carts == [("Necklace", 2, 3), ("Band", 1, 1)]

    favorites = [(row["name"], row["favorites"]) for row in favorite_counts_by_product(conn)]
    assert favorites == [("Band", 2), ("Necklace", 1)]


def test_counts_are_empty_without_activity(conn):
    add_product(conn, record())
    assert cart_counts_by_product(conn) == []
    assert favorite_counts_by_product(conn) == []
