import sqlite3
from dataclasses import replace

import streamlit as st

from src.catalog import (
    ALL_JEWELLERY,
    CATEGORIES,
    CLARITIES,
    CUTS,
    GEMSTONE_TYPES,
    GENDERS,
    KARATS,
    OCCASIONS,
    SILVER_PURITIES,
    TYPES,
    CatalogFilters,
    SortKey,
    derive_view,
    price_ranges_for,
)
from src.db import favorite_product_ids, get_all_settings, get_offers_by_product, list_products
from src.rates import RateRegistry
from src.ui.components import render_product_card

ANY = "Any"
GRID_COLUMNS = 3


def _choice(label: str, options: list[str], key: str) -> str | None:
    selected = st.selectbox(label, [ANY] + options, key=key)
    return None if selected == ANY else selected


def _filter_widgets(collection: str) -> CatalogFilters:
    values: dict[str, object] = {}
    with st.expander("Filters", expanded=False):
        col1, col2, col3 = st.columns(3)
        with col1:
            values["type"] = _choice("Type", TYPES, "shop_type")
            if collection == "Silver":
                values["purity"] = _choice("Purity", SILVER_PURITIES, "shop_purity")
            else:
                values["karat"] = _choice("Karat", KARATS, "shop_karat")
        with col2:
            values["gender"] = _choice("Gender", GENDERS, "shop_gender")
            values["occasion"] = _choice("Occasion", OCCASIONS, "shop_occasion")
        with col3:
            if collection == "Diamond":
                values["clarity"] = _choice("Clarity", CLARITIES, "shop_clarity")
                values["cut"] = _choice("Cut", CUTS, "shop_cut")
            if collection == "Gemstone":
                values["gemstone_type"] = _choice("Gemstone", GEMSTONE_TYPES, "shop_gemstone")

        ranges = price_ranges_for(collection)
        labels = [ANY] + [price_range.label for price_range in ranges]
        selected_label = st.radio("Price range", labels, horizontal=True, key=f"shop_price_{collection}")
        price_range = next((r for r in ranges if r.label == selected_label), None)

    return CatalogFilters(category=collection, price_range=price_range, **values)


def render(conn: sqlite3.Connection, registry: RateRegistry, username: str) -> None:
    st.subheader("Shop")

    settings = get_all_settings(conn)
    top1, top2, top3 = st.columns([2, 3, 2])
    with top1:
        collection = st.selectbox("Collection", [ALL_JEWELLERY] + CATEGORIES, key="shop_collection")
    with top2:
        query = st.text_input("Search", placeholder="Search by name, description or category")
    with top3:
        sort_key = st.selectbox("Sort by", list(SortKey), format_func=lambda key: key.label)

    filters = _filter_widgets(collection)
    filters = replace(filters, query=query)

    products = list_products(conn)
    rates = registry.get_rates()
    offers = get_offers_by_product(conn)
    view = derive_view(products, filters, sort_key, rates, offers)

    if rates.gold is None or rates.silver is None:
        st.info("Some metal rates are not set yet; affected pieces show as price unavailable.")

    st.caption(f"Showing {len(view)} of {len(products)} pieces")
    if not view:
        st.info("No pieces match these filters.")
        return

    liked_ids = favorite_product_ids(conn, username)
    for start in range(0, len(view), GRID_COLUMNS):
        columns = st.columns(GRID_COLUMNS)
        for column, product in zip(columns, view[start : start + GRID_COLUMNS]):
            with column:
                render_product_card(
                    conn,
                    product,
                    rates,
                    offers.get(product.id),
                    username,
                    product.id in liked_ids,
                    settings["currency_symbol"],
                    key_prefix="shop",
                )
