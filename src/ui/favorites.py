import sqlite3

import streamlit as st

from src.db import clear_favorites, get_all_settings, get_offers_by_product, list_favorites
from src.rates import RateRegistry
from src.ui.components import render_product_card


def render(conn: sqlite3.Connection, registry: RateRegistry, username: str) -> None:
    st.subheader("Favorites")

    favorites = list_favorites(conn, username)
    if not favorites:
        st.info("No favorites yet. Tap ♡ on any piece to save it here.")
        return

    settings = get_all_settings(conn)
    rates = registry.get_rates()
    offers = get_offers_by_product(conn)

    for start in range(0, len(favorites), 3):
        columns = st.columns(3)
        for column, favorite in zip(columns, favorites[start : start + 3]):
            with column:
                render_product_card(
                    conn,
                    favorite.product,
                    rates,
                    offers.get(favorite.product.id),
                    username,
                    True,
                    settings["currency_symbol"],
                    key_prefix="fav",
                )

    if st.button("Clear favorites", type="secondary"):
        removed = clear_favorites(conn, username)
        st.success(f"Removed {removed} favorites.")
        st.rerun()
