import sqlite3

import streamlit as st

from src.db import delete_offer, favorite_product_ids, get_all_settings, list_offers
from src.rates import RateRegistry
from src.ui.components import render_product_card


def render(conn: sqlite3.Connection, registry: RateRegistry, username: str, admin: bool = False) -> None:
    st.subheader("Offers")
    st.caption("Discounts apply to making charges only; metal value always follows the live rate.")

    offers = list_offers(conn)
    if not offers:
        st.info("No offers running right now.")
        return

    settings = get_all_settings(conn)
    rates = registry.get_rates()
    liked_ids = favorite_product_ids(conn, username)

    for start in range(0, len(offers), 3):
        columns = st.columns(3)
        for column, (offer, product) in zip(columns, offers[start : start + 3]):
            with column:
                st.markdown(f"🏷️ **{offer.discount_percent}% off making charges**")
                render_product_card(
                    conn,
                    product,
                    rates,
                    offer,
                    username,
                    product.id in liked_ids,
                    settings["currency_symbol"],
                    key_prefix="offer",
                )
                if admin and st.button("Delete offer", key=f"delete_offer_{product.id}"):
                    delete_offer(conn, int(product.id))
                    st.success("Offer deleted.")
                    st.rerun()
