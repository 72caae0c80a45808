import sqlite3

import pandas as pd
import streamlit as st

from src.cart import GST_RATE, cart_summary, line_total
from src.db import clear_cart, get_all_settings, get_offers_by_product, list_cart_lines, remove_cart_line, update_cart_quantity
from src.pricing import format_price
from src.rates import RateRegistry


def render(conn: sqlite3.Connection, registry: RateRegistry, username: str) -> None:
    st.subheader("Cart")

    settings = get_all_settings(conn)
    symbol = settings["currency_symbol"]
    lines = list_cart_lines(conn, username)
    if not lines:
        st.info("Your cart is empty. Browse the shop to add pieces.")
        return

    rates = registry.get_rates()
    offers = get_offers_by_product(conn)

    rows = [
        {
            "Item": line.product.name,
            "Category": line.product.category,
            "Quantity": line.quantity,
            "Line total": format_price(line_total(line, rates, offers), symbol),
        }
        for line in lines
    ]
    st.dataframe(pd.DataFrame(rows), width="stretch", hide_index=True)

    summary = cart_summary(lines, rates, offers)
    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Items", summary["total_items"])
    c2.metric("Subtotal", format_price(summary["subtotal"], symbol))
    c3.metric(f"GST ({GST_RATE:.0%})", f"{symbol}{summary['tax']:,.2f}")
    c4.metric("Shipping", "FREE")
    c5.metric("Total", format_price(summary["total"], symbol))
    if not summary["complete"]:
        st.warning(
            f"{summary['unavailable_lines']} item(s) have no price at the current rates and are not in the total."
        )

    st.markdown("### Update cart")
    selected_id = st.selectbox(
        "Item",
        options=[line.id for line in lines],
        format_func=lambda cart_id: next(line.product.name for line in lines if line.id == cart_id),
    )
    selected = next(line for line in lines if line.id == selected_id)

    with st.form("cart_quantity_form"):
        quantity = st.number_input("Quantity", min_value=0, max_value=99, value=selected.quantity, step=1)
        save_quantity = st.form_submit_button("Update quantity", type="primary")

    col_a, col_b = st.columns([1, 4])
    with col_a:
        remove_click = st.button("Remove item")
    with col_b:
        clear_click = st.button("Clear cart", type="secondary")

    if save_quantity:
        update_cart_quantity(conn, username, selected_id, int(quantity))
        st.success("Cart updated." if quantity else "Item removed from your cart.")
        st.rerun()

    if remove_click:
        remove_cart_line(conn, username, selected_id)
        st.success("Item removed from your cart.")
        st.rerun()

    if clear_click:
        clear_cart(conn, username)
        st.success("All items have been removed from your cart.")
        st.rerun()

    st.caption("Online checkout is not available yet. Visit the store or schedule a visit to purchase.")
