import sqlite3

import streamlit as st

from src.db import add_to_cart, toggle_favorite
from src.models import Offer, Product, RateSnapshot
from src.offers import apply_offer, offer_price
from src.pricing import format_price, is_price_available, price_breakdown


def product_tags(product: Product) -> str:
    tags = [product.karat or product.purity, product.type, f"{product.weight_grams:g} g"]
    if product.gemstone_type:
        tags.append(product.gemstone_type)
    if product.clarity:
        tags.append(product.clarity)
    return " · ".join(tag for tag in tags if tag)


def render_price(product: Product, rates: RateSnapshot, offer: Offer | None, currency_symbol: str) -> None:
    original, discounted = offer_price(product, rates, offer)
    if not is_price_available(original):
        st.markdown("**Price unavailable**")
        st.caption("Rates are being updated. Please check back shortly.")
        return

    if offer is not None and discounted < original:
        st.markdown(
            f"**{format_price(discounted, currency_symbol)}** "
            f"~~{format_price(original, currency_symbol)}~~"
        )
        st.caption(f"You save {offer.discount_percent}% on making charges")
    else:
        st.markdown(f"**{format_price(original, currency_symbol)}**")


def render_product_card(
    conn: sqlite3.Connection,
    product: Product,
    rates: RateSnapshot,
    offer: Offer | None,
    username: str,
    liked: bool,
    currency_symbol: str,
    key_prefix: str,
) -> None:
    with st.container(border=True):
        if product.image_data:
            st.image(product.image_data, caption=product.name, width=220)
        st.markdown(f"#### {product.name}")
        st.caption(product_tags(product))
        render_price(product, rates, offer, currency_symbol)
        with st.expander("Details"):
            if product.description:
                st.write(product.description)
            breakdown = price_breakdown(product, rates, apply_offer(product, offer))
            if breakdown["available"]:
                st.caption(
                    f"Metal value {currency_symbol}{breakdown['metal_value']:,.2f} "
                    f"({breakdown['weight_grams']:g} g at {currency_symbol}{breakdown['rate_per_gram']:,.2f}/g "
                    f"x {breakdown['purity_factor']:g}) + making {currency_symbol}{breakdown['making_charge']:,.2f}"
                )

        col_a, col_b = st.columns([3, 1])
        with col_a:
            if st.button("Add to cart", key=f"{key_prefix}_cart_{product.id}"):
                add_to_cart(conn, username, int(product.id))
                st.toast(f"{product.name} has been added to your cart")
        with col_b:
            if st.button("♥" if liked else "♡", key=f"{key_prefix}_like_{product.id}"):
                now_liked = toggle_favorite(conn, username, int(product.id))
                st.toast("Added to favorites" if now_liked else "Removed from favorites")
                st.rerun()
