import sqlite3

import streamlit as st

from src.db import get_all_settings, save_settings


def render(conn: sqlite3.Connection) -> None:
    st.markdown("### Store settings")

    current = get_all_settings(conn)

    with st.form("settings_form"):
        col1, col2 = st.columns(2)
        with col1:
            currency_code = st.text_input("Currency code", value=current["currency_code"], max_chars=3)
            currency_symbol = st.text_input("Currency symbol", value=current["currency_symbol"], max_chars=3)
            troy_oz_to_grams = st.number_input(
                "Troy oz to grams conversion",
                min_value=0.0001,
                value=float(current["troy_oz_to_grams"]),
                step=0.0001,
                format="%.7f",
            )

        with col2:
            cache_ttl = st.number_input(
                "Market rate refresh age (minutes)",
                min_value=1,
                max_value=1440,
                value=int(current["rate_cache_ttl_minutes"]),
                step=1,
                help="Market sync skips the provider while stored rates are younger than this.",
            )
            refresh_seconds = st.number_input(
                "Storefront rate check interval (seconds)",
                min_value=5,
                max_value=3600,
                value=int(current["rate_refresh_seconds"]),
                step=5,
            )

        submitted = st.form_submit_button("Save settings", type="primary")

    if submitted:
        if len(currency_code.strip()) != 3:
            st.error("Currency code must be a 3-letter ISO code.")
            return
        save_settings(
            conn,
            {
                "currency_code": currency_code,
                "currency_symbol": currency_symbol,
                "troy_oz_to_grams": troy_oz_to_grams,
                "rate_cache_ttl_minutes": cache_ttl,
                "rate_refresh_seconds": refresh_seconds,
            },
        )
        st.success("Settings saved.")
