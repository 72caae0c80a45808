import logging
import os
import sqlite3
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

from src.auth import authenticate_user, create_user, is_admin
from src.db import get_all_settings, get_connection, get_db_path, init_db
from src.models import Metal, RateSnapshot
from src.providers.metals_api import sync_market_rates
from src.rates import RateFetchError, RateRegistry, store_rate_fetcher
from src.ui import admin, cart, favorites, guides, offers, profile, rates_board, shop, testimonials


# Load environment variables from local .env file.
load_dotenv(dotenv_path=Path(__file__).parent / ".env")

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="[%(asctime)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


st.set_page_config(page_title="Jewellery Store", page_icon="💍", layout="wide")


@st.cache_resource
def get_rate_registry() -> RateRegistry:
    registry = RateRegistry(store_rate_fetcher(get_db_path()))
    try:
        registry.refresh()
    except RateFetchError:
        logger.warning("Starting without metal rates; prices show as unavailable until rates load")
    return registry


def _render_auth_gate(conn: sqlite3.Connection) -> bool:
    if "auth_username" not in st.session_state:
        st.session_state["auth_username"] = None

    if st.session_state["auth_username"]:
        return True

    st.subheader("Sign in")
    st.caption("Create an account or log in to shop, save favorites and keep a cart.")

    login_tab, signup_tab = st.tabs(["Login", "Sign up"])

    with login_tab:
        with st.form("login_form"):
            login_username = st.text_input("Username", key="login_username")
            login_password = st.text_input("Password", type="password", key="login_password")
            login_submit = st.form_submit_button("Log in", type="primary")
        if login_submit:
            authenticated_username = authenticate_user(conn, login_username, login_password)
            if authenticated_username:
                st.session_state["auth_username"] = authenticated_username
                st.success("Logged in successfully.")
                st.rerun()
            else:
                st.error("Invalid username or password.")

    with signup_tab:
        with st.form("signup_form"):
            signup_name = st.text_input("Full name", key="signup_name")
            signup_username = st.text_input("Username", key="signup_username")
            signup_password = st.text_input("Password", type="password", key="signup_password")
            signup_submit = st.form_submit_button("Create account", type="primary")
        if signup_submit:
            created, message = create_user(conn, signup_username, signup_password, signup_name)
            if created:
                st.session_state["auth_username"] = message
                st.success("Account created and logged in.")
                st.rerun()
            else:
                st.error(message)

    return False


def _watch_rates(registry: RateRegistry) -> dict:
    """Subscribes this session to rate changes once; the flag is read on the next rerun."""
    watch = st.session_state.get("rate_watch")
    if watch is None:
        watch = {"changed": False, "subscription": None}

        def on_change(snapshot: RateSnapshot) -> None:
            watch["changed"] = True

        watch["subscription"] = registry.subscribe(on_change)
        st.session_state["rate_watch"] = watch
    return watch


def _end_session() -> None:
    watch = st.session_state.pop("rate_watch", None)
    if watch and watch["subscription"] is not None:
        watch["subscription"].unsubscribe()
    st.session_state["auth_username"] = None


def main() -> None:
    st.title("💍 Jewellery Store")
    st.caption("Live gold and silver pricing on every piece")

    conn = get_connection()
    init_db(conn)

    if not _render_auth_gate(conn):
        return

    username = str(st.session_state["auth_username"])
    admin_user = is_admin(conn, username)
    settings = get_all_settings(conn)
    registry = get_rate_registry()

    if os.getenv("PRICE_PROVIDER"):
        _, warning = sync_market_rates(conn)
        if warning:
            st.sidebar.warning(warning)

    watch = _watch_rates(registry)
    try:
        registry.refresh_if_stale(float(settings["rate_refresh_seconds"]))
    except RateFetchError as exc:
        st.sidebar.warning(f"{exc}. Prices use the last known rates.")

    if watch["changed"]:
        watch["changed"] = False
        st.toast("Metal rates were updated; prices reflect the latest rates.")

    st.sidebar.caption(f"Signed in: {username}" + (" (admin)" if admin_user else ""))
    rates = registry.get_rates()
    symbol = settings["currency_symbol"]
    for metal in (Metal.GOLD, Metal.SILVER):
        value = rates.for_metal(metal)
        st.sidebar.caption(f"{metal.value.title()}: " + (f"{symbol}{value:,.2f}/g" if value else "rate unavailable"))

    if st.sidebar.button("Log out"):
        _end_session()
        st.rerun()

    pages = ["Shop", "Offers", "Cart", "Favorites", "Today's Rates", "Guides", "Testimonials", "Profile"]
    if admin_user:
        pages.append("Admin")
    page = st.sidebar.radio("Navigate", pages)

    if page == "Shop":
        shop.render(conn, registry, username)
    elif page == "Offers":
        offers.render(conn, registry, username, admin=admin_user)
    elif page == "Cart":
        cart.render(conn, registry, username)
    elif page == "Favorites":
        favorites.render(conn, registry, username)
    elif page == "Today's Rates":
        rates_board.render(conn, registry)
    elif page == "Guides":
        guides.render()
    elif page == "Testimonials":
        testimonials.render(conn, admin=admin_user)
    elif page == "Profile":
        if profile.render(conn, username):
            _end_session()
            st.success("Account deleted.")
            st.rerun()
    elif page == "Admin":
        admin.render(conn, registry)


if __name__ == "__main__":
    main()
