import logging
import sqlite3

import pandas as pd
import streamlit as st

from src.catalog import CATEGORIES, CLARITIES, CUTS, GEMSTONE_TYPES, GENDERS, KARATS, OCCASIONS, SILVER_PURITIES, TYPES
from src.db import (
    CSV_PRODUCT_COLUMNS,
    add_product,
    cart_counts_by_product,
    delete_product,
    favorite_counts_by_product,
    get_all_settings,
    get_metal_rates,
    get_offers_by_product,
    import_products_from_df,
    list_products,
    list_visit_requests,
    update_product,
    upsert_offer,
)
from src.models import Metal, Product
from src.offers import InvalidDiscountError, build_offer, offer_price
from src.pricing import format_price
from src.providers.metals_api import sync_market_rates
from src.rates import RateFetchError, RateRegistry, update_rates
from src.ui import settings as settings_page

logger = logging.getLogger(__name__)

NONE = "-"
METALS = [metal.value for metal in Metal]


def _optional(value: str) -> str | None:
    return None if value in (NONE, "") else value


def _select(label: str, options: list[str], current: str | None, key: str) -> str:
    choices = [NONE] + options
    index = choices.index(current) if current in choices else 0
    return st.selectbox(label, choices, index=index, key=key)


def _uploaded_image_payload(uploaded_file) -> dict[str, object] | None:
    if uploaded_file is None:
        return None
    return {
        "image_name": uploaded_file.name,
        "image_mime": uploaded_file.type or "application/octet-stream",
        "image_data": uploaded_file.getvalue(),
    }


def _product_fields(prefix: str, current: Product | None) -> dict[str, object]:
    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input("Name", value=current.name if current else "", key=f"{prefix}_name")
        category = _select("Category", CATEGORIES, current.category if current else None, f"{prefix}_category")
        metal = st.selectbox(
            "Metal",
            METALS,
            index=METALS.index(current.metal.value) if current else 0,
            key=f"{prefix}_metal",
            help="Gold and silver follow the live rate; other materials use the stored rate.",
        )
        karat = _select("Karat", KARATS, current.karat if current else None, f"{prefix}_karat")
        purity = _select("Silver purity", SILVER_PURITIES, current.purity if current else None, f"{prefix}_purity")
        item_type = _select("Type", TYPES, current.type if current else None, f"{prefix}_type")
    with col2:
        weight = st.number_input(
            "Weight (g)", min_value=0.0, value=float(current.weight_grams) if current else 0.0, step=0.1, key=f"{prefix}_weight"
        )
        making = st.number_input(
            "Making charge",
            min_value=0.0,
            value=float(current.making_charge) if current else 0.0,
            step=100.0,
            key=f"{prefix}_making",
        )
        stored_rate = st.number_input(
            "Stored rate (per gram or carat)",
            min_value=0.0,
            value=float(current.stored_rate or 0.0) if current else 0.0,
            step=100.0,
            key=f"{prefix}_stored_rate",
            help="Used for diamonds, gemstones and other materials without a live rate.",
        )
        carat_weight = st.number_input(
            "Carat weight",
            min_value=0.0,
            value=float(current.carat_weight or 0.0) if current else 0.0,
            step=0.01,
            key=f"{prefix}_carat",
        )
        gender = _select("Gender", GENDERS, current.gender if current else None, f"{prefix}_gender")
        occasion = _select("Occasion", OCCASIONS, current.occasion if current else None, f"{prefix}_occasion")
    with col3:
        clarity = _select("Clarity", CLARITIES, current.clarity if current else None, f"{prefix}_clarity")
        cut = _select("Cut", CUTS, current.cut if current else None, f"{prefix}_cut")
        gemstone = _select("Gemstone", GEMSTONE_TYPES, current.gemstone_type if current else None, f"{prefix}_gemstone")
        description = st.text_area(
            "Description", value=(current.description or "") if current else "", key=f"{prefix}_description"
        )

    return {
        "name": name,
        "category": _optional(category),
        "metal": metal,
        "karat": _optional(karat),
        "purity": _optional(purity),
        "type": _optional(item_type),
        "weight_grams": weight,
        "making_charge": making,
        "stored_rate": stored_rate or None,
        "carat_weight": carat_weight or None,
        "gender": _optional(gender),
        "occasion": _optional(occasion),
        "clarity": _optional(clarity),
        "cut": _optional(cut),
        "gemstone_type": _optional(gemstone),
        "description": description,
    }


def _render_rates(conn: sqlite3.Connection, registry: RateRegistry) -> None:
    st.markdown("### Gold and silver rates")
    current = get_metal_rates(conn)
    settings = get_all_settings(conn)

    with st.form("rates_form"):
        col1, col2 = st.columns(2)
        with col1:
            gold = st.number_input(
                f"Gold rate per gram ({settings['currency_code']})",
                min_value=0.0,
                value=float(current["gold"] or 0.0),
                step=10.0,
            )
        with col2:
            silver = st.number_input(
                f"Silver rate per gram ({settings['currency_code']})",
                min_value=0.0,
                value=float(current["silver"] or 0.0),
                step=1.0,
            )
        submitted = st.form_submit_button("Update rates", type="primary")

    if submitted:
        if gold <= 0 or silver <= 0:
            st.error("Rates must be greater than zero.")
        else:
            try:
                update_rates(conn, registry, {"gold": gold, "silver": silver})
                st.success("Metal rates updated successfully.")
            except ValueError as exc:
                st.error(str(exc))
            except RateFetchError as exc:
                st.warning(f"Rates saved, but the storefront could not reload them yet: {exc}")

    st.markdown("### Market sync")
    st.caption("Pull spot rates from the configured market provider (PRICE_PROVIDER in .env).")
    if st.button("Sync from market now"):
        _, warning = sync_market_rates(conn, force_refresh=True)
        if warning:
            st.warning(warning)
        else:
            st.success("Market rates saved.")
        try:
            registry.refresh()
        except RateFetchError as exc:
            st.warning(str(exc))


def _render_products(conn: sqlite3.Connection, registry: RateRegistry) -> None:
    settings = get_all_settings(conn)
    rates = registry.get_rates()
    tab_list, tab_add = st.tabs(["Catalog", "Add product"])

    with tab_list:
        products = list_products(conn)
        if not products:
            st.info("No products yet. Add your first piece in the next tab.")
        else:
            df = pd.DataFrame(
                [
                    {
                        "id": product.id,
                        "name": product.name,
                        "category": product.category,
                        "metal": product.metal.value,
                        "karat/purity": product.karat or product.purity or "",
                        "weight_grams": product.weight_grams,
                        "making_charge": product.making_charge,
                        "price": format_price(offer_price(product, rates, None)[0], settings["currency_symbol"]),
                        "likes": product.likes,
                    }
                    for product in products
                ]
            )
            st.dataframe(df, width="stretch", hide_index=True)

            selected_id = st.selectbox(
                "Select product to edit/delete",
                options=[product.id for product in products],
                format_func=lambda pid: f"#{pid} - {next(p.name for p in products if p.id == pid)}",
            )
            selected = next(product for product in products if product.id == selected_id)

            with st.form("edit_product_form"):
                fields = _product_fields(f"edit_{selected_id}", selected)
                if selected.image_data:
                    st.image(selected.image_data, caption=selected.image_name or "Product image", width=180)
                replace_image = st.file_uploader(
                    "Upload / replace image", type=["png", "jpg", "jpeg", "webp"], key=f"edit_image_{selected_id}"
                )
                remove_image = st.checkbox("Remove current image", value=False, key=f"remove_image_{selected_id}")
                save_edit = st.form_submit_button("Save changes", type="primary")

            if st.button("Delete product", type="secondary"):
                delete_product(conn, int(selected_id))
                st.success("Product deleted.")
                st.rerun()

            if save_edit:
                uploaded = _uploaded_image_payload(replace_image)
                if remove_image:
                    image = {"image_name": None, "image_mime": None, "image_data": None}
                elif uploaded is not None:
                    image = uploaded
                else:
                    image = {
                        "image_name": selected.image_name,
                        "image_mime": selected.image_mime,
                        "image_data": selected.image_data,
                    }
                try:
                    update_product(conn, int(selected_id), {**fields, **image})
                    st.success("Product updated.")
                    st.rerun()
                except ValueError as exc:
                    st.error(str(exc))

    with tab_add:
        with st.form("add_product_form"):
            fields = _product_fields("add", None)
            add_image = st.file_uploader("Product image (optional)", type=["png", "jpg", "jpeg", "webp"], key="add_image")
            submit_add = st.form_submit_button("Add product", type="primary")

        if submit_add:
            image = _uploaded_image_payload(add_image) or {}
            try:
                product_id = add_product(conn, {**fields, **image})
            except ValueError as exc:
                st.error(str(exc))
            else:
                logger.info("Admin added product %s", product_id)
                st.success(f"{fields['name']} added successfully.")
                st.rerun()


def _render_offers(conn: sqlite3.Connection, registry: RateRegistry) -> None:
    st.markdown("### Create or replace an offer")
    st.caption("One offer per product: saving a new discount replaces the existing one.")

    products = list_products(conn)
    if not products:
        st.info("Add products before creating offers.")
        return

    settings = get_all_settings(conn)
    offers = get_offers_by_product(conn)
    selected_id = st.selectbox(
        "Product",
        options=[product.id for product in products],
        format_func=lambda pid: f"#{pid} - {next(p.name for p in products if p.id == pid)}",
        key="offer_product",
    )
    product = next(p for p in products if p.id == selected_id)
    existing = offers.get(product.id)
    if existing is not None:
        st.caption(f"Current offer: {existing.discount_percent}% off making charges")

    discount = st.number_input(
        "Discount on making charges (%)",
        value=existing.discount_percent if existing else 0,
        step=1,
        key="offer_percent",
    )

    try:
        offer = build_offer(product, discount)
    except InvalidDiscountError as exc:
        st.error(str(exc))
        return

    original, discounted = offer_price(product, registry.get_rates(), offer)
    symbol = settings["currency_symbol"]
    c1, c2, c3 = st.columns(3)
    c1.metric("Making charge", f"{symbol}{product.making_charge:,.2f}")
    c2.metric("After discount", f"{symbol}{offer.discounted_making_charge:,.2f}")
    c3.metric("Offer price", format_price(discounted, symbol), help=f"Regular price {format_price(original, symbol)}")

    if st.button("Save offer", type="primary"):
        try:
            upsert_offer(conn, offer)
        except ValueError as exc:
            st.error(str(exc))
        else:
            st.success("Offer saved.")


def _render_imports(conn: sqlite3.Connection) -> None:
    template_df = pd.DataFrame(
        [
            {
                "name": "Temple Necklace",
                "category": "Gold",
                "metal": "gold",
                "karat": "22K",
                "purity": "",
                "type": "Necklace",
                "weight_grams": 24.5,
                "making_charge": 6500,
                "stored_rate": "",
                "description": "Handcrafted temple work",
            }
        ],
        columns=CSV_PRODUCT_COLUMNS,
    )
    st.download_button(
        "Download CSV template",
        data=template_df.to_csv(index=False).encode("utf-8"),
        file_name="catalog_template.csv",
        mime="text/csv",
    )

    uploaded = st.file_uploader("Import products CSV", type=["csv"])
    if uploaded is not None:
        try:
            count = import_products_from_df(conn, pd.read_csv(uploaded))
            st.success(f"Imported {count} products.")
        except (ValueError, pd.errors.ParserError) as exc:
            st.error(f"Failed to import CSV: {exc}")

    products = list_products(conn)
    if products:
        export_df = pd.DataFrame(
            [{column: getattr(product, column) for column in CSV_PRODUCT_COLUMNS} for product in products]
        )
        export_df["metal"] = [product.metal.value for product in products]
        st.download_button(
            "Export current catalog CSV",
            data=export_df.to_csv(index=False).encode("utf-8"),
            file_name="catalog_export.csv",
            mime="text/csv",
        )


def _render_analytics(conn: sqlite3.Connection) -> None:
    carts = pd.DataFrame(
        [dict(row) for row in cart_counts_by_product(conn)],
        columns=["product_id", "name", "carts", "quantity"],
    )
    favorites = pd.DataFrame(
        [dict(row) for row in favorite_counts_by_product(conn)],
        columns=["product_id", "name", "favorites"],
    )

    c1, c2, c3 = st.columns(3)
    c1.metric("Pieces in carts", int(carts["quantity"].sum()) if not carts.empty else 0)
    c2.metric("Favorites", int(favorites["favorites"].sum()) if not favorites.empty else 0)
    c3.metric("Products with activity", len(set(carts["product_id"]) | set(favorites["product_id"])))

    st.markdown("### Cart additions by product")
    if carts.empty:
        st.info("No products in any cart yet.")
    else:
        st.bar_chart(carts.set_index("name")[["carts"]])
        st.dataframe(carts, width="stretch", hide_index=True)

    st.markdown("### Favorites by product")
    if favorites.empty:
        st.info("No favorites yet.")
    else:
        st.bar_chart(favorites.set_index("name")[["favorites"]])
        st.dataframe(favorites, width="stretch", hide_index=True)


def _render_visits(conn: sqlite3.Connection) -> None:
    rows = list_visit_requests(conn)
    if not rows:
        st.info("No visit requests yet.")
        return
    st.dataframe(pd.DataFrame([dict(row) for row in rows]), width="stretch", hide_index=True)


def render(conn: sqlite3.Connection, registry: RateRegistry) -> None:
    st.subheader("Admin")

    rates_tab, products_tab, offers_tab, csv_tab, analytics_tab, visits_tab, settings_tab = st.tabs(
        ["Rates", "Products", "Offers", "CSV import/export", "Analytics", "Visit requests", "Settings"]
    )
    with rates_tab:
        _render_rates(conn, registry)
    with products_tab:
        _render_products(conn, registry)
    with offers_tab:
        _render_offers(conn, registry)
    with csv_tab:
        _render_imports(conn)
    with analytics_tab:
        _render_analytics(conn)
    with visits_tab:
        _render_visits(conn)
    with settings_tab:
        settings_page.render(conn)
