import sqlite3
from datetime import UTC, datetime

import pandas as pd
import streamlit as st

from src.catalog import KARATS, SILVER_PURITIES
from src.db import TRACKED_METALS, get_all_settings, get_metal_rate_rows
from src.models import Metal, Product
from src.pricing import compute_price, format_price
from src.rates import RateFetchError, RateRegistry

SAMPLE_WEIGHT_GRAMS = 10.0


def _format_gmt_timestamp(timestamp_iso: str) -> str:
    try:
        parsed = datetime.fromisoformat(timestamp_iso)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S GMT")
    except ValueError:
        return timestamp_iso


def _sample_rows(registry: RateRegistry, symbol: str) -> list[dict[str, str]]:
    rates = registry.get_rates()
    rows = []
    for karat in KARATS:
        sample = Product(None, f"{karat} gold", "Gold", Metal.GOLD, SAMPLE_WEIGHT_GRAMS, 0.0, karat=karat)
        rows.append({"Purity": f"{karat} gold", "10 g value": format_price(compute_price(sample, rates), symbol)})
    for purity in SILVER_PURITIES:
        sample = Product(None, purity, "Silver", Metal.SILVER, SAMPLE_WEIGHT_GRAMS, 0.0, purity=purity)
        rows.append({"Purity": purity, "10 g value": format_price(compute_price(sample, rates), symbol)})
    return rows


def render(conn: sqlite3.Connection, registry: RateRegistry) -> None:
    st.subheader("Today's Metal Rates")

    settings = get_all_settings(conn)
    symbol = settings["currency_symbol"]
    st.caption(f"Per-gram rates in {settings['currency_code']}, set by the store")

    if st.button("Reload rates", type="primary"):
        try:
            registry.refresh()
        except RateFetchError as exc:
            st.warning(f"{exc}. Showing the last known rates; try again in a moment.")

    stored = get_metal_rate_rows(conn)
    rows = []
    for metal in TRACKED_METALS:
        row = stored.get(metal)
        if row is None:
            rows.append({"Metal": metal.title(), "Rate per gram": "Not set", "Updated (GMT)": "No data", "Source": "-"})
        else:
            rows.append(
                {
                    "Metal": metal.title(),
                    "Rate per gram": format_price(float(row["rate"]), symbol),
                    "Updated (GMT)": _format_gmt_timestamp(row["updated_at"]),
                    "Source": row["source"],
                }
            )

    st.dataframe(pd.DataFrame(rows), width="stretch", hide_index=True)

    st.markdown("### Metal value of 10 g by purity")
    st.dataframe(pd.DataFrame(_sample_rows(registry, symbol)), width="stretch", hide_index=True)
    st.info("Final prices add the piece's making charge to its metal value.")
