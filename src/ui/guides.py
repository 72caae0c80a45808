import pandas as pd
import streamlit as st

from src.sizing import (
    BANGLE_SIZES_IN,
    NECKLACE_LENGTHS_IN,
    RING_SIZE_SYSTEMS,
    bangle_size_for_wrist,
    circumference_from_size,
    convert_ring_size,
    uk_size_options,
)

CARE_TIPS = {
    "Gold": [
        "Store each piece separately in a soft pouch to avoid scratches.",
        "Clean with lukewarm water and mild soap, then pat dry with a soft cloth.",
        "Remove before swimming; chlorine weakens lower-karat alloys.",
    ],
    "Silver": [
        "Keep silver in an airtight bag with an anti-tarnish strip.",
        "Polish with a silver cloth; avoid toothpaste and abrasive cleaners.",
        "Wear it often: skin contact slows tarnishing.",
    ],
    "Diamond": [
        "Soak in warm soapy water and brush gently behind the stone.",
        "Have prongs checked by a jeweller once a year.",
        "Diamonds scratch other gems; store them apart.",
    ],
    "Gemstone": [
        "Avoid heat and sudden temperature changes, especially for emeralds and opals.",
        "Wipe with a damp cloth; skip ultrasonic cleaners for porous stones.",
        "Put gemstone jewellery on after perfume and lotion.",
    ],
}


def _render_ring_sizer() -> None:
    st.markdown("### Ring size converter")
    system = st.selectbox("I know my size in", RING_SIZE_SYSTEMS)

    if system == "UK":
        size = st.selectbox("UK size", [label for label, _ in uk_size_options()], index=24)
    elif system == "US":
        size = st.number_input("US size", min_value=1.0, max_value=16.0, value=7.0, step=0.25)
    elif system == "EU":
        size = st.number_input("EU size (circumference mm)", min_value=38.0, max_value=76.0, value=54.0, step=0.5)
    else:
        size = st.number_input(f"{system} size", min_value=1.0, max_value=36.0, value=14.0, step=0.5)

    measured = st.number_input(
        "...or enter a measured inner circumference (mm)",
        min_value=0.0,
        max_value=80.0,
        value=0.0,
        step=0.5,
        help="Wrap a strip of paper around the finger and measure its length.",
    )

    circumference = measured if measured > 0 else circumference_from_size(system, size)
    converted = convert_ring_size(circumference)
    st.dataframe(pd.DataFrame([converted]), width="stretch", hide_index=True)


def _render_bangle_sizer() -> None:
    st.markdown("### Bangle size")
    width = st.number_input(
        "Hand width across the knuckles with fingers together (inches)",
        min_value=1.5,
        max_value=3.5,
        value=2.25,
        step=0.05,
    )
    st.success(f"Recommended bangle size: {bangle_size_for_wrist(width)}")
    st.dataframe(
        pd.DataFrame([{"Size": label, "Inner diameter (in)": inner} for label, inner in BANGLE_SIZES_IN.items()]),
        width="stretch",
        hide_index=True,
    )


def render() -> None:
    st.subheader("Guides")
    care_tab, size_tab = st.tabs(["Jewellery care", "Size guide"])

    with care_tab:
        for material, tips in CARE_TIPS.items():
            with st.expander(f"{material} care", expanded=material == "Gold"):
                for tip in tips:
                    st.markdown(f"- {tip}")

    with size_tab:
        _render_ring_sizer()
        _render_bangle_sizer()
        st.markdown("### Necklace lengths")
        st.dataframe(
            pd.DataFrame([{"Style": style, "Length (in)": length} for style, length in NECKLACE_LENGTHS_IN.items()]),
            width="stretch",
            hide_index=True,
        )
