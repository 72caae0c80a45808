"""
Initialises the local SQLite database and ensures default settings exist.
Run this once before first use, or anytime to repair missing tables.

Pass --sample to also load starter rates and a small demo catalog.
"""

import argparse
import logging

from src.db import add_product, get_connection, get_metal_rates, init_db, list_products, upsert_metal_rates

logger = logging.getLogger(__name__)

SAMPLE_RATES = {"gold": 7250.0, "silver": 92.5}

SAMPLE_PRODUCTS = [
    {
        "name": "Temple Lakshmi Necklace",
        "category": "Gold",
        "metal": "gold",
        "karat": "22K",
        "type": "Necklace",
        "weight_grams": 32.4,
        "making_charge": 9800,
        "occasion": "Wedding",
        "gender": "Women",
    },
    {
        "name": "Everyday Hoop Earrings",
        "category": "New Arrival",
        "metal": "gold",
        "karat": "18K",
        "type": "Earring",
        "weight_grams": 4.1,
        "making_charge": 1800,
        "occasion": "Casual",
        "gender": "Women",
    },
    {
        "name": "Oxidised Anklet Pair",
        "category": "Silver",
        "metal": "silver",
        "purity": "92.5% Sterling Silver",
        "type": "Anklet",
        "weight_grams": 48.0,
        "making_charge": 650,
        "gender": "Women",
    },
    {
        "name": "Solitaire Engagement Ring",
        "category": "Diamond",
        "metal": "other",
        "stored_rate": 65000,
        "type": "Ring",
        "weight_grams": 1.0,
        "carat_weight": 0.5,
        "making_charge": 12000,
        "clarity": "VS1",
        "cut": "Brilliant",
        "occasion": "Wedding",
    },
]


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--sample", action="store_true", help="load starter rates and demo products")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s: %(message)s")

    conn = get_connection()
    init_db(conn)

    if args.sample:
        if not any(get_metal_rates(conn).values()):
            upsert_metal_rates(conn, SAMPLE_RATES, source="seed")
        if not list_products(conn):
            for product in SAMPLE_PRODUCTS:
                add_product(conn, product)
            logger.info("Loaded %d demo products", len(SAMPLE_PRODUCTS))

    print("Database initialised successfully.")


if __name__ == "__main__":
    main()
