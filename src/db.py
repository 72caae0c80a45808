import logging
import math
import os
import re
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from src.models import CartLine, FavoriteItem, Offer, Product, Review, parse_timestamp
from src.offers import validate_discount_percent

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DB_PATH = DATA_DIR / "store.db"
TRACKED_METALS = ["gold", "silver"]

DEFAULT_SETTINGS: dict[str, str] = {
    "currency_code": "INR",
    "currency_symbol": "₹",
    "troy_oz_to_grams": "31.1034768",
    "rate_cache_ttl_minutes": "60",
    "rate_refresh_seconds": "30",
}

PRODUCT_COLUMNS = [
    "name",
    "category",
    "metal",
    "karat",
    "purity",
    "type",
    "weight_grams",
    "making_charge",
    "stored_rate",
    "description",
    "gender",
    "occasion",
    "clarity",
    "cut",
    "gemstone_type",
    "carat_weight",
    "image_name",
    "image_mime",
    "image_data",
]

CSV_PRODUCT_COLUMNS = [
    "name",
    "category",
    "metal",
    "karat",
    "purity",
    "type",
    "weight_grams",
    "making_charge",
    "stored_rate",
    "description",
]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_db_path() -> Path:
    override = os.getenv("STORE_DB_PATH", "").strip()
    return Path(override) if override else DB_PATH


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    target = db_path or get_db_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(target, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    return [row["name"] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()]


def init_db(conn: sqlite3.Connection) -> None:
    cursor = conn.cursor()

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password_salt TEXT NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            phone TEXT,
            is_admin INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        )
        """
    )

    user_columns = _table_columns(conn, "users")
    if "full_name" not in user_columns:
        cursor.execute("ALTER TABLE users ADD COLUMN full_name TEXT")
    if "phone" not in user_columns:
        cursor.execute("ALTER TABLE users ADD COLUMN phone TEXT")
    if "is_admin" not in user_columns:
        cursor.execute("ALTER TABLE users ADD COLUMN is_admin INTEGER NOT NULL DEFAULT 0")

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS metal_rates (
            metal TEXT PRIMARY KEY,
            rate REAL NOT NULL,
            source TEXT NOT NULL DEFAULT 'admin',
            updated_at TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS jewellery_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            category TEXT NOT NULL,
            metal TEXT,
            karat TEXT,
            purity TEXT,
            type TEXT,
            weight_grams REAL NOT NULL,
            making_charge REAL NOT NULL,
            stored_rate REAL,
            description TEXT,
            gender TEXT,
            occasion TEXT,
            clarity TEXT,
            cut TEXT,
            gemstone_type TEXT,
            carat_weight REAL,
            likes INTEGER NOT NULL DEFAULT 0,
            image_name TEXT,
            image_mime TEXT,
            image_data BLOB,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    item_columns = _table_columns(conn, "jewellery_items")
    if "likes" not in item_columns:
        cursor.execute("ALTER TABLE jewellery_items ADD COLUMN likes INTEGER NOT NULL DEFAULT 0")

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS offers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            product_id INTEGER NOT NULL UNIQUE,
            discount_percent INTEGER NOT NULL,
            discounted_making_charge REAL NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (product_id) REFERENCES jewellery_items(id) ON DELETE CASCADE
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS cart (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL,
            product_id INTEGER NOT NULL,
            quantity INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            UNIQUE (username, product_id),
            FOREIGN KEY (product_id) REFERENCES jewellery_items(id) ON DELETE CASCADE
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS favorites (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL,
            product_id INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            UNIQUE (username, product_id),
            FOREIGN KEY (product_id) REFERENCES jewellery_items(id) ON DELETE CASCADE
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS reviews (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            location TEXT NOT NULL,
            phone TEXT,
            rating INTEGER NOT NULL,
            comment TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS visit_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            phone TEXT NOT NULL,
            email TEXT,
            visit_date TEXT NOT NULL,
            visit_time TEXT NOT NULL,
            purpose TEXT,
            created_at TEXT NOT NULL
        )
        """
    )

    for key, value in DEFAULT_SETTINGS.items():
        cursor.execute(
            """
            INSERT OR IGNORE INTO settings (key, value, updated_at)
            VALUES (?, ?, ?)
            """,
            (key, value, utc_now_iso()),
        )

    conn.commit()


def get_all_settings(conn: sqlite3.Connection) -> dict[str, Any]:
    rows = conn.execute("SELECT key, value FROM settings").fetchall()
    raw = {row["key"]: row["value"] for row in rows}

    def get_float(key: str) -> float:
        try:
            return float(raw.get(key, DEFAULT_SETTINGS[key]))
        except (TypeError, ValueError):
            return float(DEFAULT_SETTINGS[key])

    return {
        "currency_code": raw.get("currency_code") or DEFAULT_SETTINGS["currency_code"],
        "currency_symbol": raw.get("currency_symbol") or DEFAULT_SETTINGS["currency_symbol"],
        "troy_oz_to_grams": get_float("troy_oz_to_grams"),
        "rate_cache_ttl_minutes": int(get_float("rate_cache_ttl_minutes")),
        "rate_refresh_seconds": int(get_float("rate_refresh_seconds")),
    }


def save_settings(conn: sqlite3.Connection, settings: dict[str, Any]) -> None:
    now = utc_now_iso()
    payload = {
        "currency_code": str(settings["currency_code"]).strip().upper(),
        "currency_symbol": str(settings["currency_symbol"]).strip(),
        "troy_oz_to_grams": str(settings["troy_oz_to_grams"]),
        "rate_cache_ttl_minutes": str(int(settings["rate_cache_ttl_minutes"])),
        "rate_refresh_seconds": str(int(settings["rate_refresh_seconds"])),
    }

    for key, value in payload.items():
        conn.execute(
            """
            INSERT INTO settings (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, value, now),
        )
    conn.commit()


# Metal rates


def get_metal_rate_rows(conn: sqlite3.Connection) -> dict[str, sqlite3.Row]:
    placeholders = ",".join("?" for _ in TRACKED_METALS)
    rows = conn.execute(
        f"SELECT metal, rate, source, updated_at FROM metal_rates WHERE metal IN ({placeholders})",
        TRACKED_METALS,
    ).fetchall()
    return {row["metal"]: row for row in rows}


def get_metal_rates(conn: sqlite3.Connection) -> dict[str, float | None]:
    rows = get_metal_rate_rows(conn)
    return {metal: float(rows[metal]["rate"]) if metal in rows else None for metal in TRACKED_METALS}


def upsert_metal_rates(conn: sqlite3.Connection, rates: dict[str, Any], source: str = "admin") -> None:
    """Writes all given rates in a single transaction."""
    cleaned: dict[str, float] = {}
    for metal, value in rates.items():
        key = str(metal).strip().lower()
        if key not in TRACKED_METALS:
            raise ValueError(f"Unknown metal '{metal}'.")
        try:
            rate = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid rate for {key}.") from None
        if math.isnan(rate) or rate < 0:
            raise ValueError(f"Invalid rate for {key}.")
        cleaned[key] = rate

    now = utc_now_iso()
    with conn:
        for metal, rate in cleaned.items():
            conn.execute(
                """
                INSERT INTO metal_rates (metal, rate, source, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(metal)
                DO UPDATE SET
                    rate = excluded.rate,
                    source = excluded.source,
                    updated_at = excluded.updated_at
                """,
                (metal, rate, source, now),
            )
    logger.info("Saved metal rates %s from %s", cleaned, source)


def is_rate_fresh(updated_at_iso: str, max_age_minutes: int) -> bool:
    try:
        updated_at = datetime.fromisoformat(updated_at_iso)
    except ValueError:
        return False
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc) - updated_at <= timedelta(minutes=max_age_minutes)


# Products


def _product_payload(product: dict[str, Any]) -> dict[str, Any]:
    name = str(product.get("name") or "").strip()
    category = str(product.get("category") or "").strip()
    if not name:
        raise ValueError("Product name is required.")
    if not category:
        raise ValueError("Product category is required.")

    weight = float(product.get("weight_grams") or 0.0)
    making_charge = float(product.get("making_charge") or 0.0)
    if weight < 0:
        raise ValueError("Weight cannot be negative.")
    if making_charge < 0:
        raise ValueError("Making charge cannot be negative.")

    stored_rate = product.get("stored_rate")
    if stored_rate in ("", None):
        stored_rate = None
    else:
        stored_rate = float(stored_rate)
        if stored_rate < 0:
            raise ValueError("Stored rate cannot be negative.")

    payload = {column: product.get(column) for column in PRODUCT_COLUMNS}
    text_columns = ["metal", "karat", "purity", "type", "description", "gender", "occasion", "clarity", "cut", "gemstone_type"]
    for column in text_columns:
        value = payload[column]
        if value is not None:
            value = str(value).strip() or None
        payload[column] = value
    if payload["metal"]:
        payload["metal"] = payload["metal"].lower()
    payload.update(
        {
            "name": name,
            "category": category,
            "weight_grams": weight,
            "making_charge": making_charge,
            "stored_rate": stored_rate,
            "carat_weight": float(product["carat_weight"]) if product.get("carat_weight") not in ("", None) else None,
        }
    )
    return payload


def list_products(conn: sqlite3.Connection, category: str | None = None) -> list[Product]:
    if category:
        rows = conn.execute(
            "SELECT * FROM jewellery_items WHERE category = ? ORDER BY created_at DESC, id DESC",
            (category,),
        ).fetchall()
    else:
        rows = conn.execute("SELECT * FROM jewellery_items ORDER BY created_at DESC, id DESC").fetchall()
    return [Product.from_row(row) for row in rows]


def get_product(conn: sqlite3.Connection, product_id: int) -> Product | None:
    row = conn.execute("SELECT * FROM jewellery_items WHERE id = ?", (product_id,)).fetchone()
    return Product.from_row(row) if row is not None else None


def add_product(conn: sqlite3.Connection, product: dict[str, Any]) -> int:
    payload = _product_payload(product)
    now = utc_now_iso()
    columns = PRODUCT_COLUMNS + ["created_at", "updated_at"]
    cursor = conn.execute(
        f"""
        INSERT INTO jewellery_items ({", ".join(columns)})
        VALUES ({", ".join("?" for _ in columns)})
        """,
        [payload[column] for column in PRODUCT_COLUMNS] + [now, now],
    )
    conn.commit()
    return int(cursor.lastrowid)


def update_product(conn: sqlite3.Connection, product_id: int, product: dict[str, Any]) -> None:
    payload = _product_payload(product)
    assignments = ", ".join(f"{column} = ?" for column in PRODUCT_COLUMNS)
    conn.execute(
        f"UPDATE jewellery_items SET {assignments}, updated_at = ? WHERE id = ?",
        [payload[column] for column in PRODUCT_COLUMNS] + [utc_now_iso(), product_id],
    )
    conn.commit()


def delete_product(conn: sqlite3.Connection, product_id: int) -> None:
    with conn:
        conn.execute("DELETE FROM offers WHERE product_id = ?", (product_id,))
        conn.execute("DELETE FROM cart WHERE product_id = ?", (product_id,))
        conn.execute("DELETE FROM favorites WHERE product_id = ?", (product_id,))
        conn.execute("DELETE FROM jewellery_items WHERE id = ?", (product_id,))


def import_products_from_df(conn: sqlite3.Connection, df: Any) -> int:
    import pandas as pd

    required = ["name", "category", "weight_grams", "making_charge"]
    missing = [column for column in required if column not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    inserted = 0
    for _, row in df.iterrows():
        record: dict[str, Any] = {}
        for column in CSV_PRODUCT_COLUMNS:
            if column not in df.columns or pd.isna(row[column]):
                record[column] = None
            else:
                record[column] = row[column]
        add_product(conn, record)
        inserted += 1
    return inserted


# Offers


def upsert_offer(conn: sqlite3.Connection, offer: Offer) -> None:
    """Validates the offer against its product, then replaces any existing offer for it."""
    validate_discount_percent(offer.discount_percent)
    row = conn.execute("SELECT making_charge FROM jewellery_items WHERE id = ?", (offer.product_id,)).fetchone()
    if row is None:
        raise ValueError(f"Product {offer.product_id} does not exist.")
    discounted = float(offer.discounted_making_charge)
    if math.isnan(discounted) or discounted < 0 or discounted > float(row["making_charge"]):
        raise ValueError("Discounted making charge must be between 0 and the product's making charge.")

    now = utc_now_iso()
    conn.execute(
        """
        INSERT INTO offers (product_id, discount_percent, discounted_making_charge, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(product_id)
        DO UPDATE SET
            discount_percent = excluded.discount_percent,
            discounted_making_charge = excluded.discounted_making_charge,
            updated_at = excluded.updated_at
        """,
        (offer.product_id, offer.discount_percent, offer.discounted_making_charge, now, now),
    )
    conn.commit()
    logger.info("Saved %s%% offer for product %s", offer.discount_percent, offer.product_id)


def list_offers(conn: sqlite3.Connection) -> list[tuple[Offer, Product]]:
    rows = conn.execute(
        """
        SELECT
            o.product_id,
            o.discount_percent,
            o.discounted_making_charge,
            o.created_at AS offer_created_at,
            o.updated_at AS offer_updated_at,
            j.*
        FROM offers o
        JOIN jewellery_items j ON j.id = o.product_id
        ORDER BY o.updated_at DESC, o.id DESC
        """
    ).fetchall()
    result = []
    for row in rows:
        offer = Offer(
            product_id=int(row["product_id"]),
            discount_percent=int(row["discount_percent"]),
            discounted_making_charge=float(row["discounted_making_charge"]),
        )
        result.append((offer, Product.from_row(row)))
    return result


def get_offers_by_product(conn: sqlite3.Connection) -> dict[int, Offer]:
    rows = conn.execute("SELECT * FROM offers").fetchall()
    return {int(row["product_id"]): Offer.from_row(row) for row in rows}


def delete_offer(conn: sqlite3.Connection, product_id: int) -> None:
    conn.execute("DELETE FROM offers WHERE product_id = ?", (product_id,))
    conn.commit()


# Cart


def list_cart_lines(conn: sqlite3.Connection, username: str) -> list[CartLine]:
    rows = conn.execute(
        """
        SELECT c.id AS cart_id, c.quantity, j.*
        FROM cart c
        JOIN jewellery_items j ON j.id = c.product_id
        WHERE c.username = ?
        ORDER BY c.id ASC
        """,
        (username,),
    ).fetchall()
    return [CartLine(id=int(row["cart_id"]), product=Product.from_row(row), quantity=int(row["quantity"])) for row in rows]


def add_to_cart(conn: sqlite3.Connection, username: str, product_id: int, quantity: int = 1) -> None:
    if quantity <= 0:
        raise ValueError("Quantity must be at least 1.")
    conn.execute(
        """
        INSERT INTO cart (username, product_id, quantity, created_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(username, product_id)
        DO UPDATE SET quantity = cart.quantity + excluded.quantity
        """,
        (username, product_id, quantity, utc_now_iso()),
    )
    conn.commit()


def update_cart_quantity(conn: sqlite3.Connection, username: str, cart_id: int, quantity: int) -> None:
    if quantity <= 0:
        remove_cart_line(conn, username, cart_id)
        return
    conn.execute(
        "UPDATE cart SET quantity = ? WHERE id = ? AND username = ?",
        (quantity, cart_id, username),
    )
    conn.commit()


def remove_cart_line(conn: sqlite3.Connection, username: str, cart_id: int) -> None:
    conn.execute("DELETE FROM cart WHERE id = ? AND username = ?", (cart_id, username))
    conn.commit()


def clear_cart(conn: sqlite3.Connection, username: str) -> int:
    cursor = conn.execute("DELETE FROM cart WHERE username = ?", (username,))
    conn.commit()
    return cursor.rowcount


# Favorites


def list_favorites(conn: sqlite3.Connection, username: str) -> list[FavoriteItem]:
    rows = conn.execute(
        """
        SELECT f.id AS favorite_id, j.*
        FROM favorites f
        JOIN jewellery_items j ON j.id = f.product_id
        WHERE f.username = ?
        ORDER BY f.id DESC
        """,
        (username,),
    ).fetchall()
    return [FavoriteItem(id=int(row["favorite_id"]), product=Product.from_row(row)) for row in rows]


def favorite_product_ids(conn: sqlite3.Connection, username: str) -> set[int]:
    rows = conn.execute("SELECT product_id FROM favorites WHERE username = ?", (username,)).fetchall()
    return {int(row["product_id"]) for row in rows}


def toggle_favorite(conn: sqlite3.Connection, username: str, product_id: int) -> bool:
    """Adds or removes a favorite and returns True when the product is now liked."""
    with conn:
        deleted = conn.execute(
            "DELETE FROM favorites WHERE username = ? AND product_id = ?",
            (username, product_id),
        ).rowcount
        if deleted:
            conn.execute(
                "UPDATE jewellery_items SET likes = MAX(likes - 1, 0) WHERE id = ?",
                (product_id,),
            )
            return False

        conn.execute(
            "INSERT INTO favorites (username, product_id, created_at) VALUES (?, ?, ?)",
            (username, product_id, utc_now_iso()),
        )
        conn.execute("UPDATE jewellery_items SET likes = likes + 1 WHERE id = ?", (product_id,))
    return True


def clear_favorites(conn: sqlite3.Connection, username: str) -> int:
    with conn:
        product_ids = [
            row["product_id"]
            for row in conn.execute("SELECT product_id FROM favorites WHERE username = ?", (username,))
        ]
        for product_id in product_ids:
            conn.execute(
                "UPDATE jewellery_items SET likes = MAX(likes - 1, 0) WHERE id = ?",
                (product_id,),
            )
        conn.execute("DELETE FROM favorites WHERE username = ?", (username,))
    return len(product_ids)


# Analytics


def cart_counts_by_product(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    """Per product: how many carts hold it and the total quantity, most carted first."""
    return conn.execute(
        """
        SELECT j.id AS product_id, j.name, COUNT(c.id) AS carts, SUM(c.quantity) AS quantity
        FROM cart c
        JOIN jewellery_items j ON j.id = c.product_id
        GROUP BY c.product_id
        ORDER BY carts DESC, quantity DESC, j.name ASC
        """
    ).fetchall()


def favorite_counts_by_product(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    return conn.execute(
        """
        SELECT j.id AS product_id, j.name, COUNT(f.id) AS favorites
        FROM favorites f
        JOIN jewellery_items j ON j.id = f.product_id
        GROUP BY f.product_id
        ORDER BY favorites DESC, j.name ASC
        """
    ).fetchall()


# Reviews and visits


def add_review(
    conn: sqlite3.Connection,
    name: str,
    location: str,
    rating: int,
    comment: str,
    phone: str | None = None,
) -> int:
    name = name.strip()
    location = location.strip()
    comment = comment.strip()
    phone = (phone or "").strip() or None

    if len(name) < 2:
        raise ValueError("Name must be at least 2 characters.")
    if len(location) < 2:
        raise ValueError("Location must be at least 2 characters.")
    if len(comment) < 3 or len(comment) > 500:
        raise ValueError("Comment must be between 3 and 500 characters.")
    if int(rating) < 1 or int(rating) > 5:
        raise ValueError("Please provide a rating between 1 and 5.")
    if phone is not None and not re.fullmatch(r"[0-9]{10}", phone):
        raise ValueError("Please enter a valid 10-digit phone number.")

    cursor = conn.execute(
        """
        INSERT INTO reviews (name, location, phone, rating, comment, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (name, location, phone, int(rating), comment, utc_now_iso()),
    )
    conn.commit()
    return int(cursor.lastrowid)


def list_reviews(conn: sqlite3.Connection, limit: int = 100) -> list[Review]:
    rows = conn.execute(
        "SELECT * FROM reviews ORDER BY created_at DESC, id DESC LIMIT ?",
        (limit,),
    ).fetchall()
    return [
        Review(
            id=int(row["id"]),
            name=row["name"],
            location=row["location"],
            rating=int(row["rating"]),
            comment=row["comment"],
            phone=row["phone"],
            created_at=parse_timestamp(row["created_at"]),
        )
        for row in rows
    ]


def average_rating(conn: sqlite3.Connection) -> float | None:
    row = conn.execute("SELECT AVG(rating) AS average FROM reviews").fetchone()
    if row is None or row["average"] is None:
        return None
    return float(row["average"])


def delete_review(conn: sqlite3.Connection, review_id: int) -> None:
    conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
    conn.commit()


def add_visit_request(conn: sqlite3.Connection, visit: dict[str, Any]) -> int:
    name = str(visit.get("name") or "").strip()
    phone = str(visit.get("phone") or "").strip()
    if len(name) < 2:
        raise ValueError("Name must be at least 2 characters.")
    if not re.fullmatch(r"[0-9]{10}", phone):
        raise ValueError("Please enter a valid 10-digit phone number.")
    if not visit.get("visit_date") or not visit.get("visit_time"):
        raise ValueError("Please choose a date and time for your visit.")

    cursor = conn.execute(
        """
        INSERT INTO visit_requests (name, phone, email, visit_date, visit_time, purpose, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            name,
            phone,
            (visit.get("email") or "").strip() or None,
            str(visit["visit_date"]),
            str(visit["visit_time"]),
            (visit.get("purpose") or "").strip() or None,
            utc_now_iso(),
        ),
    )
    conn.commit()
    return int(cursor.lastrowid)


def list_visit_requests(conn: sqlite3.Connection, limit: int = 100) -> list[sqlite3.Row]:
    return conn.execute(
        "SELECT * FROM visit_requests ORDER BY visit_date ASC, visit_time ASC LIMIT ?",
        (limit,),
    ).fetchall()
