import hashlib
import hmac
import logging
import os
import re
import secrets
import sqlite3
from typing import Any

from src.db import utc_now_iso

logger = logging.getLogger(__name__)

PASSWORD_ITERATIONS = 200_000
MIN_PASSWORD_LENGTH = 8


def _normalize(username: str) -> str:
    return username.strip().lower()


def _hash_password(password: str, salt_hex: str) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        bytes.fromhex(salt_hex),
        PASSWORD_ITERATIONS,
    )
    return digest.hex()


def _password_matches(row: sqlite3.Row, password: str) -> bool:
    attempted_hash = _hash_password(password, row["password_salt"])
    return hmac.compare_digest(attempted_hash, row["password_hash"])


def configured_admins() -> set[str]:
    raw = os.getenv("STORE_ADMIN_USERS", "")
    return {_normalize(name) for name in raw.split(",") if name.strip()}


def create_user(
    conn: sqlite3.Connection,
    username: str,
    password: str,
    full_name: str = "",
) -> tuple[bool, str]:
    normalized = _normalize(username)
    if not re.fullmatch(r"[a-z0-9_.-]{3,32}", normalized):
        return False, "Username must be 3-32 chars and use letters, numbers, ., _, or -."
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters."

    salt_hex = secrets.token_hex(16)
    try:
        conn.execute(
            """
            INSERT INTO users (username, password_salt, password_hash, full_name, is_admin, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                normalized,
                salt_hex,
                _hash_password(password, salt_hex),
                full_name.strip() or None,
                1 if normalized in configured_admins() else 0,
                utc_now_iso(),
            ),
        )
        conn.commit()
    except sqlite3.IntegrityError:
        return False, "That username already exists."

    logger.info("Created account %s", normalized)
    return True, normalized


def authenticate_user(conn: sqlite3.Connection, username: str, password: str) -> str | None:
    normalized = _normalize(username)
    row = conn.execute(
        "SELECT username, password_salt, password_hash, is_admin FROM users WHERE username = ?",
        (normalized,),
    ).fetchone()
    if row is None or not _password_matches(row, password):
        return None

    if not row["is_admin"] and normalized in configured_admins():
        set_admin(conn, normalized, True)
    return str(row["username"])


def get_user(conn: sqlite3.Connection, username: str) -> dict[str, Any] | None:
    row = conn.execute(
        "SELECT username, full_name, phone, is_admin, created_at FROM users WHERE username = ?",
        (_normalize(username),),
    ).fetchone()
    if row is None:
        return None
    return {
        "username": row["username"],
        "full_name": row["full_name"] or "",
        "phone": row["phone"] or "",
        "is_admin": bool(row["is_admin"]),
        "created_at": row["created_at"],
    }


def is_admin(conn: sqlite3.Connection, username: str | None) -> bool:
    if not username:
        return False
    user = get_user(conn, username)
    return bool(user and user["is_admin"])


def set_admin(conn: sqlite3.Connection, username: str, admin: bool) -> None:
    conn.execute(
        "UPDATE users SET is_admin = ? WHERE username = ?",
        (1 if admin else 0, _normalize(username)),
    )
    conn.commit()
    logger.info("Admin flag for %s set to %s", username, admin)


def update_profile(conn: sqlite3.Connection, username: str, full_name: str, phone: str) -> tuple[bool, str]:
    phone = phone.strip()
    if phone and not re.fullmatch(r"[0-9]{10}", phone):
        return False, "Please enter a valid 10-digit phone number."
    conn.execute(
        "UPDATE users SET full_name = ?, phone = ? WHERE username = ?",
        (full_name.strip() or None, phone or None, _normalize(username)),
    )
    conn.commit()
    return True, "Profile updated."


def update_user_password(
    conn: sqlite3.Connection,
    username: str,
    current_password: str,
    new_password: str,
) -> tuple[bool, str]:
    normalized = _normalize(username)
    row = conn.execute(
        "SELECT password_salt, password_hash FROM users WHERE username = ?",
        (normalized,),
    ).fetchone()
    if row is None:
        return False, "User not found."
    if not _password_matches(row, current_password):
        return False, "Current password is incorrect."
    if len(new_password) < MIN_PASSWORD_LENGTH:
        return False, f"New password must be at least {MIN_PASSWORD_LENGTH} characters."

    new_salt = secrets.token_hex(16)
    conn.execute(
        "UPDATE users SET password_salt = ?, password_hash = ? WHERE username = ?",
        (new_salt, _hash_password(new_password, new_salt), normalized),
    )
    conn.commit()
    return True, "Password updated."


def delete_user_account(conn: sqlite3.Connection, username: str, password: str) -> tuple[bool, str]:
    normalized = _normalize(username)
    row = conn.execute(
        "SELECT password_salt, password_hash FROM users WHERE username = ?",
        (normalized,),
    ).fetchone()
    if row is None:
        return False, "User not found."
    if not _password_matches(row, password):
        return False, "Password is incorrect."

    with conn:
        conn.execute("DELETE FROM cart WHERE username = ?", (normalized,))
        conn.execute(
            """
            UPDATE jewellery_items SET likes = MAX(likes - 1, 0)
            WHERE id IN (SELECT product_id FROM favorites WHERE username = ?)
            """,
            (normalized,),
        )
        conn.execute("DELETE FROM favorites WHERE username = ?", (normalized,))
        conn.execute("DELETE FROM users WHERE username = ?", (normalized,))
    logger.info("Deleted account %s", normalized)
    return True, "Account deleted."
