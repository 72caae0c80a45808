from src.auth import (
    authenticate_user,
    create_user,
    delete_user_account,
    get_user,
    is_admin,
    update_profile,
    update_user_password,
)
from src.db import add_product, add_to_cart, get_product, list_cart_lines, toggle_favorite


def test_create_and_authenticate(conn):
    created, username = create_user(conn, "  Asha ", "correct-horse", "Asha Rao")
    assert created
    assert username == "asha"
    assert authenticate_user(conn, "ASHA", "correct-horse") == "asha"
    assert authenticate_user(conn, "asha", "wrong-password") is None
    assert get_user(conn, "asha")["full_name"] == "Asha Rao"


def test_create_user_validation(conn):
    assert create_user(conn, "a", "long-enough-pw")[0] is False
    assert create_user(conn, "asha", "short")[0] is False
    create_user(conn, "asha", "long-enough-pw")
    assert create_user(conn, "asha", "long-enough-pw") == (False, "That username already exists.")


def test_configured_admins_are_promoted(conn, monkeypatch):
    monkeypatch.delenv("STORE_ADMIN_USERS", raising=False)
    create_user(conn, "owner", "long-enough-pw")
    assert not is_admin(conn, "owner")

    monkeypatch.setenv("STORE_ADMIN_USERS", "Owner, someone-else")
    authenticate_user(conn, "owner", "long-enough-pw")
    assert is_admin(conn, "owner")
    assert not is_admin(conn, None)


def test_update_profile_and_password(conn):
    create_user(conn, "asha", "long-enough-pw")

    assert update_profile(conn, "asha", "Asha", "123")[0] is False
    assert update_profile(conn, "asha", "Asha", "9876543210") == (True, "Profile updated.")
    assert get_user(conn, "asha")["phone"] == "9876543210"

    assert update_user_password(conn, "asha", "wrong-password", "new-password-1")[0] is False
    assert update_user_password(conn, "asha", "long-enough-pw", "new-password-1")[0] is True
    assert authenticate_user(conn, "asha", "new-password-1") == "asha"


def test_delete_account_clears_cart_and_likes(conn):
    create_user(conn, "asha", "long-enough-pw")
    product_id = add_product(
        conn,
        {"name": "Band", "category": "Gold", "metal": "gold", "weight_grams": 2, "making_charge": 100},
    )
    add_to_cart(conn, "asha", product_id)
    toggle_favorite(conn, "asha", product_id)

    assert delete_user_account(conn, "asha", "wrong-password")[0] is False
    assert delete_user_account(conn, "asha", "long-enough-pw")[0] is True

    assert get_user(conn, "asha") is None
    assert list_cart_lines(conn, "asha") == []
    assert get_product(conn, product_id).likes == 0
