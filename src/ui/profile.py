import sqlite3

import streamlit as st

from src.auth import delete_user_account, get_user, update_profile, update_user_password


def render(conn: sqlite3.Connection, username: str) -> bool:
    """Render the account page. Returns True when the account was deleted."""
    st.subheader("Profile")

    user = get_user(conn, username) or {}
    st.caption(f"Signed in as {username}" + (" (admin)" if user.get("is_admin") else ""))

    with st.form("profile_form"):
        full_name = st.text_input("Full name", value=user.get("full_name") or "")
        phone = st.text_input("Phone", value=user.get("phone") or "", max_chars=10)
        profile_submit = st.form_submit_button("Save profile", type="primary")

    if profile_submit:
        updated, message = update_profile(conn, username, full_name, phone)
        if updated:
            st.success(message)
        else:
            st.error(message)

    st.markdown("### Security")
    with st.form("change_password_form"):
        current_password = st.text_input("Current password", type="password")
        new_password = st.text_input("New password", type="password")
        confirm_password = st.text_input("Confirm new password", type="password")
        change_password_submit = st.form_submit_button("Change password")

    if change_password_submit:
        if new_password != confirm_password:
            st.error("New passwords do not match.")
        else:
            updated, message = update_user_password(conn, username, current_password, new_password)
            if updated:
                st.success(message)
            else:
                st.error(message)

    st.caption("Danger zone")
    with st.form("delete_account_form"):
        delete_password = st.text_input("Password to confirm", type="password")
        delete_confirmation = st.text_input("Type DELETE to confirm")
        delete_submit = st.form_submit_button("Delete account")

    if delete_submit:
        if delete_confirmation.strip().upper() != "DELETE":
            st.error("Type DELETE to confirm account removal.")
            return False
        deleted, message = delete_user_account(conn, username, delete_password)
        if deleted:
            return True
        st.error(message)
    return False
