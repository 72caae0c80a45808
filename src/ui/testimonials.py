import sqlite3
from datetime import date, time

import streamlit as st

from src.db import add_review, add_visit_request, average_rating, delete_review, list_reviews


def _render_review_form(conn: sqlite3.Connection) -> None:
    with st.form("review_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Your name")
            location = st.text_input("City")
        with col2:
            phone = st.text_input("Phone (optional)", max_chars=10)
            rating = st.slider("Rating", min_value=1, max_value=5, value=5)
        comment = st.text_area("Your experience", max_chars=500)
        submitted = st.form_submit_button("Submit review", type="primary")

    if submitted:
        try:
            add_review(conn, name, location, rating, comment, phone)
        except ValueError as exc:
            st.error(str(exc))
        else:
            st.success("Thank you for sharing your experience!")


def _render_visit_form(conn: sqlite3.Connection) -> None:
    st.markdown("### Book a store visit")
    with st.form("visit_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name", key="visit_name")
            phone = st.text_input("Phone", max_chars=10, key="visit_phone")
            email = st.text_input("Email (optional)", key="visit_email")
        with col2:
            visit_date = st.date_input("Date", min_value=date.today())
            visit_time = st.time_input("Time", value=time(11, 0))
            purpose = st.selectbox("Purpose", ["Browse collection", "Bridal consultation", "Custom design", "Repair"])
        submitted = st.form_submit_button("Request visit", type="primary")

    if submitted:
        try:
            add_visit_request(
                conn,
                {
                    "name": name,
                    "phone": phone,
                    "email": email,
                    "visit_date": visit_date.isoformat(),
                    "visit_time": visit_time.strftime("%H:%M"),
                    "purpose": purpose,
                },
            )
        except ValueError as exc:
            st.error(str(exc))
        else:
            st.success("Visit requested. We will call to confirm.")


def render(conn: sqlite3.Connection, admin: bool = False) -> None:
    st.subheader("Testimonials")

    average = average_rating(conn)
    reviews = list_reviews(conn)
    if average is not None:
        st.metric("Average rating", f"{average:.1f} / 5", help=f"{len(reviews)} reviews")

    for review in reviews:
        with st.container(border=True):
            st.markdown(f"**{review.name}**, {review.location}  \n{'★' * review.rating}{'☆' * (5 - review.rating)}")
            st.write(review.comment)
            if review.created_at:
                st.caption(review.created_at.strftime("%d %b %Y"))
            if admin and st.button("Delete review", key=f"delete_review_{review.id}"):
                delete_review(conn, review.id)
                st.rerun()

    st.markdown("### Share your experience")
    _render_review_form(conn)
    _render_visit_form(conn)
