# backend/tests/test_fulfillment_materializes_once.py
from __future__ import annotations

import re
import threading
from datetime import date

from sqlalchemy import func, select

from rentflow.db import SessionLocal
from rentflow.models import Rental
from rentflow.services.fulfillment import materialize, rental_totals
from rentflow.services.status_machine import must_get_request, transition

from helpers import mk_rent_request, mk_sell_request, mk_user


def _deliver(db, request_id: int, *, paid: bool = False):
    transition(db, request_id, "Confirmed", payment_status="Paid" if paid else None)
    transition(db, request_id, "Scheduled Delivery", scheduled_delivery_date=date(2026, 11, 2))
    transition(db, request_id, "Out for Delivery")
    return transition(db, request_id, "Delivered")


def _rental_count(db) -> int:
    return int(db.scalar(select(func.count()).select_from(Rental)))


def test_delivered_rent_request_builds_rental_with_totals():
    db = SessionLocal()
    try:
        r = mk_rent_request(db, price=949.0, deposit=2847.0, delivery_charge=0.0)
        out = _deliver(db, r.id)

        assert out.materialized_rental_id is not None
        assert re.fullmatch(r"RENT-\d{4}-\d{4}-[0-9A-F]{6}", out.materialized_rental_id)

        rental = db.scalar(select(Rental).where(Rental.rental_id == out.materialized_rental_id))
        assert rental.request_id == r.id
        assert rental.total_monthly_amount == 949
        assert rental.total_deposit == 2847
        assert rental.total_amount == 3796
        assert rental.status == "Active"
        assert len(rental.items) == 1
        assert rental.items[0].monthly_price == 949

        assert len(rental.payments) == 1
        first = rental.payments[0]
        assert first.month == f"{rental.start_date:%Y-%m}"
        assert first.due_date == rental.start_date
        assert first.status == "Pending"
    finally:
        db.close()


def test_delivery_charge_and_quantity_roll_into_totals():
    class Item:
        def __init__(self, price, deposit, quantity):
            self.price, self.deposit, self.quantity = price, deposit, quantity

    t = rental_totals([Item(500.0, 1000.0, 2), Item(250.0, 0.0, 1)], delivery_charge=199.0)
    assert t.total_monthly_amount == 1250.0
    assert t.total_deposit == 2000.0
    assert t.total_amount == 3449.0


def test_paid_request_marks_first_month_paid():
    db = SessionLocal()
    try:
        r = mk_rent_request(db)
        out = _deliver(db, r.id, paid=True)
        rental = db.scalar(select(Rental).where(Rental.rental_id == out.materialized_rental_id))
        assert rental.payments[0].status == "Paid"
        assert rental.payments[0].paid_date == rental.start_date
    finally:
        db.close()


def test_reapplying_delivered_never_creates_second_rental():
    db = SessionLocal()
    try:
        r = mk_rent_request(db)
        first = _deliver(db, r.id).materialized_rental_id

        for _ in range(3):
            again = transition(db, r.id, "Delivered")
            assert again.materialized_rental_id == first

        assert _rental_count(db) == 1
    finally:
        db.close()


def test_materialize_compare_and_set_loses_quietly():
    db = SessionLocal()
    try:
        r = mk_rent_request(db)
        _deliver(db, r.id)

        req = must_get_request(db, r.id)
        assert materialize(db, req) is None
        db.commit()
        assert _rental_count(db) == 1
    finally:
        db.close()


def test_sell_delivery_creates_no_rental():
    db = SessionLocal()
    try:
        r = mk_sell_request(db)
        transition(db, r.id, "Confirmed")
        transition(db, r.id, "Out for Delivery")
        out = transition(db, r.id, "Delivered")
        assert out.materialized_rental_id is None
        assert _rental_count(db) == 0
    finally:
        db.close()


def test_rental_links_to_user_registered_with_case_variant_email():
    db = SessionLocal()
    try:
        r = mk_rent_request(db, email="a@x.com")
        user = mk_user(db, "A@X.com")
        out = _deliver(db, r.id)
        rental = db.scalar(select(Rental).where(Rental.rental_id == out.materialized_rental_id))
        assert rental.user_id == user.id
    finally:
        db.close()


def test_concurrent_delivered_transitions_materialize_once():
    db = SessionLocal()
    try:
        r = mk_rent_request(db)
        transition(db, r.id, "Confirmed")
        transition(db, r.id, "Scheduled Delivery", scheduled_delivery_date=date(2026, 11, 2))
        transition(db, r.id, "Out for Delivery")
    finally:
        db.close()

    barrier = threading.Barrier(2)
    results, errors = [], []

    def worker():
        s = SessionLocal()
        try:
            barrier.wait()
            results.append(transition(s, r.id, "Delivered").materialized_rental_id)
        except Exception as e:  # surfaced via the assertion below
            errors.append(e)
        finally:
            s.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert errors == []
    assert len(results) == 2
    assert results[0] == results[1]

    db = SessionLocal()
    try:
        assert _rental_count(db) == 1
    finally:
        db.close()
