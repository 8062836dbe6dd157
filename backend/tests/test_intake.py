# backend/tests/test_intake.py
from __future__ import annotations

import pytest
from sqlalchemy import select

from rentflow.db import SessionLocal
from rentflow.errors import MissingField, ValidationError
from rentflow.models import ActivityLogEntry
from rentflow.schemas import RequestCreate, RequestItemIn
from rentflow.services.intake import submit_request

from helpers import _P, mk_property_request, mk_rent_request, mk_sell_request, mk_service_request, mk_user


def test_each_kind_starts_in_its_initial_status():
    db = SessionLocal()
    try:
        assert mk_sell_request(db).status == "Ordered"
        assert mk_rent_request(db).status == "Requested"
        assert mk_service_request(db).status == "Pending"
        assert mk_property_request(db).status == "Requested"
        assert mk_rent_request(db).payment_status == "Pending"
    finally:
        db.close()


def test_missing_contact_fields_are_reported_together():
    db = SessionLocal()
    try:
        with pytest.raises(MissingField) as ei:
            submit_request(db, RequestCreate(kind="Service", listing_ref="SVC-1"))
        assert set(ei.value.fields) == {"name", "email", "phone"}
        assert ei.value.http_status == 400
    finally:
        db.close()


def test_furniture_request_needs_items_and_property_needs_message():
    db = SessionLocal()
    try:
        with pytest.raises(MissingField) as ei:
            submit_request(db, RequestCreate(kind="FurnitureRent", name="A", email="a@x.com", phone="1"))
        assert ei.value.fields == ("items",)

        with pytest.raises(MissingField) as ei:
            submit_request(
                db, RequestCreate(kind="Property", name="A", email="a@x.com", phone="1", listing_ref="PROP-1")
            )
        assert ei.value.fields == ("message",)
    finally:
        db.close()


def test_bad_email_is_validation_error():
    db = SessionLocal()
    try:
        with pytest.raises(ValidationError):
            submit_request(
                db, RequestCreate(kind="Service", name="A", email="not-an-email", phone="1", listing_ref="SVC-1")
            )
    finally:
        db.close()


def test_logged_in_user_email_overrides_form_email_and_logs_activity():
    db = SessionLocal()
    try:
        user = mk_user(db, "member@x.com", name="Member")
        payload = RequestCreate(
            kind="FurnitureSell",
            name="Typed Name",
            email="typed@x.com",
            phone="1",
            items=[RequestItemIn(product_id="F1", product_name="Chair", price=100.0)],
        )
        req = submit_request(db, payload, principal=_P(user))
        assert req.user_id == user.id
        assert req.email == "member@x.com"
        assert req.name == "Member"

        entries = db.scalars(select(ActivityLogEntry).where(ActivityLogEntry.user_id == user.id)).all()
        assert [e.action for e in entries] == ["furniture_request"]
    finally:
        db.close()


def test_guest_submission_writes_no_activity():
    db = SessionLocal()
    try:
        mk_rent_request(db, email="guest@x.com")
        assert db.scalars(select(ActivityLogEntry)).all() == []
    finally:
        db.close()
