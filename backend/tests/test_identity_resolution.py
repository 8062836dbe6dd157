# backend/tests/test_identity_resolution.py
from __future__ import annotations

from sqlalchemy import func, select

from rentflow.db import SessionLocal
from rentflow.models import Request
from rentflow.services.identity import Authenticated, Guest, resolve

from helpers import mk_property_request, mk_rent_request, mk_user


def test_guest_request_follows_user_who_registers_with_case_variant_email():
    db = SessionLocal()
    try:
        guest_req = mk_rent_request(db, email="a@x.com")
        assert guest_req.user_id is None

        user = mk_user(db, "A@X.com")
        owned = resolve(db, Authenticated(user_id=user.id, email=user.email))
        assert guest_req.id in owned.request_ids
    finally:
        db.close()


def test_union_of_user_id_and_email_matches_is_deduplicated():
    db = SessionLocal()
    try:
        user = mk_user(db, "owner@x.com")
        by_id = mk_property_request(db, user=user)  # stamped with user_id and the same email
        by_email = mk_rent_request(db, email="OWNER@x.com")
        mk_rent_request(db, email="someone.else@x.com")

        owned = resolve(db, Authenticated(user_id=user.id, email=user.email))
        assert owned.request_ids == frozenset({by_id.id, by_email.id})
    finally:
        db.close()


def test_user_id_match_survives_email_change():
    db = SessionLocal()
    try:
        user = mk_user(db, "old@x.com")
        req = mk_property_request(db, user=user)

        owned = resolve(db, Authenticated(user_id=user.id, email="new@x.com"))
        assert req.id in owned.request_ids
    finally:
        db.close()


def test_guest_identity_matches_by_email_only():
    db = SessionLocal()
    try:
        mine = mk_rent_request(db, email="Walk.In@x.com")
        mk_rent_request(db, email="other@x.com")

        owned = resolve(db, Guest(email="walk.in@X.COM"))
        assert owned.request_ids == frozenset({mine.id})
        assert owned.rental_ids == frozenset()
    finally:
        db.close()


def test_resolve_is_read_only():
    db = SessionLocal()
    try:
        req = mk_rent_request(db, email="a@x.com")
        user = mk_user(db, "a@x.com")
        resolve(db, Authenticated(user_id=user.id, email=user.email))
        db.commit()

        db.expire_all()
        assert db.get(Request, req.id).user_id is None
        assert db.scalar(select(func.count()).select_from(Request)) == 1
    finally:
        db.close()


def test_empty_identity_owns_nothing():
    db = SessionLocal()
    try:
        mk_rent_request(db)
        assert resolve(db, Guest(email="")).request_ids == frozenset()
    finally:
        db.close()
