# backend/tests/test_status_machine.py
from __future__ import annotations

from datetime import date

import pytest

from rentflow.db import SessionLocal
from rentflow.errors import InvalidTransition, MissingField, NotFound, ValidationError
from rentflow.models import Request
from rentflow.services import notifications, status_machine
from rentflow.services.status_machine import transition

from helpers import mk_rent_request, mk_sell_request, mk_service_request


@pytest.fixture()
def sent(monkeypatch):
    jobs = []
    monkeypatch.setattr(notifications, "enqueue", lambda job: jobs.append(job))
    return jobs


def test_rent_request_walks_to_scheduled_delivery_and_stores_date(sent):
    db = SessionLocal()
    try:
        r = mk_rent_request(db)
        transition(db, r.id, "Confirmed")
        with pytest.raises(MissingField):
            transition(db, r.id, "Scheduled Delivery")

        out = transition(db, r.id, "scheduled", scheduled_delivery_date=date(2026, 11, 2))
        assert out.status == "Scheduled Delivery"
        assert out.scheduled_delivery_date == date(2026, 11, 2)

        stored = db.get(Request, r.id)
        db.refresh(stored)
        assert stored.scheduled_delivery_date == date(2026, 11, 2)
    finally:
        db.close()



def test_delivery_date_on_sell_request_is_rejected_without_a_write(sent):
    db = SessionLocal()
    try:
        r = mk_sell_request(db)
        with pytest.raises(ValidationError):
            transition(db, r.id, "Confirmed", scheduled_delivery_date=date(2026, 11, 2))
        stored = status_machine.must_get_request(db, r.id)
        assert stored.status == "Ordered"
        assert stored.version == 1
        assert stored.scheduled_delivery_date is None
        assert [j.job_kind for j in sent] == ["request_received"]
    finally:
        db.close()

def test_skip_is_rejected_and_state_untouched(sent):
    db = SessionLocal()
    try:
        r = mk_rent_request(db)
        sent.clear()
        with pytest.raises(InvalidTransition):
            transition(db, r.id, "Delivered")

        stored = status_machine.must_get_request(db, r.id)
        assert stored.status == "Requested"
        assert stored.version == 1
        assert sent == []
    finally:
        db.close()


def test_paid_on_ordered_sell_confirms_in_one_update(sent):
    db = SessionLocal()
    try:
        r = mk_sell_request(db)
        sent.clear()
        out = transition(db, r.id, "Ordered", payment_status="Paid")
        assert out.status == "Confirmed"
        assert out.payment_status == "Paid"
        # single write, single notification
        assert out.version == 2
        assert len(sent) == 1
        assert sent[0].job_kind == "status_update"
        assert sent[0].old_status == "Ordered"
        assert sent[0].status == "Confirmed"
    finally:
        db.close()


def test_same_status_is_idempotent_and_silent(sent):
    db = SessionLocal()
    try:
        r = mk_service_request(db)
        transition(db, r.id, "Accepted")
        sent.clear()

        out = transition(db, r.id, "accept")
        assert out.status == "Accepted"
        assert out.version == 2
        assert sent == []
    finally:
        db.close()


def test_unknown_request_is_not_found():
    db = SessionLocal()
    try:
        with pytest.raises(NotFound):
            transition(db, 999_999, "Confirmed")
    finally:
        db.close()


def test_lost_race_rereads_and_observes_applied_result(monkeypatch, sent):
    db = SessionLocal()
    try:
        r = mk_sell_request(db)
        sent.clear()

        real_decide = status_machine.decide
        calls = {"n": 0}

        def racing_decide(**kw):
            calls["n"] += 1
            if calls["n"] == 1:
                # another writer confirms between our read and our write
                other = SessionLocal()
                try:
                    transition(other, r.id, "Confirmed")
                finally:
                    other.close()
            return real_decide(**kw)

        monkeypatch.setattr(status_machine, "decide", racing_decide)
        out = transition(db, r.id, "Confirmed")

        assert calls["n"] == 3  # ours (stale), the other writer's, ours again
        assert out.status == "Confirmed"
        assert out.version == 2  # only the winner wrote
        assert len(sent) == 1  # only the winner notified
    finally:
        db.close()
