# backend/rentflow/services/status_machine.py
"""
Applies lifecycle decisions to stored requests.

Every write is a conditional UPDATE pinned to the status and version that
were read; a writer that loses the race re-reads and decides again, which
either applies on top of the winner's state or turns into an idempotent
no-op. `apply_transition` never commits so callers (the payment webhook) can
bundle more writes into the same transaction; `transition` is the
commit-then-notify wrapper used by the admin endpoint.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.lifecycle import Decision, Materialize, Notify, decide, normalize_payment_status, normalize_status
from ..errors import ConcurrentUpdate, NotFound
from ..models import Rental, Request
from . import fulfillment, notifications
from .notifications import NotificationJob, status_update_job

log = logging.getLogger("rentflow.status_machine")


@dataclass(frozen=True)
class TransitionOutcome:
    request: Request
    decision: Decision
    changed: bool
    rental: Optional[Rental] = None
    jobs: tuple[NotificationJob, ...] = ()


def must_get_request(db: Session, request_id: int) -> Request:
    row = db.execute(
        select(Request).where(Request.id == int(request_id)).execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if row is None:
        raise NotFound(f"request {request_id} not found", request_id=int(request_id))
    return row


def apply_transition(
    db: Session,
    request_id: int,
    target: Optional[str],
    *,
    payment_status: Optional[str] = None,
    scheduled_delivery_date: Optional[date] = None,
) -> TransitionOutcome:
    """
    Read-decide-write with optimistic retry. target=None keeps the current
    status. Flushes but does not commit; notification jobs are returned for
    the caller to enqueue after its commit.
    """
    target = normalize_status(target) if target is not None else None
    payment_status = normalize_payment_status(payment_status) if payment_status else None

    attempts = max(1, int(settings.transition_max_attempts))
    for attempt in range(1, attempts + 1):
        req = must_get_request(db, request_id)
        read_status, read_version = req.status, req.version

        decision = decide(
            kind=req.kind,
            current_status=read_status,
            current_payment_status=req.payment_status,
            current_scheduled_date=req.scheduled_delivery_date,
            target=target,
            payment_status=payment_status,
            scheduled_delivery_date=scheduled_delivery_date,
        )

        if decision.writes:
            res = db.execute(
                update(Request)
                .where(
                    Request.id == req.id,
                    Request.status == read_status,
                    Request.version == read_version,
                )
                .values(
                    status=decision.status,
                    payment_status=decision.payment_status,
                    scheduled_delivery_date=decision.scheduled_delivery_date,
                    version=Request.version + 1,
                    updated_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                log.info(
                    "transition lost race (attempt %s/%s); re-reading",
                    attempt,
                    attempts,
                    extra={"request_ref": req.id},
                )
                continue
            db.refresh(req)

        rental = None
        if decision.has(Materialize) and req.materialized_rental_id is None:
            rental = fulfillment.materialize(db, req, delivered_on=req.updated_at.date())
            db.refresh(req)

        jobs = tuple(status_update_job(req, e) for e in decision.effects if isinstance(e, Notify))
        if decision.writes:
            log.info(
                "request %s: %s -> %s (payment %s)",
                req.id,
                read_status,
                req.status,
                req.payment_status,
                extra={"request_ref": req.id},
            )
        return TransitionOutcome(request=req, decision=decision, changed=decision.writes, rental=rental, jobs=jobs)

    raise ConcurrentUpdate(f"request {request_id} kept changing; gave up after {attempts} attempts", request_id=request_id)


def transition(
    db: Session,
    request_id: int,
    target: Optional[str],
    *,
    payment_status: Optional[str] = None,
    scheduled_delivery_date: Optional[date] = None,
) -> Request:
    """Apply, commit, then enqueue notifications. Errors roll back and propagate."""
    try:
        outcome = apply_transition(
            db,
            request_id,
            target,
            payment_status=payment_status,
            scheduled_delivery_date=scheduled_delivery_date,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    notifications.enqueue_all(outcome.jobs)
    return outcome.request
