# backend/rentflow/services/payments.py
from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.lifecycle import PaymentStatus, Status
from ..errors import AmountMismatch, ConcurrentUpdate, DuplicateEvent, NotFound, SignatureInvalid
from ..models import ProcessedPaymentEvent, Request
from . import notifications
from .activity import record_activity
from .fulfillment import expected_total
from .notifications import payment_received_job
from .status_machine import apply_transition

log = logging.getLogger("rentflow.payments")


@dataclass(frozen=True)
class PaymentEvent:
    event_id: str
    signature: str
    amount: float
    request_id: int
    received_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class PaymentResult:
    applied: bool
    reason: str  # applied | duplicate | signature_invalid | not_found | busy
    request_id: Optional[int] = None


def signing_payload(event_id: str, request_id: int, amount: float) -> bytes:
    return f"{event_id}|{int(request_id)}|{float(amount):.2f}".encode("utf-8")


def sign(event_id: str, request_id: int, amount: float, *, secret: Optional[str] = None) -> str:
    key = (secret if secret is not None else settings.payment_webhook_secret) or ""
    return hmac.new(key.encode("utf-8"), signing_payload(event_id, request_id, amount), hashlib.sha256).hexdigest()


def verify_signature(event: PaymentEvent, *, secret: Optional[str] = None) -> None:
    key = secret if secret is not None else settings.payment_webhook_secret
    if not key:
        raise SignatureInvalid("webhook secret not configured", event_id=event.event_id)

    expected = sign(event.event_id, event.request_id, event.amount, secret=key)
    if not hmac.compare_digest(expected, (event.signature or "").strip().lower()):
        raise SignatureInvalid("signature mismatch", event_id=event.event_id)


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    return f"INV-{now:%Y}-{now:%m%d}-{1000 + secrets.randbelow(9000)}"


def issue_invoice(db: Session, req: Request, *, now: Optional[datetime] = None) -> bool:
    """
    Stamp the request's invoice number the first time a payment lands.
    Later payments (and replays) keep the first number. Caller owns commit.
    """
    now = now or datetime.utcnow()
    res = db.execute(
        update(Request)
        .where(Request.id == req.id, Request.invoice_number.is_(None))
        .values(invoice_number=generate_invoice_number(now), invoice_generated_at=now)
        .execution_options(synchronize_session=False)
    )
    db.refresh(req)
    return res.rowcount == 1


def apply_payment_event(db: Session, event: PaymentEvent) -> PaymentResult:
    """
    Verify and apply one gateway payment event, at most once per event_id.

    The processed-id row is the first write of the transaction, so a
    concurrent copy of the same event blocks on the unique constraint and
    then fails as a duplicate. The Paid transition, the invoice number, the
    activity entry and the processed id commit together; the notification
    goes out afterwards. Every outcome is reported, never raised, except
    unexpected database errors. Outcomes other than `applied` and `duplicate`
    leave the event id unused so the gateway's redelivery can still apply.
    """
    ctx = {"event_id": event.event_id, "request_ref": event.request_id}

    try:
        verify_signature(event)
    except SignatureInvalid as e:
        log.warning("payment event dropped: %s", e.detail, extra=ctx)
        return PaymentResult(applied=False, reason="signature_invalid", request_id=event.request_id)

    try:
        db.add(
            ProcessedPaymentEvent(
                event_id=event.event_id,
                request_id=int(event.request_id),
                amount=float(event.amount),
                received_at=event.received_at,
            )
        )
        db.flush()
    except IntegrityError:
        db.rollback()
        dup = DuplicateEvent(f"payment event {event.event_id} already processed", event_id=event.event_id)
        log.info("%s; ignoring", dup.detail, extra=ctx)
        return PaymentResult(applied=False, reason="duplicate", request_id=event.request_id)

    try:
        outcome = apply_transition(db, event.request_id, None, payment_status=PaymentStatus.PAID)
        req = outcome.request

        expected = expected_total(req)
        if expected is not None and abs(expected - float(event.amount)) > float(settings.amount_tolerance):
            mismatch = AmountMismatch(request_id=req.id, expected=expected, received=float(event.amount))
            log.warning("%s; marked Paid, needs manual reconciliation", mismatch.detail, extra=ctx)
        if req.status == Status.CANCELLED:
            log.warning("payment received for cancelled request %s", req.id, extra=ctx)

        if issue_invoice(db, req, now=event.received_at):
            log.info("invoice %s issued", req.invoice_number, extra=ctx)

        record_activity(
            db,
            user_id=req.user_id,
            action="payment_received",
            details={
                "request_id": req.id,
                "event_id": event.event_id,
                "amount": float(event.amount),
                "status": req.status,
                "invoice_number": req.invoice_number,
            },
        )
        db.commit()
    except NotFound as e:
        db.rollback()
        log.warning("payment event for unknown request: %s", e.detail, extra=ctx)
        return PaymentResult(applied=False, reason="not_found", request_id=event.request_id)
    except ConcurrentUpdate as e:
        db.rollback()
        log.warning("payment event deferred: %s", e.detail, extra=ctx)
        return PaymentResult(applied=False, reason="busy", request_id=event.request_id)
    except Exception:
        db.rollback()
        raise

    notifications.enqueue(
        payment_received_job(req, amount=event.amount, invoice_total=expected if expected is not None else event.amount)
    )
    log.info("payment event applied", extra=ctx)
    return PaymentResult(applied=True, reason="applied", request_id=req.id)
