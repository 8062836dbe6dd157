# backend/rentflow/services/notifications.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional

from ..domain.lifecycle import Notify
from ..middleware.request_id import get_request_id
from ..models import Request
from ..workers.notification_tasks import send_notification

log = logging.getLogger("rentflow.notifications")


@dataclass(frozen=True)
class NotificationJob:
    job_kind: str  # request_received | status_update | payment_received
    request_id: int
    request_kind: str
    to_email: str
    to_name: str
    status: str
    payment_status: str
    listing_ref: Optional[str] = None
    old_status: Optional[str] = None
    scheduled_delivery_date: Optional[str] = None
    amount: Optional[float] = None
    invoice_number: Optional[str] = None
    invoice_lines: Optional[list[dict[str, Any]]] = None
    delivery_charge: Optional[float] = None
    invoice_total: Optional[float] = None
    correlation_id: Optional[str] = None

    def as_payload(self) -> dict[str, Any]:
        return asdict(self)


def _job(job_kind: str, req: Request, **extra: Any) -> NotificationJob:
    return NotificationJob(
        job_kind=job_kind,
        request_id=int(req.id),
        request_kind=req.kind,
        to_email=req.email,
        to_name=req.name,
        status=req.status,
        payment_status=req.payment_status,
        listing_ref=req.listing_ref,
        scheduled_delivery_date=req.scheduled_delivery_date.isoformat() if req.scheduled_delivery_date else None,
        correlation_id=get_request_id(),
        **extra,
    )


def request_received_job(req: Request) -> NotificationJob:
    return _job("request_received", req)


def status_update_job(req: Request, change: Notify) -> NotificationJob:
    return _job("status_update", req, old_status=change.old_status)


def _invoice_lines(req: Request) -> list[dict[str, Any]]:
    lines = []
    for i in req.items:
        qty = int(i.quantity or 1)
        lines.append(
            {
                "description": i.product_name,
                "quantity": qty,
                "unit_price": float(i.price),
                "total": round(float(i.price) * qty, 2),
            }
        )
        if i.deposit:
            lines.append(
                {
                    "description": f"Security deposit - {i.product_name}",
                    "quantity": qty,
                    "unit_price": float(i.deposit),
                    "total": round(float(i.deposit) * qty, 2),
                }
            )
    return lines


def payment_received_job(req: Request, *, amount: float, invoice_total: Optional[float] = None) -> NotificationJob:
    """Payment confirmation; doubles as the invoice email once the request has an invoice number."""
    if not req.invoice_number:
        return _job("payment_received", req, amount=float(amount))
    return _job(
        "payment_received",
        req,
        amount=float(amount),
        invoice_number=req.invoice_number,
        invoice_lines=_invoice_lines(req),
        delivery_charge=float(req.delivery_charge or 0.0),
        invoice_total=float(invoice_total if invoice_total is not None else amount),
    )


def enqueue(job: NotificationJob) -> None:
    """
    Hand a job to the notification queue and return.

    Call only after the triggering change is committed. Broker failures are
    logged and swallowed; the caller's operation has already succeeded.
    """
    try:
        send_notification.delay(job.as_payload())
    except Exception:
        log.exception(
            "notification enqueue failed",
            extra={"job_kind": job.job_kind, "request_ref": job.request_id, "user_email": job.to_email},
        )


def enqueue_all(jobs: Iterable[NotificationJob]) -> None:
    for job in jobs:
        enqueue(job)
