# backend/rentflow/services/intake.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.lifecycle import Kind, PaymentStatus, initial_status
from ..errors import MissingField, ValidationError
from ..models import AppUser, Request, RequestItem
from ..schemas import RequestCreate
from . import notifications
from .activity import record_activity
from .identity import Authenticated, Guest, Identity, normalize_email
from .notifications import request_received_job

log = logging.getLogger("rentflow.intake")

ACTIVITY_ACTION = {
    Kind.PROPERTY: "property_request",
    Kind.FURNITURE_SELL: "furniture_request",
    Kind.FURNITURE_RENT: "furniture_request",
    Kind.SERVICE: "service_booking",
}


def _required_fields(kind: str) -> tuple[str, ...]:
    base = ("name", "email", "phone")
    if kind == Kind.PROPERTY:
        return base + ("listing_ref", "message")
    if kind == Kind.SERVICE:
        return base + ("listing_ref",)
    return base + ("items",)


def submit_request(db: Session, payload: RequestCreate, *, principal=None) -> Request:
    """
    Validate and persist a new request in its kind's initial status.

    A logged-in submitter's stored email always wins over the form email, so
    the request is owned by that account; name and phone fall back to the
    form. Guests are identified by the email they typed.
    """
    name, email, phone = payload.name, payload.email, payload.phone
    user: Optional[AppUser] = None
    if principal is not None:
        user = db.scalar(select(AppUser).where(AppUser.id == int(principal.user_id)))
        if user is not None:
            email = user.email
            name = user.full_name or name
            phone = user.phone_number or phone

    values = {
        "name": (name or "").strip(),
        "email": (email or "").strip(),
        "phone": (phone or "").strip(),
        "listing_ref": (payload.listing_ref or "").strip(),
        "message": (payload.message or "").strip(),
        "items": payload.items,
    }
    missing = [f for f in _required_fields(payload.kind) if not values[f]]
    if missing:
        raise MissingField(*missing)
    if "@" not in values["email"]:
        raise ValidationError("email is not a valid address", field="email")
    if payload.kind in (Kind.PROPERTY, Kind.SERVICE) and payload.items:
        raise ValidationError(f"{payload.kind} requests do not take line items", field="items")

    identity: Identity = (
        Authenticated(user_id=user.id, email=user.email) if user is not None else Guest(email=values["email"])
    )
    now = datetime.utcnow()
    req = Request(
        kind=payload.kind,
        status=initial_status(payload.kind),
        payment_status=PaymentStatus.PENDING,
        user_id=identity.user_id if isinstance(identity, Authenticated) else None,
        name=values["name"],
        email=values["email"],
        email_lower=normalize_email(values["email"]),
        phone=values["phone"],
        listing_ref=values["listing_ref"] or None,
        message=values["message"] or None,
        delivery_charge=float(payload.delivery_charge or 0.0),
        version=1,
        created_at=now,
        updated_at=now,
    )
    req.items = [
        RequestItem(
            product_id=i.product_id,
            product_name=i.product_name,
            product_type=i.product_type,
            quantity=i.quantity,
            price=i.price,
            deposit=i.deposit,
        )
        for i in payload.items
    ]

    try:
        db.add(req)
        db.flush()
        record_activity(
            db,
            user_id=req.user_id,
            action=ACTIVITY_ACTION[req.kind],
            details={"request_id": req.id, "kind": req.kind, "listing_ref": req.listing_ref},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(req)
    log.info("request created", extra={"request_ref": req.id, "user_id": req.user_id})
    notifications.enqueue(request_received_job(req))
    return req
