# backend/rentflow/services/fulfillment.py
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..domain.lifecycle import Kind, PaymentStatus
from ..errors import MaterializationConflict
from ..models import Rental, RentalItem, RentalPayment, Request, RequestItem
from .identity import link_user_id, normalize_email

log = logging.getLogger("rentflow.fulfillment")


@dataclass(frozen=True)
class RentalTotals:
    total_monthly_amount: float
    total_deposit: float
    delivery_charge: float
    total_amount: float


def rental_totals(items: Iterable[RequestItem], delivery_charge: float = 0.0) -> RentalTotals:
    items = list(items)
    monthly = sum(float(i.price) * int(i.quantity or 1) for i in items)
    deposit = sum(float(i.deposit or 0.0) * int(i.quantity or 1) for i in items)
    charge = float(delivery_charge or 0.0)
    return RentalTotals(
        total_monthly_amount=round(monthly, 2),
        total_deposit=round(deposit, 2),
        delivery_charge=round(charge, 2),
        total_amount=round(monthly + deposit + charge, 2),
    )


def expected_total(req: Request) -> Optional[float]:
    """
    What a full payment for this request should add up to.
    Rent: first month + deposits + delivery. Sell: goods + delivery.
    Property/Service requests carry no price, so there is nothing to compare.
    """
    if req.kind == Kind.FURNITURE_RENT:
        return rental_totals(req.items, req.delivery_charge).total_amount
    if req.kind == Kind.FURNITURE_SELL:
        goods = sum(float(i.price) * int(i.quantity or 1) for i in req.items)
        return round(goods + float(req.delivery_charge or 0.0), 2)
    return None


def generate_rental_id(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    return f"RENT-{now:%Y}-{now:%m%d}-{secrets.token_hex(3).upper()}"


def materialize(db: Session, req: Request, *, delivered_on: Optional[date] = None) -> Optional[Rental]:
    """
    Create the Rental for a delivered request, at most once.

    The back-reference is claimed first with a compare-and-set on
    requests.materialized_rental_id; only the winner inserts the Rental, in
    the same transaction. A lost claim is a MaterializationConflict and
    resolves to a no-op (returns None). Caller owns commit.
    """
    rental_id = generate_rental_id()
    claimed = db.execute(
        update(Request)
        .where(Request.id == req.id, Request.materialized_rental_id.is_(None))
        .values(materialized_rental_id=rental_id)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        conflict = MaterializationConflict(f"request {req.id} already materialized", request_id=req.id)
        log.info("%s; skipping", conflict.detail, extra={"request_ref": req.id})
        return None

    start = delivered_on or date.today()
    totals = rental_totals(req.items, req.delivery_charge)
    paid = req.payment_status == PaymentStatus.PAID

    rental = Rental(
        rental_id=rental_id,
        request_id=req.id,
        user_id=req.user_id or link_user_id(db, req.email),
        customer_name=req.name,
        customer_email=req.email,
        customer_email_lower=normalize_email(req.email),
        customer_phone=req.phone,
        total_monthly_amount=totals.total_monthly_amount,
        total_deposit=totals.total_deposit,
        delivery_charge=totals.delivery_charge,
        total_amount=totals.total_amount,
        start_date=start,
        status="Active",
        notes=f"Auto-created from delivery of request #{req.id} ({req.listing_ref or 'n/a'})",
    )
    rental.items = [
        RentalItem(
            product_id=i.product_id,
            product_name=i.product_name,
            product_type=i.product_type,
            quantity=i.quantity,
            monthly_price=i.price,
            deposit=i.deposit,
            start_date=start,
        )
        for i in req.items
    ]
    # first month is due on the delivery day
    rental.payments = [
        RentalPayment(
            month=f"{start:%Y-%m}",
            amount=totals.total_monthly_amount,
            due_date=start,
            paid_date=start if paid else None,
            status="Paid" if paid else "Pending",
            notes="First month payment - delivery (paid)" if paid else "First month payment - delivery (pending)",
        )
    ]
    db.add(rental)
    db.flush()

    log.info(
        "rental materialized",
        extra={"request_ref": req.id, "rental_id": rental_id, "user_id": rental.user_id},
    )
    return rental
