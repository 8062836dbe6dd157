# backend/tests/helpers.py
from __future__ import annotations

from typing import Optional

from rentflow.models import AppUser
from rentflow.schemas import RequestCreate, RequestItemIn
from rentflow.services.intake import submit_request


class _P:
    """Stand-in for auth.Principal in service-level tests."""

    def __init__(self, user: AppUser):
        self.user_id = user.id
        self.email = user.email
        self.role = user.role


def mk_user(db, email: str, *, role: str = "customer", name: str = "Test User") -> AppUser:
    u = AppUser(email=email, full_name=name, phone_number="9000000000", role=role)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def mk_rent_request(
    db, *, email: str = "guest@x.com", user: Optional[AppUser] = None, price=949.0, deposit=2847.0, delivery_charge=0.0
):
    payload = RequestCreate(
        kind="FurnitureRent",
        name="Asha",
        email=email,
        phone="9000000001",
        listing_ref="FUR-001",
        items=[RequestItemIn(product_id="FUR-001", product_name="Sofa", price=price, deposit=deposit)],
        delivery_charge=delivery_charge,
    )
    return submit_request(db, payload, principal=_P(user) if user else None)


def mk_sell_request(db, *, email: str = "buyer@x.com", price=5000.0, quantity=1, delivery_charge=0.0):
    payload = RequestCreate(
        kind="FurnitureSell",
        name="Ravi",
        email=email,
        phone="9000000002",
        listing_ref="FUR-002",
        items=[RequestItemIn(product_id="FUR-002", product_name="Table", price=price, quantity=quantity)],
        delivery_charge=delivery_charge,
    )
    return submit_request(db, payload)


def mk_service_request(db, *, email: str = "svc@x.com"):
    payload = RequestCreate(kind="Service", name="Meena", email=email, phone="9000000003", listing_ref="SVC-CLEAN")
    return submit_request(db, payload)


def mk_property_request(db, *, email: str = "prop@x.com", user: Optional[AppUser] = None):
    payload = RequestCreate(
        kind="Property",
        name="Kiran",
        email=email,
        phone="9000000004",
        listing_ref="PROP-9",
        message="Interested in a viewing",
    )
    return submit_request(db, payload, principal=_P(user) if user else None)
