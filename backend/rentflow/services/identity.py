# backend/rentflow/services/identity.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..models import AppUser, Rental, Request


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class Authenticated:
    user_id: int
    email: str


@dataclass(frozen=True)
class Guest:
    email: str


Identity = Union[Authenticated, Guest]


@dataclass(frozen=True)
class OwnedRecords:
    request_ids: frozenset[int] = field(default_factory=frozenset)
    rental_ids: frozenset[str] = field(default_factory=frozenset)


def identity_for(principal, *, email: Optional[str] = None) -> Identity:
    """Authenticated when a principal is present, otherwise a guest keyed by the submitted email."""
    if principal is not None:
        return Authenticated(user_id=int(principal.user_id), email=principal.email)
    return Guest(email=email or "")


def resolve(db: Session, identity: Identity) -> OwnedRecords:
    """
    Records owned by an identity: anything stamped with its user id plus
    anything submitted under the same email (case-insensitive), so guest
    submissions follow the user once they register. Read-only.
    """
    email = normalize_email(identity.email)
    user_id = identity.user_id if isinstance(identity, Authenticated) else None

    req_match = []
    rent_match = []
    if user_id is not None:
        req_match.append(Request.user_id == user_id)
        rent_match.append(Rental.user_id == user_id)
    if email:
        req_match.append(Request.email_lower == email)
        rent_match.append(Rental.customer_email_lower == email)

    if not req_match:
        return OwnedRecords()

    request_ids = db.scalars(select(Request.id).where(or_(*req_match))).all()
    rental_ids = db.scalars(select(Rental.rental_id).where(or_(*rent_match))).all()
    return OwnedRecords(request_ids=frozenset(request_ids), rental_ids=frozenset(rental_ids))


def link_user_id(db: Session, email: Optional[str]) -> Optional[int]:
    """Registered user whose email matches case-insensitively, if any."""
    email = normalize_email(email)
    if not email:
        return None
    return db.scalar(select(AppUser.id).where(func.lower(AppUser.email) == email).limit(1))
