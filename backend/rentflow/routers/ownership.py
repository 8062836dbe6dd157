# backend/rentflow/routers/ownership.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..errors import NotFound
from ..models import Rental
from ..schemas import ActivityEntryOut, OwnedOut, RentalOut
from ..services import identity
from ..services.activity import list_activity

router = APIRouter(tags=["ownership"])


@router.get("/me/owned", response_model=OwnedOut)
def my_owned_records(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    owned = identity.resolve(db, identity.identity_for(p))
    return OwnedOut(request_ids=sorted(owned.request_ids), rental_ids=sorted(owned.rental_ids))


@router.get("/me/activity", response_model=list[ActivityEntryOut])
def my_activity(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return list_activity(db, user_id=p.user_id, limit=limit)


@router.get("/rentals/{rental_id}", response_model=RentalOut)
def get_rental(rental_id: str, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    row = db.scalar(select(Rental).where(Rental.rental_id == rental_id))
    if row is None:
        raise NotFound(f"rental {rental_id} not found", rental_id=rental_id)
    if p.role != "admin" and rental_id not in identity.resolve(db, identity.identity_for(p)).rental_ids:
        raise NotFound(f"rental {rental_id} not found", rental_id=rental_id)
    return row
