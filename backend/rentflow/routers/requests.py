# backend/rentflow/routers/requests.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Principal, get_optional_principal, get_principal, require_admin
from ..db import get_db
from ..errors import NotFound
from ..schemas import RequestCreate, RequestOut, StatusUpdateIn
from ..services import identity
from ..services.intake import submit_request
from ..services.status_machine import must_get_request, transition

router = APIRouter(prefix="/requests", tags=["requests"])


@router.post("", response_model=RequestOut)
def create_request(
    payload: RequestCreate,
    db: Session = Depends(get_db),
    p: Optional[Principal] = Depends(get_optional_principal),
):
    return submit_request(db, payload, principal=p)


@router.get("/{request_id}", response_model=RequestOut)
def get_request(request_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    row = must_get_request(db, request_id)
    if p.role != "admin":
        owned = identity.resolve(db, identity.identity_for(p))
        if row.id not in owned.request_ids:
            # same answer as a missing id
            raise NotFound(f"request {request_id} not found", request_id=request_id)
    return row


@router.put("/{request_id}/status", response_model=RequestOut)
def update_request_status(
    request_id: int,
    payload: StatusUpdateIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    return transition(
        db,
        request_id,
        payload.status,
        payment_status=payload.payment_status,
        scheduled_delivery_date=payload.scheduled_delivery_date,
    )
