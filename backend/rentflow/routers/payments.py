# backend/rentflow/routers/payments.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas import PaymentWebhookAck, PaymentWebhookIn
from ..services.payments import PaymentEvent, apply_payment_event

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook", response_model=PaymentWebhookAck)
def payment_webhook(payload: PaymentWebhookIn, db: Session = Depends(get_db)):
    """
    Gateway callback. Always 200 once the body parses; bad signatures and
    redeliveries are logged and reported in the body, not as error statuses.
    """
    result = apply_payment_event(
        db,
        PaymentEvent(
            event_id=payload.event_id,
            signature=payload.signature,
            amount=payload.amount,
            request_id=payload.request_id,
        ),
    )
    return PaymentWebhookAck(applied=result.applied, reason=result.reason)
