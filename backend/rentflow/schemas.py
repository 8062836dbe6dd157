# backend/rentflow/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional, List

from pydantic import BaseModel, Field, ConfigDict


RequestKind = Literal["Property", "FurnitureSell", "FurnitureRent", "Service"]


# -------------------- Intake --------------------

class RequestItemIn(BaseModel):
    product_id: str = Field(min_length=1)
    product_name: str = Field(min_length=1)
    product_type: str = "Furniture"
    quantity: int = Field(default=1, ge=1)
    price: float = Field(ge=0)
    deposit: float = Field(default=0.0, ge=0)


class RequestCreate(BaseModel):
    kind: RequestKind
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    listing_ref: Optional[str] = None
    message: Optional[str] = None
    items: List[RequestItemIn] = Field(default_factory=list)
    delivery_charge: float = Field(default=0.0, ge=0)


class RequestItemOut(BaseModel):
    product_id: str
    product_name: str
    product_type: str
    quantity: int
    price: float
    deposit: float
    model_config = ConfigDict(from_attributes=True)


class RequestOut(BaseModel):
    id: int
    kind: str
    status: str
    payment_status: str
    user_id: Optional[int] = None
    name: str
    email: str
    phone: str
    listing_ref: Optional[str] = None
    message: Optional[str] = None
    delivery_charge: float
    scheduled_delivery_date: Optional[date] = None
    materialized_rental_id: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_generated_at: Optional[datetime] = None
    version: int
    created_at: datetime
    updated_at: datetime
    items: List[RequestItemOut] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


# -------------------- Status machine --------------------

class StatusUpdateIn(BaseModel):
    # aliases ("out_for_delivery", "cancel", ...) are normalized by the status machine
    status: str = Field(min_length=1)
    payment_status: Optional[str] = None
    scheduled_delivery_date: Optional[date] = None


# -------------------- Payments --------------------

class PaymentWebhookIn(BaseModel):
    event_id: str = Field(min_length=1, max_length=120)
    signature: str = Field(min_length=1)
    amount: float = Field(ge=0)
    request_id: int


class PaymentWebhookAck(BaseModel):
    ok: bool = True
    applied: bool
    reason: str


# -------------------- Rentals / ownership --------------------

class RentalItemOut(BaseModel):
    product_id: str
    product_name: str
    product_type: str
    quantity: int
    monthly_price: float
    deposit: float
    start_date: date
    model_config = ConfigDict(from_attributes=True)


class RentalPaymentOut(BaseModel):
    month: str
    amount: float
    due_date: date
    paid_date: Optional[date] = None
    status: str
    model_config = ConfigDict(from_attributes=True)


class RentalOut(BaseModel):
    rental_id: str
    request_id: int
    user_id: Optional[int] = None
    customer_name: str
    customer_email: str
    customer_phone: str
    total_monthly_amount: float
    total_deposit: float
    delivery_charge: float
    total_amount: float
    start_date: date
    status: str
    notes: Optional[str] = None
    items: List[RentalItemOut] = Field(default_factory=list)
    payments: List[RentalPaymentOut] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class OwnedOut(BaseModel):
    request_ids: List[int]
    rental_ids: List[str]


class ActivityEntryOut(BaseModel):
    action: str
    timestamp: datetime
    details: dict
    model_config = ConfigDict(from_attributes=True)
