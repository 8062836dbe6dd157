# backend/rentflow/models.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


# -----------------------------
# Users + activity
# -----------------------------
class AppUser(Base):
    __tablename__ = "app_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="customer")  # customer|admin
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class ActivityLogEntry(Base):
    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), index=True, nullable=False)
    action: Mapped[str] = mapped_column(String(80), nullable=False)
    details_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Requests (property / furniture / service submissions)
# -----------------------------
class Request(Base):
    __tablename__ = "requests"
    __table_args__ = (
        Index("ix_requests_email_lower", "email_lower"),
        Index("ix_requests_kind_status", "kind", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(40), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending")

    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), index=True, nullable=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False)
    # lowercased copy so guest ownership lookups stay index-friendly
    email_lower: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)

    listing_ref: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivery_charge: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    scheduled_delivery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    materialized_rental_id: Mapped[Optional[str]] = mapped_column(String(40), nullable=True, unique=True)
    # set once, by the first applied payment
    invoice_number: Mapped[Optional[str]] = mapped_column(String(24), index=True, nullable=True)
    invoice_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    items: Mapped[List["RequestItem"]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestItem.id",
    )


class RequestItem(Base):
    __tablename__ = "request_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_id: Mapped[int] = mapped_column(Integer, ForeignKey("requests.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id: Mapped[str] = mapped_column(String(80), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    product_type: Mapped[str] = mapped_column(String(80), nullable=False, default="Furniture")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # monthly rent or unit sale price
    deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    request: Mapped[Request] = relationship(back_populates="items")


# -----------------------------
# Payment idempotency store
# -----------------------------
class ProcessedPaymentEvent(Base):
    __tablename__ = "processed_payment_events"
    __table_args__ = (UniqueConstraint("event_id", name="uq_processed_payment_events_event_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[str] = mapped_column(String(120), nullable=False)
    request_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    received_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Rentals (materialized at delivery)
# -----------------------------
class Rental(Base):
    __tablename__ = "rentals"
    __table_args__ = (UniqueConstraint("request_id", name="uq_rentals_request_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rental_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)
    request_id: Mapped[int] = mapped_column(Integer, ForeignKey("requests.id"), nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), index=True, nullable=True)

    customer_name: Mapped[str] = mapped_column(String(160), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_email_lower: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    customer_phone: Mapped[str] = mapped_column(String(40), nullable=False)

    total_monthly_amount: Mapped[float] = mapped_column(Float, nullable=False)
    total_deposit: Mapped[float] = mapped_column(Float, nullable=False)
    delivery_charge: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    items: Mapped[List["RentalItem"]] = relationship(
        back_populates="rental",
        cascade="all, delete-orphan",
        order_by="RentalItem.id",
    )
    payments: Mapped[List["RentalPayment"]] = relationship(
        back_populates="rental",
        cascade="all, delete-orphan",
        order_by="RentalPayment.id",
    )


class RentalItem(Base):
    __tablename__ = "rental_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rental_pk: Mapped[int] = mapped_column(Integer, ForeignKey("rentals.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id: Mapped[str] = mapped_column(String(80), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    product_type: Mapped[str] = mapped_column(String(80), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    monthly_price: Mapped[float] = mapped_column(Float, nullable=False)
    deposit: Mapped[float] = mapped_column(Float, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    rental: Mapped[Rental] = relationship(back_populates="items")


class RentalPayment(Base):
    __tablename__ = "rental_payments"
    __table_args__ = (UniqueConstraint("rental_pk", "month", name="uq_rental_payments_rental_month"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rental_pk: Mapped[int] = mapped_column(Integer, ForeignKey("rentals.id", ondelete="CASCADE"), index=True, nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    rental: Mapped[Rental] = relationship(back_populates="payments")
