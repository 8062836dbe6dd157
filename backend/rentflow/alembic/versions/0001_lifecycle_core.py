"""lifecycle core schema

Revision ID: 0001_lifecycle_core
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_lifecycle_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "app_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("full_name", sa.String(length=160), nullable=True),
        sa.Column("phone_number", sa.String(length=40), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="customer"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_app_users_email", "app_users", ["email"], unique=True)

    op.create_table(
        "activity_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_activity_log_user_id", "activity_log", ["user_id"])

    op.create_table(
        "requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=40), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="Pending"),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("email_lower", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False),
        sa.Column("listing_ref", sa.String(length=80), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("delivery_charge", sa.Float(), nullable=False, server_default="0"),
        sa.Column("scheduled_delivery_date", sa.Date(), nullable=True),
        sa.Column("materialized_rental_id", sa.String(length=40), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("materialized_rental_id"),
    )
    op.create_index("ix_requests_user_id", "requests", ["user_id"])
    op.create_index("ix_requests_email_lower", "requests", ["email_lower"])
    op.create_index("ix_requests_kind_status", "requests", ["kind", "status"])

    op.create_table(
        "request_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("request_id", sa.Integer(), sa.ForeignKey("requests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.String(length=80), nullable=False),
        sa.Column("product_name", sa.String(length=200), nullable=False),
        sa.Column("product_type", sa.String(length=80), nullable=False, server_default="Furniture"),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("deposit", sa.Float(), nullable=False, server_default="0"),
    )
    op.create_index("ix_request_items_request_id", "request_items", ["request_id"])

    op.create_table(
        "processed_payment_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.String(length=120), nullable=False),
        sa.Column("request_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("received_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("event_id", name="uq_processed_payment_events_event_id"),
    )
    op.create_index("ix_processed_payment_events_request_id", "processed_payment_events", ["request_id"])

    op.create_table(
        "rentals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("rental_id", sa.String(length=40), nullable=False),
        sa.Column("request_id", sa.Integer(), sa.ForeignKey("requests.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
        sa.Column("customer_name", sa.String(length=160), nullable=False),
        sa.Column("customer_email", sa.String(length=200), nullable=False),
        sa.Column("customer_email_lower", sa.String(length=200), nullable=False),
        sa.Column("customer_phone", sa.String(length=40), nullable=False),
        sa.Column("total_monthly_amount", sa.Float(), nullable=False),
        sa.Column("total_deposit", sa.Float(), nullable=False),
        sa.Column("delivery_charge", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Active"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("request_id", name="uq_rentals_request_id"),
    )
    op.create_index("ix_rentals_rental_id", "rentals", ["rental_id"], unique=True)
    op.create_index("ix_rentals_user_id", "rentals", ["user_id"])
    op.create_index("ix_rentals_customer_email_lower", "rentals", ["customer_email_lower"])

    op.create_table(
        "rental_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("rental_pk", sa.Integer(), sa.ForeignKey("rentals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.String(length=80), nullable=False),
        sa.Column("product_name", sa.String(length=200), nullable=False),
        sa.Column("product_type", sa.String(length=80), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("monthly_price", sa.Float(), nullable=False),
        sa.Column("deposit", sa.Float(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
    )
    op.create_index("ix_rental_items_rental_pk", "rental_items", ["rental_pk"])

    op.create_table(
        "rental_payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("rental_pk", sa.Integer(), sa.ForeignKey("rentals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("rental_pk", "month", name="uq_rental_payments_rental_month"),
    )
    op.create_index("ix_rental_payments_rental_pk", "rental_payments", ["rental_pk"])


def downgrade():
    op.drop_table("rental_payments")
    op.drop_table("rental_items")
    op.drop_table("rentals")
    op.drop_table("processed_payment_events")
    op.drop_table("request_items")
    op.drop_table("requests")
    op.drop_table("activity_log")
    op.drop_table("app_users")
