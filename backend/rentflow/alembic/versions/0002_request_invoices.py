"""request invoice numbers

Revision ID: 0002_request_invoices
Revises: 0001_lifecycle_core
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0002_request_invoices"
down_revision = "0001_lifecycle_core"
branch_labels = None
depends_on = None


def upgrade():
    op.add_column("requests", sa.Column("invoice_number", sa.String(length=24), nullable=True))
    op.add_column("requests", sa.Column("invoice_generated_at", sa.DateTime(), nullable=True))
    op.create_index("ix_requests_invoice_number", "requests", ["invoice_number"])


def downgrade():
    op.drop_index("ix_requests_invoice_number", table_name="requests")
    with op.batch_alter_table("requests") as batch:
        batch.drop_column("invoice_generated_at")
        batch.drop_column("invoice_number")
