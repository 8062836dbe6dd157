# backend/rentflow/domain/messages.py
"""Transactional email content. Pure string building; sending lives in clients/email.py."""
from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Optional

from .lifecycle import Kind

STATUS_MESSAGES: dict[str, dict[str, str]] = {
    "furniture": {
        "Requested": "Your furniture request has been received.",
        "Ordered": "Your furniture order has been placed.",
        "Confirmed": "Your furniture order has been confirmed!",
        "Scheduled Delivery": "Your furniture delivery has been scheduled.",
        "Out for Delivery": "Your furniture is out for delivery!",
        "Delivered": "Your furniture has been delivered. We hope you enjoy it!",
        "Cancelled": "Your furniture request has been cancelled.",
    },
    "property": {
        "Requested": "Your property request has been received.",
        "Accepted": "Your property request has been accepted! We will contact you shortly.",
        "Ongoing": "Your property request is being processed.",
        "Completed": "Your property request has been completed. We hope you found your perfect property!",
        "Cancelled": "Your property request has been cancelled.",
    },
    "service": {
        "Pending": "Your service booking has been received.",
        "Accepted": "Your service booking has been accepted! We will contact you shortly.",
        "Ongoing": "Your service is in progress.",
        "Completed": "Your service booking has been completed. Thank you for choosing us!",
        "Cancelled": "Your service booking has been cancelled.",
    },
}

_FAMILY = {
    Kind.FURNITURE_SELL: "furniture",
    Kind.FURNITURE_RENT: "furniture",
    Kind.PROPERTY: "property",
    Kind.SERVICE: "service",
}


@dataclass(frozen=True)
class EmailMessage:
    to_address: str
    to_name: str
    subject: str
    html_body: str


def _family(kind: str) -> str:
    return _FAMILY.get(kind, "furniture")


def _rows(pairs: list[tuple[str, Any]]) -> str:
    out = []
    for label, value in pairs:
        if value is None or value == "":
            continue
        out.append(
            f"<tr><td><strong>{html.escape(label)}:</strong></td><td>{html.escape(str(value))}</td></tr>"
        )
    return "".join(out)


def _money(value: Any) -> str:
    return f"{float(value):.2f}"


def _invoice_table(job: dict[str, Any]) -> str:
    if not job.get("invoice_number"):
        return ""
    rows = "".join(
        f"<tr><td>{html.escape(str(line.get('description') or ''))}</td>"
        f"<td>{int(line.get('quantity') or 1)}</td>"
        f"<td>{_money(line.get('unit_price') or 0)}</td>"
        f"<td>{_money(line.get('total') or 0)}</td></tr>"
        for line in job.get("invoice_lines") or []
    )
    if job.get("delivery_charge"):
        rows += f"<tr><td colspan=\"3\">Delivery charge</td><td>{_money(job['delivery_charge'])}</td></tr>"
    total = job.get("invoice_total") if job.get("invoice_total") is not None else job.get("amount") or 0
    rows += f"<tr><td colspan=\"3\"><strong>Total</strong></td><td><strong>{_money(total)}</strong></td></tr>"
    return (
        "<table><tr><th>Item</th><th>Qty</th><th>Unit price</th><th>Amount</th></tr>"
        f"{rows}</table>"
    )


def render(job: dict[str, Any], *, support_email: str) -> Optional[EmailMessage]:
    """
    Build the email for a notification job payload (see services.notifications.NotificationJob).
    Returns None when there is nobody to send to.
    """
    to = (job.get("to_email") or "").strip()
    if not to:
        return None

    family = _family(job.get("request_kind") or "")
    noun = {"furniture": "Furniture Request", "property": "Property Request", "service": "Service Booking"}[family]
    status = job.get("status") or ""
    ref = job.get("listing_ref") or f"#{job.get('request_id')}"
    job_kind = job.get("job_kind")

    if job_kind == "payment_received" and job.get("invoice_number"):
        subject = f"Invoice {job['invoice_number']} - {ref}"
        lead = "We have received your payment. Your invoice is below."
    elif job_kind == "payment_received":
        subject = f"Payment Received - {ref}"
        lead = "We have received your payment. Thank you!"
    elif job_kind == "request_received":
        subject = f"{noun} Received - {ref}"
        lead = STATUS_MESSAGES[family].get(status) or f"Your {noun.lower()} has been received."
    else:
        subject = f"{noun} Status Update - {ref}"
        lead = STATUS_MESSAGES[family].get(status) or f"Your {noun.lower()} status has been updated."

    rows = _rows(
        [
            ("Invoice", job.get("invoice_number")),
            ("Reference", ref),
            ("Status", status),
            ("Payment", job.get("payment_status")),
            ("Amount", f"{float(job['amount']):.2f}" if job.get("amount") is not None else None),
            ("Delivery date", job.get("scheduled_delivery_date")),
        ]
    )
    name = html.escape(job.get("to_name") or "there")
    body = (
        f"<p>Hello <strong>{name}</strong>,</p>"
        f"<p>{html.escape(lead)}</p>"
        f"<table>{rows}</table>"
        f"{_invoice_table(job)}"
        f"<p>If you have any questions, please contact us at "
        f'<a href="mailto:{html.escape(support_email)}">{html.escape(support_email)}</a>.</p>'
    )
    return EmailMessage(to_address=to, to_name=job.get("to_name") or "", subject=subject, html_body=body)
