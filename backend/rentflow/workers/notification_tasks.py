# backend/rentflow/workers/notification_tasks.py
from __future__ import annotations

import logging
from typing import Any

from ..clients.email import EmailClient
from ..config import settings
from ..domain.messages import render
from ..middleware.request_id import bind_request_id
from .celery_app import celery_app

log = logging.getLogger("rentflow.notifications")


def _context(job: dict[str, Any]) -> dict[str, Any]:
    return {
        "job_kind": job.get("job_kind"),
        "request_ref": job.get("request_id"),
        "user_email": job.get("to_email"),
    }


@celery_app.task(
    bind=True,
    max_retries=0,
    name="rentflow.workers.notification_tasks.send_notification",
)
def send_notification(self, job: dict[str, Any]) -> dict:
    """
    Best-effort email for one notification job.

    Never raises: timeouts and provider errors are logged with the job context
    and dropped. Nothing upstream waits on this task.
    """
    with bind_request_id(job.get("correlation_id")):
        return _deliver(job)


def _deliver(job: dict[str, Any]) -> dict:
    label = job.get("job_kind") or "notification"
    try:
        msg = render(job, support_email=settings.company_support_email)
        if msg is None:
            log.info("%s skipped: no recipient", label, extra=_context(job))
            return {"ok": False, "reason": "no_recipient"}

        client = EmailClient()
        if not client.enabled():
            log.info("%s skipped: email not configured", label, extra=_context(job))
            return {"ok": False, "reason": "email_disabled"}

        result = client.send(msg)
        log.info("%s email sent", label, extra=_context(job))
        return {"ok": True, "result": result}
    except Exception:
        log.exception("%s email failed", label, extra=_context(job))
        return {"ok": False, "reason": "send_failed"}
