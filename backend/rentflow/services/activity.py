# backend/rentflow/services/activity.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import ActivityLogEntry


def _dumps(v: Any) -> str:
    try:
        return json.dumps(v, default=str)
    except (TypeError, ValueError):
        return "{}"


def _loads(s: Optional[str], default: Any) -> Any:
    if not s:
        return default
    try:
        return json.loads(s)
    except ValueError:
        return default


@dataclass(frozen=True)
class ActivityOut:
    action: str
    timestamp: datetime
    details: dict[str, Any]


def record_activity(
    db: Session,
    *,
    user_id: Optional[int],
    action: str,
    details: dict[str, Any] | None = None,
) -> Optional[ActivityLogEntry]:
    """
    Append to a user's activity log. Guest submissions (no user id) are never
    logged. Flush-only: the entry commits with the caller's transaction.
    """
    if user_id is None:
        return None
    row = ActivityLogEntry(
        user_id=int(user_id),
        action=str(action),
        details_json=_dumps(details or {}),
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.flush()
    return row


def list_activity(db: Session, *, user_id: int, limit: int = 100) -> list[ActivityOut]:
    rows = db.scalars(
        select(ActivityLogEntry)
        .where(ActivityLogEntry.user_id == int(user_id))
        .order_by(ActivityLogEntry.id.desc())
        .limit(int(limit))
    ).all()
    return [ActivityOut(action=r.action, timestamp=r.created_at, details=_loads(r.details_json, {})) for r in rows]
