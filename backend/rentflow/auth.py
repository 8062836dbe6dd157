# backend/rentflow/auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

import jwt  # PyJWT
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import AppUser


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: str  # customer | admin


ROLES = ("customer", "admin")


# -------------------------
# JWT helpers
# -------------------------
def issue_token(user: AppUser, *, minutes: Optional[int] = None) -> str:
    now = datetime.utcnow()
    payload: dict[str, Any] = {
        "sub": str(int(user.id)),
        "email": user.email,
        "role": user.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=int(minutes or settings.jwt_exp_minutes))).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def _user_by_email(db: Session, email: str) -> Optional[AppUser]:
    return db.scalar(select(AppUser).where(func.lower(AppUser.email) == email.strip().lower()))


def _principal(user: AppUser, role: Optional[str] = None) -> Principal:
    return Principal(user_id=int(user.id), email=str(user.email), role=str(role or user.role or "customer"))


def get_optional_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Optional[Principal]:
    """
    Identity is optional: guests may submit requests.

    Modes (in priority order):
      1) Authorization: Bearer <jwt>
      2) dev header spoofing (ONLY if settings.auth_mode == "dev")
    """
    if authorization and str(authorization).lower().startswith("bearer "):
        claims = _decode(str(authorization).split(" ", 1)[1].strip())
        sub = str(claims.get("sub") or "")
        if not sub.isdigit():
            raise HTTPException(status_code=401, detail="Token missing sub")
        user = db.scalar(select(AppUser).where(AppUser.id == int(sub)))
        if user is None:
            raise HTTPException(status_code=401, detail="Unknown user")
        return _principal(user)

    if settings.auth_mode == "dev":
        email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
        if not email:
            return None
        role_hint = (request.headers.get(settings.dev_header_user_role) or "").strip().lower() or None
        if role_hint is not None and role_hint not in ROLES:
            raise HTTPException(status_code=401, detail=f"Unknown role {role_hint!r}")

        user = _user_by_email(db, email)
        if user is None and settings.dev_auto_provision:
            user = AppUser(email=email, full_name=email.split("@")[0], role=role_hint or "customer")
            db.add(user)
            db.commit()
            db.refresh(user)
        if user is None:
            raise HTTPException(status_code=401, detail="Dev auth could not provision user")
        return _principal(user, role_hint)

    return None


def get_principal(p: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    if p is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return p


def require_admin(p: Principal = Depends(get_principal)) -> Principal:
    if p.role != "admin":
        raise HTTPException(status_code=403, detail="Requires role admin")
    return p
