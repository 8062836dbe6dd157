# backend/rentflow/errors.py
from __future__ import annotations

from typing import Any, Optional


class RentflowError(Exception):
    """
    Base for every domain error.

    `code` is the stable machine-readable name returned to API callers;
    `http_status` is None for conditions that are absorbed and only logged.
    """

    code: str = "RentflowError"
    http_status: Optional[int] = 500

    def __init__(self, detail: str = "", **extra: Any) -> None:
        super().__init__(detail or self.code)
        self.detail = detail or self.code
        self.extra = {k: v for k, v in extra.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "detail": self.detail, **self.extra}


class ValidationError(RentflowError):
    code = "ValidationError"
    http_status = 400


class MissingField(ValidationError):
    code = "MissingField"

    def __init__(self, *fields: str) -> None:
        super().__init__(f"missing required field(s): {', '.join(fields)}", missing_fields=list(fields))
        self.fields = fields


class InvalidTransition(RentflowError):
    code = "InvalidTransition"
    http_status = 409

    def __init__(self, *, kind: str, current: str, target: str) -> None:
        super().__init__(
            f"{kind}: cannot move from {current!r} to {target!r}",
            kind=kind,
            current_status=current,
            target_status=target,
        )


class ConcurrentUpdate(RentflowError):
    code = "ConcurrentUpdate"
    http_status = 409


class NotFound(RentflowError):
    code = "NotFound"
    http_status = 404


class SignatureInvalid(RentflowError):
    code = "SignatureInvalid"
    http_status = None


class DuplicateEvent(RentflowError):
    code = "DuplicateEvent"
    http_status = None


class AmountMismatch(RentflowError):
    code = "AmountMismatch"
    http_status = None

    def __init__(self, *, request_id: int, expected: float, received: float) -> None:
        super().__init__(
            f"payment amount {received:.2f} does not match expected {expected:.2f} for request {request_id}",
            request_id=request_id,
            expected=round(expected, 2),
            received=round(received, 2),
        )


class MaterializationConflict(RentflowError):
    code = "MaterializationConflict"
    http_status = None
