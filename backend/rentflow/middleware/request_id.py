# backend/rentflow/middleware/request_id.py
from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Iterator, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return request_id_ctx.get()


@contextmanager
def bind_request_id(rid: Optional[str]) -> Iterator[None]:
    """
    Re-enter an HTTP request's correlation id outside the request, e.g. in a
    Celery task that was enqueued by it. A missing id leaves the context alone.
    """
    if not rid:
        yield
        return
    token = request_id_ctx.set(rid)
    try:
        yield
    finally:
        request_id_ctx.reset(token)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Per-request correlation id.

    Honors an incoming X-Request-ID (payment gateways often send their own),
    otherwise generates a UUID4. Notification jobs copy the id so worker log
    lines share it with the request that caused them.
    """

    header_out = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("X-Request-ID") or request.headers.get("X-Request-Id")
        if not rid:
            rid = str(uuid.uuid4())

        with bind_request_id(rid):
            resp = await call_next(request)
            resp.headers[self.header_out] = rid
            return resp
