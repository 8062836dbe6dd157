# backend/rentflow/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .errors import RentflowError
from .logging_config import configure_logging
from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.requests import router as requests_router
from .routers.payments import router as payments_router
from .routers.ownership import router as ownership_router

log = logging.getLogger("rentflow.api")


def _cors_origins() -> list[str]:
    val = settings.cors_allow_origins
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


async def _rentflow_error(request: Request, exc: RentflowError) -> JSONResponse:
    status = exc.http_status or 500
    if status >= 500:
        log.error("unhandled domain error %s: %s", exc.code, exc.detail)
    return JSONResponse(status_code=status, content=exc.to_dict())


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(e.get("loc", ())), "msg": str(e.get("msg", "")), "type": str(e.get("type", ""))}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"code": "ValidationError", "detail": "malformed request body", "errors": errors},
    )


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Rentflow Lifecycle Engine", version=settings.api_version)

    app.add_middleware(StructuredLoggingMiddleware)
    # outside the logging middleware so the request id is set before it logs
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RentflowError, _rentflow_error)
    app.add_exception_handler(RequestValidationError, _validation_error)

    app.include_router(requests_router)
    app.include_router(payments_router)
    app.include_router(ownership_router)

    @app.get("/health")
    def health():
        return {"ok": True, "version": settings.api_version}

    return app


app = create_app()
