"""FastAPI application for the TenderCalc API."""

from __future__ import annotations

from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from tendercalc import __version__
from tendercalc.core.logging import configure_logging
from tendercalc.web.routes import assessment, matches

# Initialize structured logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="TenderCalc API",
    description="Tender matching and cross-contractor assessment",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise

        logger.info("request_completed", status_code=response.status_code)
        response.headers["X-Request-ID"] = request_id
        return response


app.add_middleware(RequestLoggingMiddleware)

app.include_router(matches.router)
app.include_router(assessment.router)
