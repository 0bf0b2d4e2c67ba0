"""Shared dependencies for TenderCalc web routes.

Dependencies are injected using FastAPI's Depends() system; tests replace
them through ``app.dependency_overrides``.

Usage:
    from fastapi import Depends
    from tendercalc.web.dependencies import get_repositories

    @router.get("/projects/{project_id}/assessment")
    async def assessment(project_id: str, repos=Depends(get_repositories)):
        ...
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
from contextlib import contextmanager

import structlog
from fastapi import HTTPException, status

from tendercalc.config import AppConfig, get_config
from tendercalc.core.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    TenderCalcError,
    ValidationError,
)
from tendercalc.core.logging import bind_project_context
from tendercalc.db.connection import get_session
from tendercalc.db.repository import sql_repositories
from tendercalc.repository.base import Repositories

logger = structlog.get_logger()


async def get_repositories() -> AsyncGenerator[Repositories, None]:
    """Repositories bound to one database session per request.

    The session commits when the request handler returns normally.
    """
    async with get_session() as session:
        yield sql_repositories(session)


def get_app_config() -> AppConfig:
    return get_config()


async def project_log_context(project_id: str) -> str:
    """Router dependency: tag the request's log lines with its project."""
    bind_project_context(project_id)
    return project_id


_STATUS_BY_ERROR: list[tuple[type[TenderCalcError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidStateError, status.HTTP_400_BAD_REQUEST),
]


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map engine errors onto HTTP responses.

    Usage:
        with translate_errors():
            match = await ledger.accept(project_id, match_id)
    """
    try:
        yield
    except TenderCalcError as exc:
        for error_type, status_code in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                logger.info(
                    "request_rejected",
                    error=type(exc).__name__,
                    status_code=status_code,
                    detail=str(exc),
                )
                raise HTTPException(status_code=status_code, detail=str(exc)) from exc
        raise
