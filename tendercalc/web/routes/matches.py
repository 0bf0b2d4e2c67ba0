"""Match routes for the TenderCalc API.

Routes:
- GET   /projects/{project_id}/matches                    - Effective matches (filterable)
- POST  /projects/{project_id}/matches/suggestions        - Record auto-matcher suggestions
- POST  /projects/{project_id}/match/manual               - Create a manual match
- PATCH /projects/{project_id}/matches/{match_id}         - Accept or reject a suggestion
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, status

from tendercalc.config import AppConfig
from tendercalc.matching.ledger import MatchLedger
from tendercalc.models import Match
from tendercalc.repository.base import Repositories
from tendercalc.review.repository import list_match_views
from tendercalc.web.dependencies import (
    get_app_config,
    get_repositories,
    project_log_context,
    translate_errors,
)
from tendercalc.web.models import (
    ManualMatchRequest,
    MatchListResponse,
    MatchStatusUpdateRequest,
    SuggestionsRequest,
    SuggestionsResponse,
)

logger = structlog.get_logger()

router = APIRouter(tags=["matches"], dependencies=[Depends(project_log_context)])


@router.get("/projects/{project_id}/matches", response_model=MatchListResponse)
async def list_matches(
    project_id: str,
    status_filter: str | None = Query(default=None, alias="status"),
    contractor: str | None = Query(default=None),
    include_stale: bool = Query(default=False),
    repos: Repositories = Depends(get_repositories),
    config: AppConfig = Depends(get_app_config),
):
    """List the matches a reviewer should see.

    Stale suggestions and superseded matches are hidden unless
    ``include_stale`` is set.
    """
    with translate_errors():
        views = await list_match_views(
            repos,
            project_id,
            status=status_filter,
            contractor_id=contractor,
            include_stale=include_stale,
            config=config.assessment,
        )

    return MatchListResponse(
        project_id=project_id,
        count=len(views),
        matches=[view.as_dict() for view in views],
    )


@router.post(
    "/projects/{project_id}/matches/suggestions",
    response_model=SuggestionsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_suggestions(
    project_id: str,
    body: SuggestionsRequest,
    repos: Repositories = Depends(get_repositories),
    config: AppConfig = Depends(get_app_config),
):
    """Store auto-matcher candidates as suggested matches."""
    ledger = MatchLedger(repos, config.matching)
    with translate_errors():
        created = await ledger.record_suggestions(project_id, body.candidates)

    logger.info("suggestions_recorded", project_id=project_id, created=len(created))
    return SuggestionsResponse(created=len(created), matches=created)


@router.post(
    "/projects/{project_id}/match/manual",
    response_model=Match,
    status_code=status.HTTP_201_CREATED,
)
async def create_manual_match(
    project_id: str,
    body: ManualMatchRequest,
    repos: Repositories = Depends(get_repositories),
    config: AppConfig = Depends(get_app_config),
):
    """Pair an ITT item with a response item by hand."""
    ledger = MatchLedger(repos, config.matching)
    with translate_errors():
        match = await ledger.create_manual_match(
            project_id, body.itt_item_id, body.response_item_id, comment=body.comment
        )

    logger.info(
        "manual_match_created",
        project_id=project_id,
        match_id=match.match_id,
        itt_item_id=match.itt_item_id,
        response_item_id=match.response_item_id,
    )
    return match


@router.patch("/projects/{project_id}/matches/{match_id}", response_model=Match)
async def update_match_status(
    project_id: str,
    match_id: str,
    body: MatchStatusUpdateRequest,
    repos: Repositories = Depends(get_repositories),
    config: AppConfig = Depends(get_app_config),
):
    """Accept or reject a suggested match.

    Returns 400 for any target other than accepted/rejected and 409 when the
    match changed underneath the request.
    """
    ledger = MatchLedger(repos, config.matching)
    with translate_errors():
        match = await ledger.update_status(project_id, match_id, body.status, body.comment)

    logger.info(
        "match_status_updated",
        project_id=project_id,
        match_id=match_id,
        status=match.status.value,
    )
    return match
