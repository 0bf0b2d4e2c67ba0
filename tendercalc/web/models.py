"""Shared Pydantic models for the TenderCalc web API.

Usage:
    from tendercalc.web.models import ManualMatchRequest

    @router.post("/projects/{project_id}/match/manual")
    async def create_manual_match(project_id: str, body: ManualMatchRequest):
        ...
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from tendercalc.models import Match, MatchCandidate


# ============================================================================
# Matching Models
# ============================================================================


class SuggestionsRequest(BaseModel):
    """Auto-matcher output for one project.

    Used by: POST /projects/{project_id}/matches/suggestions
    """

    candidates: List[MatchCandidate] = Field(default_factory=list)


class ManualMatchRequest(BaseModel):
    """Drag-and-drop pairing from the assessment UI.

    Used by: POST /projects/{project_id}/match/manual
    """

    itt_item_id: str = Field(min_length=1)
    response_item_id: str = Field(min_length=1)
    comment: Optional[str] = None


class MatchStatusUpdateRequest(BaseModel):
    """Accept or reject a suggestion.

    Used by: PATCH /projects/{project_id}/matches/{match_id}
    """

    status: str
    comment: Optional[str] = None


class MatchListResponse(BaseModel):
    project_id: str
    count: int
    matches: List[dict]


class SuggestionsResponse(BaseModel):
    created: int
    matches: List[Match]
