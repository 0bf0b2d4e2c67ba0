"""Match listings for the review UI."""

from __future__ import annotations

from tendercalc.canonical.key_generator import item_code_sort_key
from tendercalc.config import AssessmentConfig
from tendercalc.core.errors import NotFoundError
from tendercalc.matching.resolver import classify_matches, resolve_matches
from tendercalc.models import MatchStatus
from tendercalc.reporting.assessment import response_amount
from tendercalc.repository.base import Repositories
from tendercalc.review.models import MatchView


async def list_match_views(
    repos: Repositories,
    project_id: str,
    status: str | MatchStatus | None = "all",
    contractor_id: str | None = None,
    include_stale: bool = False,
    config: AssessmentConfig | None = None,
) -> list[MatchView]:
    """Return resolver-filtered matches enriched for display.

    Args:
        status: "all" or a single match status
        contractor_id: Only matches of this contractor
        include_stale: Admin view including stale and superseded records

    Raises:
        NotFoundError: If the project does not exist
        InvalidStateError: If ``status`` is not a known status
    """
    config = config or AssessmentConfig()
    if await repos.projects.get_by_id(project_id) is None:
        raise NotFoundError("Project", project_id)

    matches = await repos.matches.list_by_project(project_id)
    visible = resolve_matches(matches, status, include_stale=include_stale)
    if contractor_id:
        visible = [m for m in visible if m.contractor_id == contractor_id]
    if not visible:
        return []

    visibility = classify_matches(matches)
    itt_items = {i.itt_item_id: i for i in await repos.itt_items.list_by_project(project_id)}
    response_items = {
        r.response_item_id: r for r in await repos.response_items.list_by_project(project_id)
    }
    contractors = {c.contractor_id: c for c in await repos.contractors.list_by_project(project_id)}
    sections = {s.section_id: s for s in await repos.sections.list_by_project(project_id)}

    views: list[MatchView] = []
    for match in visible:
        itt_item = itt_items.get(match.itt_item_id)
        response_item = response_items.get(match.response_item_id)
        contractor = contractors.get(match.contractor_id)

        section_name = None
        if itt_item is not None:
            section = sections.get(itt_item.section_id)
            section_name = section.name if section else itt_item.section_name

        views.append(
            MatchView(
                match_id=match.match_id,
                itt_item_id=match.itt_item_id,
                itt_item_code=itt_item.item_code if itt_item else None,
                itt_description=itt_item.description if itt_item else None,
                section_name=section_name,
                contractor_id=match.contractor_id,
                contractor_name=contractor.name if contractor else config.unknown_contractor_name,
                response_item_id=match.response_item_id,
                response_description=response_item.description if response_item else None,
                response_amount=response_amount(response_item) if response_item else None,
                response_amount_label=response_item.amount_label if response_item else None,
                status=match.status,
                confidence=match.confidence,
                comment=match.comment,
                updated_at=match.updated_at,
                visibility=visibility[match.match_id],
            )
        )

    views.sort(key=lambda v: -v.confidence)
    views.sort(key=lambda v: item_code_sort_key(v.itt_item_code))
    return views
