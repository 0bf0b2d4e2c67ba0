"""Assessment aggregation: the cross-contractor comparison matrix.

Joins sections, ITT items, response items, matches, contractors and
exceptions into one :class:`AssessmentPayload` with line-item cells, section
totals and contractor totals. ``build_assessment`` is pure; ``load_assessment``
reads a project snapshot through the repositories first.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Sequence
from decimal import Decimal

from tendercalc.canonical.normalizer import round_money
from tendercalc.config import AssessmentConfig
from tendercalc.core.errors import NotFoundError
from tendercalc.matching.resolver import resolve_matches
from tendercalc.models import (
    Contractor,
    ExceptionItem,
    ITTItem,
    Match,
    MatchStatus,
    Project,
    ResponseItem,
    Section,
)
from tendercalc.reporting.models import (
    AggregationInconsistency,
    AssessmentIttItem,
    AssessmentLineItem,
    AssessmentPayload,
    AssessmentProject,
    ContractorSummary,
    ExceptionRecord,
    ResponseCell,
    SectionAttachment,
    SectionSummary,
)
from tendercalc.repository.base import Repositories

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def response_amount(item: ResponseItem) -> Decimal | None:
    """Amount shown in a response cell.

    Explicit amount first; a labeled item ("Included") has no amount; else
    ``qty * rate``; else None.
    """
    if item.amount is not None:
        return round_money(item.amount)
    if item.amount_label:
        return None
    if item.qty is not None and item.rate is not None:
        return round_money(item.qty * item.rate)
    return None


def _pick_cell_match(candidates: Sequence[Match]) -> Match | None:
    settled = [m for m in candidates if m.is_settled]
    if settled:
        return max(settled, key=lambda m: (m.updated_at, m.match_id))
    suggested = [m for m in candidates if m.status is MatchStatus.SUGGESTED]
    if suggested:
        return max(suggested, key=lambda m: (m.confidence, m.updated_at, m.match_id))
    return None


def _check_match(
    match: Match,
    itt_map: dict[str, ITTItem],
    response_map: dict[str, ResponseItem],
) -> str | None:
    if match.itt_item_id not in itt_map:
        return "ITT item missing from snapshot"
    response_item = response_map.get(match.response_item_id)
    if response_item is None:
        return "response item missing from snapshot"
    if response_item.contractor_id != match.contractor_id:
        return f"response item belongs to contractor {response_item.contractor_id}"
    return None


def _build_cell(match: Match, item: ResponseItem) -> ResponseCell:
    return ResponseCell(
        match_id=match.match_id,
        response_item_id=item.response_item_id,
        contractor_id=match.contractor_id,
        section_guess=item.section_guess,
        item_code=item.item_code,
        description=item.description,
        unit=item.unit,
        qty=item.qty,
        rate=item.rate,
        amount=response_amount(item),
        amount_label=item.amount_label,
        match_status=match.status,
        confidence=match.confidence,
    )


def build_assessment(
    project: Project,
    sections: Sequence[Section],
    itt_items: Sequence[ITTItem],
    response_items: Sequence[ResponseItem],
    matches: Sequence[Match],
    contractors: Sequence[Contractor],
    exceptions: Sequence[ExceptionItem],
    config: AssessmentConfig | None = None,
) -> AssessmentPayload:
    """Aggregate a project snapshot into the comparison payload.

    Only accepted and manual matches contribute to totals. Matches the
    snapshot cannot back are skipped and reported in ``payload.anomalies``
    instead of failing the whole assessment.
    """
    config = config or AssessmentConfig()

    contractor_map = {c.contractor_id: c for c in contractors}
    response_map = {r.response_item_id: r for r in response_items}
    itt_map = {i.itt_item_id: i for i in itt_items}
    section_map = {s.section_id: s for s in sections}

    # 1. Effective matches grouped per (ITT item, contractor) cell
    anomalies: list[AggregationInconsistency] = []
    cell_matches: dict[str, dict[str, list[Match]]] = defaultdict(lambda: defaultdict(list))
    for match in resolve_matches(matches, "all"):
        if match.status is MatchStatus.REJECTED:
            continue
        reason = _check_match(match, itt_map, response_map)
        if reason is not None:
            logger.warning(
                "Skipping match %s (ITT %s, response %s) in project %s: %s",
                match.match_id,
                match.itt_item_id,
                match.response_item_id,
                project.project_id,
                reason,
            )
            anomalies.append(
                AggregationInconsistency(
                    match_id=match.match_id,
                    itt_item_id=match.itt_item_id,
                    response_item_id=match.response_item_id,
                    reason=reason,
                )
            )
            continue
        cell_matches[match.itt_item_id][match.contractor_id].append(match)

    # 2-4. Cells, contractor totals, section totals
    contractor_totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    section_itt_totals: dict[str, Decimal] = {}
    section_contractor_totals: dict[str, dict[str, Decimal]] = {}
    section_names: dict[str, str | None] = {}
    seen_contractors: set[str] = set()

    line_items: list[AssessmentLineItem] = []
    for itt_item in itt_items:
        section_id = itt_item.section_id
        if section_id not in section_itt_totals:
            section_itt_totals[section_id] = ZERO
            section_contractor_totals[section_id] = defaultdict(lambda: ZERO)
            section_names[section_id] = itt_item.section_name
        section_itt_totals[section_id] += itt_item.amount

        responses: dict[str, ResponseCell] = {}
        for contractor_id, candidates in cell_matches.get(itt_item.itt_item_id, {}).items():
            match = _pick_cell_match(candidates)
            if match is None:
                continue
            cell = _build_cell(match, response_map[match.response_item_id])
            responses[contractor_id] = cell
            seen_contractors.add(contractor_id)
            if cell.counts_towards_totals:
                contractor_totals[contractor_id] += cell.amount
                section_contractor_totals[section_id][contractor_id] += cell.amount

        line_items.append(
            AssessmentLineItem(
                itt_item=AssessmentIttItem(
                    itt_item_id=itt_item.itt_item_id,
                    section_id=section_id,
                    section_name=itt_item.section_name,
                    item_code=itt_item.item_code,
                    description=itt_item.description,
                    unit=itt_item.unit,
                    qty=itt_item.qty,
                    rate=itt_item.rate,
                    amount=itt_item.amount,
                ),
                responses=responses,
            )
        )

    # Exceptions: attached ones count towards their section and the contractor total,
    # the rest go to "Other"
    exception_counts: Counter[str] = Counter()
    attachments: dict[str, list[SectionAttachment]] = defaultdict(list)
    other_totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    other_count = 0

    def contractor_name(contractor_id: str) -> str:
        contractor = contractor_map.get(contractor_id)
        return contractor.name if contractor else config.unknown_contractor_name

    for exception in exceptions:
        response_item = response_map.get(exception.response_item_id)
        labeled = response_item is not None and bool(response_item.amount_label)
        countable = exception.amount is not None and not labeled
        section_id = exception.attached_section_id
        seen_contractors.add(exception.contractor_id)

        if countable and section_id is not None:
            contractor_totals[exception.contractor_id] += exception.amount

        if section_id is not None and section_id in section_itt_totals:
            exception_counts[section_id] += 1
            if countable:
                section_contractor_totals[section_id][exception.contractor_id] += exception.amount
            attachments[section_id].append(
                SectionAttachment(
                    response_item_id=exception.response_item_id,
                    contractor_id=exception.contractor_id,
                    contractor_name=contractor_name(exception.contractor_id),
                    description=response_item.description if response_item else exception.description,
                    amount=response_amount(response_item) if response_item else exception.amount,
                    amount_label=response_item.amount_label if response_item else None,
                    note=exception.note,
                )
            )
        else:
            other_count += 1
            if countable:
                other_totals[exception.contractor_id] += exception.amount

    # 5. Section summaries (only sections reachable through ITT items)
    max_known_order = max((s.order for s in sections), default=0)
    fallback_order = max_known_order
    section_summaries: list[SectionSummary] = []
    for section_id, itt_total in section_itt_totals.items():
        section = section_map.get(section_id)
        if section is not None:
            code, name, order = section.code, section.name, section.order
        else:
            fallback_order += 1
            code = section_id
            name = section_names.get(section_id) or section_id
            order = fallback_order
        section_summaries.append(
            SectionSummary(
                section_id=section_id,
                code=code,
                name=name,
                order=order,
                totals_by_contractor={
                    cid: round_money(total)
                    for cid, total in section_contractor_totals[section_id].items()
                },
                total_itt_amount=round_money(itt_total),
                exception_count=exception_counts[section_id],
            )
        )
    section_summaries.sort(key=lambda s: (s.order, s.code, s.section_id))

    if other_count:
        section_summaries.append(
            SectionSummary(
                section_id=config.other_section_id,
                code="-",
                name=config.other_section_name,
                order=max((s.order for s in section_summaries), default=0) + 1,
                totals_by_contractor={cid: round_money(t) for cid, t in other_totals.items()},
                total_itt_amount=ZERO,
                exception_count=other_count,
            )
        )

    # Contractor summaries: known contractors first, then any unknown ids seen in the data
    contractor_summaries = [
        ContractorSummary(
            contractor_id=c.contractor_id,
            name=c.name,
            contact=c.contact,
            total_value=round_money(contractor_totals.get(c.contractor_id, ZERO)),
        )
        for c in contractors
    ]
    for contractor_id in sorted(seen_contractors - contractor_map.keys()):
        contractor_summaries.append(
            ContractorSummary(
                contractor_id=contractor_id,
                name=config.unknown_contractor_name,
                total_value=round_money(contractor_totals.get(contractor_id, ZERO)),
            )
        )

    # 6. Exception list and sorted section attachments
    exception_records = [
        ExceptionRecord(
            exception_id=exception.exception_id,
            response_item_id=exception.response_item_id,
            contractor_id=exception.contractor_id,
            contractor_name=contractor_name(exception.contractor_id),
            description=exception.description,
            attached_section_id=exception.attached_section_id,
            amount=exception.amount,
            note=exception.note,
        )
        for exception in exceptions
    ]

    section_attachments = {
        section_id: sorted(
            items, key=lambda a: (a.contractor_name.casefold(), a.description.casefold())
        )
        for section_id, items in attachments.items()
    }

    if anomalies:
        logger.warning(
            "Assessment for project %s skipped %d inconsistent matches",
            project.project_id,
            len(anomalies),
        )

    return AssessmentPayload(
        project=AssessmentProject(
            project_id=project.project_id,
            name=project.name,
            status=project.status,
            currency=project.currency or config.currency,
            created_at=project.created_at,
            updated_at=project.updated_at,
        ),
        contractors=contractor_summaries,
        sections=section_summaries,
        line_items=line_items,
        exceptions=exception_records,
        section_attachments=section_attachments,
        anomalies=anomalies,
    )


async def load_assessment(
    repos: Repositories,
    project_id: str,
    config: AssessmentConfig | None = None,
) -> AssessmentPayload:
    """Read the project snapshot through ``repos`` and build its assessment.

    Raises:
        NotFoundError: If the project does not exist
    """
    project = await repos.projects.get_by_id(project_id)
    if project is None:
        raise NotFoundError("Project", project_id)

    # Sequential reads: a single AsyncSession does not allow concurrent use
    sections = await repos.sections.list_by_project(project_id)
    itt_items = await repos.itt_items.list_by_project(project_id)
    response_items = await repos.response_items.list_by_project(project_id)
    matches = await repos.matches.list_by_project(project_id)
    contractors = await repos.contractors.list_by_project(project_id)
    exceptions = await repos.exceptions.list_by_project(project_id)

    return build_assessment(
        project,
        sections,
        itt_items,
        response_items,
        matches,
        contractors,
        exceptions,
        config=config,
    )


def find_duplicate_exceptions(
    exceptions: Sequence[ExceptionItem],
) -> dict[str, list[ExceptionItem]]:
    """Group exceptions that point at the same response item.

    Returns:
        ``{response_item_id: [exception, ...]}`` for groups of two or more
    """
    groups: dict[str, list[ExceptionItem]] = defaultdict(list)
    for exception in exceptions:
        groups[exception.response_item_id].append(exception)
    return {key: group for key, group in groups.items() if len(group) > 1}
