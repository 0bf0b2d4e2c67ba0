"""ITT and contractor response ingestion.

Turns rows from the extraction service into sections, ITT items, contractors
and response items. Re-extraction replaces the previous rows wholesale.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

import pydantic

from tendercalc.canonical.key_generator import contractor_key, section_key
from tendercalc.canonical.normalizer import normalize_value, round_money
from tendercalc.config import NormalizerConfig
from tendercalc.core.errors import NotFoundError, ValidationError
from tendercalc.models import (
    Contractor,
    ITTItem,
    ParsedLineItem,
    ParsedResponseItem,
    ResponseItem,
    Section,
)
from tendercalc.repository.base import Repositories

logger = logging.getLogger(__name__)

AUTO_CODE_PREFIX = "AUTO-"


def _first_error(exc: pydantic.ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ())) or "record"
    return f"{location}: {error.get('msg', 'invalid value')}"


def parse_line_items(records: Iterable[Mapping[str, Any]]) -> list[ParsedLineItem]:
    """Validate raw ITT rows.

    Raises:
        ValidationError: On the first malformed row (missing description,
            negative quantity)
    """
    parsed = []
    for idx, record in enumerate(records):
        try:
            parsed.append(ParsedLineItem.model_validate(record))
        except pydantic.ValidationError as exc:
            raise ValidationError(f"ITT row {idx}: {_first_error(exc)}") from exc
    return parsed


def parse_response_items(records: Iterable[Mapping[str, Any]]) -> list[ParsedResponseItem]:
    """Validate raw contractor response rows.

    Raises:
        ValidationError: On the first malformed row
    """
    parsed = []
    for idx, record in enumerate(records):
        try:
            parsed.append(ParsedResponseItem.model_validate(record))
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Response row {idx}: {_first_error(exc)}") from exc
    return parsed


async def ensure_section(
    repos: Repositories,
    project_id: str,
    code: str | None,
    name: str | None,
) -> Section:
    """Find the project section matching ``code`` (or ``name``), creating it if needed."""
    key = section_key(code, name)
    sections = await repos.sections.list_by_project(project_id)
    for section in sections:
        if section_key(section.code, section.name) == key:
            return section

    next_order = max((s.order for s in sections), default=0) + 1
    code = (code or "").strip()
    name = (name or "").strip()
    section = Section(
        project_id=project_id,
        code=code or name or "DEFAULT",
        name=name or code or "Default",
        order=next_order,
    )
    await repos.sections.upsert(section)
    logger.debug("Created section %s (%s) in project %s", section.code, section.name, project_id)
    return section


async def ensure_contractor(
    repos: Repositories,
    project_id: str,
    name: str,
    contact: str | None = None,
) -> Contractor:
    """Find a contractor by case/space-insensitive name, creating it if needed."""
    key = contractor_key(name)
    if not key:
        raise ValidationError("Contractor name is required")

    for contractor in await repos.contractors.list_by_project(project_id):
        if contractor_key(contractor.name) == key:
            return contractor

    contractor = Contractor(project_id=project_id, name=name.strip(), contact=contact)
    await repos.contractors.upsert(contractor)
    logger.info("Registered contractor %s for project %s", contractor.name, project_id)
    return contractor


async def replace_itt_items(
    repos: Repositories,
    project_id: str,
    items: Sequence[ParsedLineItem],
) -> list[ITTItem]:
    """Replace all ITT items of a project with a fresh extraction.

    Matches pointing at removed items are left in place; the assessment
    reports them as anomalies.

    Raises:
        NotFoundError: If the project does not exist
    """
    if await repos.projects.get_by_id(project_id) is None:
        raise NotFoundError("Project", project_id)

    removed = await repos.itt_items.delete_by_project(project_id)

    sections: dict[str, Section] = {}
    created: list[ITTItem] = []
    for idx, item in enumerate(items, start=1):
        key = section_key(item.section_code, item.section_name)
        section = sections.get(key)
        if section is None:
            section = await ensure_section(repos, project_id, item.section_code, item.section_name)
            sections[key] = section

        qty = item.qty if item.qty is not None else Decimal("0")
        rate = round_money(item.rate) if item.rate is not None else Decimal("0.00")
        amount = item.amount if item.amount is not None else round_money(qty * rate)

        itt_item = ITTItem(
            project_id=project_id,
            section_id=section.section_id,
            section_name=section.name,
            item_code=(item.item_code or "").strip() or f"{AUTO_CODE_PREFIX}{idx:04d}",
            description=item.description,
            unit=item.unit or "",
            qty=qty,
            rate=rate,
            amount=amount,
        )
        await repos.itt_items.upsert(itt_item)
        created.append(itt_item)

    logger.info(
        "Replaced ITT items for project %s: %d removed, %d created across %d sections",
        project_id,
        removed,
        len(created),
        len(sections),
    )
    return created


async def replace_response_items(
    repos: Repositories,
    project_id: str,
    contractor_id: str,
    items: Sequence[ParsedResponseItem],
    normalizer: NormalizerConfig | None = None,
) -> list[ResponseItem]:
    """Replace one contractor's response items with a fresh extraction.

    The raw amount cell becomes either ``amount`` or ``amount_label``; an
    explicit ``amount_label`` on the row wins when the cell is empty.

    Raises:
        NotFoundError: If the contractor does not exist in the project
    """
    normalizer = normalizer or NormalizerConfig()
    if await repos.contractors.get_by_id(project_id, contractor_id) is None:
        raise NotFoundError("Contractor", contractor_id, project_id)

    removed = await repos.response_items.delete_for_contractor(project_id, contractor_id)

    created: list[ResponseItem] = []
    for item in items:
        value = normalize_value(
            item.amount,
            currency_symbols=normalizer.currency_symbols,
            currency_codes=normalizer.currency_codes,
        )
        label = value.label
        if value.is_empty and item.amount_label and item.amount_label.strip():
            label = item.amount_label.strip()

        response_item = ResponseItem(
            project_id=project_id,
            contractor_id=contractor_id,
            item_code=item.item_code,
            section_guess=item.section_guess,
            description=item.description,
            unit=item.unit,
            qty=item.qty,
            rate=round_money(item.rate) if item.rate is not None else None,
            amount=value.amount,
            amount_label=label,
        )
        await repos.response_items.upsert(response_item)
        created.append(response_item)

    logger.info(
        "Replaced response items for contractor %s in project %s: %d removed, %d created",
        contractor_id,
        project_id,
        removed,
        len(created),
    )
    return created
