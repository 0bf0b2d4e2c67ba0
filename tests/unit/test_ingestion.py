"""Tests for ITT / response ingestion."""

from __future__ import annotations

from decimal import Decimal

import pytest

from tendercalc.core.errors import NotFoundError, ValidationError
from tendercalc.ingestion.items import (
    ensure_contractor,
    ensure_section,
    parse_line_items,
    parse_response_items,
    replace_itt_items,
    replace_response_items,
)
from tendercalc.models import Project
from tendercalc.repository.memory import memory_repositories


@pytest.fixture
def empty_repos(project_id):
    return memory_repositories(projects=[Project(project_id=project_id, name="Clinic")])


def test_parse_line_items_converts_cells():
    items = parse_line_items(
        [
            {"section_code": "1", "description": "  Site setup ", "qty": "2", "rate": "$1,250.00"},
            {"description": "Fencing", "qty": 10, "amount": "($500.00)"},
        ]
    )

    assert items[0].description == "Site setup"
    assert items[0].rate == Decimal("1250.00")
    assert items[1].amount == Decimal("-500.00")


def test_parse_line_items_accepts_very_large_amounts():
    items = parse_line_items([{"description": "Main contract", "amount": "12345678901234567890123456789"}])
    assert items[0].amount == Decimal("12345678901234567890123456789.00")


@pytest.mark.parametrize(
    "record",
    [
        {"description": ""},
        {"description": "   "},
        {"qty": 3},
        {"description": "Negative", "qty": -1},
    ],
)
def test_parse_line_items_rejects_bad_rows(record):
    with pytest.raises(ValidationError, match="ITT row 1"):
        parse_line_items([{"description": "ok"}, record])


def test_parse_response_items_keeps_raw_amount():
    items = parse_response_items([{"description": "Backfill", "amount": "Included"}])
    assert items[0].amount == "Included"

    with pytest.raises(ValidationError, match="Response row 0"):
        parse_response_items([{"description": "x", "qty": "-2"}])


@pytest.mark.asyncio
async def test_ensure_section_reuses_by_normalized_code(empty_repos, project_id):
    first = await ensure_section(empty_repos, project_id, " A1 ", "Preliminaries")
    second = await ensure_section(empty_repos, project_id, "a1", "Something else")
    third = await ensure_section(empty_repos, project_id, None, "Earthworks")

    assert first.section_id == second.section_id
    assert first.order == 1
    assert third.order == 2
    assert third.code == "Earthworks"


@pytest.mark.asyncio
async def test_ensure_contractor_by_normalized_name(empty_repos, project_id):
    first = await ensure_contractor(empty_repos, project_id, "Acme  Builders")
    second = await ensure_contractor(empty_repos, project_id, "acme builders")

    assert first.contractor_id == second.contractor_id
    with pytest.raises(ValidationError):
        await ensure_contractor(empty_repos, project_id, "  ")


@pytest.mark.asyncio
async def test_replace_itt_items(empty_repos, project_id):
    parsed = parse_line_items(
        [
            {"section_code": "1", "section_name": "Preliminaries", "item_code": "1.1", "description": "Setup", "qty": 1, "rate": 100},
            {"section_code": "1", "section_name": "Preliminaries", "description": "Insurance", "qty": "3", "rate": "33.335"},
            {"section_code": "2", "section_name": "Earthworks", "description": "Excavate", "amount": "$9.99"},
        ]
    )

    created = await replace_itt_items(empty_repos, project_id, parsed)

    assert [i.item_code for i in created] == ["1.1", "AUTO-0002", "AUTO-0003"]
    assert created[1].rate == Decimal("33.34")
    assert created[1].amount == Decimal("100.02")
    assert created[2].amount == Decimal("9.99")
    assert created[0].section_id == created[1].section_id != created[2].section_id
    assert len(await empty_repos.sections.list_by_project(project_id)) == 2

    # Re-extraction replaces the previous set
    await replace_itt_items(empty_repos, project_id, parsed[:1])
    assert len(await empty_repos.itt_items.list_by_project(project_id)) == 1
    assert len(await empty_repos.sections.list_by_project(project_id)) == 2


@pytest.mark.asyncio
async def test_replace_itt_items_unknown_project(empty_repos):
    with pytest.raises(NotFoundError):
        await replace_itt_items(empty_repos, "missing", [])


@pytest.mark.asyncio
async def test_replace_response_items_classifies_amounts(empty_repos, project_id):
    contractor = await ensure_contractor(empty_repos, project_id, "Acme")
    parsed = parse_response_items(
        [
            {"description": "Setup", "amount": "$1,200.50"},
            {"description": "Backfill", "amount": "Included"},
            {"description": "Rates", "amount": None, "amount_label": " Rate Only "},
            {"description": "Fence", "qty": 5, "rate": "12.5"},
        ]
    )

    created = await replace_response_items(empty_repos, project_id, contractor.contractor_id, parsed)

    assert created[0].amount == Decimal("1200.50") and created[0].amount_label is None
    assert created[1].amount is None and created[1].amount_label == "Included"
    assert created[2].amount_label == "Rate Only"
    assert created[3].amount is None and created[3].rate == Decimal("12.50")

    await replace_response_items(empty_repos, project_id, contractor.contractor_id, parsed[:1])
    assert len(await empty_repos.response_items.list_by_project(project_id)) == 1


@pytest.mark.asyncio
async def test_replace_response_items_unknown_contractor(empty_repos, project_id):
    with pytest.raises(NotFoundError):
        await replace_response_items(empty_repos, project_id, "nobody", [])
