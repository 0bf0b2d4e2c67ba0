"""Pytest configuration and fixtures for TenderCalc tests.

Provides a small but complete tender project: two sections with ITT items,
one empty section, two contractors with priced responses and two
exceptions.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

# Config is loaded lazily; routes and the CLI need a DATABASE_URL to exist
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from tendercalc.models import (  # noqa: E402
    Contractor,
    ExceptionItem,
    ITTItem,
    Match,
    MatchStatus,
    Project,
    ResponseItem,
    Section,
)
from tendercalc.repository.memory import memory_repositories  # noqa: E402
from tendercalc.snapshot import ProjectSnapshot  # noqa: E402

BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def project_id() -> str:
    return "proj-hospital"


@pytest.fixture
def project(project_id: str) -> Project:
    return Project(project_id=project_id, name="Hospital Wing Fit-out", currency="AUD")


@pytest.fixture
def sections(project_id: str) -> list[Section]:
    return [
        Section(section_id="sec-prelim", project_id=project_id, code="1", name="Preliminaries", order=1),
        Section(section_id="sec-earth", project_id=project_id, code="2", name="Earthworks", order=2),
        Section(section_id="sec-empty", project_id=project_id, code="9", name="Provisional", order=9),
    ]


@pytest.fixture
def itt_items(project_id: str) -> list[ITTItem]:
    return [
        ITTItem(
            itt_item_id="itt-site",
            project_id=project_id,
            section_id="sec-prelim",
            section_name="Preliminaries",
            item_code="1.1",
            description="Site establishment",
            unit="item",
            qty=Decimal("1"),
            rate=Decimal("5000"),
            amount=Decimal("5000"),
        ),
        ITTItem(
            itt_item_id="itt-excavate",
            project_id=project_id,
            section_id="sec-earth",
            section_name="Earthworks",
            item_code="2.1",
            description="Bulk excavation",
            unit="m3",
            qty=Decimal("100"),
            rate=Decimal("45.50"),
            amount=Decimal("4550"),
        ),
        ITTItem(
            itt_item_id="itt-backfill",
            project_id=project_id,
            section_id="sec-earth",
            section_name="Earthworks",
            item_code="2.2",
            description="Backfill and compact",
            unit="m3",
            qty=Decimal("50"),
            rate=Decimal("20"),
            amount=Decimal("1000"),
        ),
    ]


@pytest.fixture
def contractors(project_id: str) -> list[Contractor]:
    return [
        Contractor(contractor_id="con-acme", project_id=project_id, name="Acme Builders"),
        Contractor(contractor_id="con-bravo", project_id=project_id, name="Bravo Construction"),
    ]


@pytest.fixture
def response_items(project_id: str) -> list[ResponseItem]:
    return [
        ResponseItem(
            response_item_id="resp-acme-site",
            project_id=project_id,
            contractor_id="con-acme",
            item_code="1.1",
            description="Site establishment",
            amount=Decimal("4800"),
        ),
        ResponseItem(
            response_item_id="resp-acme-excavate",
            project_id=project_id,
            contractor_id="con-acme",
            item_code="2.1",
            description="Excavation to level",
            unit="m3",
            qty=Decimal("100"),
            rate=Decimal("44"),
        ),
        ResponseItem(
            response_item_id="resp-acme-backfill",
            project_id=project_id,
            contractor_id="con-acme",
            item_code="2.2",
            description="Backfill",
            amount_label="Included",
        ),
        ResponseItem(
            response_item_id="resp-acme-traffic",
            project_id=project_id,
            contractor_id="con-acme",
            description="Traffic management",
            amount=Decimal("750"),
        ),
        ResponseItem(
            response_item_id="resp-bravo-site",
            project_id=project_id,
            contractor_id="con-bravo",
            item_code="1.1",
            description="Establishment and preliminaries",
            amount=Decimal("5200"),
        ),
        ResponseItem(
            response_item_id="resp-bravo-excavate",
            project_id=project_id,
            contractor_id="con-bravo",
            item_code="2.1",
            description="Bulk excavation",
            amount=Decimal("4700"),
        ),
        ResponseItem(
            response_item_id="resp-bravo-dewater",
            project_id=project_id,
            contractor_id="con-bravo",
            description="Dewatering",
            amount=Decimal("300"),
        ),
    ]


@pytest.fixture
def exceptions(project_id: str) -> list[ExceptionItem]:
    return [
        ExceptionItem(
            exception_id="exc-traffic",
            project_id=project_id,
            response_item_id="resp-acme-traffic",
            contractor_id="con-acme",
            description="Traffic management",
            attached_section_id="sec-prelim",
            amount=Decimal("750"),
        ),
        ExceptionItem(
            exception_id="exc-dewater",
            project_id=project_id,
            response_item_id="resp-bravo-dewater",
            contractor_id="con-bravo",
            description="Dewatering",
            amount=Decimal("300"),
            note="Not in ITT",
        ),
    ]


@pytest.fixture
def make_match(project_id: str):
    """Factory for matches with deterministic timestamps (``minutes`` after BASE_TIME)."""

    def _make(
        match_id: str,
        itt_item_id: str,
        response_item_id: str,
        contractor_id: str,
        status: MatchStatus = MatchStatus.SUGGESTED,
        confidence: float = 0.8,
        minutes: int = 0,
    ) -> Match:
        at = BASE_TIME + timedelta(minutes=minutes)
        return Match(
            match_id=match_id,
            project_id=project_id,
            itt_item_id=itt_item_id,
            contractor_id=contractor_id,
            response_item_id=response_item_id,
            status=status,
            confidence=confidence,
            created_at=at,
            updated_at=at,
        )

    return _make


@pytest.fixture
def matches(make_match) -> list[Match]:
    """Settled matches for every priced response, plus one pending suggestion."""
    return [
        make_match("m-acme-site", "itt-site", "resp-acme-site", "con-acme", MatchStatus.ACCEPTED, 0.95, 1),
        make_match("m-acme-excavate", "itt-excavate", "resp-acme-excavate", "con-acme", MatchStatus.MANUAL, 1.0, 2),
        make_match("m-acme-backfill", "itt-backfill", "resp-acme-backfill", "con-acme", MatchStatus.ACCEPTED, 0.9, 3),
        make_match("m-bravo-site", "itt-site", "resp-bravo-site", "con-bravo", MatchStatus.ACCEPTED, 0.85, 4),
        make_match("m-bravo-excavate", "itt-excavate", "resp-bravo-excavate", "con-bravo", MatchStatus.SUGGESTED, 0.7, 5),
    ]


@pytest.fixture
def repos(project, sections, itt_items, response_items, contractors, matches, exceptions):
    return memory_repositories(
        projects=[project],
        sections=sections,
        itt_items=itt_items,
        response_items=response_items,
        contractors=contractors,
        matches=matches,
        exceptions=exceptions,
    )


@pytest.fixture
def snapshot(project, sections, itt_items, response_items, contractors, matches, exceptions):
    return ProjectSnapshot(
        project=project,
        sections=sections,
        itt_items=itt_items,
        response_items=response_items,
        contractors=contractors,
        matches=matches,
        exceptions=exceptions,
    )
