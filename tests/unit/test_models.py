"""Tests for domain model validation."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from tendercalc.models import (
    ExceptionItem,
    ITTItem,
    Match,
    MatchCandidate,
    MatchStatus,
    ParsedLineItem,
    ResponseItem,
)


def test_match_status_lifecycle_properties():
    assert MatchStatus.ACCEPTED.is_settled
    assert MatchStatus.MANUAL.is_settled
    assert not MatchStatus.SUGGESTED.is_settled
    assert not MatchStatus.REJECTED.is_settled
    assert MatchStatus.REJECTED.is_terminal
    assert not MatchStatus.SUGGESTED.is_terminal


def test_itt_item_rejects_negative_quantity():
    with pytest.raises(ValidationError):
        ITTItem(project_id="p", section_id="s", item_code="1", description="x", qty=Decimal("-1"))


def test_itt_item_rounds_amount_and_allows_credit_rate():
    item = ITTItem(
        project_id="p",
        section_id="s",
        item_code="1",
        description="Credit",
        qty=Decimal("1"),
        rate=Decimal("-250"),
        amount=Decimal("-250.004"),
    )
    assert item.amount == Decimal("-250.00")


def test_response_item_cannot_have_amount_and_label():
    with pytest.raises(ValidationError):
        ResponseItem(
            project_id="p",
            contractor_id="c",
            description="x",
            amount=Decimal("1"),
            amount_label="Included",
        )


def test_match_confidence_bounds():
    with pytest.raises(ValidationError):
        Match(project_id="p", itt_item_id="i", contractor_id="c", response_item_id="r", confidence=1.5)
    with pytest.raises(ValidationError):
        MatchCandidate(itt_item_id="i", response_item_id="r", confidence=-0.1)


def test_match_defaults():
    match = Match(project_id="p", itt_item_id="i", contractor_id="c", response_item_id="r")

    assert match.status is MatchStatus.SUGGESTED
    assert match.version == 0
    assert match.created_at.tzinfo is not None
    assert match.match_id


def test_money_serializes_as_json_number():
    exception = ExceptionItem(
        project_id="p",
        response_item_id="r",
        contractor_id="c",
        description="Extra",
        amount=Decimal("12.5"),
    )

    assert exception.amount == Decimal("12.50")
    assert exception.model_dump(mode="json")["amount"] == 12.5
    assert exception.model_dump()["amount"] == Decimal("12.50")


def test_parsed_line_item_label_amount_becomes_none():
    item = ParsedLineItem(description="Provisional", amount="Rate Only")
    assert item.amount is None
