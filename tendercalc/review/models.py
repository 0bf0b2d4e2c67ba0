"""Data structures consumed by the match review UI."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from tendercalc.matching.resolver import MatchVisibility
from tendercalc.models import MatchStatus


@dataclass(slots=True)
class MatchView:
    match_id: str
    itt_item_id: str
    itt_item_code: str | None
    itt_description: str | None
    section_name: str | None
    contractor_id: str
    contractor_name: str
    response_item_id: str
    response_description: str | None
    response_amount: Decimal | None
    response_amount_label: str | None
    status: MatchStatus
    confidence: float
    comment: str | None
    updated_at: datetime
    visibility: MatchVisibility = MatchVisibility.EFFECTIVE

    @property
    def is_settled(self) -> bool:
        return self.status.is_settled

    def as_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "itt_item_id": self.itt_item_id,
            "itt_item_code": self.itt_item_code,
            "itt_description": self.itt_description,
            "section_name": self.section_name,
            "contractor_id": self.contractor_id,
            "contractor_name": self.contractor_name,
            "response_item_id": self.response_item_id,
            "response_description": self.response_description,
            "response_amount": float(self.response_amount)
            if self.response_amount is not None
            else None,
            "response_amount_label": self.response_amount_label,
            "status": self.status.value,
            "confidence": self.confidence,
            "comment": self.comment,
            "updated_at": self.updated_at.isoformat(),
            "visibility": self.visibility.value,
        }
