"""TenderCalc Pydantic models for type-safe data validation.

All entities are scoped to one project. Money values are Decimals rounded
to 2dp and serialize to JSON numbers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any
from uuid import uuid4

from pydantic import BaseModel, Field, PlainSerializer, field_validator, model_validator

from tendercalc.canonical.normalizer import normalize_value, parse_quantity, round_money

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Quantity = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
RawValue = str | int | float | Decimal | None


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectStatus(str, Enum):
    """Project lifecycle."""

    DRAFT = "draft"
    IN_REVIEW = "in_review"
    FINALIZED = "finalized"


class MatchStatus(str, Enum):
    """Match lifecycle.

    suggested -> accepted | rejected; manual is created already settled.
    """

    SUGGESTED = "suggested"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    MANUAL = "manual"

    @property
    def is_settled(self) -> bool:
        """Accepted and manual matches are the authoritative pairing."""
        return self in SETTLED_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self is not MatchStatus.SUGGESTED


SETTLED_STATUSES = frozenset({MatchStatus.ACCEPTED, MatchStatus.MANUAL})


class Project(BaseModel):
    """Tender comparison project."""

    project_id: str = Field(default_factory=new_id)
    name: str
    status: ProjectStatus = ProjectStatus.DRAFT
    currency: str = "AUD"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Section(BaseModel):
    """Bill of quantities section (display grouping for ITT items)."""

    section_id: str = Field(default_factory=new_id)
    project_id: str
    code: str
    name: str
    order: int = 0


class ITTItem(BaseModel):
    """Line item from the buyer's ITT bill of quantities."""

    itt_item_id: str = Field(default_factory=new_id)
    project_id: str
    section_id: str
    section_name: str | None = None
    item_code: str
    description: str
    unit: str = ""
    qty: Quantity = Field(default=Decimal("0"), ge=0)
    rate: Money = Decimal("0")  # negative for credits
    amount: Money = Decimal("0")

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        return round_money(v)

    class Config:
        json_schema_extra = {
            "example": {
                "project_id": "project-1",
                "section_id": "section-1",
                "item_code": "1.1",
                "description": "Excavate to reduced level",
                "unit": "m3",
                "qty": 120,
                "rate": 45.5,
                "amount": 5460.0,
            }
        }


class ResponseItem(BaseModel):
    """Priced line item extracted from one contractor's response."""

    response_item_id: str = Field(default_factory=new_id)
    project_id: str
    contractor_id: str
    item_code: str | None = None
    section_guess: str | None = None
    description: str
    unit: str | None = None
    qty: Quantity | None = Field(default=None, ge=0)
    rate: Money | None = None
    amount: Money | None = None
    amount_label: str | None = None  # "Included", "Excluded", "Rate Only"

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal | None) -> Decimal | None:
        return round_money(v) if v is not None else None

    @model_validator(mode="after")
    def check_amount_exclusive(self) -> ResponseItem:
        if self.amount is not None and self.amount_label is not None:
            raise ValueError("A response item cannot carry both amount and amount_label")
        return self


class Contractor(BaseModel):
    """Tendering contractor."""

    contractor_id: str = Field(default_factory=new_id)
    project_id: str
    name: str
    contact: str | None = None


class Match(BaseModel):
    """Association of one ITT item with one contractor response item."""

    match_id: str = Field(default_factory=new_id)
    project_id: str
    itt_item_id: str
    contractor_id: str
    response_item_id: str
    status: MatchStatus = MatchStatus.SUGGESTED
    confidence: float = Field(default=0.0, ge=0, le=1)
    comment: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0  # bumped on every conditional update

    @property
    def is_settled(self) -> bool:
        return self.status.is_settled

    class Config:
        json_schema_extra = {
            "example": {
                "project_id": "project-1",
                "itt_item_id": "itt-1",
                "contractor_id": "contractor-1",
                "response_item_id": "response-1",
                "status": "suggested",
                "confidence": 0.82,
            }
        }


class ExceptionItem(BaseModel):
    """Response line item that matched no ITT item.

    When ``attached_section_id`` is set, the amount counts towards that
    section's totals.
    """

    exception_id: str = Field(default_factory=new_id)
    project_id: str
    response_item_id: str
    contractor_id: str
    description: str
    attached_section_id: str | None = None
    amount: Money | None = None
    note: str | None = None

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal | None) -> Decimal | None:
        return round_money(v) if v is not None else None


def _quantity_cell(v: Any) -> Decimal | None:
    if isinstance(v, Decimal) or v is None:
        return v
    return parse_quantity(v)


class ParsedLineItem(BaseModel):
    """ITT row as delivered by the extraction service."""

    section_code: str | None = None
    section_name: str | None = None
    item_code: str | None = None
    description: str = Field(min_length=1)
    unit: str | None = None
    qty: Decimal | None = Field(default=None, ge=0)
    rate: Decimal | None = None
    amount: Decimal | None = None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("qty", "rate", mode="before")
    @classmethod
    def parse_quantity_cell(cls, v: Any) -> Decimal | None:
        return _quantity_cell(v)

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount_cell(cls, v: Any) -> Decimal | None:
        return normalize_value(v).amount


class ParsedResponseItem(BaseModel):
    """Response row as delivered by the extraction service.

    ``amount`` stays raw here; it is classified into amount or label when the
    row becomes a :class:`ResponseItem`.
    """

    section_guess: str | None = None
    item_code: str | None = None
    description: str = Field(min_length=1)
    unit: str | None = None
    qty: Decimal | None = Field(default=None, ge=0)
    rate: Decimal | None = None
    amount: RawValue = None
    amount_label: str | None = None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("qty", "rate", mode="before")
    @classmethod
    def parse_quantity_cell(cls, v: Any) -> Decimal | None:
        return _quantity_cell(v)


class MatchCandidate(BaseModel):
    """Candidate pairing proposed by the auto-matcher."""

    itt_item_id: str
    response_item_id: str
    confidence: float = Field(ge=0, le=1)
    comment: str | None = None
