"""Assessment payload consumed by reporting, insight generation and the UI."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from tendercalc.models import MatchStatus, Money, ProjectStatus, Quantity


class AssessmentProject(BaseModel):
    project_id: str
    name: str
    status: ProjectStatus
    currency: str
    created_at: datetime
    updated_at: datetime


class AssessmentIttItem(BaseModel):
    itt_item_id: str
    section_id: str
    section_name: str | None = None
    item_code: str
    description: str
    unit: str
    qty: Quantity
    rate: Money
    amount: Money


class ResponseCell(BaseModel):
    """One contractor's priced answer to one ITT line."""

    match_id: str
    response_item_id: str
    contractor_id: str
    section_guess: str | None = None
    item_code: str | None = None
    description: str
    unit: str | None = None
    qty: Quantity | None = None
    rate: Money | None = None
    amount: Money | None = None
    amount_label: str | None = None
    match_status: MatchStatus
    confidence: float

    @property
    def counts_towards_totals(self) -> bool:
        return self.match_status.is_settled and self.amount is not None


class AssessmentLineItem(BaseModel):
    itt_item: AssessmentIttItem
    responses: dict[str, ResponseCell] = Field(default_factory=dict)  # keyed by contractor_id


class ContractorSummary(BaseModel):
    contractor_id: str
    name: str
    contact: str | None = None
    total_value: Money = Decimal("0.00")


class SectionSummary(BaseModel):
    section_id: str
    code: str
    name: str
    order: int
    totals_by_contractor: dict[str, Money] = Field(default_factory=dict)
    total_itt_amount: Money = Decimal("0.00")
    exception_count: int = 0


class ExceptionRecord(BaseModel):
    exception_id: str
    response_item_id: str
    contractor_id: str
    contractor_name: str
    description: str
    attached_section_id: str | None = None
    amount: Money | None = None
    note: str | None = None


class SectionAttachment(BaseModel):
    """Unmatched response item attached to a section by the user."""

    response_item_id: str
    contractor_id: str
    contractor_name: str
    description: str
    amount: Money | None = None
    amount_label: str | None = None
    note: str | None = None


class AggregationInconsistency(BaseModel):
    """A match skipped because the snapshot cannot back it."""

    match_id: str
    itt_item_id: str
    response_item_id: str
    reason: str


class AssessmentPayload(BaseModel):
    """Cross-contractor comparison view for one project."""

    project: AssessmentProject
    contractors: list[ContractorSummary] = Field(default_factory=list)
    sections: list[SectionSummary] = Field(default_factory=list)
    line_items: list[AssessmentLineItem] = Field(default_factory=list)
    exceptions: list[ExceptionRecord] = Field(default_factory=list)
    section_attachments: dict[str, list[SectionAttachment]] = Field(default_factory=dict)
    anomalies: list[AggregationInconsistency] = Field(default_factory=list)

    def contractor_total(self, contractor_id: str) -> Decimal | None:
        for contractor in self.contractors:
            if contractor.contractor_id == contractor_id:
                return contractor.total_value
        return None

    def section(self, section_id: str) -> SectionSummary | None:
        for section in self.sections:
            if section.section_id == section_id:
                return section
        return None

    def cell(self, itt_item_id: str, contractor_id: str) -> ResponseCell | None:
        for line_item in self.line_items:
            if line_item.itt_item.itt_item_id == itt_item_id:
                return line_item.responses.get(contractor_id)
        return None
