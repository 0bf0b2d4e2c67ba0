"""SQLAlchemy async database models for TenderCalc.

Every table is project-scoped; rows are keyed by ``(project_id, <entity>_id)``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    Numeric,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ProjectModel(Base):
    """Tender comparison project."""

    __tablename__ = "projects"

    project_id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="AUD")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SectionModel(Base):
    """Bill of quantities section."""

    __tablename__ = "sections"

    project_id: Mapped[str] = mapped_column(Text, primary_key=True)
    section_id: Mapped[str] = mapped_column(Text, primary_key=True)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column("sort_order", Integer, nullable=False, default=0)


class ITTItemModel(Base):
    """ITT line item."""

    __tablename__ = "itt_items"

    project_id: Mapped[str] = mapped_column(Text, primary_key=True)
    itt_item_id: Mapped[str] = mapped_column(Text, primary_key=True)
    section_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    section_name: Mapped[str | None] = mapped_column(Text)
    item_code: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str] = mapped_column(Text, nullable=False, default="")
    qty: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    __table_args__ = (CheckConstraint("qty >= 0", name="check_itt_qty_non_negative"),)


class ResponseItemModel(Base):
    """Contractor response line item."""

    __tablename__ = "response_items"

    project_id: Mapped[str] = mapped_column(Text, primary_key=True)
    response_item_id: Mapped[str] = mapped_column(Text, primary_key=True)
    contractor_id: Mapped[str] = mapped_column(Text, nullable=False)
    item_code: Mapped[str | None] = mapped_column(Text)
    section_guess: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str | None] = mapped_column(Text)
    qty: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    amount_label: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint(
            "amount IS NULL OR amount_label IS NULL", name="check_response_amount_or_label"
        ),
        Index("idx_response_items_contractor", "project_id", "contractor_id"),
    )


class ContractorModel(Base):
    """Tendering contractor."""

    __tablename__ = "contractors"

    project_id: Mapped[str] = mapped_column(Text, primary_key=True)
    contractor_id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    contact: Mapped[str | None] = mapped_column(Text)


class MatchModel(Base):
    """ITT item <-> response item association with optimistic versioning."""

    __tablename__ = "matches"

    project_id: Mapped[str] = mapped_column(Text, primary_key=True)
    match_id: Mapped[str] = mapped_column(Text, primary_key=True)
    itt_item_id: Mapped[str] = mapped_column(Text, nullable=False)
    contractor_id: Mapped[str] = mapped_column(Text, nullable=False)
    response_item_id: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    comment: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "status IN ('suggested', 'accepted', 'rejected', 'manual')",
            name="check_match_status",
        ),
        CheckConstraint("confidence >= 0 AND confidence <= 1", name="check_match_confidence"),
        Index("idx_matches_project_status", "project_id", "status"),  # status filter lookups
        Index("idx_matches_response_item", "project_id", "response_item_id"),
    )


class ExceptionModel(Base):
    """Unmatched response item, optionally attached to a section."""

    __tablename__ = "exceptions"

    project_id: Mapped[str] = mapped_column(Text, primary_key=True)
    exception_id: Mapped[str] = mapped_column(Text, primary_key=True)
    response_item_id: Mapped[str] = mapped_column(Text, nullable=False)
    contractor_id: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    attached_section_id: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2))
    note: Mapped[str | None] = mapped_column(Text)
