"""SQLAlchemy-backed repositories.

All repositories of one bundle share a single ``AsyncSession``; the caller
owns the transaction (see ``tendercalc.db.connection.get_session``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tendercalc.core.errors import ConflictError, NotFoundError
from tendercalc.db.models import (
    Base,
    ContractorModel,
    ExceptionModel,
    ITTItemModel,
    MatchModel,
    ProjectModel,
    ResponseItemModel,
    SectionModel,
)
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
from tendercalc.repository.base import Repositories, sort_sections

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)


def _to_row_values(entity: BaseModel) -> dict[str, Any]:
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in entity.model_dump().items()
    }


def _from_row(entity_cls: type[EntityT], row: Base) -> EntityT:
    data = {}
    for attr in row.__mapper__.column_attrs:
        value = getattr(row, attr.key)
        # SQLite drops tzinfo on DateTime(timezone=True)
        if isinstance(value, datetime) and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        data[attr.key] = value
    return entity_cls.model_validate(data)


class _SqlStore(Generic[EntityT]):
    entity_cls: type[EntityT]
    model_cls: type[Base]
    id_column: str

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _id_attr(self):
        return getattr(self.model_cls, self.id_column)

    async def list_by_project(self, project_id: str) -> list[EntityT]:
        result = await self.session.execute(
            select(self.model_cls)
            .where(self.model_cls.project_id == project_id)
            .execution_options(populate_existing=True)
        )
        return [_from_row(self.entity_cls, row) for row in result.scalars().all()]

    async def get_by_id(self, project_id: str, entity_id: str) -> EntityT | None:
        result = await self.session.execute(
            select(self.model_cls)
            .where(self.model_cls.project_id == project_id, self._id_attr() == entity_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _from_row(self.entity_cls, row) if row is not None else None

    async def upsert(self, entity: EntityT) -> EntityT:
        await self.session.merge(self.model_cls(**_to_row_values(entity)))
        await self.session.flush()
        return entity


class SqlProjectRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, project_id: str) -> Project | None:
        row = await self.session.get(ProjectModel, project_id)
        return _from_row(Project, row) if row is not None else None

    async def upsert(self, project: Project) -> Project:
        await self.session.merge(ProjectModel(**_to_row_values(project)))
        await self.session.flush()
        return project


class SqlSectionRepository(_SqlStore[Section]):
    entity_cls = Section
    model_cls = SectionModel
    id_column = "section_id"

    async def list_by_project(self, project_id: str) -> list[Section]:
        return sort_sections(await super().list_by_project(project_id))


class SqlITTItemRepository(_SqlStore[ITTItem]):
    entity_cls = ITTItem
    model_cls = ITTItemModel
    id_column = "itt_item_id"

    async def delete_by_project(self, project_id: str) -> int:
        result = await self.session.execute(
            delete(ITTItemModel).where(ITTItemModel.project_id == project_id)
        )
        return result.rowcount or 0


class SqlResponseItemRepository(_SqlStore[ResponseItem]):
    entity_cls = ResponseItem
    model_cls = ResponseItemModel
    id_column = "response_item_id"

    async def delete_for_contractor(self, project_id: str, contractor_id: str) -> int:
        result = await self.session.execute(
            delete(ResponseItemModel).where(
                ResponseItemModel.project_id == project_id,
                ResponseItemModel.contractor_id == contractor_id,
            )
        )
        return result.rowcount or 0


class SqlContractorRepository(_SqlStore[Contractor]):
    entity_cls = Contractor
    model_cls = ContractorModel
    id_column = "contractor_id"


class SqlExceptionRepository(_SqlStore[ExceptionItem]):
    entity_cls = ExceptionItem
    model_cls = ExceptionModel
    id_column = "exception_id"


class SqlMatchRepository(_SqlStore[Match]):
    entity_cls = Match
    model_cls = MatchModel
    id_column = "match_id"

    async def list_by_status(self, project_id: str, status: MatchStatus) -> list[Match]:
        result = await self.session.execute(
            select(MatchModel)
            .where(MatchModel.project_id == project_id, MatchModel.status == status.value)
            .execution_options(populate_existing=True)
        )
        return [_from_row(Match, row) for row in result.scalars().all()]

    async def replace(self, match: Match, expected_version: int) -> Match:
        """Single conditional UPDATE guarded by ``version``.

        Raises:
            NotFoundError: If the match does not exist
            ConflictError: If the stored version is not ``expected_version``
        """
        values = _to_row_values(match)
        for key in ("project_id", "match_id"):
            values.pop(key)
        values["version"] = expected_version + 1

        result = await self.session.execute(
            update(MatchModel)
            .where(
                MatchModel.project_id == match.project_id,
                MatchModel.match_id == match.match_id,
                MatchModel.version == expected_version,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            if await self.get_by_id(match.project_id, match.match_id) is None:
                raise NotFoundError("Match", match.match_id, match.project_id)
            logger.warning(
                "Conditional update of match %s lost (expected version %d)",
                match.match_id,
                expected_version,
            )
            raise ConflictError(match.match_id, expected_version)

        return match.model_copy(update={"version": expected_version + 1})


def sql_repositories(session: AsyncSession) -> Repositories:
    """Build a :class:`Repositories` bundle bound to ``session``."""
    return Repositories(
        projects=SqlProjectRepository(session),
        sections=SqlSectionRepository(session),
        itt_items=SqlITTItemRepository(session),
        response_items=SqlResponseItemRepository(session),
        contractors=SqlContractorRepository(session),
        matches=SqlMatchRepository(session),
        exceptions=SqlExceptionRepository(session),
    )
