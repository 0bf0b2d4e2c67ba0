"""In-process repositories backed by dictionaries.

Used by the CLI (JSON snapshots) and by tests. Entities are copied on the
way in and out so callers never share mutable state with the store.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Generic, TypeVar

from pydantic import BaseModel

from tendercalc.core.errors import ConflictError, NotFoundError
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

EntityT = TypeVar("EntityT", bound=BaseModel)


class _MemoryStore(Generic[EntityT]):
    """Project-scoped store keyed by ``(project_id, entity_id)``."""

    id_field: str

    def __init__(self, entities: Iterable[EntityT] = ()) -> None:
        self._lock = threading.Lock()
        self._rows: dict[tuple[str, str], EntityT] = {}
        for entity in entities:
            self._rows[self._key(entity)] = entity.model_copy(deep=True)

    def _key(self, entity: EntityT) -> tuple[str, str]:
        return (entity.project_id, getattr(entity, self.id_field))

    async def list_by_project(self, project_id: str) -> list[EntityT]:
        with self._lock:
            return [
                entity.model_copy(deep=True)
                for (pid, _), entity in self._rows.items()
                if pid == project_id
            ]

    async def get_by_id(self, project_id: str, entity_id: str) -> EntityT | None:
        with self._lock:
            entity = self._rows.get((project_id, entity_id))
            return entity.model_copy(deep=True) if entity is not None else None

    async def upsert(self, entity: EntityT) -> EntityT:
        with self._lock:
            self._rows[self._key(entity)] = entity.model_copy(deep=True)
        return entity


class MemoryProjectRepository:
    def __init__(self, projects: Iterable[Project] = ()) -> None:
        self._rows = {p.project_id: p.model_copy(deep=True) for p in projects}

    async def get_by_id(self, project_id: str) -> Project | None:
        project = self._rows.get(project_id)
        return project.model_copy(deep=True) if project is not None else None

    async def upsert(self, project: Project) -> Project:
        self._rows[project.project_id] = project.model_copy(deep=True)
        return project


class MemorySectionRepository(_MemoryStore[Section]):
    id_field = "section_id"

    async def list_by_project(self, project_id: str) -> list[Section]:
        return sort_sections(await super().list_by_project(project_id))


class MemoryITTItemRepository(_MemoryStore[ITTItem]):
    id_field = "itt_item_id"

    async def delete_by_project(self, project_id: str) -> int:
        with self._lock:
            keys = [key for key in self._rows if key[0] == project_id]
            for key in keys:
                del self._rows[key]
        return len(keys)


class MemoryResponseItemRepository(_MemoryStore[ResponseItem]):
    id_field = "response_item_id"

    async def delete_for_contractor(self, project_id: str, contractor_id: str) -> int:
        with self._lock:
            keys = [
                key
                for key, item in self._rows.items()
                if key[0] == project_id and item.contractor_id == contractor_id
            ]
            for key in keys:
                del self._rows[key]
        return len(keys)


class MemoryContractorRepository(_MemoryStore[Contractor]):
    id_field = "contractor_id"


class MemoryExceptionRepository(_MemoryStore[ExceptionItem]):
    id_field = "exception_id"


class MemoryMatchRepository(_MemoryStore[Match]):
    id_field = "match_id"

    async def list_by_status(self, project_id: str, status: MatchStatus) -> list[Match]:
        matches = await self.list_by_project(project_id)
        return [m for m in matches if m.status is status]

    async def replace(self, match: Match, expected_version: int) -> Match:
        key = self._key(match)
        with self._lock:
            stored = self._rows.get(key)
            if stored is None:
                raise NotFoundError("Match", match.match_id, match.project_id)
            if stored.version != expected_version:
                raise ConflictError(match.match_id, expected_version)
            updated = match.model_copy(update={"version": expected_version + 1})
            self._rows[key] = updated.model_copy(deep=True)
        return updated


def memory_repositories(
    projects: Iterable[Project] = (),
    sections: Iterable[Section] = (),
    itt_items: Iterable[ITTItem] = (),
    response_items: Iterable[ResponseItem] = (),
    contractors: Iterable[Contractor] = (),
    matches: Iterable[Match] = (),
    exceptions: Iterable[ExceptionItem] = (),
) -> Repositories:
    """Build a fully in-memory :class:`Repositories` bundle."""
    return Repositories(
        projects=MemoryProjectRepository(projects),
        sections=MemorySectionRepository(sections),
        itt_items=MemoryITTItemRepository(itt_items),
        response_items=MemoryResponseItemRepository(response_items),
        contractors=MemoryContractorRepository(contractors),
        matches=MemoryMatchRepository(matches),
        exceptions=MemoryExceptionRepository(exceptions),
    )
