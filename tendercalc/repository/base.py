"""Repository interfaces, one per entity.

The engine only talks to these protocols; how entities are keyed and stored
is up to the implementation (see ``tendercalc.repository.memory`` and
``tendercalc.db.repository``).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

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


class ProjectRepository(Protocol):
    async def get_by_id(self, project_id: str) -> Project | None: ...

    async def upsert(self, project: Project) -> Project: ...


class SectionRepository(Protocol):
    async def list_by_project(self, project_id: str) -> list[Section]: ...

    async def get_by_id(self, project_id: str, section_id: str) -> Section | None: ...

    async def upsert(self, section: Section) -> Section: ...


class ITTItemRepository(Protocol):
    async def list_by_project(self, project_id: str) -> list[ITTItem]: ...

    async def get_by_id(self, project_id: str, itt_item_id: str) -> ITTItem | None: ...

    async def upsert(self, item: ITTItem) -> ITTItem: ...

    async def delete_by_project(self, project_id: str) -> int: ...


class ResponseItemRepository(Protocol):
    async def list_by_project(self, project_id: str) -> list[ResponseItem]: ...

    async def get_by_id(self, project_id: str, response_item_id: str) -> ResponseItem | None: ...

    async def upsert(self, item: ResponseItem) -> ResponseItem: ...

    async def delete_for_contractor(self, project_id: str, contractor_id: str) -> int: ...


class ContractorRepository(Protocol):
    async def list_by_project(self, project_id: str) -> list[Contractor]: ...

    async def get_by_id(self, project_id: str, contractor_id: str) -> Contractor | None: ...

    async def upsert(self, contractor: Contractor) -> Contractor: ...


class MatchRepository(Protocol):
    async def list_by_project(self, project_id: str) -> list[Match]: ...

    async def list_by_status(self, project_id: str, status: MatchStatus) -> list[Match]: ...

    async def get_by_id(self, project_id: str, match_id: str) -> Match | None: ...

    async def upsert(self, match: Match) -> Match: ...

    async def replace(self, match: Match, expected_version: int) -> Match:
        """Conditionally overwrite a stored match.

        The write only happens if the stored record for
        ``(match.project_id, match.match_id)`` still has ``expected_version``;
        the stored version becomes ``expected_version + 1``.

        Raises:
            NotFoundError: If the match does not exist
            ConflictError: If the stored version differs
        """
        ...


class ExceptionRepository(Protocol):
    async def list_by_project(self, project_id: str) -> list[ExceptionItem]: ...

    async def get_by_id(self, project_id: str, exception_id: str) -> ExceptionItem | None: ...

    async def upsert(self, exception: ExceptionItem) -> ExceptionItem: ...


@dataclass(slots=True)
class Repositories:
    """Bundle of per-entity repositories handed to services."""

    projects: ProjectRepository
    sections: SectionRepository
    itt_items: ITTItemRepository
    response_items: ResponseItemRepository
    contractors: ContractorRepository
    matches: MatchRepository
    exceptions: ExceptionRepository


def sort_sections(sections: Sequence[Section]) -> list[Section]:
    return sorted(sections, key=lambda s: (s.order, s.code, s.section_id))
