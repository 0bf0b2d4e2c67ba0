"""Per-entity repository interfaces and the in-memory implementation."""

from tendercalc.repository.base import (
    ContractorRepository,
    ExceptionRepository,
    ITTItemRepository,
    MatchRepository,
    ProjectRepository,
    Repositories,
    ResponseItemRepository,
    SectionRepository,
)
from tendercalc.repository.memory import memory_repositories

__all__ = [
    "ContractorRepository",
    "ExceptionRepository",
    "ITTItemRepository",
    "MatchRepository",
    "ProjectRepository",
    "Repositories",
    "ResponseItemRepository",
    "SectionRepository",
    "memory_repositories",
]
