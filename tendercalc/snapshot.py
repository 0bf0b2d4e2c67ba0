"""JSON project snapshots.

A snapshot is one project's full record set (the shape the assessment is
computed from). The CLI reads snapshots from disk and serves them through
in-memory repositories.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from tendercalc.core.errors import ValidationError
from tendercalc.models import (
    Contractor,
    ExceptionItem,
    ITTItem,
    Match,
    Project,
    ResponseItem,
    Section,
)
from tendercalc.repository.base import Repositories
from tendercalc.repository.memory import memory_repositories


class ProjectSnapshot(BaseModel):
    project: Project
    sections: list[Section] = Field(default_factory=list)
    itt_items: list[ITTItem] = Field(default_factory=list)
    response_items: list[ResponseItem] = Field(default_factory=list)
    contractors: list[Contractor] = Field(default_factory=list)
    matches: list[Match] = Field(default_factory=list)
    exceptions: list[ExceptionItem] = Field(default_factory=list)

    def to_repositories(self) -> Repositories:
        return memory_repositories(
            projects=[self.project],
            sections=self.sections,
            itt_items=self.itt_items,
            response_items=self.response_items,
            contractors=self.contractors,
            matches=self.matches,
            exceptions=self.exceptions,
        )


def load_snapshot(path: Path) -> ProjectSnapshot:
    """Parse a snapshot file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the JSON does not describe a valid snapshot
    """
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    try:
        return ProjectSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ValidationError(f"Invalid snapshot {path}: {exc}") from exc
