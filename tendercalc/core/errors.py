"""Error kinds raised by the matching and assessment engine."""

from __future__ import annotations


class TenderCalcError(Exception):
    """Base class for engine errors."""


class NotFoundError(TenderCalcError):
    """A referenced project, ITT item, response item, contractor or match does not exist."""

    def __init__(self, entity: str, entity_id: str, project_id: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        self.project_id = project_id
        scope = f" in project {project_id}" if project_id else ""
        super().__init__(f"{entity} not found: {entity_id}{scope}")


class InvalidStateError(TenderCalcError):
    """Operation violates the match state machine (e.g. malformed status value)."""


class ValidationError(TenderCalcError, ValueError):
    """Malformed input record (negative quantity, missing required field)."""


class ConflictError(TenderCalcError):
    """Conditional write lost against a concurrent writer; retry with a fresh snapshot."""

    def __init__(self, match_id: str, expected_version: int):
        self.match_id = match_id
        self.expected_version = expected_version
        super().__init__(
            f"Match {match_id} changed concurrently (expected version {expected_version})"
        )
