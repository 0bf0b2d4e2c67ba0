"""Match ledger: write-side rules of the match state machine.

    suggested --accept--> accepted
    suggested --reject--> rejected
    (create)  ---------> manual

accepted, rejected and manual are terminal. Records are never deleted; a
newer manual match simply wins over older settled matches when the resolver
computes the effective set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tendercalc.config import MatchingConfig
from tendercalc.core.errors import InvalidStateError, NotFoundError
from tendercalc.models import ITTItem, Match, MatchCandidate, MatchStatus, ResponseItem, utcnow
from tendercalc.repository.base import Repositories

logger = logging.getLogger(__name__)

_TRANSITION_TARGETS = frozenset({MatchStatus.ACCEPTED, MatchStatus.REJECTED})


def parse_target_status(status: str | MatchStatus) -> MatchStatus:
    """Parse the target of a status update; only accepted/rejected are reachable."""
    try:
        target = status if isinstance(status, MatchStatus) else MatchStatus(status.strip().lower())
    except (ValueError, AttributeError):
        raise InvalidStateError(f"Unknown match status: {status!r}") from None

    if target not in _TRANSITION_TARGETS:
        raise InvalidStateError(
            f"Cannot transition a match to {target.value!r}; use accept, reject or a manual match"
        )
    return target


class MatchLedger:
    """Records suggestions, manual matches and accept/reject decisions."""

    def __init__(self, repos: Repositories, config: MatchingConfig | None = None):
        self.repos = repos
        self.config = config or MatchingConfig()

    async def _require_itt_item(self, project_id: str, itt_item_id: str) -> ITTItem:
        item = await self.repos.itt_items.get_by_id(project_id, itt_item_id)
        if item is None:
            raise NotFoundError("ITT item", itt_item_id, project_id)
        return item

    async def _require_response_item(self, project_id: str, response_item_id: str) -> ResponseItem:
        item = await self.repos.response_items.get_by_id(project_id, response_item_id)
        if item is None:
            raise NotFoundError("Response item", response_item_id, project_id)
        return item

    async def record_suggestions(
        self, project_id: str, candidates: Iterable[MatchCandidate]
    ) -> list[Match]:
        """Store auto-matcher candidates as suggested matches.

        Candidates below ``min_suggestion_confidence`` are dropped, and so are
        candidates for a pairing that already has a match record (whatever its
        status), so re-running the matcher never duplicates history.

        Returns:
            The newly created matches

        Raises:
            NotFoundError: If a candidate references an unknown ITT/response item
        """
        existing = await self.repos.matches.list_by_project(project_id)
        known_pairs = {(m.itt_item_id, m.response_item_id) for m in existing}

        created: list[Match] = []
        skipped = 0
        for candidate in candidates:
            if candidate.confidence < self.config.min_suggestion_confidence:
                skipped += 1
                continue
            pair = (candidate.itt_item_id, candidate.response_item_id)
            if pair in known_pairs:
                skipped += 1
                continue

            await self._require_itt_item(project_id, candidate.itt_item_id)
            response_item = await self._require_response_item(
                project_id, candidate.response_item_id
            )

            match = Match(
                project_id=project_id,
                itt_item_id=candidate.itt_item_id,
                contractor_id=response_item.contractor_id,
                response_item_id=candidate.response_item_id,
                status=MatchStatus.SUGGESTED,
                confidence=candidate.confidence,
                comment=candidate.comment,
            )
            await self.repos.matches.upsert(match)
            known_pairs.add(pair)
            created.append(match)

        logger.info(
            "Recorded %d suggested matches for project %s (%d skipped)",
            len(created),
            project_id,
            skipped,
        )
        return created

    async def create_manual_match(
        self,
        project_id: str,
        itt_item_id: str,
        response_item_id: str,
        comment: str | None = None,
    ) -> Match:
        """Pair an ITT item with a response item by hand (drag-and-drop).

        The new match is settled immediately and, being the most recent,
        becomes the effective match for its cell and its response item.

        Raises:
            NotFoundError: If either item is missing from the project
        """
        await self._require_itt_item(project_id, itt_item_id)
        response_item = await self._require_response_item(project_id, response_item_id)

        now = utcnow()
        match = Match(
            project_id=project_id,
            itt_item_id=itt_item_id,
            contractor_id=response_item.contractor_id,
            response_item_id=response_item_id,
            status=MatchStatus.MANUAL,
            confidence=self.config.manual_confidence,
            comment=comment,
            created_at=now,
            updated_at=now,
        )
        await self.repos.matches.upsert(match)

        logger.info(
            "Manual match %s: ITT item %s <- response item %s (contractor %s)",
            match.match_id,
            itt_item_id,
            response_item_id,
            match.contractor_id,
        )
        return match

    async def update_status(
        self,
        project_id: str,
        match_id: str,
        status: str | MatchStatus,
        comment: str | None = None,
    ) -> Match:
        """Accept or reject a suggested match.

        Updating a match that is already terminal is a no-op and returns the
        stored record unchanged.

        Raises:
            InvalidStateError: If ``status`` is not accepted/rejected
            NotFoundError: If the match does not exist in the project
            ConflictError: If the match changed concurrently
        """
        target = parse_target_status(status)

        match = await self.repos.matches.get_by_id(project_id, match_id)
        if match is None:
            raise NotFoundError("Match", match_id, project_id)

        if match.status.is_terminal:
            logger.debug(
                "Match %s already %s; ignoring %s", match_id, match.status.value, target.value
            )
            return match

        updated = match.model_copy(
            update={
                "status": target,
                "comment": comment if comment is not None else match.comment,
                "updated_at": utcnow(),
            }
        )
        return await self.repos.matches.replace(updated, expected_version=match.version)

    async def accept(self, project_id: str, match_id: str, comment: str | None = None) -> Match:
        return await self.update_status(project_id, match_id, MatchStatus.ACCEPTED, comment)

    async def reject(self, project_id: str, match_id: str, comment: str | None = None) -> Match:
        return await self.update_status(project_id, match_id, MatchStatus.REJECTED, comment)
