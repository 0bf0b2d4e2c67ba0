"""Effective match resolution.

Stored matches are never deleted, so the raw match set of a project carries
history: suggestions that became moot once their response item was settled
elsewhere, and accepted matches later overridden by a manual match. This
module computes which matches a caller should actually see.

Rules:
- A *settled* match has status accepted or manual.
- Per response item, and per (ITT item, contractor) slot, the most recently
  updated settled match wins; ties go to the greater ``match_id``. Losers are
  SUPERSEDED.
- A suggested match whose response item has any settled match is STALE.
- Everything else is EFFECTIVE.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Literal

from tendercalc.core.errors import InvalidStateError
from tendercalc.models import Match, MatchStatus

StatusFilter = Literal["all", "suggested", "accepted", "rejected", "manual"]

STATUS_FILTERS: frozenset[str] = frozenset({"all", *(status.value for status in MatchStatus)})


class MatchVisibility(str, Enum):
    EFFECTIVE = "effective"
    STALE = "stale"
    SUPERSEDED = "superseded"


def _recency(match: Match) -> tuple:
    return (match.updated_at, match.match_id)


def _latest(matches: Iterable[Match]) -> Match:
    return max(matches, key=_recency)


def parse_status_filter(value: str | MatchStatus | None) -> str:
    """Validate a status filter; ``None`` and ``""`` mean "all"."""
    if value is None or value == "":
        return "all"
    if isinstance(value, MatchStatus):
        return value.value
    normalized = value.strip().lower()
    if normalized not in STATUS_FILTERS:
        raise InvalidStateError(
            f"Unknown match status filter {value!r}; expected one of {sorted(STATUS_FILTERS)}"
        )
    return normalized


def classify_matches(matches: Sequence[Match]) -> dict[str, MatchVisibility]:
    """Classify every match as effective, stale or superseded."""
    by_response_item: dict[str, list[Match]] = defaultdict(list)
    for match in matches:
        by_response_item[match.response_item_id].append(match)

    visibility: dict[str, MatchVisibility] = {}
    settled_winners: list[Match] = []

    for group in by_response_item.values():
        settled = [m for m in group if m.is_settled]
        winner = _latest(settled) if settled else None
        if winner is not None:
            settled_winners.append(winner)

        for match in group:
            if winner is None or match.match_id == winner.match_id:
                visibility[match.match_id] = MatchVisibility.EFFECTIVE
            elif match.status is MatchStatus.SUGGESTED:
                visibility[match.match_id] = MatchVisibility.STALE
            elif match.is_settled:
                visibility[match.match_id] = MatchVisibility.SUPERSEDED
            else:
                visibility[match.match_id] = MatchVisibility.EFFECTIVE

    # A newer manual match for the same cell overrides an older settled one
    by_slot: dict[tuple[str, str], list[Match]] = defaultdict(list)
    for match in settled_winners:
        by_slot[(match.itt_item_id, match.contractor_id)].append(match)

    for slot_matches in by_slot.values():
        if len(slot_matches) < 2:
            continue
        winner = _latest(slot_matches)
        for match in slot_matches:
            if match.match_id != winner.match_id:
                visibility[match.match_id] = MatchVisibility.SUPERSEDED

    return visibility


def resolve_matches(
    matches: Sequence[Match],
    status_filter: str | MatchStatus | None = "all",
    *,
    include_stale: bool = False,
) -> list[Match]:
    """Return the matches visible under ``status_filter``, in input order.

    Args:
        matches: Full match set of one project
        status_filter: "all", "suggested", "accepted", "rejected" or "manual"
        include_stale: Admin view; skip stale/superseded suppression

    Raises:
        InvalidStateError: If ``status_filter`` is not a known status
    """
    wanted = parse_status_filter(status_filter)

    if include_stale:
        visible = list(matches)
    else:
        visibility = classify_matches(matches)
        visible = [m for m in matches if visibility[m.match_id] is MatchVisibility.EFFECTIVE]

    if wanted == "all":
        return visible
    return [m for m in visible if m.status.value == wanted]
