"""Match ledger (writes) and resolver (effective match computation)."""

from tendercalc.matching.ledger import MatchLedger
from tendercalc.matching.resolver import (
    MatchVisibility,
    classify_matches,
    parse_status_filter,
    resolve_matches,
)

__all__ = [
    "MatchLedger",
    "MatchVisibility",
    "classify_matches",
    "parse_status_filter",
    "resolve_matches",
]
