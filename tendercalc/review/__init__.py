"""Review UI data models and services."""

from tendercalc.review.models import MatchView
from tendercalc.review.repository import list_match_views

__all__ = ["MatchView", "list_match_views"]
