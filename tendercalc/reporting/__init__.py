"""Reporting module for TenderCalc.

Builds the cross-contractor assessment and its spreadsheet exports.
"""

from tendercalc.reporting.assessment import (
    build_assessment,
    find_duplicate_exceptions,
    load_assessment,
    response_amount,
)
from tendercalc.reporting.models import AssessmentPayload

__all__ = [
    "AssessmentPayload",
    "build_assessment",
    "find_duplicate_exceptions",
    "load_assessment",
    "response_amount",
]
