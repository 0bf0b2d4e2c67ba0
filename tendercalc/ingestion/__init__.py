"""Data ingestion module for TenderCalc.

Handles ITT bills of quantities and contractor responses from the extraction service.
"""

from tendercalc.ingestion.items import (
    ensure_contractor,
    ensure_section,
    parse_line_items,
    parse_response_items,
    replace_itt_items,
    replace_response_items,
)

__all__ = [
    "ensure_contractor",
    "ensure_section",
    "parse_line_items",
    "parse_response_items",
    "replace_itt_items",
    "replace_response_items",
]
