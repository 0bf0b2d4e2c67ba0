"""Normalized identity keys for project-scoped uniqueness.

- Sections are unique per normalized ``code`` (falling back to ``name``)
- Contractors are unique per case/space-insensitive name
- Item codes compare and sort on their normalized form
"""

from __future__ import annotations

import re
import unicodedata


def normalize_text(text: str | None) -> str:
    """Lowercase, NFKC-normalize and collapse whitespace."""
    if not text:
        return ""

    text = unicodedata.normalize("NFKC", text)
    text = text.casefold()
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def section_key(code: str | None, name: str | None = None) -> str:
    """Uniqueness key for a section: its code, else its name, else "default"."""
    return normalize_text(code) or normalize_text(name) or "default"


def contractor_key(name: str | None) -> str:
    """Uniqueness key for a contractor name ("ACME  Pty" == "acme pty")."""
    return normalize_text(name)


def normalize_item_code(code: str | None) -> str:
    """Normalize item codes for exact comparison.

    Keeps word characters and dots, drops everything else.

    Example:
        >>> normalize_item_code(" 1.2 - A ")
        '1.2a'
    """
    if not code:
        return ""
    return re.sub(r"[^\w.]", "", code.strip().lower())


def item_code_sort_key(code: str | None) -> tuple[tuple[int, int, str], ...]:
    """Natural ordering key for item codes.

    Numeric segments compare as numbers, so "2.1" sorts before "10.1" and
    "1.2" before "1.10".

    Example:
        >>> sorted(["10.1", "2.1", "1.2a", "1.2"], key=item_code_sort_key)
        ['1.2', '1.2a', '2.1', '10.1']
    """
    parts = re.findall(r"\d+|[^\d.]+", normalize_item_code(code))
    return tuple((0, int(p), "") if p.isdecimal() else (1, 0, p) for p in parts)
