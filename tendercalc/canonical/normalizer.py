"""Value normalization for extracted bill-of-quantities cells.

Classifies a raw cell (currency formatted string, accounting negative,
"Included"-style annotation or plain number) as a 2dp amount, a text label
or empty.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

_CENTS = Decimal("0.01")
_DECIMAL_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")

DEFAULT_CURRENCY_SYMBOLS = "$€£¥"
DEFAULT_CURRENCY_CODES = ("AUD", "NZD", "USD", "EUR", "GBP")

RawCell = str | int | float | Decimal | None


@dataclass(frozen=True, slots=True)
class NormalizedValue:
    """Exactly one of amount / label, or neither when the cell is empty."""

    amount: Decimal | None = None
    label: str | None = None

    def __post_init__(self) -> None:
        if self.amount is not None and self.label is not None:
            raise ValueError("A normalized value cannot be both numeric and labeled")

    @property
    def is_empty(self) -> bool:
        return self.amount is None and self.label is None

    def as_dict(self) -> dict[str, Any]:
        if self.amount is not None:
            return {"amount": self.amount}
        if self.label is not None:
            return {"label": self.label}
        return {"empty": True}


EMPTY = NormalizedValue()


def round_money(value: Decimal | float | int) -> Decimal:
    """Quantize to 2 decimal places, half away from zero.

    Precision grows with the value, so amounts wider than the default
    28-digit context still quantize exactly.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _finite_number(raw: Any) -> Decimal | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else None
    if isinstance(raw, float):
        return Decimal(str(raw)) if math.isfinite(raw) else None
    if isinstance(raw, int):
        return Decimal(raw)
    return None


def _strip_currency(text: str, symbols: str, codes: tuple[str, ...]) -> str:
    for symbol in symbols:
        text = text.replace(symbol, "")
    for code in codes:
        text = re.sub(
            rf"^\s*{code}(?![A-Za-z])|(?<![A-Za-z]){code}\s*$", "", text, flags=re.IGNORECASE
        )
    return re.sub(r"[,\s]", "", text)


def _parse_decimal(text: str, symbols: str, codes: tuple[str, ...]) -> Decimal | None:
    cleaned = _strip_currency(text, symbols, codes)

    negate = False
    if len(cleaned) > 2 and cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = cleaned[1:-1]
        negate = True

    if not _DECIMAL_PATTERN.match(cleaned):
        return None
    value = Decimal(cleaned)
    return -value if negate else value


def normalize_value(
    raw: RawCell,
    *,
    currency_symbols: str = DEFAULT_CURRENCY_SYMBOLS,
    currency_codes: tuple[str, ...] = DEFAULT_CURRENCY_CODES,
) -> NormalizedValue:
    """Normalize an extracted cell into an amount, a label or empty.

    Rules are applied in order:
        1. finite numbers are rounded to 2dp
        2. null / blank strings are empty
        3. currency symbols, codes and thousands separators are stripped
        4. ``(1,234.56)`` is the accounting form of ``-1234.56``
        5. a plain decimal is rounded to 2dp
        6. anything else is kept verbatim (trimmed) as a label

    Normalizing an already-normalized amount or label returns the same value.

    Example:
        >>> normalize_value("($7,758.23)").amount
        Decimal('-7758.23')
        >>> normalize_value(" Included ").label
        'Included'
    """
    if raw is None:
        return EMPTY

    if isinstance(raw, (int, float, Decimal)) and not isinstance(raw, bool):
        number = _finite_number(raw)
        return NormalizedValue(amount=round_money(number)) if number is not None else EMPTY

    text = str(raw).strip()
    if not text:
        return EMPTY

    value = _parse_decimal(text, currency_symbols, currency_codes)
    if value is None:
        return NormalizedValue(label=text)
    return NormalizedValue(amount=round_money(value))


def parse_quantity(raw: RawCell) -> Decimal | None:
    """Parse a qty / rate cell without rounding; non-numeric cells give None."""
    if raw is None:
        return None
    if isinstance(raw, (int, float, Decimal)) and not isinstance(raw, bool):
        return _finite_number(raw)

    text = str(raw).strip()
    if not text:
        return None
    return _parse_decimal(text, DEFAULT_CURRENCY_SYMBOLS, DEFAULT_CURRENCY_CODES)
