"""Money helpers: minor-unit rounding and non-negative clamping.

Allocations are stored as integer minor units (cents). Ledger line amounts
are floats, so comparisons against them go through ``within_epsilon``.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import InvalidAmount


def parse_amount(raw: Any, *, field: str = "amount") -> float:
    """Return ``raw`` as a finite float or raise ``InvalidAmount``.

    Booleans are rejected even though they are ints in Python.
    """

    if isinstance(raw, bool) or raw is None:
        raise InvalidAmount(f"Invalid {field}")
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            raise InvalidAmount(f"Invalid {field}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidAmount(f"Invalid {field}") from None
    if math.isnan(value) or math.isinf(value):
        raise InvalidAmount(f"Invalid {field}")
    return value


def round_minor(value: float) -> int:
    """Round to the nearest whole minor unit, halves away from zero."""

    try:
        return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise InvalidAmount("Invalid amount") from None


def clamp_non_negative(value: float) -> float:
    return value if value > 0 else 0


def to_allocation(value: float) -> int:
    """Convert a requested allocation into stored non-negative minor units."""

    return int(clamp_non_negative(round_minor(value)))


def within_epsilon(amount: float, ceiling: float, epsilon: float = 1e-6) -> bool:
    """Return True when ``amount`` does not exceed ``ceiling`` beyond ``epsilon``."""

    return amount <= ceiling + epsilon
