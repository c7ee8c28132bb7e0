"""
strategy_weights/numeric.py
---------------------------
Zero-substitution primitives shared by both engines.

Every degenerate case (zero denominator, log of a non-positive amount,
unparsable string) is resolved here and nowhere else, so no ``NaN`` or
``inf`` can leak into a returned weight map.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Dict, Hashable, Mapping, Optional


def safe_divide(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator``, or ``0.0`` when undefined."""
    if denominator == 0:
        return 0.0
    result = numerator / denominator
    if not math.isfinite(result):
        return 0.0
    return result


def safe_log(value: float) -> float:
    """
    Natural log of *value*.

    Non-positive (or non-finite) inputs return ``-inf``, which the geometric
    mean reads as "this product is zero".
    """
    if not math.isfinite(value) or value <= 0:
        return -math.inf
    return math.log(value)


def parse_amount(text) -> float:
    """
    Parse a decimal amount string (``"1.25"``) into a non-negative float.

    Malformed, missing, negative or non-finite values parse as ``0.0``.
    """
    if text is None:
        return 0.0
    try:
        value = Decimal(str(text).strip())
    except (InvalidOperation, ValueError):
        return 0.0
    if not value.is_finite() or value <= 0:
        return 0.0
    result = float(value)
    return result if math.isfinite(result) else 0.0


def parse_units(text) -> int:
    """
    Parse a smallest-unit integer string (``"1000000000000000000"``).

    Malformed, missing, negative or fractional values parse as ``0``.
    """
    if text is None or isinstance(text, bool):
        return 0
    if isinstance(text, int):
        return max(text, 0)
    if isinstance(text, float):
        return max(int(text), 0) if text.is_integer() else 0
    try:
        value = int(str(text).strip())
    except ValueError:
        return 0
    return max(value, 0)


def normalize(values: Mapping[Hashable, float]) -> Dict[Hashable, float]:
    """Scale *values* so they sum to 1.0. All zeros when the sum is not positive."""
    total = sum(values.values())
    if total <= 0 or not math.isfinite(total):
        return {key: 0.0 for key in values}
    return {key: safe_divide(value, total) for key, value in values.items()}


def coefficient_mass(coefficients, validator_coefficient: Optional[float]) -> float:
    """Total coefficient mass ``C = Σ coefficient + validator_coefficient``."""
    return sum(c.coefficient for c in coefficients) + (validator_coefficient or 0.0)
