"""
Decimal Utilities
story_contest/scoring/utils.py

Precision-safe decimal math shared by the category scorers, the integrity
detectors and the ranking step.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Mapping


def to_decimal(value: float, places: int = 4) -> Decimal:
    """Convert float to Decimal with explicit precision."""
    return Decimal(str(value)).quantize(
        Decimal(10) ** -places, rounding=ROUND_HALF_UP
    )


def clamp(
    value: Decimal,
    min_val: Decimal = Decimal("0"),
    max_val: Decimal = Decimal("100"),
) -> Decimal:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def clamp_score(value: float) -> int:
    """Round half-up and clamp to an integer sub-score in [0, 100]."""
    rounded = to_decimal(value, places=0)
    return int(clamp(rounded))


def weighted_score(scores: Mapping[str, float], weights: Dict[str, float]) -> Decimal:
    """
    Fixed-weight linear combination of named sub-scores.

    Formula: Σ(score_k × weight_k) over the weight table. Missing categories
    count as 0. Result is clamped to [0, 100] and quantized to 0.01.
    """
    total = Decimal("0")
    for name, weight in weights.items():
        total += to_decimal(scores.get(name, 0)) * to_decimal(weight)
    return clamp(total).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def mean(values: List[float]) -> Decimal:
    if not values:
        return Decimal("0")
    total = sum(to_decimal(v) for v in values)
    return (total / len(values)).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def std_dev(values: List[float]) -> Decimal:
    """
    Population standard deviation.

    Formula: sqrt(Σ(value_i - mean)² / n)
    """
    if not values:
        return Decimal("0")
    avg = mean(values)
    variance = sum((to_decimal(v) - avg) ** 2 for v in values) / len(values)

    # Decimal-safe square root via float conversion
    std = Decimal(str(float(variance) ** 0.5))
    return std.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def ratio(part: float, whole: float) -> float:
    """part / whole, 0.0 when whole is 0."""
    return part / whole if whole else 0.0
