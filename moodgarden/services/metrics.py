"""Metric registry: which stored fields rank each leaderboard category.

The registry is an immutable category-keyed mapping built at import time.
Extractors never raise: missing or non-numeric values coerce to ``0``.
Infinite values survive coercion so callers can drop them as unrankable.
"""

import enum
import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from numbers import Real
from types import MappingProxyType
from typing import Any

Number = int | float


class LeaderboardCategory(str, enum.Enum):
    level = "level"
    streak = "streak"
    elements = "elements"


def coerce_metric(value: Any) -> Number:
    """Coerce a raw stat value to a number, falling back to 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        try:
            value = float(value)
        except (InvalidOperation, ValueError):
            return 0
    elif isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    elif isinstance(value, Real):
        value = float(value)
    else:
        return 0

    if math.isnan(value):
        return 0
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def finite_or_zero(value: Any) -> Number:
    """Coerce and replace non-finite results with 0 (for display counters)."""
    number = coerce_metric(value)
    return number if math.isfinite(number) else 0


@dataclass(frozen=True)
class MetricDefinition:
    """Primary score and tie-break fields for one category."""

    category: LeaderboardCategory
    primary_field: str
    secondary_field: str | None = None

    @property
    def order_by(self) -> tuple[str, ...]:
        if self.secondary_field is None:
            return (self.primary_field,)
        return (self.primary_field, self.secondary_field)

    def score(self, record: Mapping[str, Any]) -> Number:
        return coerce_metric(record.get(self.primary_field))

    def tie_break(self, record: Mapping[str, Any]) -> Number:
        if self.secondary_field is None:
            return 0
        return coerce_metric(record.get(self.secondary_field))


METRICS: Mapping[LeaderboardCategory, MetricDefinition] = MappingProxyType(
    {
        LeaderboardCategory.level: MetricDefinition(
            LeaderboardCategory.level, "level", "experience"
        ),
        LeaderboardCategory.streak: MetricDefinition(
            LeaderboardCategory.streak, "current_streak", "longest_streak"
        ),
        LeaderboardCategory.elements: MetricDefinition(
            LeaderboardCategory.elements, "total_elements", "rare_elements_found"
        ),
    }
)


def get_metric(category: LeaderboardCategory) -> MetricDefinition:
    return METRICS[LeaderboardCategory(category)]
