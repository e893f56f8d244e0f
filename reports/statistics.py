from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

URGENCY_LEVELS = ("alta", "media", "baixa")
DEFAULT_URGENCY = "baixa"

# Field aliases in lookup order; older rows use the Portuguese names.
RATING_FIELDS = ("rating", "nota")
URGENCY_FIELDS = ("urgency", "urgencia")


@dataclass
class ReportStatistics:
    """
    Aggregate statistics over the complete record set of a reporting window.

    Invariants:
      - sum(urgency_distribution.values()) == total_count
      - sum of per-day counts + undated_count == total_count
      - per_day is sorted ascending by date
    """
    total_count: int
    average_rating: float  # 0.0 when no record carries a numeric rating
    rated_count: int  # records that contributed to average_rating
    urgency_distribution: Dict[str, int]  # alta / media / baixa -> count
    per_day: List[Tuple[str, int]] = field(default_factory=list)  # (YYYY-MM-DD, count)
    undated_count: int = 0  # missing or unparsable createdAt


def _parse_iso_timestamp(ts_str: str) -> datetime:
    """Parse ISO timestamp string to an aware UTC datetime."""
    parsed = datetime.fromisoformat(ts_str.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _first_present(record: Mapping[str, Any], names: Tuple[str, ...]) -> Any:
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None


def parse_rating(value: Any) -> Optional[Decimal]:
    """Return the rating as a finite Decimal, or None if it cannot be used in the average."""
    if value is None or isinstance(value, bool):
        return None
    try:
        rating = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not rating.is_finite() or not math.isfinite(float(rating)):
        return None
    return rating


def classify_urgency(value: Any) -> str:
    """Map an urgency value onto alta/media/baixa; anything else is baixa."""
    if isinstance(value, str):
        level = value.strip().lower()
        if level in URGENCY_LEVELS:
            return level
    return DEFAULT_URGENCY


def day_of(value: Any) -> Optional[str]:
    """UTC calendar date (YYYY-MM-DD) of a createdAt value, or None if unparsable."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return _parse_iso_timestamp(value).date().isoformat()
    except (ValueError, OverflowError):
        return None


def aggregate(records: Iterable[Mapping[str, Any]]) -> ReportStatistics:
    """
    Compute report statistics over normalized feedback records.

    The caller must pass every record of the window; a single page would
    understate every count.

    Degraded fields never raise:
      - missing or non-numeric ratings are left out of the average only
      - missing or unknown urgency counts as "baixa"
      - missing or unparsable createdAt is left out of the per-day buckets only
    """
    total_count = 0
    rating_sum = Decimal(0)
    rated_count = 0
    urgency_distribution: Dict[str, int] = {level: 0 for level in URGENCY_LEVELS}
    counts_by_day: Dict[str, int] = {}
    undated_count = 0

    for record in records:
        total_count += 1

        rating = parse_rating(_first_present(record, RATING_FIELDS))
        if rating is not None:
            rating_sum += rating
            rated_count += 1

        level = classify_urgency(_first_present(record, URGENCY_FIELDS))
        urgency_distribution[level] += 1

        day = day_of(record.get("createdAt"))
        if day is None:
            undated_count += 1
        else:
            counts_by_day[day] = counts_by_day.get(day, 0) + 1

    average_rating = float(rating_sum / rated_count) if rated_count else 0.0

    return ReportStatistics(
        total_count=total_count,
        average_rating=average_rating,
        rated_count=rated_count,
        urgency_distribution=urgency_distribution,
        per_day=sorted(counts_by_day.items(), key=lambda x: x[0]),
        undated_count=undated_count,
    )
