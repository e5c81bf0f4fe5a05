from __future__ import annotations

import math
from datetime import date
from typing import Iterable, Literal

import pandas as pd

from staffplan.core.errors import ValidationError
from staffplan.schemas.traffic import TrafficDay, TrafficMetadata

AggregationPolicy = Literal["sum", "average"]


def hour_label(hour: int) -> str:
    return f"{hour:02d}:00"


def hour_of(label: str) -> int:
    try:
        hour = int(str(label).split(":", 1)[0])
    except ValueError as exc:
        raise ValidationError(f"Invalid hour label '{label}'; expected HH:00.") from exc
    if not 0 <= hour <= 23:
        raise ValidationError(f"Invalid hour label '{label}'; hour must be between 00 and 23.")
    return hour


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_traffic_day(day: date, counts: dict[str, int], simulated: bool = False) -> TrafficDay:
    hours: dict[str, int] = {}
    for label, count in counts.items():
        normalized = hour_label(hour_of(label))
        hours[normalized] = hours.get(normalized, 0) + max(0, int(count or 0))
    hours = dict(sorted(hours.items()))

    total = sum(hours.values())
    with_traffic = [(label, count) for label, count in hours.items() if count > 0]
    peak_hour, peak_count = None, 0
    for label, count in with_traffic:
        if count > peak_count:
            peak_hour, peak_count = label, count

    return TrafficDay(
        date=day,
        hours=hours,
        metadata=TrafficMetadata(
            total=total,
            peak_hour=peak_hour,
            peak_count=peak_count,
            hour_count=len(with_traffic),
            average_per_hour=round(total / len(with_traffic), 2) if with_traffic else 0.0,
            simulated=simulated,
        ),
    )


def simulated_day(day: date) -> TrafficDay:
    return build_traffic_day(day, {}, simulated=True)


def aggregate(
    reference_days: Iterable[TrafficDay],
    policy: AggregationPolicy = "sum",
    target_date: date | None = None,
) -> TrafficDay:
    days = list(reference_days)
    if not days:
        raise ValidationError("At least one reference day is required to aggregate traffic.")
    if policy not in ("sum", "average"):
        raise ValidationError(f"Unknown aggregation policy '{policy}'.")

    result_date = target_date or days[0].date
    simulated = any(day.metadata.simulated for day in days)
    if len(days) == 1:
        return build_traffic_day(result_date, days[0].hours, simulated=simulated)

    frame = pd.DataFrame([day.hours for day in days]).fillna(0)
    if frame.empty or len(frame.columns) == 0:
        return build_traffic_day(result_date, {}, simulated=simulated)

    combined = frame.sum(axis=0) if policy == "sum" else frame.mean(axis=0)
    counts = {str(label): round_half_up(float(value)) for label, value in combined.items()}
    return build_traffic_day(result_date, counts, simulated=simulated)
