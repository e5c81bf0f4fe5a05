from __future__ import annotations

import math
import re
from typing import Iterable

from staffplan.core.errors import ValidationError
from staffplan.schemas.recommendations import RecommendationDay, RecommendationHour, WeekSummary
from staffplan.schemas.traffic import TrafficDay
from staffplan.tools.traffic import hour_label, hour_of, round_half_up
from staffplan.tools.weeks import weekday_name

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def check_parameters(desired_attention: float, growth_factor: float) -> None:
    if desired_attention is None or not math.isfinite(desired_attention) or desired_attention <= 0:
        raise ValidationError(f"desired_attention must be a positive number, got {desired_attention!r}.")
    if growth_factor is None or not math.isfinite(growth_factor):
        raise ValidationError(f"growth_factor must be a finite number, got {growth_factor!r}.")


def recommend_hour(
    hour: str,
    entries: int,
    desired_attention: float,
    growth_factor: float,
    minimum: int | None = None,
    rounded: bool = True,
) -> RecommendationHour:
    check_parameters(desired_attention, growth_factor)
    if entries is None or entries < 0:
        raise ValidationError(f"entries for {hour} must be a non-negative count, got {entries!r}.")

    factor = 1 + growth_factor
    divisor = desired_attention / 2
    exact = entries * factor / divisor
    value: float = round_half_up(exact) if rounded else round(exact, 2)

    floor_applied = minimum is not None and value < minimum
    recommended = float(minimum) if floor_applied else float(value)

    calculation = f"({entries} * {factor:.2f}) / {divisor:.2f} = {exact:.2f} -> {value:g}"
    if floor_applied:
        calculation += f" -> minimum {minimum}"

    return RecommendationHour(
        hour=hour,
        entries=entries,
        exact=exact,
        recommended=recommended,
        floor_applied=floor_applied,
        minimum=minimum,
        desired_attention=desired_attention,
        growth_factor=growth_factor,
        formula=f"({entries} * (1 + {growth_factor * 100:.2f}%)) / ({desired_attention:g} / 2)",
        calculation=calculation,
    )


def _parse_hour(value: str, *, closing: bool = False) -> int:
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValidationError(f"Invalid time '{value}'; expected HH:MM.")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 24 or minute > 59 or (hour == 24 and minute != 0):
        raise ValidationError(f"Invalid time '{value}'.")
    if closing and hour == 0:
        return 24
    return hour


def open_hours(open_time: str, close_time: str | None = None) -> list[int]:
    """Whole hours inside the opening window(s), closing hour excluded.

    ``open_time`` may also carry split shifts as ``"10:00-14:00,17:00-21:00"``,
    in which case ``close_time`` is ignored.
    """
    if isinstance(open_time, str) and "-" in open_time:
        intervals = [part.split("-", 1) for part in open_time.split(",") if part.strip()]
    else:
        if close_time is None:
            raise ValidationError("close_time is required when open_time is a single time.")
        intervals = [[open_time, close_time]]

    hours: set[int] = set()
    for interval in intervals:
        if len(interval) != 2:
            raise ValidationError(f"Invalid opening interval '{interval}'.")
        start, end = _parse_hour(interval[0]), _parse_hour(interval[1], closing=True)
        hours.update(range(start, min(end, 24)))
    return sorted(hours)


def recommend_day(
    traffic: TrafficDay,
    desired_attention: float,
    growth_factor: float,
    open_time: str,
    close_time: str,
    minimums: dict[str, int] | None = None,
    rounded: bool = True,
) -> RecommendationDay:
    check_parameters(desired_attention, growth_factor)
    minimums = {hour_label(hour_of(label)): value for label, value in (minimums or {}).items()}

    # Every open hour is reported; an hour without a traffic record counts as zero entries.
    hours = [
        recommend_hour(
            hour_label(hour),
            traffic.hours.get(hour_label(hour), 0),
            desired_attention,
            growth_factor,
            minimum=minimums.get(hour_label(hour)),
            rounded=rounded,
        )
        for hour in open_hours(open_time, close_time)
    ]

    return RecommendationDay(
        date=traffic.date,
        weekday=weekday_name(traffic.date),
        open_time=open_time,
        close_time=close_time,
        hours=hours,
        total_entries=sum(hour.entries for hour in hours),
        total_exact=sum(hour.exact for hour in hours),
        total_recommended=sum(hour.recommended for hour in hours),
        simulated=traffic.metadata.simulated,
    )


def summarize_week(days: Iterable[RecommendationDay]) -> WeekSummary:
    ordered = sorted(days, key=lambda day: day.date)
    if not ordered:
        return WeekSummary()

    peak: RecommendationDay = ordered[0]
    for day in ordered[1:]:
        if day.total_entries > peak.total_entries:
            peak = day

    total_entries = sum(day.total_entries for day in ordered)
    return WeekSummary(
        total_entries=total_entries,
        total_exact=sum(day.total_exact for day in ordered),
        total_recommended=sum(day.total_recommended for day in ordered),
        average_entries_per_day=round(total_entries / len(ordered), 2),
        peak_day=peak.date,
        peak_day_entries=peak.total_entries,
    )

