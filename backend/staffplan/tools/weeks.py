from __future__ import annotations

import re
from datetime import date, timedelta

from staffplan.core.errors import ValidationError

WEEK_LABEL_PATTERN = re.compile(r"^W(\d{2}) (\d{4})$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def parse_iso_date(value: str) -> date:
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        raise ValidationError(f"Invalid date '{value}'; expected YYYY-MM-DD.")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid date '{value}': {exc}") from exc


def _as_date(value: date | str) -> date:
    if isinstance(value, str):
        return parse_iso_date(value)
    if not isinstance(value, date):
        raise ValidationError(f"Expected a date, got {type(value).__name__}.")
    return value


def weeks_in_year(year: int) -> int:
    # Dec 28 always falls in the last ISO week of its year.
    return date(year, 12, 28).isocalendar()[1]


def parse_week_label(label: str) -> tuple[int, int]:
    match = WEEK_LABEL_PATTERN.match(label) if isinstance(label, str) else None
    if match is None:
        raise ValidationError(f"Invalid week label '{label}'; expected 'W<NN> <YYYY>'.")
    week, year = int(match.group(1)), int(match.group(2))
    if year < 1 or week < 1 or week > 53:
        raise ValidationError(f"Invalid week label '{label}'; week must be between 01 and 53.")
    if week > weeks_in_year(year):
        raise ValidationError(f"Invalid week label '{label}'; {year} has only {weeks_in_year(year)} ISO weeks.")
    return year, week


def format_week_label(year: int, week: int) -> str:
    return f"W{week:02d} {year:04d}"


def is_week_label(value: object) -> bool:
    try:
        parse_week_label(value)  # type: ignore[arg-type]
    except ValidationError:
        return False
    return True


def week_label_of(value: date | str) -> str:
    day = _as_date(value)
    iso_year, iso_week, _ = day.isocalendar()
    if iso_year < 1 or iso_year > 9999:
        raise ValidationError(f"Date {day.isoformat()} falls outside the supported week range.")
    return format_week_label(iso_year, iso_week)


def date_range_of(label: str) -> tuple[date, date]:
    year, week = parse_week_label(label)
    try:
        monday = date.fromisocalendar(year, week, 1)
        sunday = date.fromisocalendar(year, week, 7)
    except (ValueError, OverflowError) as exc:
        raise ValidationError(f"Week '{label}' falls outside the supported date range.") from exc
    return monday, sunday


def week_dates(label: str) -> list[date]:
    monday, _ = date_range_of(label)
    return [monday + timedelta(days=offset) for offset in range(7)]


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def previous_year_week(label: str) -> str:
    year, week = parse_week_label(label)
    if year <= 1:
        raise ValidationError(f"Week '{label}' has no previous year.")
    return format_week_label(year - 1, min(week, weeks_in_year(year - 1)))
