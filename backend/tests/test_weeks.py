from datetime import date, timedelta

import pytest

from staffplan.core.errors import ValidationError
from staffplan.tools.weeks import (
    date_range_of,
    parse_iso_date,
    parse_week_label,
    previous_year_week,
    week_dates,
    week_label_of,
    weeks_in_year,
)


@pytest.mark.parametrize(
    ("day", "label"),
    [
        ("2025-01-06", "W02 2025"),
        ("2025-05-05", "W19 2025"),
        ("2024-12-30", "W01 2025"),
        ("2025-12-29", "W01 2026"),
        ("2021-01-03", "W53 2020"),
        ("2026-12-31", "W53 2026"),
        ("2027-01-03", "W53 2026"),
        ("2027-01-04", "W01 2027"),
    ],
)
def test_week_label_of_follows_iso_weeks(day: str, label: str) -> None:
    assert week_label_of(day) == label
    assert week_label_of(parse_iso_date(day)) == label


def test_every_date_falls_inside_its_week_range() -> None:
    day = date(2019, 12, 20)
    while day <= date(2027, 1, 10):
        monday, sunday = date_range_of(week_label_of(day))
        assert monday <= day <= sunday
        assert monday.weekday() == 0
        assert sunday - monday == timedelta(days=6)
        day += timedelta(days=1)


def test_date_range_of_known_week() -> None:
    assert date_range_of("W19 2025") == (date(2025, 5, 5), date(2025, 5, 11))
    assert date_range_of("W01 2026") == (date(2025, 12, 29), date(2026, 1, 4))


def test_week_dates_run_monday_to_sunday() -> None:
    dates = week_dates("W53 2026")
    assert len(dates) == 7
    assert dates[0] == date(2026, 12, 28)
    assert dates[-1] == date(2027, 1, 3)


def test_weeks_in_year() -> None:
    assert weeks_in_year(2020) == 53
    assert weeks_in_year(2025) == 52
    assert weeks_in_year(2026) == 53


@pytest.mark.parametrize("label", ["W53 2025", "W54 2026", "W00 2025", "w19 2025", "W1 2025", "2025-W19", "", None])
def test_parse_week_label_rejects_malformed(label) -> None:
    with pytest.raises(ValidationError):
        parse_week_label(label)


@pytest.mark.parametrize("value", ["2025-02-30", "2025/02/01", "20250201", "2025-2-1", "yesterday"])
def test_parse_iso_date_rejects_malformed(value: str) -> None:
    with pytest.raises(ValidationError):
        parse_iso_date(value)


def test_validation_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        week_label_of("not-a-date")


def test_previous_year_week_clamps_long_years() -> None:
    assert previous_year_week("W19 2025") == "W19 2024"
    assert previous_year_week("W53 2026") == "W52 2025"
    assert previous_year_week("W53 2020") == "W52 2019"
