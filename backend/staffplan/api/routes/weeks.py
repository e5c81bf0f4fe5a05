from fastapi import APIRouter, Query

from staffplan.api.http_errors import http_error
from staffplan.core.errors import StaffplanError
from staffplan.schemas.weeks import WeekInfo
from staffplan.tools.weeks import parse_iso_date, previous_year_week, week_dates, week_label_of

router = APIRouter(prefix="/weeks", tags=["weeks"])


def _week_info(week_label: str) -> WeekInfo:
    dates = week_dates(week_label)
    return WeekInfo(
        week_label=week_label,
        start_date=dates[0],
        end_date=dates[-1],
        dates=dates,
        previous_year_week=previous_year_week(week_label),
    )


@router.get("", response_model=WeekInfo)
def week_of_date(date: str = Query(..., description="YYYY-MM-DD")) -> WeekInfo:
    try:
        return _week_info(week_label_of(parse_iso_date(date)))
    except StaffplanError as exc:
        raise http_error(exc) from exc


@router.get("/{week_label}", response_model=WeekInfo)
def week_range(week_label: str) -> WeekInfo:
    try:
        return _week_info(week_label)
    except StaffplanError as exc:
        raise http_error(exc) from exc
