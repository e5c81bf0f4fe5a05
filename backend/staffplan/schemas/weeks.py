from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class WeekInfo(BaseModel):
    week_label: str = Field(..., description="ISO-8601 week label, e.g. 'W19 2025'.")
    start_date: dt.date
    end_date: dt.date
    dates: list[dt.date] = Field(default_factory=list)
    previous_year_week: str | None = None
