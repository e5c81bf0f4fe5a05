from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class RecommendationHour(BaseModel):
    hour: str
    entries: int
    exact: float = Field(..., description="Unrounded headcount before any minimum floor.")
    recommended: float = Field(..., description="Rounded (or 2-decimal) headcount after the minimum floor.")
    floor_applied: bool = False
    minimum: int | None = None
    desired_attention: float
    growth_factor: float
    formula: str
    calculation: str


class RecommendationDay(BaseModel):
    date: dt.date
    weekday: str
    open_time: str
    close_time: str
    hours: list[RecommendationHour] = Field(default_factory=list)
    total_entries: int = 0
    total_exact: float = 0.0
    total_recommended: float = 0.0
    source: Literal["week_list", "day_mapping", "standard"] = "standard"
    reference_dates: list[dt.date] = Field(default_factory=list)
    simulated: bool = False


class WeekSummary(BaseModel):
    total_entries: int = 0
    total_exact: float = 0.0
    total_recommended: float = 0.0
    average_entries_per_day: float = 0.0
    peak_day: dt.date | None = None
    peak_day_entries: int = 0


class RecommendationWeek(BaseModel):
    store_id: str
    week_label: str | None = None
    start_date: dt.date
    end_date: dt.date
    desired_attention: float
    growth_factor: float
    aggregation_policy: str
    days: list[RecommendationDay] = Field(default_factory=list)
    summary: WeekSummary = Field(default_factory=WeekSummary)
    used_simulated_data: bool = False
    warnings: list[str] = Field(default_factory=list)


class RecommendationQuery(BaseModel):
    store_id: str = Field(..., min_length=1)
    target_week: str | None = Field(
        default=None,
        description="Target week label, e.g. 'W19 2025'.",
        pattern=r"^W\d{2} \d{4}$",
    )
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    desired_attention: float | None = Field(default=None, description="Overrides the store value; must be > 0.")
    growth_factor: float | None = Field(default=None, description="Overrides the store value, e.g. 0.05 for 5%.")
    rounded: bool = True

    @model_validator(mode="after")
    def _check_period(self) -> "RecommendationQuery":
        has_range = self.start_date is not None or self.end_date is not None
        if self.target_week is None and not has_range:
            raise ValueError("Provide either target_week or start_date/end_date.")
        if self.target_week is not None and has_range:
            raise ValueError("Provide target_week or a date range, not both.")
        if has_range:
            if self.start_date is None or self.end_date is None:
                raise ValueError("Both start_date and end_date are required for a date range.")
            if self.end_date < self.start_date:
                raise ValueError("end_date must not be before start_date.")
            if (self.end_date - self.start_date).days > 62:
                raise ValueError("Date ranges are limited to 63 days.")
        return self
