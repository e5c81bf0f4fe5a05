from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class TrafficMetadata(BaseModel):
    total: int = 0
    peak_hour: str | None = None
    peak_count: int = 0
    hour_count: int = Field(default=0, description="Hours with at least one entry.")
    average_per_hour: float = 0.0
    simulated: bool = False


class TrafficDay(BaseModel):
    date: dt.date
    hours: dict[str, int] = Field(default_factory=dict, description="Entries per 'HH:00' hour label.")
    metadata: TrafficMetadata = Field(default_factory=TrafficMetadata)
