from __future__ import annotations

from pydantic import BaseModel, Field


class StoreRecord(BaseModel):
    id: str
    name: str = ""
    traffic_code: str | None = Field(
        default=None,
        description="Identifier used by the traffic service; falls back to the record id.",
    )
    country: str | None = None
    desired_attention: float | None = Field(default=None, gt=0)
    growth_factor: float = 0.0
    open_time: str | None = Field(default=None, description="HH:MM, or comma-separated HH:MM-HH:MM intervals.")
    close_time: str | None = Field(default=None, description="HH:MM")
    minimum_staff: dict[str, int] = Field(default_factory=dict, description="Minimum headcount per 'HH:00' hour.")
    historical_config: str = Field(default="", description="Serialized historical week configuration.")

    @property
    def traffic_key(self) -> str:
        return self.traffic_code or self.id
