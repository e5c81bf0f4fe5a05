from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class WeekListSpec(BaseModel):
    type: Literal["week_list"] = "week_list"
    weeks: list[str] = Field(..., min_length=1, description="Reference week labels, e.g. ['W20 2024'].")


class DayMappingSpec(BaseModel):
    type: Literal["comparable_por_dia"] = "comparable_por_dia"
    mapping: dict[date, date] = Field(..., min_length=1, description="Target date -> reference date.")


ReferenceSpec = Annotated[Union[WeekListSpec, DayMappingSpec], Field(discriminator="type")]


class HistoricalConfigUpdate(BaseModel):
    target_week: str = Field(..., description="Target week label, e.g. 'W19 2025'.")
    reference: ReferenceSpec


class HistoricalConfigResponse(BaseModel):
    store_id: str
    raw: str
    entries: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Decoded entries keyed by target week; malformed ones are reported as not_configured.",
    )


class BulkApplyRequest(BaseModel):
    store_ids: list[str] = Field(..., min_length=1)
    target_week: str
    reference: ReferenceSpec
    session_id: str | None = Field(default=None, description="Optional progress session to report waves into.")


class BulkError(BaseModel):
    store_id: str
    message: str


class BulkApplyResponse(BaseModel):
    succeeded: list[str] = Field(default_factory=list)
    errors: list[BulkError] = Field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0
    total: int = 0


class SyncRequest(BaseModel):
    target_week: str
    session_id: str | None = None


class SyncResponse(BaseModel):
    store_id: str
    target_week: str
    session_id: str
    status: Literal["completed", "processing", "failed"]
    message: str
    days_synced: int = 0
