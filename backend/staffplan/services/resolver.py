from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from staffplan.schemas.historical import DayMappingSpec, WeekListSpec
from staffplan.services.record_store import RecordStore
from staffplan.tools.historical_config import (
    DayMapping,
    HistoricalReference,
    ResolvedEntry,
    WeekList,
    decode_entry,
    merge_config,
    parse_config,
    resolve_config,
)

logger = logging.getLogger(__name__)


def describe_entry(entry: ResolvedEntry) -> dict[str, Any]:
    if isinstance(entry, WeekList):
        return {"type": "week_list", "weeks": list(entry.weeks)}
    if isinstance(entry, DayMapping):
        return {
            "type": "day_mapping",
            "mapping": {target.isoformat(): source.isoformat() for target, source in sorted(entry.mapping.items())},
        }
    return {"type": "not_configured", **asdict(entry)}


class HistoricalConfigResolver:
    def __init__(self, record_store: RecordStore) -> None:
        self.record_store = record_store

    async def resolve(self, store_id: str, target_week: str) -> ResolvedEntry:
        raw = await self.record_store.read_historical_config(store_id)
        return resolve_config(raw, target_week)

    async def read_config(self, store_id: str) -> tuple[str, dict[str, dict[str, Any]]]:
        raw = await self.record_store.read_historical_config(store_id)
        entries = {week: describe_entry(decode_entry(value)) for week, value in parse_config(raw).items()}
        return raw, entries

    async def apply(self, store_id: str, target_week: str, reference: HistoricalReference) -> str:
        # Read-merge-write without locking: concurrent writers to one store race and the last one wins.
        raw = await self.record_store.read_historical_config(store_id)
        merged = merge_config(raw, target_week, reference)
        await self.record_store.write_historical_config(store_id, merged)
        logger.info("Historical config for store %s updated for %s.", store_id, target_week)
        return merged


def reference_from_spec(spec: WeekListSpec | DayMappingSpec) -> HistoricalReference:
    if isinstance(spec, WeekListSpec):
        return WeekList(tuple(spec.weeks))
    return DayMapping(dict(spec.mapping))
