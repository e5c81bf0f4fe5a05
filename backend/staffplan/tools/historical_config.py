from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Union

from staffplan.core.errors import ConfigurationWriteError, ValidationError
from staffplan.tools.weeks import date_range_of, is_week_label, parse_iso_date, parse_week_label

logger = logging.getLogger(__name__)

DAY_MAPPING_TYPE = "comparable_por_dia"


@dataclass(frozen=True)
class WeekList:
    weeks: tuple[str, ...]


@dataclass(frozen=True)
class DayMapping:
    mapping: dict[date, date] = field(default_factory=dict)


@dataclass(frozen=True)
class NotConfigured:
    reason: str = "not configured"


HistoricalReference = Union[WeekList, DayMapping]
ResolvedEntry = Union[WeekList, DayMapping, NotConfigured]


def parse_config(raw: str | None) -> dict[str, Any]:
    if raw is None or not str(raw).strip():
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Historical config is not valid JSON; treating it as empty.")
        return {}
    if not isinstance(parsed, dict):
        logger.warning("Historical config is a %s, not an object; treating it as empty.", type(parsed).__name__)
        return {}
    return parsed


def _decode_week_list(value: list[Any]) -> ResolvedEntry:
    if not value:
        return NotConfigured("empty reference week list")
    bad = [item for item in value if not is_week_label(item)]
    if bad:
        return NotConfigured(f"invalid reference week(s): {bad!r}")
    return WeekList(tuple(value))


def _decode_day_mapping(value: dict[str, Any]) -> ResolvedEntry:
    raw_mapping = value.get("mapping")
    if not isinstance(raw_mapping, dict) or not raw_mapping:
        return NotConfigured("day mapping without entries")
    mapping: dict[date, date] = {}
    for target, reference in raw_mapping.items():
        try:
            mapping[parse_iso_date(target)] = parse_iso_date(reference)
        except ValidationError:
            return NotConfigured(f"invalid day mapping entry {target!r} -> {reference!r}")
    return DayMapping(mapping)


def decode_entry(value: Any) -> ResolvedEntry:
    if isinstance(value, list):
        return _decode_week_list(value)
    if isinstance(value, dict) and value.get("type") == DAY_MAPPING_TYPE:
        return _decode_day_mapping(value)
    return NotConfigured("unsupported configuration shape")


def resolve_config(raw: str | None, target_week: str) -> ResolvedEntry:
    parse_week_label(target_week)
    config = parse_config(raw)
    if target_week not in config:
        return NotConfigured()
    resolved = decode_entry(config[target_week])
    if isinstance(resolved, NotConfigured):
        logger.warning("Ignoring historical config for %s: %s", target_week, resolved.reason)
    return resolved


def reference_dates_for(reference: HistoricalReference, target_date: date) -> list[date] | None:
    if isinstance(reference, DayMapping):
        mapped = reference.mapping.get(target_date)
        return [mapped] if mapped is not None else None

    offset = target_date.weekday()
    return [date_range_of(week)[0] + timedelta(days=offset) for week in reference.weeks]


def encode_entry(reference: HistoricalReference) -> Any:
    if isinstance(reference, WeekList):
        return list(reference.weeks)
    return {
        "type": DAY_MAPPING_TYPE,
        "mapping": {target.isoformat(): source.isoformat() for target, source in sorted(reference.mapping.items())},
    }


def validate_reference(reference: HistoricalReference) -> None:
    if isinstance(reference, WeekList):
        if not reference.weeks:
            raise ValidationError("At least one reference week is required.")
        for week in reference.weeks:
            parse_week_label(week)
        return
    if not reference.mapping:
        raise ValidationError("A day mapping needs at least one target date.")


def merge_config(raw: str | None, target_week: str, reference: HistoricalReference) -> str:
    parse_week_label(target_week)
    validate_reference(reference)

    if raw is None or not str(raw).strip():
        current: dict[str, Any] = {}
    else:
        try:
            current = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigurationWriteError(f"Stored historical config is not valid JSON: {exc}") from exc
        if not isinstance(current, dict):
            raise ConfigurationWriteError(
                f"Stored historical config is a {type(current).__name__}, not an object; refusing to overwrite it."
            )

    merged = {**current, target_week: encode_entry(reference)}
    return json.dumps(merged, indent=2, ensure_ascii=False)
