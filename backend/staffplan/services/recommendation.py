from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta

from staffplan.core.config import Settings, settings as default_settings
from staffplan.core.errors import ValidationError
from staffplan.schemas.recommendations import RecommendationQuery, RecommendationWeek
from staffplan.services.record_store import RecordStore
from staffplan.services.resolver import HistoricalConfigResolver
from staffplan.services.traffic_client import TrafficClient
from staffplan.tools.historical_config import DayMapping, NotConfigured, ResolvedEntry, reference_dates_for
from staffplan.tools.recommendations import check_parameters, recommend_day, summarize_week
from staffplan.tools.traffic import AggregationPolicy, aggregate
from staffplan.tools.weeks import week_dates, week_label_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayPlan:
    target: date
    source: str
    reference_dates: tuple[date, ...]
    policy: AggregationPolicy


def _query_dates(query: RecommendationQuery) -> tuple[str | None, list[date]]:
    if query.target_week is not None:
        return query.target_week, week_dates(query.target_week)

    start, end = query.start_date, query.end_date
    if start is None or end is None:
        raise ValidationError("Provide target_week or both start_date and end_date.")
    dates = [start + timedelta(days=offset) for offset in range((end - start).days + 1)]
    labels = {week_label_of(day) for day in dates}
    return (labels.pop() if len(labels) == 1 else None), dates


class RecommendationService:
    def __init__(
        self,
        record_store: RecordStore,
        traffic_client: TrafficClient,
        config: Settings | None = None,
    ) -> None:
        self.config = config or default_settings
        self.record_store = record_store
        self.resolver = HistoricalConfigResolver(record_store)
        self.traffic_client = traffic_client

    def _fallback_dates(self, target: date) -> tuple[tuple[date, ...], AggregationPolicy]:
        if self.config.fallback_baseline == "trailing_average":
            weeks = max(1, self.config.trailing_weeks)
            return tuple(target - timedelta(weeks=offset) for offset in range(1, weeks + 1)), "average"
        return (target,), "sum"

    def _plan_day(self, target: date, entry: ResolvedEntry) -> DayPlan:
        if not isinstance(entry, NotConfigured):
            references = reference_dates_for(entry, target)
            if references:
                source = "day_mapping" if isinstance(entry, DayMapping) else "week_list"
                return DayPlan(target, source, tuple(references), self.config.aggregation_policy)

        references, policy = self._fallback_dates(target)
        return DayPlan(target, "standard", references, policy)

    async def _resolve_weeks(self, store_id: str, dates: list[date]) -> dict[str, ResolvedEntry]:
        labels = sorted({week_label_of(day) for day in dates})
        entries = await asyncio.gather(*(self.resolver.resolve(store_id, label) for label in labels))
        return dict(zip(labels, entries))

    async def recommend_week(self, query: RecommendationQuery) -> RecommendationWeek:
        store = await self.record_store.get_store(query.store_id)

        desired_attention = query.desired_attention
        if desired_attention is None:
            desired_attention = store.desired_attention or self.config.default_desired_attention
        growth_factor = query.growth_factor if query.growth_factor is not None else store.growth_factor
        check_parameters(desired_attention, growth_factor)

        open_time = store.open_time or self.config.default_open_time
        close_time = store.close_time or self.config.default_close_time

        week_label, dates = _query_dates(query)

        warnings: list[str] = []
        resolved = await self._resolve_weeks(store.id, dates)
        for label, entry in resolved.items():
            if isinstance(entry, NotConfigured) and entry.reason != NotConfigured().reason:
                warnings.append(f"Historical config for {label} ignored ({entry.reason}); using standard traffic.")

        plans = [self._plan_day(day, resolved[week_label_of(day)]) for day in dates]
        fetched = await self.traffic_client.fetch_many(
            store.traffic_key,
            [reference for plan in plans for reference in plan.reference_dates],
        )
        for reference in sorted(fetched):
            warning = fetched[reference][1]
            if warning:
                warnings.append(warning)

        days = []
        for plan in plans:
            traffic = aggregate(
                [fetched[reference][0] for reference in plan.reference_dates],
                plan.policy,
                target_date=plan.target,
            )
            day = recommend_day(
                traffic,
                desired_attention,
                growth_factor,
                open_time,
                close_time,
                minimums=store.minimum_staff,
                rounded=query.rounded,
            )
            days.append(
                day.model_copy(update={"source": plan.source, "reference_dates": list(plan.reference_dates)})
            )

        used_simulated_data = any(day.simulated for day in days)
        if used_simulated_data:
            logger.warning("Recommendation for store %s used simulated traffic on some days.", store.id)

        return RecommendationWeek(
            store_id=store.id,
            week_label=week_label,
            start_date=dates[0],
            end_date=dates[-1],
            desired_attention=desired_attention,
            growth_factor=growth_factor,
            aggregation_policy=self.config.aggregation_policy,
            days=days,
            summary=summarize_week(days),
            used_simulated_data=used_simulated_data,
            warnings=warnings,
        )
