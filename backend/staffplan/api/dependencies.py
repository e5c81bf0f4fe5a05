"""
FastAPI dependency providers. Tests swap them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends, Request

from staffplan.core.config import Settings, settings
from staffplan.core.progress import ProgressStore
from staffplan.services.bulk import BulkApplier
from staffplan.services.recommendation import RecommendationService
from staffplan.services.record_store import JsonRecordStore, RecordStore
from staffplan.services.resolver import HistoricalConfigResolver
from staffplan.services.sync import TrafficSyncService
from staffplan.services.traffic_client import TrafficClient


def get_settings() -> Settings:
    return settings


def get_record_store(config: Settings = Depends(get_settings)) -> RecordStore:
    return JsonRecordStore(config.record_store_path)


def get_traffic_client(config: Settings = Depends(get_settings)) -> TrafficClient:
    return TrafficClient(config)


def get_progress_store(request: Request) -> ProgressStore:
    return request.app.state.progress_store


def get_resolver(record_store: RecordStore = Depends(get_record_store)) -> HistoricalConfigResolver:
    return HistoricalConfigResolver(record_store)


def get_recommendation_service(
    record_store: RecordStore = Depends(get_record_store),
    traffic_client: TrafficClient = Depends(get_traffic_client),
    config: Settings = Depends(get_settings),
) -> RecommendationService:
    return RecommendationService(record_store, traffic_client, config)


def get_bulk_applier(
    resolver: HistoricalConfigResolver = Depends(get_resolver),
    progress_store: ProgressStore = Depends(get_progress_store),
    config: Settings = Depends(get_settings),
) -> BulkApplier:
    return BulkApplier(resolver, config, progress_store=progress_store)


def get_sync_service(
    request: Request,
    record_store: RecordStore = Depends(get_record_store),
    traffic_client: TrafficClient = Depends(get_traffic_client),
    progress_store: ProgressStore = Depends(get_progress_store),
    config: Settings = Depends(get_settings),
) -> TrafficSyncService:
    return TrafficSyncService(
        record_store,
        traffic_client,
        progress_store,
        config,
        tasks=request.app.state.background_tasks,
    )
