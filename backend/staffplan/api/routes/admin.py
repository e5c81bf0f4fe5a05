import json
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from staffplan.api.dependencies import get_bulk_applier, get_progress_store, get_resolver, get_sync_service
from staffplan.api.http_errors import http_error
from staffplan.core.errors import StaffplanError
from staffplan.core.progress import ProgressStore
from staffplan.schemas.historical import (
    BulkApplyRequest,
    BulkApplyResponse,
    HistoricalConfigResponse,
    HistoricalConfigUpdate,
    SyncRequest,
    SyncResponse,
)
from staffplan.services.bulk import BulkApplier
from staffplan.services.resolver import HistoricalConfigResolver, reference_from_spec
from staffplan.services.sync import TrafficSyncService

router = APIRouter(prefix="/admin", tags=["admin"])


def _sse(event: dict[str, Any]) -> str:
    return f"id: {event['event_id']}\nevent: progress\ndata: {json.dumps(event, default=str)}\n\n"


@router.get("/stores/{store_id}/historical-config", response_model=HistoricalConfigResponse)
async def read_historical_config(
    store_id: str,
    resolver: HistoricalConfigResolver = Depends(get_resolver),
) -> HistoricalConfigResponse:
    try:
        raw, entries = await resolver.read_config(store_id)
    except StaffplanError as exc:
        raise http_error(exc) from exc
    return HistoricalConfigResponse(store_id=store_id, raw=raw, entries=entries)


@router.put("/stores/{store_id}/historical-config", response_model=HistoricalConfigResponse)
async def update_historical_config(
    store_id: str,
    payload: HistoricalConfigUpdate,
    resolver: HistoricalConfigResolver = Depends(get_resolver),
) -> HistoricalConfigResponse:
    try:
        await resolver.apply(store_id, payload.target_week, reference_from_spec(payload.reference))
        raw, entries = await resolver.read_config(store_id)
    except StaffplanError as exc:
        raise http_error(exc) from exc
    return HistoricalConfigResponse(store_id=store_id, raw=raw, entries=entries)


@router.post("/historical-config/bulk", response_model=BulkApplyResponse)
async def bulk_apply_historical_config(
    payload: BulkApplyRequest,
    applier: BulkApplier = Depends(get_bulk_applier),
) -> BulkApplyResponse:
    try:
        return await applier.apply_to_many(
            payload.store_ids,
            payload.target_week,
            reference_from_spec(payload.reference),
            session_id=payload.session_id,
        )
    except StaffplanError as exc:
        raise http_error(exc) from exc


@router.post("/stores/{store_id}/sync", response_model=SyncResponse)
async def sync_store_traffic(
    store_id: str,
    payload: SyncRequest,
    service: TrafficSyncService = Depends(get_sync_service),
) -> SyncResponse:
    try:
        return await service.sync_week(store_id, payload.target_week, session_id=payload.session_id)
    except StaffplanError as exc:
        raise http_error(exc) from exc


@router.get("/progress/{session_id}/events")
def progress_snapshot(
    session_id: str,
    progress_store: ProgressStore = Depends(get_progress_store),
) -> dict[str, Any]:
    return {
        "session_id": session_id,
        "completed": progress_store.is_completed(session_id),
        "events": progress_store.snapshot(session_id),
    }


@router.get("/progress/{session_id}")
async def stream_progress(
    session_id: str,
    progress_store: ProgressStore = Depends(get_progress_store),
) -> StreamingResponse:
    async def _events() -> AsyncIterator[str]:
        async for event in progress_store.subscribe(session_id):
            yield _sse(event)

    return StreamingResponse(
        _events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
