from __future__ import annotations

import asyncio
import logging
from datetime import date
from uuid import uuid4

from staffplan.core.config import Settings, settings as default_settings
from staffplan.core.errors import StaffplanError
from staffplan.core.progress import ProgressStore
from staffplan.schemas.historical import SyncResponse
from staffplan.schemas.store import StoreRecord
from staffplan.services.record_store import RecordStore
from staffplan.services.traffic_client import TrafficClient
from staffplan.tools.weeks import week_dates

logger = logging.getLogger(__name__)


class TrafficSyncService:
    """Admin-triggered, authoritative traffic sync for one store and week.

    Unlike recommendations, a failed fetch here fails the run instead of
    degrading to simulated data. The caller waits at most
    ``sync_timeout_seconds``; past that the run keeps going in the background
    and reports through the progress store.
    """

    def __init__(
        self,
        record_store: RecordStore,
        traffic_client: TrafficClient,
        progress_store: ProgressStore,
        config: Settings | None = None,
        tasks: set[asyncio.Task] | None = None,
    ) -> None:
        self.config = config or default_settings
        self.record_store = record_store
        self.traffic_client = traffic_client
        self.progress_store = progress_store
        # Runs that outlive the request stay referenced here until they finish.
        self._tasks: set[asyncio.Task] = tasks if tasks is not None else set()

    def _forget(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Background sync ended with %r", task.exception())

    async def _run(self, store: StoreRecord, target_week: str, session_id: str) -> int:
        days = week_dates(target_week)
        self.progress_store.record(
            session_id,
            {"kind": "sync_started", "store_id": store.id, "target_week": target_week, "total": len(days)},
        )
        logger.info("Traffic sync started for store %s, %s.", store.id, target_week)

        semaphore = asyncio.Semaphore(max(1, self.config.traffic_fetch_concurrency))
        synced = 0

        async def _sync_day(day: date) -> None:
            nonlocal synced
            async with semaphore:
                traffic = await self.traffic_client.fetch(
                    store.traffic_key, day, timeout=self.config.sync_timeout_seconds
                )
                await self.record_store.save_traffic(store.id, traffic)
            synced += 1
            self.progress_store.record(
                session_id,
                {"kind": "sync_day", "date": day.isoformat(), "total_entries": traffic.metadata.total, "processed": synced},
            )

        tasks = [asyncio.create_task(_sync_day(day)) for day in days]
        try:
            await asyncio.gather(*tasks)
        except (StaffplanError, OSError) as exc:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning("Traffic sync failed for store %s, %s: %s", store.id, target_week, exc)
            self.progress_store.record(
                session_id,
                {"kind": "sync_failed", "completed": True, "message": str(exc), "processed": synced},
            )
            raise

        self.progress_store.record(session_id, {"kind": "sync_done", "completed": True, "processed": synced})
        logger.info("Traffic sync finished for store %s, %s (%d days).", store.id, target_week, synced)
        return synced

    async def sync_week(self, store_id: str, target_week: str, session_id: str | None = None) -> SyncResponse:
        week_dates(target_week)
        store = await self.record_store.get_store(store_id)
        session_id = session_id or uuid4().hex

        task = asyncio.create_task(self._run(store, target_week, session_id))
        self._tasks.add(task)
        task.add_done_callback(self._forget)

        response = {"store_id": store.id, "target_week": target_week, "session_id": session_id}
        try:
            synced = await asyncio.wait_for(asyncio.shield(task), timeout=self.config.sync_timeout_seconds)
        except asyncio.TimeoutError:
            return SyncResponse(
                **response,
                status="processing",
                message="Sync is still processing in the background; follow the progress session for updates.",
            )
        except (StaffplanError, OSError) as exc:
            return SyncResponse(**response, status="failed", message=str(exc))

        return SyncResponse(
            **response,
            status="completed",
            message=f"Synced {synced} day(s) of traffic for {target_week}.",
            days_synced=synced,
        )
