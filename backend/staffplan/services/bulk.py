from __future__ import annotations

import asyncio
import logging

from staffplan.core.config import Settings, settings as default_settings
from staffplan.core.errors import StaffplanError
from staffplan.core.progress import ProgressStore
from staffplan.schemas.historical import BulkApplyResponse, BulkError
from staffplan.services.resolver import HistoricalConfigResolver
from staffplan.tools.historical_config import HistoricalReference, validate_reference
from staffplan.tools.weeks import parse_week_label

logger = logging.getLogger(__name__)


class BulkApplier:
    """Applies one historical reference to many stores.

    Stores run in sequential waves of at most ``batch_size``; the writes of a
    wave run concurrently, and the next wave starts, after a pause, only once
    every write of the current one has finished or failed.
    """

    def __init__(
        self,
        resolver: HistoricalConfigResolver,
        config: Settings | None = None,
        progress_store: ProgressStore | None = None,
        batch_size: int | None = None,
        pause_seconds: float | None = None,
    ) -> None:
        config = config or default_settings
        self.resolver = resolver
        self.progress_store = progress_store
        self.batch_size = max(1, batch_size if batch_size is not None else config.bulk_batch_size)
        self.pause_seconds = max(0.0, pause_seconds if pause_seconds is not None else config.bulk_batch_pause_seconds)

    def _report(self, session_id: str | None, event: dict) -> None:
        if self.progress_store is not None and session_id:
            self.progress_store.record(session_id, event)

    async def _apply_one(
        self,
        store_id: str,
        target_week: str,
        reference: HistoricalReference,
    ) -> BulkError | None:
        try:
            await self.resolver.apply(store_id, target_week, reference)
        except (StaffplanError, OSError, ValueError) as exc:
            logger.warning("Bulk apply failed for store %s: %s", store_id, exc)
            return BulkError(store_id=store_id, message=str(exc))
        return None

    async def apply_to_many(
        self,
        store_ids: list[str],
        target_week: str,
        reference: HistoricalReference,
        session_id: str | None = None,
    ) -> BulkApplyResponse:
        parse_week_label(target_week)
        validate_reference(reference)

        unique_ids = list(dict.fromkeys(store_id for store_id in store_ids if store_id))
        waves = [unique_ids[index : index + self.batch_size] for index in range(0, len(unique_ids), self.batch_size)]

        succeeded: list[str] = []
        errors: list[BulkError] = []
        for number, wave in enumerate(waves, start=1):
            if number > 1 and self.pause_seconds:
                await asyncio.sleep(self.pause_seconds)

            outcomes = await asyncio.gather(
                *(self._apply_one(store_id, target_week, reference) for store_id in wave)
            )
            for store_id, error in zip(wave, outcomes):
                if error is None:
                    succeeded.append(store_id)
                else:
                    errors.append(error)

            logger.info("Bulk apply %s: wave %d/%d done (%d stores).", target_week, number, len(waves), len(wave))
            self._report(
                session_id,
                {
                    "kind": "bulk_wave",
                    "wave": number,
                    "waves": len(waves),
                    "processed": len(succeeded) + len(errors),
                    "total": len(unique_ids),
                    "failures": len(errors),
                },
            )

        result = BulkApplyResponse(
            succeeded=succeeded,
            errors=errors,
            success_count=len(succeeded),
            failure_count=len(errors),
            total=len(unique_ids),
        )
        self._report(
            session_id,
            {
                "kind": "bulk_done",
                "completed": True,
                "success_count": result.success_count,
                "failure_count": result.failure_count,
                "total": result.total,
            },
        )
        return result
