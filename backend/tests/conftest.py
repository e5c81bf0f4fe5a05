from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from staffplan.core.config import Settings
from staffplan.schemas.store import StoreRecord
from staffplan.services.record_store import JsonRecordStore
from staffplan.services.traffic_client import TrafficClient


class FakeTrafficService:
    """In-memory stand-in for the footfall API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.days: dict[tuple[str, str], dict[int, int]] = {}
        self.raw_rows: dict[tuple[str, str], list[dict]] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.headers: list[httpx.Headers] = []

    def set_day(self, store_code: str, day: str, counts: dict[int, int]) -> None:
        self.days[(store_code, day)] = counts

    def set_rows(self, store_code: str, day: str, rows: list[dict]) -> None:
        self.raw_rows[(store_code, day)] = rows

    def handler(self, request: httpx.Request) -> httpx.Response:
        store_code = request.url.params["store_code"]
        day = request.url.params["date"]
        self.calls.append((store_code, day))
        self.headers.append(request.headers)
        if day in self.failing:
            return httpx.Response(503, json={"error": "unavailable"})
        rows = self.raw_rows.get((store_code, day)) or [
            {"hora": hour, "entradas": count, "salidas": 0}
            for hour, count in self.days.get((store_code, day), {}).items()
        ]
        return httpx.Response(200, json={"data": rows})


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        record_store_path=tmp_path / "stores.json",
        traffic_api_base_url="http://traffic.test",
        traffic_api_token="secret-token",
        bulk_batch_pause_seconds=0.0,
        sync_timeout_seconds=5.0,
    )


@pytest.fixture
def record_store(test_settings: Settings) -> JsonRecordStore:
    store = JsonRecordStore(test_settings.record_store_path)

    async def _seed() -> None:
        await store.upsert_store(
            StoreRecord(
                id="S1",
                name="Centro",
                traffic_code="C001",
                desired_attention=25,
                growth_factor=0.1,
                open_time="10:00",
                close_time="13:00",
                minimum_staff={"12:00": 1},
            )
        )
        await store.upsert_store(StoreRecord(id="S2", name="Norte", open_time="10:00", close_time="12:00"))
        await store.upsert_store(StoreRecord(id="S3", name="Sur", historical_config="[1, 2]"))

    asyncio.run(_seed())
    return store


@pytest.fixture
def traffic_service() -> FakeTrafficService:
    return FakeTrafficService()


@pytest.fixture
def traffic_client(test_settings: Settings, traffic_service: FakeTrafficService) -> TrafficClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(traffic_service.handler))
    return TrafficClient(test_settings, http_client=http_client)
