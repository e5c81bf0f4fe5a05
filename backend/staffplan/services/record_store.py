from __future__ import annotations

import asyncio
import json
import os
import threading
from pathlib import Path
from typing import Any, Protocol

from staffplan.core.errors import StoreNotFoundError
from staffplan.schemas.store import StoreRecord
from staffplan.schemas.traffic import TrafficDay


class RecordStore(Protocol):
    async def get_store(self, store_id: str) -> StoreRecord: ...

    async def read_historical_config(self, store_id: str) -> str: ...

    async def write_historical_config(self, store_id: str, raw: str) -> None: ...

    async def save_traffic(self, store_id: str, day: TrafficDay) -> None: ...


class JsonRecordStore:
    """Store records kept in a single JSON document on disk.

    Layout: ``{"stores": {<id>: {...}}, "traffic": {<id>: {<YYYY-MM-DD>: {...}}}}``.
    File access runs in a worker thread; a process-local lock serializes the
    read-modify-write of the document itself, not the per-store config merge.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._file_lock = threading.Lock()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"stores": {}, "traffic": {}}
        payload = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        payload.setdefault("stores", {})
        payload.setdefault("traffic", {})
        return payload

    def _dump(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def _read_store(self, store_id: str) -> dict[str, Any]:
        with self._file_lock:
            record = self._load()["stores"].get(store_id)
        if record is None:
            raise StoreNotFoundError(store_id)
        return record

    def _update_store(self, store_id: str, changes: dict[str, Any]) -> None:
        with self._file_lock:
            payload = self._load()
            record = payload["stores"].get(store_id)
            if record is None:
                raise StoreNotFoundError(store_id)
            record.update(changes)
            self._dump(payload)

    def _put_store(self, record: StoreRecord) -> None:
        with self._file_lock:
            payload = self._load()
            payload["stores"][record.id] = record.model_dump(exclude={"id"})
            self._dump(payload)

    def _put_traffic(self, store_id: str, day: TrafficDay) -> None:
        with self._file_lock:
            payload = self._load()
            if store_id not in payload["stores"]:
                raise StoreNotFoundError(store_id)
            payload["traffic"].setdefault(store_id, {})[day.date.isoformat()] = day.model_dump(mode="json")
            self._dump(payload)

    async def get_store(self, store_id: str) -> StoreRecord:
        record = await asyncio.to_thread(self._read_store, store_id)
        return StoreRecord(id=store_id, **{key: value for key, value in record.items() if key != "id"})

    async def read_historical_config(self, store_id: str) -> str:
        record = await asyncio.to_thread(self._read_store, store_id)
        return str(record.get("historical_config") or "")

    async def write_historical_config(self, store_id: str, raw: str) -> None:
        await asyncio.to_thread(self._update_store, store_id, {"historical_config": raw})

    async def save_traffic(self, store_id: str, day: TrafficDay) -> None:
        await asyncio.to_thread(self._put_traffic, store_id, day)

    async def upsert_store(self, record: StoreRecord) -> None:
        await asyncio.to_thread(self._put_store, record)
