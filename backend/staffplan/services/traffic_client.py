from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Iterable

import httpx

from staffplan.core.config import Settings, settings as default_settings
from staffplan.core.errors import UpstreamUnavailable
from staffplan.schemas.traffic import TrafficDay
from staffplan.tools.traffic import build_traffic_day, hour_label, simulated_day

logger = logging.getLogger(__name__)

ACCESS_PATH = "/api/v1/rrhh/get_stores_access"


def _counts_from_payload(payload: object) -> dict[str, int]:
    if not isinstance(payload, dict) or not isinstance(payload.get("data", []), list):
        raise UpstreamUnavailable("Traffic service returned an unexpected payload.")

    counts: dict[str, int] = {}
    for row in payload.get("data", []):
        if not isinstance(row, dict) or row.get("hora") is None:
            continue
        try:
            hour = int(row["hora"])
            entries = int(float(row.get("entradas") or 0))
        except (TypeError, ValueError, OverflowError) as exc:
            raise UpstreamUnavailable(f"Traffic service returned a malformed row: {row!r}") from exc
        if not 0 <= hour <= 23:
            raise UpstreamUnavailable(f"Traffic service returned an hour outside 0-23: {row!r}")
        label = hour_label(hour)
        counts[label] = counts.get(label, 0) + entries
    return counts


class TrafficClient:
    """Async client for the footfall service (one request per store and date)."""

    def __init__(self, config: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> None:
        self.config = config or default_settings
        self._http_client = http_client

    def _base_url(self) -> str:
        base_url = (self.config.traffic_api_base_url or "").rstrip("/")
        if not base_url:
            raise UpstreamUnavailable("Traffic service URL is not configured.")
        return base_url

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.traffic_api_token:
            headers["Authorization"] = f"Bearer {self.config.traffic_api_token}"
        return headers

    async def _get(self, client: httpx.AsyncClient, store_code: str, day: date, timeout: float) -> httpx.Response:
        return await client.get(
            f"{self._base_url()}{ACCESS_PATH}",
            params={"store_code": store_code, "date": day.isoformat()},
            headers=self._headers(),
            timeout=timeout,
        )

    async def _request(self, store_code: str, day: date, timeout: float) -> httpx.Response:
        if self._http_client is not None:
            return await self._get(self._http_client, store_code, day, timeout)
        async with httpx.AsyncClient() as client:
            return await self._get(client, store_code, day, timeout)

    async def fetch(self, store_code: str, day: date, timeout: float | None = None) -> TrafficDay:
        timeout = timeout if timeout is not None else self.config.traffic_fetch_timeout_seconds
        try:
            # httpx timeouts apply per connect/read/write; the whole request gets one deadline.
            response = await asyncio.wait_for(self._request(store_code, day, timeout), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamUnavailable(f"Traffic fetch for {store_code} on {day} timed out after {timeout}s.") from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Traffic fetch for {store_code} on {day} failed: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamUnavailable(
                f"Traffic service returned {response.status_code} for {store_code} on {day}."
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailable(f"Traffic service returned non-JSON content for {store_code} on {day}.") from exc

        return build_traffic_day(day, _counts_from_payload(payload))

    async def fetch_or_simulate(self, store_code: str, day: date) -> tuple[TrafficDay, str | None]:
        try:
            return await self.fetch(store_code, day), None
        except UpstreamUnavailable as exc:
            warning = f"Using simulated zero traffic for {day.isoformat()}: {exc}"
            logger.warning(warning)
            return simulated_day(day), warning

    async def fetch_many(
        self, store_code: str, days: Iterable[date]
    ) -> dict[date, tuple[TrafficDay, str | None]]:
        unique_days = sorted(set(days))
        semaphore = asyncio.Semaphore(max(1, self.config.traffic_fetch_concurrency))

        async def _bounded(day: date) -> tuple[TrafficDay, str | None]:
            async with semaphore:
                return await self.fetch_or_simulate(store_code, day)

        results = await asyncio.gather(*(_bounded(day) for day in unique_days))
        return dict(zip(unique_days, results))
