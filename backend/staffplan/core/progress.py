from __future__ import annotations

import asyncio
from collections import deque
from datetime import datetime, timezone
from typing import Any, AsyncIterator

_MAX_EVENTS = 50
_MAX_SESSIONS = 200
_IDLE_TIMEOUT_SECONDS = 60.0


class ProgressStore:
    """Per-session event log for long-running admin jobs (bulk apply, sync).

    Owned by whoever creates it; the API keeps a single instance on
    ``app.state`` and tests build their own. At most ``max_sessions`` sessions
    are kept: the least recently active one goes first, completed sessions
    before running ones, and sessions with live subscribers are never dropped.
    """

    def __init__(
        self,
        max_events: int = _MAX_EVENTS,
        max_sessions: int = _MAX_SESSIONS,
        idle_timeout: float | None = _IDLE_TIMEOUT_SECONDS,
    ) -> None:
        self._max_events = max(1, max_events)
        self._max_sessions = max(1, max_sessions)
        self._idle_timeout = idle_timeout
        self._events: dict[str, deque[dict[str, Any]]] = {}
        self._listeners: dict[str, list[asyncio.Queue[dict[str, Any]]]] = {}
        self._sequence = 0

    def _touch(self, session_id: str) -> deque[dict[str, Any]]:
        # Re-inserting keeps ``_events`` ordered from least to most recently active.
        history = self._events.pop(session_id, None)
        if history is None:
            history = deque(maxlen=self._max_events)
        self._events[session_id] = history
        return history

    def _evict(self, keep: str) -> None:
        while len(self._events) > self._max_sessions:
            idle = [
                session_id
                for session_id in self._events
                if session_id != keep and session_id not in self._listeners
            ]
            if not idle:
                return
            completed = [session_id for session_id in idle if self.is_completed(session_id)]
            self._events.pop((completed or idle)[0])

    def record(self, session_id: str, event: dict[str, Any]) -> dict[str, Any]:
        self._sequence += 1
        stamped = {
            "event_id": self._sequence,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "session_id": session_id,
            "completed": False,
            **event,
        }
        self._touch(session_id).append(stamped)
        self._evict(keep=session_id)
        for queue in self._listeners.get(session_id, []):
            queue.put_nowait(stamped)
        return stamped

    def sessions(self) -> list[str]:
        return list(self._events)

    def snapshot(self, session_id: str) -> list[dict[str, Any]]:
        return list(self._events.get(session_id, ()))

    def is_completed(self, session_id: str) -> bool:
        history = self._events.get(session_id)
        return bool(history) and bool(history[-1].get("completed"))

    def discard(self, session_id: str) -> None:
        self._events.pop(session_id, None)

    async def subscribe(self, session_id: str, idle_timeout: float | None = None) -> AsyncIterator[dict[str, Any]]:
        """Replay the session's history, then follow it live.

        The stream ends after an event marked ``completed``, or once no event
        arrives for ``idle_timeout`` seconds, which also covers unknown sessions.
        """
        timeout = idle_timeout if idle_timeout is not None else self._idle_timeout
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._listeners.setdefault(session_id, []).append(queue)
        try:
            for event in self.snapshot(session_id):
                yield event
                if event.get("completed"):
                    return
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout)
                except asyncio.TimeoutError:
                    return
                yield event
                if event.get("completed"):
                    return
        finally:
            listeners = self._listeners.get(session_id, [])
            if queue in listeners:
                listeners.remove(queue)
            if not listeners:
                self._listeners.pop(session_id, None)
