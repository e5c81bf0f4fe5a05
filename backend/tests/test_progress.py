import asyncio

from staffplan.core.progress import ProgressStore


def test_record_stamps_events() -> None:
    progress = ProgressStore()

    event = progress.record("s1", {"kind": "started"})

    assert event["session_id"] == "s1"
    assert event["completed"] is False
    assert event["event_id"] == 1
    assert "timestamp" in event
    assert progress.snapshot("s1") == [event]
    assert progress.snapshot("other") == []


def test_history_is_bounded_per_session() -> None:
    progress = ProgressStore(max_events=3)
    for index in range(5):
        progress.record("s1", {"kind": "step", "index": index})

    assert [event["index"] for event in progress.snapshot("s1")] == [2, 3, 4]


def test_subscribe_replays_history_and_stops_at_completion() -> None:
    progress = ProgressStore()
    progress.record("s1", {"kind": "started"})
    progress.record("s1", {"kind": "done", "completed": True})

    async def _collect() -> list[str]:
        return [event["kind"] async for event in progress.subscribe("s1")]

    assert asyncio.run(_collect()) == ["started", "done"]
    assert progress.is_completed("s1")


def test_subscribe_receives_live_events() -> None:
    progress = ProgressStore()

    async def _scenario() -> list[str]:
        received: list[str] = []

        async def _consume() -> None:
            async for event in progress.subscribe("s1"):
                received.append(event["kind"])

        task = asyncio.create_task(_consume())
        await asyncio.sleep(0)
        progress.record("s1", {"kind": "wave"})
        progress.record("s1", {"kind": "done", "completed": True})
        await asyncio.wait_for(task, timeout=1)
        return received

    assert asyncio.run(_scenario()) == ["wave", "done"]


def test_discard_drops_session() -> None:
    progress = ProgressStore()
    progress.record("s1", {"kind": "done", "completed": True})

    progress.discard("s1")

    assert progress.snapshot("s1") == []
    assert not progress.is_completed("s1")


def test_unknown_session_stream_ends_when_idle() -> None:
    progress = ProgressStore(idle_timeout=0.05)

    async def _collect() -> list[dict]:
        return [event async for event in progress.subscribe("typo")]

    assert asyncio.run(asyncio.wait_for(_collect(), timeout=1)) == []
    assert progress.sessions() == []


def test_idle_timeout_can_be_set_per_subscription() -> None:
    progress = ProgressStore(idle_timeout=None)
    progress.record("s1", {"kind": "wave"})

    async def _collect() -> list[str]:
        return [event["kind"] async for event in progress.subscribe("s1", idle_timeout=0.05)]

    assert asyncio.run(asyncio.wait_for(_collect(), timeout=1)) == ["wave"]


def test_completed_sessions_are_evicted_oldest_first() -> None:
    progress = ProgressStore(max_sessions=3)
    for index in range(1000):
        progress.record(f"s{index}", {"kind": "done", "completed": True})

    assert progress.sessions() == ["s997", "s998", "s999"]
    assert progress.snapshot("s0") == []


def test_running_sessions_outlive_completed_ones() -> None:
    progress = ProgressStore(max_sessions=2)
    progress.record("running", {"kind": "wave"})
    progress.record("finished", {"kind": "done", "completed": True})
    progress.record("new", {"kind": "wave"})

    assert sorted(progress.sessions()) == ["new", "running"]


def test_recording_refreshes_session_recency() -> None:
    progress = ProgressStore(max_sessions=2)
    progress.record("a", {"kind": "wave"})
    progress.record("b", {"kind": "wave"})
    progress.record("a", {"kind": "wave"})
    progress.record("c", {"kind": "wave"})

    assert sorted(progress.sessions()) == ["a", "c"]
