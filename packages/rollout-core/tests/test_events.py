"""Tests for change events: envelope, bus delivery, dead letters."""

import pytest

from rollout.events.bus import InMemoryEventBus
from rollout.events.dlq import DeadLetter, DeadLetterQueue
from rollout.events.envelope import (
    BRAND_CHANGED,
    FLAG_CHANGED,
    ChangeEvent,
    brand_changed,
    flag_changed,
)


def _flag_event(flag_id: str = "f1") -> ChangeEvent:
    return flag_changed({"id": flag_id, "enabled": True}, "toggle on", "alice")


async def _noop(event: ChangeEvent) -> None:
    return None


class TestChangeEvent:
    def test_flag_changed(self):
        event = _flag_event()
        assert event.specversion == "1.0"
        assert event.type == "rollout.flag.changed"
        assert event.source == "/rollout/control"
        assert event.subject == "f1"
        assert event.actor == "alice"
        assert event.data["action"] == "toggle on"
        assert event.id
        assert event.time

    def test_brand_changed(self):
        event = brand_changed("preview-enter", "alice", "nova", "legacy", "nova")
        assert event.type == BRAND_CHANGED
        assert event.subject == "nova"
        assert event.data == {"action": "preview-enter", "current_id": "legacy", "preview_id": "nova"}

    def test_to_dict(self):
        data = _flag_event().to_dict()
        assert data["type"] == FLAG_CHANGED
        assert data["data"]["flag"]["id"] == "f1"

    def test_ids_are_unique(self):
        assert _flag_event().id != _flag_event().id


class TestInMemoryEventBus:
    @pytest.mark.asyncio
    async def test_publish_and_subscribe(self):
        bus = InMemoryEventBus()
        received: list[ChangeEvent] = []

        async def handler(event: ChangeEvent) -> None:
            received.append(event)

        bus.subscribe(BRAND_CHANGED, handler)
        await bus.publish(brand_changed("switch", "alice", "nova", "nova", None))
        await bus.publish(_flag_event())
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_duplicate_event_delivered_once(self):
        bus = InMemoryEventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(FLAG_CHANGED, handler)
        event = _flag_event()
        await bus.publish(event)
        await bus.publish(event)
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        bus = InMemoryEventBus(max_retries=3)
        attempts = []

        async def flaky(event):
            attempts.append(event.id)
            if len(attempts) < 2:
                raise RuntimeError("transient")

        bus.subscribe(FLAG_CHANGED, flaky)
        await bus.publish(_flag_event())
        assert len(attempts) == 2
        assert len(bus.dlq) == 0

    @pytest.mark.asyncio
    async def test_exhausted_retries_are_parked(self):
        bus = InMemoryEventBus(max_retries=3)

        async def broken(event):
            raise RuntimeError("renderer down")

        bus.subscribe(FLAG_CHANGED, broken)
        await bus.publish(_flag_event())
        letters = bus.dlq.list()
        assert len(letters) == 1
        assert letters[0].attempts == 3
        assert "renderer down" in letters[0].error
        assert letters[0].handler_name.endswith("broken")

    @pytest.mark.asyncio
    async def test_one_failing_handler_does_not_block_others(self):
        bus = InMemoryEventBus(max_retries=1)
        received = []

        async def broken(event):
            raise RuntimeError("boom")

        async def healthy(event):
            received.append(event)

        bus.subscribe(FLAG_CHANGED, broken)
        bus.subscribe(FLAG_CHANGED, healthy)
        await bus.publish(_flag_event())
        assert len(received) == 1
        assert len(bus.dlq) == 1

    @pytest.mark.asyncio
    async def test_redeliver_after_recovery(self):
        bus = InMemoryEventBus(max_retries=1)
        state = {"down": True}
        received = []

        async def renderer(event):
            if state["down"]:
                raise RuntimeError("renderer down")
            received.append(event)

        bus.subscribe(FLAG_CHANGED, renderer)
        event = _flag_event()
        await bus.publish(event)
        assert len(bus.dlq) == 1

        state["down"] = False
        assert await bus.redeliver(event.id) == 1
        assert received == [event]
        assert len(bus.dlq) == 0

    @pytest.mark.asyncio
    async def test_redeliver_unknown_event(self):
        assert await InMemoryEventBus().redeliver("missing") == 0


class TestDeadLetterQueue:
    def test_take_removes_only_matching(self):
        dlq = DeadLetterQueue()
        first, second = _flag_event("a"), _flag_event("b")
        dlq.park(DeadLetter(event=first, handler=_noop, error="boom", attempts=3))
        dlq.park(DeadLetter(event=second, handler=_noop, error="boom", attempts=3))
        taken = dlq.take(first.id)
        assert [letter.event for letter in taken] == [first]
        assert [letter.event for letter in dlq.list()] == [second]

    def test_capacity_drops_oldest(self):
        dlq = DeadLetterQueue(capacity=2)
        events = [_flag_event(f"f{i}") for i in range(3)]
        for event in events:
            dlq.park(DeadLetter(event=event, handler=_noop, error="boom", attempts=1))
        assert [letter.event.subject for letter in dlq.list()] == ["f1", "f2"]
