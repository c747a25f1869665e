"""Tests for the in-process change event bus."""

import pytest

from core.constants import ChangeKind
from core.events import ChangeEvent, EventBus


@pytest.mark.unit
class TestEventBus:

    async def test_sync_and_async_subscribers(self):
        bus = EventBus()
        received = []

        async def async_subscriber(event):
            received.append(("async", event.kind))

        bus.subscribe(lambda event: received.append(("sync", event.kind)))
        bus.subscribe(async_subscriber)

        await bus.publish(ChangeEvent(ChangeKind.SCHEDULE_CREATED, "s-1"))

        assert received == [
            ("sync", ChangeKind.SCHEDULE_CREATED),
            ("async", ChangeKind.SCHEDULE_CREATED),
        ]

    async def test_failing_subscriber_does_not_block_others(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        await bus.publish(ChangeEvent(ChangeKind.INSTANCE_SENT, "i-1"))
        assert len(received) == 1

    async def test_unsubscribe(self):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe(received.append)
        assert bus.subscriber_count == 1

        unsubscribe()
        unsubscribe()
        await bus.publish(ChangeEvent(ChangeKind.INSTANCE_SENT, "i-1"))

        assert bus.subscriber_count == 0
        assert received == []

    def test_event_to_dict(self):
        event = ChangeEvent(ChangeKind.INSTANCES_GENERATED, payload={"count": 2})
        data = event.to_dict()
        assert data["kind"] == "instances.generated"
        assert data["entity_id"] is None
        assert data["payload"] == {"count": 2}
        assert "occurred_at" in data
