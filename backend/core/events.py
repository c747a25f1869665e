"""In-process change notifications.

The schedule store, generator and lifecycle manager publish a
ChangeEvent after every committed mutation. Subscribers (the engine
runner, badge refreshers, tests) register a sync or async callback.
Periodic polling stays the fallback, so a lost event only delays a
refresh until the next tick.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import structlog

from core.constants import ChangeKind
from core.utils import utc_now

logger = structlog.get_logger(__name__)

Subscriber = Callable[["ChangeEvent"], Union[None, Awaitable[None]]]


@dataclass
class ChangeEvent:
    """A committed mutation of schedules or instances."""

    kind: ChangeKind
    entity_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "entity_id": self.entity_id,
            "payload": self.payload,
            "occurred_at": self.occurred_at.isoformat(),
        }


class EventBus:
    """Publish/subscribe dispatcher. Singleton, use get_event_bus()."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every subscriber.

        A subscriber that raises is logged and skipped; delivery to the
        remaining subscribers continues.
        """
        for callback in list(self._subscribers):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "Event subscriber failed",
                    kind=event.kind.value,
                    entity_id=event.entity_id,
                    error=str(e),
                )


_event_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get or create the process-wide event bus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus
