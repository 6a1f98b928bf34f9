"""Event bus delivering flag/brand change events to presentation-side listeners.

Listener failures never roll back the mutation that produced the event:
each handler is retried, then parked in the dead letter queue where it can
be redelivered once the listener recovers.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from rollout.events.dlq import DeadLetter, DeadLetterQueue, EventHandler
from rollout.events.envelope import ChangeEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Abstract event bus interface."""
    async def publish(self, event: ChangeEvent) -> None: ...
    def subscribe(self, event_type: str, handler: EventHandler) -> None: ...


class InMemoryEventBus(EventBus):
    def __init__(
        self,
        max_retries: int = 3,
        dedup_window: int = 10_000,
        dlq_capacity: int = 1000,
    ) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._processed_ids: OrderedDict[str, None] = OrderedDict()
        self._dedup_window = dedup_window
        self._max_retries = max_retries
        self.dlq = DeadLetterQueue(capacity=dlq_capacity)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def _seen(self, event_id: str) -> bool:
        if event_id in self._processed_ids:
            return True
        self._processed_ids[event_id] = None
        while len(self._processed_ids) > self._dedup_window:
            self._processed_ids.popitem(last=False)
        return False

    async def _deliver(self, handler: EventHandler, event: ChangeEvent) -> None:
        for attempt in range(1, self._max_retries + 1):
            try:
                await handler(event)
                return
            except Exception as e:
                if attempt == self._max_retries:
                    logger.exception(
                        "Listener %s failed %d times on %s %s, parked",
                        getattr(handler, "__qualname__", handler),
                        attempt,
                        event.type,
                        event.subject,
                    )
                    self.dlq.park(
                        DeadLetter(event=event, handler=handler, error=str(e), attempts=attempt)
                    )

    async def publish(self, event: ChangeEvent) -> None:
        if self._seen(event.id):
            return
        for handler in self._handlers.get(event.type, []):
            await self._deliver(handler, event)

    async def redeliver(self, event_id: str) -> int:
        """Retry the parked listeners of *event_id*; returns how many were retried."""
        letters = self.dlq.take(event_id)
        for letter in letters:
            await self._deliver(letter.handler, letter.event)
        return len(letters)
