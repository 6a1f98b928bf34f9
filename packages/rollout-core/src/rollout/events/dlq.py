"""Parked change events whose listener kept failing."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable

from rollout.events.envelope import ChangeEvent

EventHandler = Callable[[ChangeEvent], Awaitable[None]]


@dataclass(frozen=True)
class DeadLetter:
    event: ChangeEvent
    handler: EventHandler
    error: str
    attempts: int
    parked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def handler_name(self) -> str:
        return getattr(self.handler, "__qualname__", repr(self.handler))


class DeadLetterQueue:
    """Bounded by *capacity*; the oldest letter is dropped when full."""

    def __init__(self, capacity: int = 1000) -> None:
        self._letters: deque[DeadLetter] = deque(maxlen=capacity)

    def park(self, letter: DeadLetter) -> None:
        self._letters.append(letter)

    def take(self, event_id: str) -> list[DeadLetter]:
        """Remove and return every letter parked for *event_id*."""
        taken = [letter for letter in self._letters if letter.event.id == event_id]
        if taken:
            self._letters = deque(
                (letter for letter in self._letters if letter.event.id != event_id),
                maxlen=self._letters.maxlen,
            )
        return taken

    def list(self) -> list[DeadLetter]:
        """Letters oldest first."""
        return list(self._letters)

    def __len__(self) -> int:
        return len(self._letters)
