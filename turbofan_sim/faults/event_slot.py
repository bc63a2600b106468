"""Single-occupancy scheduled event on the simulation clock."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ScheduledEvent:
    due_ms: int
    token: int


class EventSlot:
    """Holds at most one pending event.

    Scheduling replaces whatever is pending; cancelling empties the slot. An
    event fires only if it is still the slot's occupant when its due time is
    reached, so a replaced or cancelled event can never fire.
    """

    def __init__(self):
        self._pending: Optional[ScheduledEvent] = None
        self._next_token = 0

    @property
    def pending(self) -> Optional[ScheduledEvent]:
        return self._pending

    def schedule(self, due_ms: int) -> ScheduledEvent:
        self._next_token += 1
        self._pending = ScheduledEvent(due_ms=int(due_ms), token=self._next_token)
        return self._pending

    def cancel(self) -> Optional[ScheduledEvent]:
        """Empty the slot, returning the event that was pending (if any)."""
        event, self._pending = self._pending, None
        return event

    def pop_due(self, now_ms: int) -> Optional[ScheduledEvent]:
        """Remove and return the pending event if it is due at now_ms."""
        if self._pending is not None and self._pending.due_ms <= now_ms:
            return self.cancel()
        return None
