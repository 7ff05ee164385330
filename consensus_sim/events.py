"""
Discrete event scheduling.

Provides a priority queue-based event system. Events are ordered by
simulation time, and events scheduled for the same time keep the order
in which they were pushed.
"""

import heapq
import itertools
from typing import Any
from dataclasses import dataclass, field


# Event types understood by the protocol handlers
EVENT_INIT = "init"
EVENT_MESSAGE = "msg"
EVENT_SUBMIT_TRANSACTION = "submitTransaction"
EVENT_SELECT_VALIDATOR = "selectValidator"
EVENT_PROPOSE_BLOCK = "proposeBlock"
EVENT_BREAK = "break"


@dataclass(order=True)
class Event:
    """
    An event in the simulation.

    Attributes:
        time: When the event is delivered (simulation time units)
        sequence: Insertion order, assigned by the queue; breaks time ties
        destination: ID of the node that receives the event (None for pure markers)
        type: Event type tag; "msg" is used for message deliveries
        message: Optional payload
        is_breakpoint: Whether continue() should pause before this event
    """
    time: float
    sequence: int = field(default=-1, compare=True)
    destination: int | None = field(default=None, compare=False)
    type: str = field(default=EVENT_BREAK, compare=False)
    message: Any = field(default=None, compare=False)
    is_breakpoint: bool = field(default=False, compare=False)

    @property
    def is_pause_marker(self) -> bool:
        """
        A breakpoint with no node-level payload.

        Either unaddressed, or a "break" event, which setup scripts often
        address to a placeholder destination such as 0 or -1.
        """
        if not self.is_breakpoint or self.message is not None:
            return False
        return self.destination is None or self.type == EVENT_BREAK

    @classmethod
    def breakpoint(cls, time: float) -> "Event":
        """Create a pure pause marker at the given time."""
        return cls(time=time, type=EVENT_BREAK, is_breakpoint=True)

    def describe(self) -> str:
        """Human-readable one-line description."""
        parts = [f"t={self.time:g}", f"type={self.type}"]
        if self.destination is not None:
            parts.append(f"dst={self.destination}")
        if self.message is not None and hasattr(self.message, "type"):
            parts.append(f"msg={self.message.type}")
        if self.is_breakpoint:
            parts.append("breakpoint")
        return " ".join(parts)


class EventQueue:
    """
    Priority queue for managing simulation events.

    O(log n) insertion and removal. Ties on time are broken by a
    monotonically increasing insertion counter, so pops are stable.
    """

    def __init__(self):
        self._queue: list[Event] = []
        self._counter = itertools.count()
        self._event_count: int = 0

    def push(self, event: Event) -> Event:
        """
        Insert an event, keeping time order.

        Args:
            event: The event to insert. Its sequence number is overwritten.

        Returns:
            The inserted event
        """
        event.sequence = next(self._counter)
        heapq.heappush(self._queue, event)
        self._event_count += 1
        return event

    def pop(self) -> Event:
        """
        Remove and return the next event.

        Raises:
            IndexError: If the queue is empty
        """
        if not self._queue:
            raise IndexError("pop from empty event queue")
        return heapq.heappop(self._queue)

    def peek(self) -> Event | None:
        """
        Get the next event without removing it.

        Returns:
            The next event or None if queue is empty
        """
        if not self._queue:
            return None
        return self._queue[0]

    @property
    def size(self) -> int:
        """Number of pending events."""
        return len(self._queue)

    @property
    def total_events(self) -> int:
        """Total number of events pushed since creation."""
        return self._event_count

    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return len(self._queue) == 0

    def clear(self):
        """Clear all pending events."""
        self._queue.clear()

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self):
        """Iterate pending events in delivery order without consuming them."""
        return iter(sorted(self._queue))
