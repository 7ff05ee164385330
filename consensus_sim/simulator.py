"""
Network simulator: node registry, event loop and execution control.

This is the only component an outer presentation layer needs to talk to.
Setup code registers nodes and seeds events; the caller then drives the
run one event at a time (step_event) or up to the next breakpoint
(continue_).
"""

import random
from typing import Any, Callable

from .crypto import KeyPair
from .events import Event, EventQueue
from .handlers import ProtocolHandler
from .log import SimulatorLogger, StdlibLogger, TagLogger
from .node import Node, Position
from .statistics import MetricsCollector


# Dispatches per continue_() call before control returns to the caller
MAX_CONTINUE_EVENTS = 1000

SetupFunction = Callable[["NetworkSimulator", TagLogger], Any]


class NetworkSimulator:
    """
    Main simulation class.

    Owns the event queue, the node table and the public-key directory.
    Execution is single-threaded: each event runs to completion before
    the next one is considered.
    """

    def __init__(
        self,
        message_delay: float = 1.0,
        seed: int = 0,
        logger: SimulatorLogger | None = None,
        collector: MetricsCollector | None = None,
        max_continue_events: int = MAX_CONTINUE_EVENTS
    ):
        if message_delay <= 0:
            raise ValueError("message_delay must be positive")
        if max_continue_events < 1:
            raise ValueError("max_continue_events must be at least 1")

        self.message_delay = message_delay
        self.seed = seed
        self.max_continue_events = max_continue_events
        self.collector = collector
        self.logger = TagLogger(logger or StdlibLogger())

        self.event_queue = EventQueue()
        self.nodes: dict[int, Node] = {}
        self.public_keys: dict[int, Any] = {}
        self._current_time: float = 0.0
        self._rng = random.Random(seed)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def reset(self):
        """Discard all nodes, pending events and time."""
        self.nodes = {}
        self.public_keys = {}
        self.event_queue.clear()
        self._current_time = 0.0
        self.logger.time = 0.0
        self._rng = random.Random(self.seed)
        if self.collector is not None:
            self.collector.reset()

    def init(self, setup: SetupFunction) -> bool:
        """
        Reset the simulator and run setup code to build a new network.

        Setup receives the simulator and the logger. Any exception it
        raises is reported and leaves the simulator empty.

        Returns:
            Whether setup completed successfully
        """
        self.reset()
        try:
            setup(self, self.logger)
        except Exception as e:
            self.logger.error(f"init failed: {type(e).__name__}: {e}")
            self.reset()
            return False
        return True

    def create_node(
        self,
        node_id: int,
        name: str,
        position: Position | tuple[float, float] | dict[str, float],
        color: str,
        peers: list[int],
        handler: ProtocolHandler
    ) -> Node:
        """
        Register a new node.

        Node IDs must be unique within a run; this is not checked.

        Returns:
            The created Node
        """
        if isinstance(position, dict):
            position = Position(position["x"], position["y"])
        elif not isinstance(position, Position):
            position = Position(*position)

        # Per-node random source derived from the run seed
        node_rng = random.Random(self._rng.getrandbits(64))
        keys = KeyPair.generate(node_rng)

        node = Node(
            simulator=self,
            node_id=node_id,
            name=name,
            position=position,
            color=color,
            peers=peers,
            handler=handler,
            keys=keys,
            rng=node_rng,
        )
        self.nodes[node_id] = node
        self.public_keys[node_id] = keys.public_key
        return node

    def schedule(
        self,
        time: float,
        destination: int | None,
        event_type: str,
        message: Any = None,
        is_breakpoint: bool = False
    ) -> Event:
        """Push an event for delivery at an absolute time."""
        return self.push_event(Event(
            time=time,
            destination=destination,
            type=event_type,
            message=message,
            is_breakpoint=is_breakpoint,
        ))

    def push_event(self, event: Event) -> Event:
        return self.event_queue.push(event)

    def add_breakpoint(self, time: float) -> Event:
        """Add a pause marker that stops continue_() before the given time."""
        return self.push_event(Event.breakpoint(time))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def step_event(self) -> bool:
        """
        Execute exactly one event.

        Returns:
            False if the event's handler raised, True otherwise
            (including when the queue was empty)
        """
        if self.event_queue.is_empty():
            self.logger.info("no events in queue")
            return True

        event = self.event_queue.pop()
        try:
            self._dispatch(event)
        except Exception as e:
            self.logger.error(f"event handler failed on {event.describe()}: {type(e).__name__}: {e}")
            return False
        return True

    def continue_(self) -> bool:
        """
        Execute events until the queue empties or a breakpoint is next.

        A pause marker sitting at the head when called is consumed first,
        so repeated calls walk from breakpoint to breakpoint. Breakpoint
        events addressed to a node are never executed here; use
        step_event() for them. At most `max_continue_events` events run
        per call.

        Returns:
            False if an event handler raised, True otherwise
        """
        head = self.event_queue.peek()
        if head is not None and self.is_pause_marker(head):
            self._dispatch(self.event_queue.pop())

        dispatched = 0
        while True:
            head = self.event_queue.peek()
            if head is None:
                self.logger.info("no more events in queue")
                break
            if head.is_breakpoint:
                self.logger.info(f"paused at breakpoint ({head.describe()})")
                break
            if dispatched >= self.max_continue_events:
                self.logger.info(f"executed {dispatched} events, returning control")
                break

            event = self.event_queue.pop()
            try:
                self._dispatch(event)
            except Exception as e:
                self.logger.error(f"event handler failed on {event.describe()}: {type(e).__name__}: {e}")
                return False
            dispatched += 1

        return True

    def is_pause_marker(self, event: Event) -> bool:
        """Whether an event only pauses the run: a payload-free breakpoint not aimed at a registered node."""
        if event.is_pause_marker:
            return True
        return event.is_breakpoint and event.message is None and event.destination not in self.nodes

    def _dispatch(self, event: Event):
        """Advance the clock to the event and hand it to its node."""
        self._current_time = max(self._current_time, event.time)
        self.logger.time = self._current_time

        if self.is_pause_marker(event):
            return

        node = self.nodes.get(event.destination)
        if node is None:
            raise ValueError(f"Unknown destination node: {event.destination}")

        if self.collector is not None:
            self.collector.record_dispatch(event)
        node.handler.handle(node, event)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def current_time(self) -> float:
        """Current simulation time."""
        return self._current_time

    @property
    def participants(self) -> list[int]:
        """IDs of all registered nodes, ascending."""
        return sorted(self.public_keys)

    def public_key_of(self, node_id: int):
        return self.public_keys.get(node_id)

    def get_node(self, node_id: int) -> Node:
        return self.nodes[node_id]
