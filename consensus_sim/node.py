"""
Per-node runtime state.

A node holds its identity, peers, mempool, block tree and the current
validator-selection round, and offers the send/broadcast/timer
primitives that handlers use. All protocol decisions live in the node's
handler (see handlers.py).
"""

from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING
import random

from .blocktree import BlockTree
from .crypto import KeyPair
from .events import Event, EVENT_MESSAGE
from .messages import SignedMessage
from .transaction import Transaction

if TYPE_CHECKING:
    from .handlers import ProtocolHandler
    from .simulator import NetworkSimulator


@dataclass(frozen=True)
class Position:
    """Display position, x and y as fractions in [0, 1]."""
    x: float
    y: float

    def __post_init__(self):
        """Validate position."""
        if not (0 <= self.x <= 1 and 0 <= self.y <= 1):
            raise ValueError("position coordinates must be between 0 and 1")


@dataclass
class ValidatorSelectionRound:
    """
    State of one epoch's commit-reveal validator selection.

    Attributes:
        epoch: Simulation time at which the epoch started
        commitments: node_id -> commitment hex
        reveals: node_id -> (value, salt), only reveals that matched their commitment
        acks: node_id -> validator id that node acknowledged; once resolved, only
            acks naming the resolved validator are kept
        ack_votes: every (node_id, validator id) ack already processed
        validator_id: Resolved validator, or None while unresolved
        secret: This node's own (value, salt)
        block_proposed: Whether this node already proposed in this epoch
    """
    epoch: float
    commitments: dict[int, str] = field(default_factory=dict)
    reveals: dict[int, tuple[int, str]] = field(default_factory=dict)
    acks: dict[int, int] = field(default_factory=dict)
    ack_votes: set[tuple[int, int]] = field(default_factory=set)
    validator_id: int | None = None
    secret: tuple[int, str] | None = None
    block_proposed: bool = False

    @property
    def is_resolved(self) -> bool:
        return self.validator_id is not None

    def has_commitment(self, node_id: int) -> bool:
        return node_id in self.commitments

    def has_reveal(self, node_id: int) -> bool:
        return node_id in self.reveals

    def has_ack(self, node_id: int) -> bool:
        return node_id in self.acks

    def acked_validator(self, node_id: int) -> bool:
        """Whether node_id acknowledged the resolved validator."""
        return self.is_resolved and self.acks.get(node_id) == self.validator_id


class Node:
    """
    A participant in the simulated network.

    Created once during setup through NetworkSimulator.create_node and
    mutated only by its own handler.
    """

    def __init__(
        self,
        simulator: "NetworkSimulator",
        node_id: int,
        name: str,
        position: Position,
        color: str,
        peers: list[int],
        handler: "ProtocolHandler",
        keys: KeyPair,
        rng: random.Random
    ):
        self.simulator = simulator
        self.id = node_id
        self.name = name
        self.position = position
        self.color = color
        # Ordered and de-duplicated
        self.peers: list[int] = list(dict.fromkeys(peers))
        self.handler = handler
        self.keys = keys
        self.rng = rng

        # Protocol state, populated by the handler's init transition
        self.mempool: dict[int, Transaction] = {}
        self.blocktree: BlockTree | None = None
        self.round: ValidatorSelectionRound | None = None
        self.custom_state: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Event primitives
    # ------------------------------------------------------------------

    def schedule_timer(
        self,
        delay: float,
        event_type: str,
        message: Any = None,
        is_breakpoint: bool = False
    ) -> Event:
        """
        Create an event delivered to this node after a delay.

        Args:
            delay: Time from now; must not be negative
            event_type: Event type tag
            message: Optional payload
            is_breakpoint: Whether continue() pauses before it

        Returns:
            The scheduled Event
        """
        if delay < 0:
            raise ValueError("delay must not be negative")
        return self.simulator.schedule(
            self.simulator.current_time + delay,
            self.id,
            event_type,
            message=message,
            is_breakpoint=is_breakpoint,
        )

    def send(self, destination: int, message: SignedMessage, is_breakpoint: bool = False) -> Event:
        """Send a message to another node; it arrives after the simulator's message delay."""
        event = self.simulator.schedule(
            self.simulator.current_time + self.simulator.message_delay,
            destination,
            EVENT_MESSAGE,
            message=message,
            is_breakpoint=is_breakpoint,
        )
        if self.simulator.collector is not None:
            self.simulator.collector.record_message(message.type)
        return event

    def broadcast(self, message: SignedMessage):
        """Send a message to every peer."""
        for peer_id in self.peers:
            self.send(peer_id, message)

    def sign(self, msg_type: str, payload: dict[str, Any]) -> SignedMessage:
        """Wrap a payload in a message signed with this node's key."""
        return SignedMessage.create(msg_type, self.id, payload, self.keys.private_key)

    def broadcast_signed(self, msg_type: str, payload: dict[str, Any]) -> SignedMessage:
        """Sign a payload and broadcast it to every peer."""
        message = self.sign(msg_type, payload)
        self.broadcast(message)
        return message

    def verify(self, message: SignedMessage) -> bool:
        """Check a message signature against the sender's published key."""
        return message.verify(self.simulator.public_key_of(message.sender))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def participants(self) -> list[int]:
        """All node IDs taking part in validator selection."""
        return self.simulator.participants

    def knows_transaction(self, tx_id: int) -> bool:
        """Whether the transaction is pending locally or already in an accepted block."""
        if tx_id in self.mempool:
            return True
        return self.blocktree is not None and self.blocktree.contains_transaction(tx_id)

    def info(self, message: str):
        self.simulator.logger.info(f"[{self.name}] {message}")

    def error(self, message: str):
        self.simulator.logger.error(f"[{self.name}] {message}")

    def __repr__(self):
        return f"Node({self.id}, name={self.name}, handler={type(self.handler).__name__}, peers={self.peers})"
