"""
Protocol handlers: the per-node event processing logic.

A handler is chosen for each node when it is created. HonestHandler
implements the reference proof-of-stake protocol:

- transactions are flooded to peers and held in the mempool
- every epoch, a commit-reveal round picks the validator
- once every participant acknowledged the result, the validator proposes
  a block on top of its deepest chain
- blocks are flooded and appended to every node's block tree

The adversarial variants subclass HonestHandler and override one
decision point each.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .blocktree import Block, BlockTree
from .crypto import commit, verify_reveal
from .events import (
    Event,
    EVENT_INIT,
    EVENT_MESSAGE,
    EVENT_PROPOSE_BLOCK,
    EVENT_SELECT_VALIDATOR,
    EVENT_SUBMIT_TRANSACTION,
)
from .messages import (
    SignedMessage,
    MSG_BLOCK,
    MSG_ID_ACK,
    MSG_RANDOM_COMMIT,
    MSG_RANDOM_REVEAL,
    MSG_TX,
)
from .node import Node, ValidatorSelectionRound
from .transaction import Transaction, GENESIS_AMOUNT, create_genesis_transactions


@dataclass
class ProtocolParams:
    """
    Protocol configuration shared by the handlers of a run.

    Attributes:
        epoch_interval: Time between the starts of validator-selection epochs
        genesis_amount: Units minted to each participant in the genesis block
    """
    epoch_interval: float = 100.0
    genesis_amount: int = GENESIS_AMOUNT

    def __post_init__(self):
        """Validate params."""
        if self.epoch_interval <= 0:
            raise ValueError("epoch_interval must be positive")
        if self.genesis_amount <= 0:
            raise ValueError("genesis_amount must be positive")


class HandlerKind(Enum):
    """Available handler variants."""
    HONEST = "honest"
    REVEAL_CHEAT = "reveal_cheat"  # Reveals a value it did not commit to
    ROGUE_PROPOSER = "rogue_proposer"  # Proposes blocks without being elected


class ProtocolHandler(ABC):
    """Interface between the simulator and per-node protocol logic."""

    kind: HandlerKind

    def __init__(self, params: ProtocolParams | None = None):
        self.params = params or ProtocolParams()

    @abstractmethod
    def handle(self, node: Node, event: Event):
        """Process one event addressed to `node`. Runs to completion."""


class HonestHandler(ProtocolHandler):
    """The reference protocol."""

    kind = HandlerKind.HONEST

    def handle(self, node: Node, event: Event):
        if event.type == EVENT_INIT:
            self.on_init(node)
        elif event.type == EVENT_SUBMIT_TRANSACTION:
            self.on_submit_transaction(node, event.message)
        elif event.type == EVENT_SELECT_VALIDATOR:
            self.on_select_validator(node)
        elif event.type == EVENT_PROPOSE_BLOCK:
            self.propose_block(node)
        elif event.type == EVENT_MESSAGE:
            self.on_message(node, event.message)
        # Unknown event types are ignored

    def on_message(self, node: Node, message: Any):
        if not isinstance(message, SignedMessage):
            return
        handlers = {
            MSG_TX: self.on_tx,
            MSG_RANDOM_COMMIT: self.on_random_commit,
            MSG_RANDOM_REVEAL: self.on_random_reveal,
            MSG_ID_ACK: self.on_id_ack,
            MSG_BLOCK: self.on_block,
        }
        handler = handlers.get(message.type)
        if handler is not None:
            handler(node, message)

    # ------------------------------------------------------------------
    # Setup and transactions
    # ------------------------------------------------------------------

    def on_init(self, node: Node):
        """Seed genesis, empty the mempool and start the epoch timer."""
        genesis_txs = create_genesis_transactions(node.participants, self.params.genesis_amount)
        node.blocktree = BlockTree.with_genesis(genesis_txs)
        node.mempool = {}
        node.round = None
        node.schedule_timer(self.params.epoch_interval, EVENT_SELECT_VALIDATOR)

    def on_submit_transaction(self, node: Node, tx: Transaction | dict):
        if not isinstance(tx, Transaction):
            tx = Transaction.from_dict(tx)
        node.mempool[tx.id] = tx
        node.info(f"saved transaction {tx.id}")
        node.broadcast_signed(MSG_TX, tx.to_dict())

    def on_tx(self, node: Node, message: SignedMessage):
        if not self._verify(node, message):
            return
        try:
            tx = Transaction.from_dict(message.payload)
        except (KeyError, TypeError, ValueError):
            self._malformed(node, message)
            return

        if node.knows_transaction(tx.id):
            return

        node.mempool[tx.id] = tx
        node.info(f"saved transaction {tx.id}")
        node.broadcast(message)

    # ------------------------------------------------------------------
    # Validator selection
    # ------------------------------------------------------------------

    def on_select_validator(self, node: Node):
        """Start a new epoch: commit to a random value and broadcast the commitment."""
        round_ = ValidatorSelectionRound(epoch=node.simulator.current_time)
        node.round = round_

        value = node.rng.getrandbits(32)
        commitment, salt = commit(value, node.rng)
        round_.secret = (value, salt)
        round_.commitments[node.id] = commitment
        node.info(f"generated and committed val {value}")

        node.broadcast_signed(MSG_RANDOM_COMMIT, {"epoch": round_.epoch, "commitment": commitment})
        node.schedule_timer(self.params.epoch_interval, EVENT_SELECT_VALIDATOR)

        self._maybe_reveal(node)

    def on_random_commit(self, node: Node, message: SignedMessage):
        if not self._verify(node, message):
            return
        round_ = self._current_round(node, message)
        if round_ is None or round_.has_commitment(message.sender):
            return

        commitment = message.payload.get("commitment")
        if not isinstance(commitment, str):
            self._malformed(node, message)
            return

        round_.commitments[message.sender] = commitment
        node.info(f"received val commit from {message.sender}")
        node.broadcast(message)

        self._maybe_reveal(node)

    def on_random_reveal(self, node: Node, message: SignedMessage):
        if not self._verify(node, message):
            return
        round_ = self._current_round(node, message)
        if round_ is None or round_.has_reveal(message.sender):
            return

        value = message.payload.get("value")
        salt = message.payload.get("salt")
        commitment = round_.commitments.get(message.sender)
        if (
            commitment is None
            or not isinstance(value, int)
            or not isinstance(salt, str)
            or not verify_reveal(value, salt, commitment)
        ):
            self._reject(node, "invalid_reveal", f"validator random reveal from node {message.sender} is invalid")
            return

        round_.reveals[message.sender] = (value, salt)
        node.info(f"received val reveal from node {message.sender}, val {value}")
        node.broadcast(message)

        self._maybe_resolve(node)

    def on_id_ack(self, node: Node, message: SignedMessage):
        if not self._verify(node, message):
            return
        round_ = self._current_round(node, message)
        if round_ is None:
            return

        acked = message.payload.get("validator")
        if not isinstance(acked, int):
            self._malformed(node, message)
            return
        vote = (message.sender, acked)
        if vote in round_.ack_votes:
            return
        round_.ack_votes.add(vote)

        if round_.is_resolved and acked != round_.validator_id:
            self._reject(
                node,
                "validator_mismatch",
                f"validator id ack from node {message.sender} names {acked}, expected {round_.validator_id}",
            )
            return

        # Before resolution the latest ack per sender is kept; it is checked once resolved
        round_.acks[message.sender] = acked
        if round_.validator_id == node.id:
            node.info(f"received validator id ACK from node {message.sender}")
        node.broadcast(message)

        self._maybe_propose(node)

    def reveal_value(self, node: Node, value: int) -> int:
        """Value published in this node's reveal."""
        return value

    def _maybe_reveal(self, node: Node):
        round_ = node.round
        if round_.secret is None or round_.has_reveal(node.id):
            return
        if not all(round_.has_commitment(p) for p in node.participants):
            return

        value, salt = round_.secret
        round_.reveals[node.id] = round_.secret
        node.broadcast_signed(
            MSG_RANDOM_REVEAL,
            {"epoch": round_.epoch, "value": self.reveal_value(node, value), "salt": salt},
        )

        self._maybe_resolve(node)

    def _maybe_resolve(self, node: Node):
        round_ = node.round
        if round_.is_resolved:
            return
        if not all(round_.has_reveal(p) for p in node.participants):
            return

        round_.validator_id = select_validator(
            [value for value, _ in round_.reveals.values()],
            node.participants,
        )
        node.info(f"current validator {round_.validator_id}")
        collector = node.simulator.collector
        if collector is not None:
            collector.record_validator(node.id, round_.epoch, round_.validator_id)

        for sender, acked in list(round_.acks.items()):
            if acked != round_.validator_id:
                del round_.acks[sender]
                self._reject(
                    node,
                    "validator_mismatch",
                    f"validator id ack from node {sender} names {acked}, expected {round_.validator_id}",
                )

        round_.acks[node.id] = round_.validator_id
        round_.ack_votes.add((node.id, round_.validator_id))
        node.broadcast_signed(MSG_ID_ACK, {"epoch": round_.epoch, "validator": round_.validator_id})

        self._maybe_propose(node)

    def _maybe_propose(self, node: Node):
        round_ = node.round
        if round_.validator_id != node.id or round_.block_proposed:
            return
        if not all(round_.acked_validator(p) for p in node.participants):
            return

        round_.block_proposed = True
        self.propose_block(node)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def propose_block(self, node: Node) -> Block:
        """Build a block from the whole mempool on top of the deepest chain and broadcast it."""
        node.info("proposing block")
        tree = node.blocktree
        head = tree.deepest()
        block = Block(
            id=tree.max_id() + 1,
            parent_id=head.id,
            proposer=node.id,
            transactions=dict(node.mempool),
        )
        node.mempool = {}
        tree.insert(block)
        node.info(f"created block {block.parent_id} -> {block.id}")

        collector = node.simulator.collector
        if collector is not None:
            collector.record_block(node.id, block.id)

        node.broadcast_signed(MSG_BLOCK, block.to_dict())
        return block

    def on_block(self, node: Node, message: SignedMessage):
        if not self._verify(node, message):
            return
        try:
            block = Block.from_dict(message.payload)
        except (KeyError, TypeError, ValueError):
            self._malformed(node, message)
            return
        tree = node.blocktree

        if block.id in tree:
            return

        expected = node.round.validator_id if node.round is not None else None
        if block.proposer != expected or message.sender != block.proposer:
            self._reject(node, "wrong_proposer", f"block {block.id} has incorrect proposer {block.proposer}")
            return

        if block.parent_id not in tree:
            self._reject(node, "missing_parent", f"prev block {block.parent_id} does not exist in blocktree")
            return

        tree.insert(block)
        for tx_id in block.transactions:
            node.mempool.pop(tx_id, None)
        node.info(f"received block {block.id}")

        collector = node.simulator.collector
        if collector is not None:
            collector.record_block(node.id, block.id)

        node.broadcast(message)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _verify(self, node: Node, message: SignedMessage) -> bool:
        if node.verify(message):
            return True
        self._reject(node, "invalid_signature", f"{message.type} from node {message.sender} has invalid signature")
        return False

    def _malformed(self, node: Node, message: SignedMessage):
        self._reject(node, "malformed", f"{message.type} from node {message.sender} is malformed")

    def _current_round(self, node: Node, message: SignedMessage) -> ValidatorSelectionRound | None:
        """The active round if the message belongs to it; otherwise log and return None."""
        round_ = node.round
        if round_ is None or message.payload.get("epoch") != round_.epoch:
            self._reject(node, "stale_epoch", f"{message.type} from node {message.sender} has incorrect epoch")
            return None
        return round_

    def _reject(self, node: Node, reason: str, detail: str):
        node.error(detail)
        collector = node.simulator.collector
        if collector is not None:
            collector.record_rejection(node.id, reason)


class RevealCheatHandler(HonestHandler):
    """
    Adversarial handler that tries to bias validator selection.

    Commits honestly, then reveals a different value. Honest nodes reject
    the reveal, so the epoch never resolves for them.
    """

    kind = HandlerKind.REVEAL_CHEAT

    def __init__(self, params: ProtocolParams | None = None, offset: int = 1):
        super().__init__(params)
        self.offset = offset
        self.cheats = 0

    def reveal_value(self, node: Node, value: int) -> int:
        self.cheats += 1
        return value + self.offset


class RogueProposerHandler(HonestHandler):
    """
    Adversarial handler that proposes a block at every epoch start.

    Otherwise follows the protocol. Honest nodes reject the block because
    its proposer is not the elected validator.
    """

    kind = HandlerKind.ROGUE_PROPOSER

    def __init__(self, params: ProtocolParams | None = None):
        super().__init__(params)
        self.forged_blocks = 0

    def on_select_validator(self, node: Node):
        super().on_select_validator(node)
        self.forged_blocks += 1
        self.propose_block(node)


def select_validator(values: list[int], participants: list[int]) -> int:
    """
    Deterministic validator choice from the revealed values.

    Picks the (sum mod N)-th participant in ascending ID order, which is
    (sum mod N) + 1 when participant IDs are 1..N.
    """
    ordered = sorted(participants)
    return ordered[sum(values) % len(ordered)]


def create_handler(kind: HandlerKind | str, params: ProtocolParams | None = None) -> ProtocolHandler:
    """Instantiate a handler variant by kind."""
    kind = HandlerKind(kind)
    if kind == HandlerKind.HONEST:
        return HonestHandler(params)
    elif kind == HandlerKind.REVEAL_CHEAT:
        return RevealCheatHandler(params)
    elif kind == HandlerKind.ROGUE_PROPOSER:
        return RogueProposerHandler(params)
    else:
        raise ValueError(f"Unknown handler kind: {kind}")
