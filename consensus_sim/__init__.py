"""
Consensus Simulator Framework

A deterministic discrete-event simulation framework for exercising a
simplified proof-of-stake protocol: transaction gossip, commit-reveal
validator selection and block-tree replication.
"""

from .events import (
    Event,
    EventQueue,
    EVENT_INIT,
    EVENT_MESSAGE,
    EVENT_SUBMIT_TRANSACTION,
    EVENT_SELECT_VALIDATOR,
    EVENT_PROPOSE_BLOCK,
    EVENT_BREAK,
)
from .crypto import KeyPair, canonical_json, commit, verify_reveal
from .transaction import Transaction, MINT_SOURCE, GENESIS_AMOUNT, create_genesis_transactions
from .blocktree import Block, BlockTree, GENESIS_PROPOSER, GENESIS_BLOCK_ID
from .messages import SignedMessage
from .node import Node, Position, ValidatorSelectionRound
from .handlers import (
    ProtocolParams,
    ProtocolHandler,
    HonestHandler,
    RevealCheatHandler,
    RogueProposerHandler,
    HandlerKind,
    create_handler,
    select_validator,
)
from .log import SimulatorLogger, StdlibLogger, TagLogger
from .simulator import NetworkSimulator, MAX_CONTINUE_EVENTS
from .topology import Topology, TopologyStrategy
from .statistics import Statistics, MetricsCollector

__version__ = "0.1.0"
__all__ = [
    "Event",
    "EventQueue",
    "EVENT_INIT",
    "EVENT_MESSAGE",
    "EVENT_SUBMIT_TRANSACTION",
    "EVENT_SELECT_VALIDATOR",
    "EVENT_PROPOSE_BLOCK",
    "EVENT_BREAK",
    "KeyPair",
    "canonical_json",
    "commit",
    "verify_reveal",
    "Transaction",
    "MINT_SOURCE",
    "GENESIS_AMOUNT",
    "create_genesis_transactions",
    "Block",
    "BlockTree",
    "GENESIS_PROPOSER",
    "GENESIS_BLOCK_ID",
    "SignedMessage",
    "Node",
    "Position",
    "ValidatorSelectionRound",
    "ProtocolParams",
    "ProtocolHandler",
    "HonestHandler",
    "RevealCheatHandler",
    "RogueProposerHandler",
    "HandlerKind",
    "create_handler",
    "select_validator",
    "SimulatorLogger",
    "StdlibLogger",
    "TagLogger",
    "NetworkSimulator",
    "MAX_CONTINUE_EVENTS",
    "Topology",
    "TopologyStrategy",
    "Statistics",
    "MetricsCollector",
]
