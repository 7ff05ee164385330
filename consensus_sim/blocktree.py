"""
Block tree storage and fork choice.

Blocks live in a flat table keyed by ID with explicit parent and child ID
lists. Traversals are iterative, so deep trees never hit the recursion
limit, and a block never owns its children.
"""

from dataclasses import dataclass, field
from typing import Iterator

from .transaction import Transaction


# Proposer ID recorded on the genesis block
GENESIS_PROPOSER = -1
GENESIS_BLOCK_ID = 1


@dataclass
class Block:
    """
    A block in a node's local block tree.

    Attributes:
        id: Block ID, unique within a run
        parent_id: ID of the parent block (None for genesis)
        proposer: Node ID of the proposer (GENESIS_PROPOSER for genesis)
        transactions: Transactions included in this block, keyed by ID
        children: IDs of child blocks, in the order they were inserted
    """
    id: int
    parent_id: int | None
    proposer: int
    transactions: dict[int, Transaction] = field(default_factory=dict)
    children: list[int] = field(default_factory=list)

    @property
    def is_genesis(self) -> bool:
        return self.parent_id is None

    def to_dict(self) -> dict:
        """Serialize for a block message. Children are local state and not sent."""
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "proposer": self.proposer,
            "transactions": [tx.to_dict() for tx in self.transactions.values()],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Block":
        """Deserialize a block received in a message."""
        transactions = [Transaction.from_dict(tx) for tx in data["transactions"]]
        parent_id = data["parent_id"]
        return cls(
            id=int(data["id"]),
            parent_id=None if parent_id is None else int(parent_id),
            proposer=int(data["proposer"]),
            transactions={tx.id: tx for tx in transactions},
        )


class BlockTree:
    """
    A node's private view of the block tree.

    Invariant: every block except genesis has its parent in the table, so
    the structure is a single tree rooted at genesis.
    """

    def __init__(self, genesis: Block):
        if not genesis.is_genesis:
            raise ValueError("genesis block must not have a parent")
        self.root_id = genesis.id
        self._blocks: dict[int, Block] = {genesis.id: genesis}
        self._depths: dict[int, int] = {genesis.id: 1}
        # tx_id -> block_id for every included transaction
        self._tx_index: dict[int, int] = {tx_id: genesis.id for tx_id in genesis.transactions}

    @classmethod
    def with_genesis(
        cls,
        transactions: list[Transaction],
        block_id: int = GENESIS_BLOCK_ID
    ) -> "BlockTree":
        """Create a tree holding only a genesis block with the given transactions."""
        genesis = Block(
            id=block_id,
            parent_id=None,
            proposer=GENESIS_PROPOSER,
            transactions={tx.id: tx for tx in transactions},
        )
        return cls(genesis)

    @property
    def root(self) -> Block:
        return self._blocks[self.root_id]

    def __contains__(self, block_id: int) -> bool:
        return block_id in self._blocks

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        """Depth-first pre-order, children in insertion order."""
        stack = [self.root_id]
        while stack:
            block = self._blocks[stack.pop()]
            yield block
            stack.extend(reversed(block.children))

    def get(self, block_id: int) -> Block | None:
        return self._blocks.get(block_id)

    def depth(self, block_id: int) -> int:
        """Height of a block counted from genesis (genesis = 1)."""
        return self._depths[block_id]

    def insert(self, block: Block) -> Block:
        """
        Insert a block under its parent.

        Raises:
            ValueError: If the block ID is taken or the parent is unknown
        """
        if block.id in self._blocks:
            raise ValueError(f"Block {block.id} already in tree")
        if block.parent_id is None or block.parent_id not in self._blocks:
            raise ValueError(f"Parent block {block.parent_id} not in tree")

        parent = self._blocks[block.parent_id]
        block.children = []
        self._blocks[block.id] = block
        self._depths[block.id] = self._depths[parent.id] + 1
        parent.children.append(block.id)

        for tx_id in block.transactions:
            self._tx_index.setdefault(tx_id, block.id)

        return block

    def max_id(self) -> int:
        """Largest block ID in the tree."""
        return max(self._blocks)

    def deepest(self) -> Block:
        """
        Head of the longest chain.

        Ties go to the block discovered first in a depth-first traversal
        that visits children in insertion order.
        """
        best = self.root
        best_depth = 1
        for block in self:
            depth = self._depths[block.id]
            if depth > best_depth:
                best, best_depth = block, depth
        return best

    def chain(self, block_id: int | None = None) -> list[Block]:
        """Blocks from genesis to the given block (default: the deepest)."""
        if block_id is None:
            block_id = self.deepest().id
        path = []
        current: int | None = block_id
        while current is not None:
            block = self._blocks[current]
            path.append(block)
            current = block.parent_id
        path.reverse()
        return path

    def contains_transaction(self, tx_id: int) -> bool:
        """Whether any block in the tree includes this transaction."""
        return tx_id in self._tx_index

    def block_for_transaction(self, tx_id: int) -> Block | None:
        """First block inserted that includes this transaction."""
        block_id = self._tx_index.get(tx_id)
        return None if block_id is None else self._blocks[block_id]

    def snapshot(self) -> list[tuple[int, int | None, int, tuple[int, ...]]]:
        """Comparable summary: (id, parent, proposer, tx ids) per block, in traversal order."""
        return [
            (block.id, block.parent_id, block.proposer, tuple(block.transactions))
            for block in self
        ]
