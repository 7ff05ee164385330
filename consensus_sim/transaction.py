"""
Transaction data structures.

Transfers of currency between participants, plus the minted transactions
that seed every participant's balance in the genesis block.
"""

from dataclasses import dataclass, asdict
from typing import Iterable


# Source ID marking newly created currency
MINT_SOURCE = -1

# Default minted balance per participant in the genesis block
GENESIS_AMOUNT = 100


@dataclass(frozen=True)
class Transaction:
    """
    A transfer between two participants.

    Attributes:
        id: Globally unique transaction ID (a protocol assumption, not checked)
        source: Sender node ID, or MINT_SOURCE for minted currency
        destination: Receiver node ID
        amount: Units transferred
    """
    id: int
    source: int
    destination: int
    amount: int

    def __post_init__(self):
        """Validate transaction."""
        if self.amount <= 0:
            raise ValueError("amount must be positive")

    @property
    def is_mint(self) -> bool:
        return self.source == MINT_SOURCE

    def to_dict(self) -> dict:
        """Serialize transaction to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        """Deserialize transaction from dictionary."""
        return cls(
            id=int(data["id"]),
            source=int(data["source"]),
            destination=int(data["destination"]),
            amount=int(data["amount"]),
        )


def create_genesis_transactions(
    participants: Iterable[int],
    amount: int = GENESIS_AMOUNT
) -> list[Transaction]:
    """
    Create the minted transactions for the genesis block.

    Each participant receives `amount` units; the transaction ID equals the
    participant ID, matching the reference setup (ids 1..N).

    Args:
        participants: Node IDs to credit
        amount: Units minted per participant

    Returns:
        One mint transaction per participant, in ID order
    """
    return [
        Transaction(id=node_id, source=MINT_SOURCE, destination=node_id, amount=amount)
        for node_id in sorted(participants)
    ]
