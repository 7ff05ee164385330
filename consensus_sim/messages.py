"""
Signed inter-node messages.
"""

from dataclasses import dataclass
from typing import Any

from .crypto import sign, verify


MSG_TX = "tx"
MSG_BLOCK = "block"
MSG_RANDOM_COMMIT = "validatorRandomCommit"
MSG_RANDOM_REVEAL = "validatorRandomReveal"
MSG_ID_ACK = "validatorIdAck"


@dataclass(frozen=True)
class SignedMessage:
    """
    An attributable message.

    The payload is a JSON-compatible dict shared by every recipient of a
    broadcast; handlers must treat it as read-only.

    Attributes:
        type: Declared message type
        sender: Node ID of the original author (not the forwarding peer)
        payload: Message body
        signature: Hex ed25519 signature over the canonical payload
    """
    type: str
    sender: int
    payload: dict[str, Any]
    signature: str

    @classmethod
    def create(cls, msg_type: str, sender: int, payload: dict[str, Any], private_key) -> "SignedMessage":
        """Sign a payload as `sender`."""
        return cls(type=msg_type, sender=sender, payload=payload, signature=sign(private_key, payload))

    def verify(self, public_key) -> bool:
        return verify(public_key, self.payload, self.signature)
