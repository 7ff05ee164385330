"""
Cryptographic primitives used by protocol handlers.

Signatures are ed25519 (via the ``cryptography`` package); commitments
are salted SHA-256 digests. Everything is synchronous, so a handler
finishes all of its cryptographic work inside a single dispatch.
"""

import hashlib
import json
import random
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519


SALT_BYTES = 32  # 256-bit commitment salt


def canonical_json(data: Any) -> bytes:
    """Deterministic encoding: sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode()


@dataclass(frozen=True)
class KeyPair:
    """An ed25519 signing key and its public half."""
    private_key: ed25519.Ed25519PrivateKey
    public_key: ed25519.Ed25519PublicKey

    @classmethod
    def generate(cls, rng: random.Random | None = None) -> "KeyPair":
        """
        Create a key pair.

        Args:
            rng: Optional random source. When given, the private key is
                derived from it so that runs with the same seed produce
                the same keys.
        """
        if rng is None:
            private_key = ed25519.Ed25519PrivateKey.generate()
        else:
            private_key = ed25519.Ed25519PrivateKey.from_private_bytes(rng.randbytes(32))
        return cls(private_key=private_key, public_key=private_key.public_key())

    @property
    def public_hex(self) -> str:
        raw = self.public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return raw.hex()


def sign(private_key: ed25519.Ed25519PrivateKey, payload: Any) -> str:
    """Sign the canonical encoding of a payload, returning hex."""
    return private_key.sign(canonical_json(payload)).hex()


def verify(public_key: ed25519.Ed25519PublicKey | None, payload: Any, signature: str) -> bool:
    """Check a hex signature over a payload. Unknown keys never verify."""
    if public_key is None:
        return False
    try:
        public_key.verify(bytes.fromhex(signature), canonical_json(payload))
    except (InvalidSignature, ValueError):
        return False
    return True


def _commitment_digest(value: Any, salt: str) -> str:
    data = salt.encode() + b"|" + canonical_json(value)
    return hashlib.sha256(data).hexdigest()


def commit(value: Any, rng: random.Random) -> tuple[str, str]:
    """
    Create a hiding commitment to a value.

    Args:
        value: Any JSON-serializable value
        rng: Random source for the salt

    Returns:
        (commitment, salt) both as hex strings
    """
    salt = rng.randbytes(SALT_BYTES).hex()
    return _commitment_digest(value, salt), salt


def verify_reveal(value: Any, salt: str, commitment: str) -> bool:
    """Check that (value, salt) reproduces a commitment."""
    return _commitment_digest(value, salt) == commitment
