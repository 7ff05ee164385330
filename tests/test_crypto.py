import random

from consensus_sim import KeyPair, SignedMessage, commit, verify_reveal
from consensus_sim.crypto import sign, verify


def test_signature_roundtrip():
    keys = KeyPair.generate(random.Random(1))
    payload = {"id": 10, "source": 1, "destination": 2, "amount": 10}

    signature = sign(keys.private_key, payload)

    assert verify(keys.public_key, payload, signature)


def test_signature_is_independent_of_key_order():
    keys = KeyPair.generate(random.Random(1))
    signature = sign(keys.private_key, {"a": 1, "b": 2})

    assert verify(keys.public_key, {"b": 2, "a": 1}, signature)


def test_tampered_payload_fails():
    keys = KeyPair.generate(random.Random(1))
    signature = sign(keys.private_key, {"amount": 10})

    assert not verify(keys.public_key, {"amount": 11}, signature)


def test_wrong_key_fails():
    alice = KeyPair.generate(random.Random(1))
    bob = KeyPair.generate(random.Random(2))
    signature = sign(alice.private_key, {"x": 1})

    assert not verify(bob.public_key, {"x": 1}, signature)


def test_unknown_key_and_garbage_signature_fail():
    keys = KeyPair.generate(random.Random(1))

    assert not verify(None, {"x": 1}, sign(keys.private_key, {"x": 1}))
    assert not verify(keys.public_key, {"x": 1}, "not-hex")


def test_seeded_keys_are_reproducible():
    assert KeyPair.generate(random.Random(7)).public_hex == KeyPair.generate(random.Random(7)).public_hex
    assert KeyPair.generate(random.Random(7)).public_hex != KeyPair.generate(random.Random(8)).public_hex


def test_commitment_opens_with_matching_value_and_salt():
    commitment, salt = commit(123456, random.Random(3))

    assert verify_reveal(123456, salt, commitment)


def test_commitment_rejects_other_value_or_salt():
    commitment, salt = commit(123456, random.Random(3))
    _, other_salt = commit(123456, random.Random(4))

    assert not verify_reveal(123457, salt, commitment)
    assert not verify_reveal(123456, other_salt, commitment)


def test_commitment_hides_value_behind_fresh_salt():
    rng = random.Random(3)
    first, _ = commit(5, rng)
    second, _ = commit(5, rng)

    assert first != second


def test_signed_message_verifies_against_sender_key():
    keys = KeyPair.generate(random.Random(1))
    message = SignedMessage.create("tx", 1, {"id": 10}, keys.private_key)

    assert message.verify(keys.public_key)
    assert message.sender == 1
    assert message.type == "tx"
