import pytest

from consensus_sim import (
    Block,
    BlockTree,
    GENESIS_PROPOSER,
    MINT_SOURCE,
    Transaction,
    create_genesis_transactions,
)


def make_tree():
    return BlockTree.with_genesis(create_genesis_transactions([1, 2, 3, 4]))


def test_genesis_holds_minted_transactions():
    tree = make_tree()
    genesis = tree.root

    assert genesis.id == 1
    assert genesis.parent_id is None
    assert genesis.proposer == GENESIS_PROPOSER
    assert [tx.id for tx in genesis.transactions.values()] == [1, 2, 3, 4]
    assert all(tx.source == MINT_SOURCE and tx.amount == 100 for tx in genesis.transactions.values())


def test_insert_requires_existing_parent():
    tree = make_tree()

    with pytest.raises(ValueError):
        tree.insert(Block(id=5, parent_id=42, proposer=1))

    assert 5 not in tree
    assert len(tree) == 1


def test_insert_rejects_duplicate_id():
    tree = make_tree()
    tree.insert(Block(id=2, parent_id=1, proposer=1))

    with pytest.raises(ValueError):
        tree.insert(Block(id=2, parent_id=1, proposer=3))


def test_insert_links_children_and_depth():
    tree = make_tree()
    tree.insert(Block(id=2, parent_id=1, proposer=1))
    tree.insert(Block(id=3, parent_id=2, proposer=2))

    assert tree.root.children == [2]
    assert tree.get(2).children == [3]
    assert tree.depth(3) == 3


def test_deepest_picks_longest_chain():
    tree = make_tree()
    tree.insert(Block(id=2, parent_id=1, proposer=1))
    tree.insert(Block(id=3, parent_id=1, proposer=2))
    tree.insert(Block(id=4, parent_id=3, proposer=2))

    assert tree.deepest().id == 4
    assert [b.id for b in tree.chain()] == [1, 3, 4]


def test_deepest_tie_goes_to_first_discovered():
    tree = make_tree()
    tree.insert(Block(id=2, parent_id=1, proposer=1))
    tree.insert(Block(id=3, parent_id=1, proposer=2))
    tree.insert(Block(id=5, parent_id=3, proposer=2))
    tree.insert(Block(id=4, parent_id=2, proposer=1))

    # 4 (under the first child) and 5 are both at depth 3
    assert tree.deepest().id == 4


def test_max_id_spans_all_branches():
    tree = make_tree()
    tree.insert(Block(id=7, parent_id=1, proposer=1))
    tree.insert(Block(id=3, parent_id=1, proposer=2))

    assert tree.max_id() == 7


def test_traversal_is_depth_first_in_insertion_order():
    tree = make_tree()
    tree.insert(Block(id=2, parent_id=1, proposer=1))
    tree.insert(Block(id=3, parent_id=1, proposer=1))
    tree.insert(Block(id=4, parent_id=2, proposer=1))

    assert [b.id for b in tree] == [1, 2, 4, 3]


def test_transaction_index():
    tree = make_tree()
    tx = Transaction(id=10, source=1, destination=2, amount=10)
    tree.insert(Block(id=2, parent_id=1, proposer=3, transactions={tx.id: tx}))

    assert tree.contains_transaction(10)
    assert tree.contains_transaction(1)
    assert not tree.contains_transaction(11)
    assert tree.block_for_transaction(10).id == 2


def test_block_message_roundtrip_drops_children():
    tx = Transaction(id=10, source=1, destination=2, amount=10)
    block = Block(id=2, parent_id=1, proposer=3, transactions={10: tx}, children=[9])

    restored = Block.from_dict(block.to_dict())

    assert restored.id == 2
    assert restored.parent_id == 1
    assert restored.transactions == {10: tx}
    assert restored.children == []


def test_genesis_must_not_have_parent():
    with pytest.raises(ValueError):
        BlockTree(Block(id=1, parent_id=0, proposer=1))


def test_transaction_amount_must_be_positive():
    with pytest.raises(ValueError):
        Transaction(id=1, source=1, destination=2, amount=0)
