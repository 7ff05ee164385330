from consensus_sim import HandlerKind, TopologyStrategy
from scenarios import (
    AdversarialScenario,
    BasicReplicationScenario,
    StressTestScenario,
    run_basic_scenario,
)


def chains(simulator):
    return {
        node_id: [block.id for block in node.blocktree.chain()]
        for node_id, node in simulator.nodes.items()
    }


def test_basic_scenario_replicates_every_transfer():
    scenario = BasicReplicationScenario({"verbose": False})
    assert scenario.setup()
    scenario.run()

    node_chains = chains(scenario.simulator)
    assert len({tuple(c) for c in node_chains.values()}) == 1
    assert len(node_chains[1]) == 4

    for node in scenario.simulator.nodes.values():
        assert node.blocktree.contains_transaction(10)
        assert node.blocktree.contains_transaction(20)
        assert node.mempool == {}

    summary = scenario.collector.get_summary()
    assert summary["consensus"]["epochs_resolved"] == 3
    assert summary["consensus"]["epochs_in_agreement"] == 3
    assert summary["rejections"] == {}


def test_basic_scenario_pauses_before_each_epoch():
    scenario = BasicReplicationScenario({"verbose": False, "num_epochs": 2})
    assert scenario.setup()

    assert scenario.run_to_next_breakpoint()
    assert scenario.simulator.event_queue.peek().time == 99

    assert scenario.run_to_next_breakpoint()
    assert scenario.simulator.event_queue.peek().time == 199


def test_run_basic_scenario_prints_report(capsys):
    scenario = run_basic_scenario({"verbose": False, "num_epochs": 1})

    out = capsys.readouterr().out
    assert "SIMULATION SUMMARY" in out
    assert "Epochs resolved: 1" in out
    assert scenario.setup_ok


def test_reveal_cheat_stalls_the_chain():
    scenario = AdversarialScenario({"verbose": False, "attack": "reveal_cheat"})
    assert scenario.setup()
    scenario.run()

    assert scenario.attack == HandlerKind.REVEAL_CHEAT
    assert scenario.honest_chain_height() == 1
    assert scenario.collector.total_rejections["invalid_reveal"] > 0


def test_rogue_proposer_cannot_extend_honest_chain():
    scenario = AdversarialScenario({"verbose": False, "attack": "rogue_proposer", "num_epochs": 8})
    assert scenario.setup()
    scenario.run()

    assert scenario.collector.total_rejections["wrong_proposer"] > 0
    assert scenario.honest_chain_height() >= 2

    honest_chains = {
        tuple(block.id for block in node.blocktree.chain())
        for node in scenario.honest_nodes()
    }
    assert len(honest_chains) == 1
    for node in scenario.honest_nodes():
        assert all(block.proposer != 4 for block in node.blocktree)


def test_stress_test_converges():
    scenario = StressTestScenario({
        "num_nodes": 12,
        "num_epochs": 3,
        "transactions_per_epoch": 3,
        "enable_progress_bar": False,
    })
    assert scenario.setup()
    scenario.run()

    assert scenario.chains_agree()
    assert len(scenario.simulator.get_node(1).blocktree.chain()) == 4
    assert sorted(scenario.collector.epochs) == [100.0, 200.0, 300.0]
    assert all(m.agreed for m in scenario.collector.epochs.values())
    for node in scenario.simulator.nodes.values():
        assert node.mempool == {}
        for tx_id in range(1000, 1009):
            assert node.blocktree.contains_transaction(tx_id)


def test_stress_test_rejects_too_short_epochs():
    scenario = StressTestScenario({
        "num_nodes": 8,
        "num_epochs": 1,
        "epoch_interval": 4,
        "topology_strategy": TopologyStrategy.RING,
        "enable_progress_bar": False,
    })

    assert not scenario.setup()
    assert scenario.simulator.nodes == {}
