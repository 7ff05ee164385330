"""
Adversarial scenario for testing attack vectors.

Runs the reference network with node 4 replaced by a misbehaving handler:
- Reveal cheating (reveals a value it did not commit to)
- Rogue proposing (proposes blocks without being elected)
"""

from typing import Any

from consensus_sim import (
    HandlerKind,
    Statistics,
)
from .basic_replication import BasicReplicationScenario


class AdversarialScenario(BasicReplicationScenario):
    """
    Adversarial scenario with one malicious node.

    Measures how the honest nodes react:
    1. Reveal cheating: honest nodes reject the reveal and the epoch
       never resolves (no timeout exists, so leader election stalls).
    2. Rogue proposing: honest nodes reject every forged block; the
       honest chain keeps growing.
    """

    HONEST_IDS = (1, 2, 3)
    ADVERSARY_ID = 4

    def __init__(self, config: dict[str, Any]):
        """
        Initialize adversarial scenario.

        Args:
            config: Same keys as BasicReplicationScenario, plus:
                - attack: Handler kind for node 4 (default: "reveal_cheat")
        """
        attack = config.get("attack", HandlerKind.REVEAL_CHEAT.value)
        super().__init__({**config, "node4_kind": HandlerKind(attack).value})
        self.attack = HandlerKind(attack)

    def setup(self):
        if self.config["verbose"]:
            print(f"Setting up adversarial scenario ({self.attack.value})...")
        return super().setup()

    def honest_nodes(self):
        return [self.simulator.nodes[node_id] for node_id in self.HONEST_IDS]

    def honest_chain_height(self) -> int:
        """Height of the deepest chain shared by every honest node."""
        heights = []
        for node in self.honest_nodes():
            tree = node.blocktree
            heights.append(tree.depth(tree.deepest().id))
        return min(heights)

    def analyze(self):
        """Print results with the rejections caused by the adversary."""
        stats = Statistics(self.collector)
        stats.print_summary()
        stats.print_rejection_table()

        print(f"Honest chain height: {self.honest_chain_height()}")
        rejections = self.collector.total_rejections
        if self.attack == HandlerKind.REVEAL_CHEAT:
            print(f"Invalid reveals rejected: {rejections.get('invalid_reveal', 0)}")
        elif self.attack == HandlerKind.ROGUE_PROPOSER:
            print(f"Forged blocks rejected: {rejections.get('wrong_proposer', 0)}")


def run_adversarial_scenario(config: dict[str, Any] | None = None):
    """
    Convenience function to run adversarial scenario.

    Args:
        config: Optional configuration dictionary

    Returns:
        The scenario instance
    """
    if config is None:
        config = {}

    scenario = AdversarialScenario(config)
    if scenario.setup():
        scenario.run()
        scenario.analyze()

    return scenario
