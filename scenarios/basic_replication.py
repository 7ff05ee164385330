"""
Basic replication scenario.

Demonstrates normal operation of the reference four-node network: genesis
mints 100 units to each node, a few transfers are gossiped, and each epoch
a validator is elected and proposes a block that every node accepts.
"""

from typing import Any

from consensus_sim import (
    NetworkSimulator,
    HandlerKind,
    ProtocolParams,
    Transaction,
    MetricsCollector,
    Statistics,
    create_handler,
    EVENT_INIT,
    EVENT_SUBMIT_TRANSACTION,
)


# (id, name, position, color, peers) of the reference network
REFERENCE_NODES = [
    (1, "good1", (0.3, 0.3), "teal", [2, 3]),
    (2, "good2", (0.7, 0.3), "teal", [1, 4]),
    (3, "good3", (0.3, 0.7), "teal", [1, 4]),
    (4, "bad4", (0.7, 0.7), "maroon", [2, 3]),
]

# (time, submitting node, transaction)
REFERENCE_TRANSFERS = [
    (2, 1, Transaction(id=10, source=1, destination=2, amount=10)),
    # bad4 pays good3
    (150, 4, Transaction(id=20, source=4, destination=3, amount=50)),
]


class BasicReplicationScenario:
    """
    Basic replication scenario.

    Breakpoints sit one time unit before every epoch start, so each call to
    continue_() runs exactly one epoch (the first call runs setup and the
    initial gossip).
    """

    def __init__(self, config: dict[str, Any]):
        """
        Initialize scenario with configuration.

        Args:
            config: Configuration dictionary with keys:
                - num_epochs: Epochs to run (default: 3)
                - epoch_interval: Time between epochs (default: 100)
                - message_delay: Per-hop delivery delay (default: 1)
                - seed: Randomness seed (default: 42)
                - node4_kind: Handler kind for node 4 (default: "honest")
                - transfers: List of (time, node_id, Transaction) (default: reference transfers)
                - verbose: Print node tables after each epoch (default: True)
        """
        self.config = {
            "num_epochs": 3,
            "epoch_interval": 100,
            "message_delay": 1,
            "seed": 42,
            "node4_kind": HandlerKind.HONEST.value,
            "transfers": REFERENCE_TRANSFERS,
            "verbose": True,
            **config
        }

        self.collector = MetricsCollector()
        self.simulator = NetworkSimulator(
            message_delay=self.config["message_delay"],
            seed=self.config["seed"],
            collector=self.collector,
        )
        self.params = ProtocolParams(epoch_interval=self.config["epoch_interval"])
        self.setup_ok = False

    def build_network(self, simulator: NetworkSimulator, logger: Any):
        """Setup code handed to NetworkSimulator.init."""
        honest = create_handler(HandlerKind.HONEST, self.params)
        node4 = create_handler(self.config["node4_kind"], self.params)

        for node_id, name, position, color, peers in REFERENCE_NODES:
            handler = node4 if node_id == 4 else honest
            simulator.create_node(node_id, name, position, color, peers, handler)

        for node_id in simulator.nodes:
            simulator.schedule(0, node_id, EVENT_INIT)

        for time, node_id, tx in self.config["transfers"]:
            simulator.schedule(time, node_id, EVENT_SUBMIT_TRANSACTION, message=tx)

        interval = self.config["epoch_interval"]
        for i in range(1, self.config["num_epochs"] + 2):
            simulator.add_breakpoint(interval * i - 1)

        logger.info(f"created {len(simulator.nodes)} nodes")

    def setup(self):
        """Set up the simulation."""
        if self.config["verbose"]:
            print("Setting up basic replication scenario...")
            print(f"  Epochs: {self.config['num_epochs']}")
            print(f"  Epoch interval: {self.config['epoch_interval']}")
        self.setup_ok = self.simulator.init(self.build_network)
        return self.setup_ok

    def run_to_next_breakpoint(self) -> bool:
        ok = self.simulator.continue_()
        if self.config["verbose"]:
            Statistics(self.collector).print_node_table(self.simulator)
        return ok

    def run(self):
        """Run the simulation, one continue_() per epoch."""
        for _ in range(self.config["num_epochs"] + 1):
            if not self.run_to_next_breakpoint():
                break

    def analyze(self):
        """Print results."""
        stats = Statistics(self.collector)
        stats.print_summary()
        stats.print_epoch_table()
        stats.print_rejection_table()


def run_basic_scenario(config: dict[str, Any] | None = None):
    """
    Convenience function to run basic scenario.

    Args:
        config: Optional configuration dictionary

    Returns:
        The scenario instance
    """
    if config is None:
        config = {}

    scenario = BasicReplicationScenario(config)
    if scenario.setup():
        scenario.run()
        scenario.analyze()

    return scenario
