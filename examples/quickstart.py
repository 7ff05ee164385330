"""
Quickstart example for the consensus simulator.

Demonstrates the ergonomic API for running simulations.
"""

import logging
import sys
sys.path.insert(0, '..')

from scenarios import run_basic_scenario, run_adversarial_scenario, run_stress_test


def example_1_basic_simulation():
    """
    Example 1: Basic simulation with default parameters.

    Four nodes, three epochs, two transfers.
    """
    print("="*80)
    print("EXAMPLE 1: Basic Replication")
    print("="*80)

    run_basic_scenario()

    print("\nExample 1 complete!")


def example_2_reveal_cheat():
    """
    Example 2: A node reveals a value it did not commit to.

    Honest nodes reject the reveal; validator selection stalls.
    """
    print("\n" + "="*80)
    print("EXAMPLE 2: Reveal Cheating")
    print("="*80)

    run_adversarial_scenario({"attack": "reveal_cheat", "verbose": False})

    print("\nExample 2 complete!")


def example_3_rogue_proposer():
    """
    Example 3: A node proposes blocks without being elected.
    """
    print("\n" + "="*80)
    print("EXAMPLE 3: Rogue Proposer")
    print("="*80)

    run_adversarial_scenario({"attack": "rogue_proposer", "verbose": False, "num_epochs": 5})

    print("\nExample 3 complete!")


def example_4_stress_test():
    """
    Example 4: Stress test with a larger network.
    """
    print("\n" + "="*80)
    print("EXAMPLE 4: Stress Test")
    print("="*80)

    run_stress_test({
        "num_nodes": 50,
        "num_epochs": 20,
        "transactions_per_epoch": 10,
    })

    print("\nExample 4 complete!")


def example_5_step_by_step():
    """
    Example 5: Drive the simulator by hand, one event at a time.
    """
    print("\n" + "="*80)
    print("EXAMPLE 5: Stepping")
    print("="*80)

    from consensus_sim import (
        NetworkSimulator, HonestHandler, Statistics,
        EVENT_INIT, EVENT_SUBMIT_TRANSACTION, Transaction,
    )

    def setup(simulator, logger):
        handler = HonestHandler()
        simulator.create_node(1, "alice", (0.25, 0.5), "teal", [2], handler)
        simulator.create_node(2, "bob", (0.75, 0.5), "teal", [1], handler)
        for node_id in (1, 2):
            simulator.schedule(0, node_id, EVENT_INIT)
        simulator.schedule(1, 1, EVENT_SUBMIT_TRANSACTION,
                           message=Transaction(id=10, source=1, destination=2, amount=5))
        logger.info("two-node network ready")

    simulator = NetworkSimulator()
    simulator.init(setup)
    for _ in range(4):
        head = simulator.event_queue.peek()
        print(f"Stepping: {head.describe() if head else 'nothing'}")
        simulator.step_event()
    print(Statistics.format_node_table(simulator))

    print("\nExample 5 complete!")


def main():
    """Run all examples."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    print("""
╔══════════════════════════════════════════════════════════════════════════════╗
║                         CONSENSUS SIMULATOR - QUICKSTART                     ║
╚══════════════════════════════════════════════════════════════════════════════╝

Choose an example to run:

1. Basic Replication (reference four-node network)
2. Reveal Cheating (adversarial)
3. Rogue Proposer (adversarial)
4. Stress Test (larger network)
5. Step-by-step execution
6. Run ALL examples

""")

    choice = input("Enter your choice (1-6): ").strip()

    examples = {
        "1": example_1_basic_simulation,
        "2": example_2_reveal_cheat,
        "3": example_3_rogue_proposer,
        "4": example_4_stress_test,
        "5": example_5_step_by_step,
    }

    if choice in examples:
        examples[choice]()
    elif choice == "6":
        for example_func in examples.values():
            example_func()
    else:
        print("Invalid choice. Please run again and choose 1-6.")


if __name__ == "__main__":
    main()
