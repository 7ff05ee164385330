"""
Simulation scenarios for the consensus simulator.

Each scenario demonstrates different aspects of the protocol or
specific experimental setups.
"""

from .basic_replication import BasicReplicationScenario, run_basic_scenario
from .adversarial import AdversarialScenario, run_adversarial_scenario
from .stress_test import StressTestScenario, run_stress_test

__all__ = [
    "BasicReplicationScenario",
    "AdversarialScenario",
    "StressTestScenario",
    "run_basic_scenario",
    "run_adversarial_scenario",
    "run_stress_test",
]
