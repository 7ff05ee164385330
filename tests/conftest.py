import pytest

from consensus_sim import MetricsCollector, NetworkSimulator
from tests._support.network_helpers import RecordingLogger


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def collector():
    return MetricsCollector()


@pytest.fixture
def simulator(logger, collector):
    return NetworkSimulator(message_delay=1, seed=1234, logger=logger, collector=collector)
