"""
Logging interface used by the simulator, setup code and handlers.

Two severities only. Every message is tagged with the level and the
simulation time at which it was emitted.
"""

import logging
from typing import Protocol


class SimulatorLogger(Protocol):
    """Anything with info() and error() accepting a string."""

    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class StdlibLogger:
    """Forwards to the standard logging module."""

    def __init__(self, name: str = "consensus_sim"):
        self._logger = logging.getLogger(name)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


class TagLogger:
    """
    Intermediate logger that prefixes level and time tags.

    The simulator keeps `time` in step with its clock.
    """

    def __init__(self, logger: SimulatorLogger):
        self.logger = logger
        self.time: float = 0.0

    def _stamp(self) -> str:
        return f"t={self.time:g}"

    def info(self, message: str) -> None:
        self.logger.info(f"[INFO] [{self._stamp()}] {message}")

    def error(self, message: str) -> None:
        self.logger.error(f"[ERROR] [{self._stamp()}] {message}")
