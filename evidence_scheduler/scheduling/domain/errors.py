from __future__ import annotations


class EvidenceSchedulingError(ValueError):
    """Base class for errors raised by the scheduling engine."""


class HistoryDataError(EvidenceSchedulingError):
    """A task record could not be read or classified."""


class InsufficientHistoryError(EvidenceSchedulingError):
    """No historical evidence to sample from where a draw is required."""


class SimulationConfigError(EvidenceSchedulingError):
    """Trial, rank or calendar parameters that cannot produce a forecast."""


class UnknownProjectError(EvidenceSchedulingError, KeyError):
    def __init__(self, project: object) -> None:
        super().__init__(f"Unknown project: {project!r}")
        self.project = project

    def __str__(self) -> str:
        return str(self.args[0])
