from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, NewType, Protocol

import numpy as np


ProjectId = NewType("ProjectId", int)


@dataclass(frozen=True)
class TaskRecord:
    """One row of task history: an estimate, an actual, or both."""

    project: str | None
    estimate: float | None = None
    actual: float | None = None
    task: str | None = None
    assignee: str | None = None

    @property
    def is_fully_observed(self) -> bool:
        return self.estimate is not None and self.actual is not None


@dataclass
class ProjectAccumulator:
    """Per-project running sums collected while loading history."""

    project_id: ProjectId
    name: str
    all_actuals: float = 0.0  # buffer numerator
    estimated_actuals: float = 0.0  # buffer denominator
    observed_tasks: int = 0
    backlog: list[float] = field(default_factory=list)

    @property
    def has_evidence(self) -> bool:
        return self.observed_tasks > 0 and self.estimated_actuals > 0.0

    def buffer_ratio(self) -> float:
        if not self.has_evidence:
            raise ZeroDivisionError(f"Project {self.name!r} has no estimated work with actuals")
        return self.all_actuals / self.estimated_actuals


@dataclass
class HistoricalData:
    """Classified task history, addressed by dense project ids."""

    projects: list[ProjectAccumulator] = field(default_factory=list)
    observed_pairs: list[tuple[float, float]] = field(default_factory=list)
    discarded_without_project: int = 0
    discarded_empty: int = 0
    _ids: dict[str, ProjectId] = field(default_factory=dict, repr=False)

    def project_id(self, name: str) -> ProjectId:
        pid = self._ids.get(name)
        if pid is None:
            pid = ProjectId(len(self.projects))
            self._ids[name] = pid
            self.projects.append(ProjectAccumulator(project_id=pid, name=name))
        return pid

    def lookup(self, name: str) -> ProjectId | None:
        return self._ids.get(name)

    def project(self, project_id: ProjectId) -> ProjectAccumulator:
        return self.projects[project_id]

    def __iter__(self) -> Iterator[ProjectAccumulator]:
        return iter(self.projects)

    def __len__(self) -> int:
        return len(self.projects)

    def backlogs(self) -> dict[ProjectId, tuple[float, ...]]:
        return {p.project_id: tuple(p.backlog) for p in self.projects}


@dataclass(frozen=True)
class Distributions:
    """Pooled empirical velocity and buffer distributions (sorted ascending)."""

    velocity: np.ndarray
    buffer: np.ndarray
    excluded_buffer_projects: tuple[str, ...] = ()
    excluded_velocity_samples: int = 0

    def __post_init__(self) -> None:
        for name, values in (("velocity", self.velocity), ("buffer", self.buffer)):
            if values.ndim != 1:
                raise ValueError(f"{name} distribution must be 1D")
            if not np.all(np.isfinite(values)):
                raise ValueError(f"{name} distribution contains non-finite values")


@dataclass(frozen=True)
class DateForecast:
    project: str
    rank: int
    rank_count: int
    required_hours: float
    completion_date: date
    business_days: int

    @property
    def confidence(self) -> float:
        return 100.0 * self.rank / self.rank_count


class RandomSource(Protocol):
    """The slice of numpy.random.Generator the simulator draws from."""

    def integers(
        self,
        low: int,
        high: int | None = None,
        size: int | tuple[int, ...] | None = None,
    ) -> np.ndarray:
        ...
