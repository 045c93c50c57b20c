from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

import numpy as np

from evidence_scheduler.scheduling.domain.errors import (
    InsufficientHistoryError,
    SimulationConfigError,
)
from evidence_scheduler.scheduling.domain.models import Distributions, ProjectId, RandomSource


logger = logging.getLogger(__name__)

DEFAULT_TRIAL_COUNT = 1_000

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class MonteCarloSimulator:
    """Project remaining effort by resampling historical velocity and buffer.

    Every trial threads one running total through the projects in id order:
    the recorded outcome of a project is the effort of that project plus all
    projects before it, modelling a single team delivering them in sequence.
    Set independent_projects to forecast each project from zero instead.

    Trials are evaluated in batches of batch_size; every backlog estimate and
    every buffer application still gets its own uniform draw with replacement.
    """

    trial_count: int = DEFAULT_TRIAL_COUNT
    batch_size: int = 10_000
    independent_projects: bool = False

    def simulate(
        self,
        distributions: Distributions,
        backlogs: Mapping[ProjectId, Sequence[float]],
        rng: RandomSource,
        trial_count: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> dict[ProjectId, np.ndarray]:
        n_trials = self.trial_count if trial_count is None else trial_count
        if int(n_trials) != n_trials or n_trials < 1:
            raise SimulationConfigError(f"trial_count must be a positive integer, got {n_trials!r}")
        if self.batch_size < 1:
            raise SimulationConfigError(f"batch_size must be positive, got {self.batch_size}")
        n_trials = int(n_trials)

        order = sorted(backlogs)
        estimates = {pid: np.asarray(backlogs[pid], dtype=float) for pid in order}
        if any(e.size for e in estimates.values()):
            if distributions.velocity.size == 0:
                raise InsufficientHistoryError("No completed tasks with both estimate and actual: cannot sample velocity")
            if distributions.buffer.size == 0:
                raise InsufficientHistoryError("No project has completed estimated work: cannot sample buffer")

        # Pre-sized; filled in trial order.
        outcomes = {pid: np.empty(n_trials, dtype=float) for pid in order}

        done = 0
        while done < n_trials:
            size = min(self.batch_size, n_trials - done)
            remaining = np.zeros(size, dtype=float)
            for pid in order:
                overhead = self._project_overhead(estimates[pid], distributions, rng, size)
                remaining = overhead if self.independent_projects else remaining + overhead
                outcomes[pid][done : done + size] = remaining
            done += size
            if on_progress is not None:
                on_progress("trials", done, n_trials)

        logger.info("Ran %d trials over %d projects", n_trials, len(order))
        return outcomes

    @staticmethod
    def _project_overhead(
        estimates: np.ndarray,
        distributions: Distributions,
        rng: RandomSource,
        size: int,
    ) -> np.ndarray:
        if estimates.size == 0:
            return np.zeros(size, dtype=float)

        velocity = distributions.velocity
        buffer = distributions.buffer

        # One velocity draw per (trial, backlog task), one buffer draw per trial.
        v_idx = np.asarray(rng.integers(0, velocity.size, size=(size, estimates.size)))
        task_hours = np.sum(estimates[None, :] / velocity[v_idx], axis=1)
        b_idx = np.asarray(rng.integers(0, buffer.size, size=size))
        return task_hours * buffer[b_idx]
