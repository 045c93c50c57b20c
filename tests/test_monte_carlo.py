from __future__ import annotations

import numpy as np
import pytest

from evidence_scheduler.scheduling.domain.errors import (
    InsufficientHistoryError,
    SimulationConfigError,
)
from evidence_scheduler.scheduling.domain.models import Distributions, ProjectId
from evidence_scheduler.scheduling.simulator.monte_carlo import MonteCarloSimulator
from evidence_scheduler.scheduling.simulator.percentiles import PercentileSampler


class _FirstIndexRng:
    """Always picks the first element of a distribution."""

    def __init__(self) -> None:
        self.calls: list[object] = []

    def integers(self, low: int, high: int | None = None, size: object = None) -> np.ndarray:
        self.calls.append(size)
        return np.zeros(size, dtype=np.int64)


def _dists(velocity: list[float], buffer: list[float]) -> Distributions:
    return Distributions(velocity=np.array(velocity, dtype=float), buffer=np.array(buffer, dtype=float))


A, B, C = ProjectId(0), ProjectId(1), ProjectId(2)


def test_constant_distributions_give_constant_outcomes() -> None:
    sim = MonteCarloSimulator(trial_count=100)
    runs = sim.simulate(_dists([1.0], [1.0]), {A: [8.0]}, np.random.default_rng(0))

    assert runs[A].shape == (100,)
    assert np.all(runs[A] == 8.0)
    assert PercentileSampler(rank_count=100).extract(runs[A])[49] == 8.0


def test_project_without_backlog_inherits_the_running_total() -> None:
    sim = MonteCarloSimulator(trial_count=500)
    runs = sim.simulate(
        _dists([0.5, 1.0, 2.0], [1.0, 1.3]),
        {A: [8.0, 4.0], B: [], C: [2.0]},
        np.random.default_rng(11),
    )

    np.testing.assert_array_equal(runs[B], runs[A])
    assert np.all(runs[C] > runs[B])


def test_independent_projects_start_from_zero() -> None:
    sim = MonteCarloSimulator(trial_count=200, independent_projects=True)
    runs = sim.simulate(_dists([1.0], [1.0]), {A: [8.0], B: [], C: [2.0]}, np.random.default_rng(3))

    assert np.all(runs[A] == 8.0)
    assert np.all(runs[B] == 0.0)
    assert np.all(runs[C] == 2.0)


def test_estimates_are_divided_by_velocity_and_scaled_by_buffer() -> None:
    rng = _FirstIndexRng()
    sim = MonteCarloSimulator(trial_count=3)
    runs = sim.simulate(_dists([0.5, 2.0], [1.5, 3.0]), {A: [4.0, 6.0], B: [1.0]}, rng)

    # (4 / 0.5 + 6 / 0.5) * 1.5 = 30, then B adds (1 / 0.5) * 1.5 = 3.
    assert runs[A].tolist() == [30.0, 30.0, 30.0]
    assert runs[B].tolist() == [33.0, 33.0, 33.0]
    # One draw per backlog estimate per trial, one buffer draw per trial.
    assert rng.calls == [(3, 2), 3, (3, 1), 3]


def test_seeded_runs_are_reproducible() -> None:
    dists = _dists([0.4, 0.8, 1.0, 1.6], [1.0, 1.2, 1.5])
    backlogs = {A: [3.0, 5.0, 8.0], B: [13.0]}
    sim = MonteCarloSimulator(trial_count=250, batch_size=64)

    first = sim.simulate(dists, backlogs, np.random.default_rng(42))
    second = sim.simulate(dists, backlogs, np.random.default_rng(42))

    for pid in backlogs:
        np.testing.assert_array_equal(first[pid], second[pid])


def test_outcomes_are_bounded_by_extreme_draws() -> None:
    dists = _dists([0.5, 1.0, 2.0], [1.0, 2.0])
    sim = MonteCarloSimulator(trial_count=2000)
    runs = sim.simulate(dists, {A: [10.0, 10.0]}, np.random.default_rng(5))

    assert runs[A].min() >= 20.0 / 2.0 * 1.0
    assert runs[A].max() <= 20.0 / 0.5 * 2.0
    # Independent draws per task: more than the handful of values a shared draw would give.
    assert np.unique(runs[A]).size > 6


def test_progress_is_reported_per_batch() -> None:
    seen: list[tuple[str, int, int]] = []

    def on_progress(phase: str, completed: int, total: int) -> None:
        seen.append((phase, completed, total))

    sim = MonteCarloSimulator(trial_count=100, batch_size=40)
    runs = sim.simulate(_dists([1.0], [1.0]), {A: [1.0]}, np.random.default_rng(0), on_progress=on_progress)

    assert seen == [("trials", 40, 100), ("trials", 80, 100), ("trials", 100, 100)]
    assert runs[A].shape == (100,)


def test_trial_count_override() -> None:
    sim = MonteCarloSimulator(trial_count=10)
    runs = sim.simulate(_dists([1.0], [1.0]), {A: [1.0]}, np.random.default_rng(0), trial_count=37)
    assert runs[A].shape == (37,)


@pytest.mark.parametrize("trials", [0, -5, 2.5])
def test_invalid_trial_counts_are_rejected(trials: float) -> None:
    sim = MonteCarloSimulator()
    with pytest.raises(SimulationConfigError):
        sim.simulate(_dists([1.0], [1.0]), {A: [1.0]}, np.random.default_rng(0), trial_count=trials)  # type: ignore[arg-type]


def test_backlog_without_evidence_is_an_error() -> None:
    sim = MonteCarloSimulator(trial_count=10)
    with pytest.raises(InsufficientHistoryError):
        sim.simulate(_dists([], [1.0]), {A: [4.0]}, np.random.default_rng(0))
    with pytest.raises(InsufficientHistoryError):
        sim.simulate(_dists([1.0], []), {A: [4.0]}, np.random.default_rng(0))


def test_no_backlog_needs_no_evidence() -> None:
    sim = MonteCarloSimulator(trial_count=10)
    runs = sim.simulate(_dists([], []), {A: [], B: []}, np.random.default_rng(0))
    assert np.all(runs[A] == 0.0)
    assert np.all(runs[B] == 0.0)
