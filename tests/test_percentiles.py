from __future__ import annotations

import numpy as np
import pytest

from evidence_scheduler.scheduling.domain.errors import SimulationConfigError
from evidence_scheduler.scheduling.simulator.percentiles import PercentileSampler


@pytest.mark.parametrize(("trials", "ranks"), [(100, 100), (1000, 100), (105, 10), (25, 10), (7, 1)])
def test_extract_returns_exactly_rank_count_values(trials: int, ranks: int) -> None:
    outcomes = np.random.default_rng(trials).uniform(0.0, 100.0, size=trials)
    out = PercentileSampler().extract(outcomes, ranks)

    assert len(out) == ranks
    assert np.all(np.diff(out) >= 0.0)


def test_ranks_map_to_order_statistics() -> None:
    outcomes = np.random.default_rng(0).permutation(np.arange(1.0, 101.0))

    by_hundred = PercentileSampler(rank_count=100).extract(outcomes)
    assert by_hundred[49] == 50.0
    assert by_hundred[94] == 95.0

    by_ten = PercentileSampler().extract(outcomes, rank_count=10)
    assert by_ten.tolist() == [10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0, 90.0, 100.0]


def test_extract_does_not_mutate_outcomes() -> None:
    outcomes = np.array([3.0, 1.0, 2.0, 4.0])
    PercentileSampler(rank_count=2).extract(outcomes)
    assert outcomes.tolist() == [3.0, 1.0, 2.0, 4.0]


def test_sorting_is_idempotent() -> None:
    outcomes = np.sort(np.random.default_rng(1).normal(size=500), kind="stable")
    np.testing.assert_array_equal(np.sort(outcomes, kind="stable"), outcomes)


def test_fewer_trials_than_ranks_is_rejected() -> None:
    with pytest.raises(SimulationConfigError, match="at least as many trials"):
        PercentileSampler(rank_count=100).extract(np.ones(99))


def test_non_positive_rank_count_is_rejected() -> None:
    with pytest.raises(SimulationConfigError):
        PercentileSampler(rank_count=0).extract(np.ones(10))


def test_non_finite_outcomes_are_rejected() -> None:
    with pytest.raises(SimulationConfigError, match="non-finite"):
        PercentileSampler(rank_count=2).extract([1.0, np.nan, 3.0])
