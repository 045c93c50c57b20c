from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from evidence_scheduler.scheduling.domain.errors import SimulationConfigError


DEFAULT_RANK_COUNT = 100


@dataclass(frozen=True)
class PercentileSampler:
    """Reduce simulated outcomes to evenly spaced order statistics.

    With step = trials // ranks, rank r (1-based) is the sorted outcome at
    position r * step - 1, so with 100 ranks rank 95 approximates the 95th
    percentile.
    """

    rank_count: int = DEFAULT_RANK_COUNT

    def extract(self, outcomes: Sequence[float] | np.ndarray, rank_count: int | None = None) -> np.ndarray:
        ranks = self.rank_count if rank_count is None else rank_count
        values = np.asarray(outcomes, dtype=float)
        if values.ndim != 1:
            raise SimulationConfigError("outcomes must be a 1D sequence")
        if ranks < 1:
            raise SimulationConfigError(f"rank_count must be positive, got {ranks}")
        if values.size < ranks:
            raise SimulationConfigError(
                f"Need at least as many trials as ranks: {values.size} trials < {ranks} ranks"
            )
        if not np.all(np.isfinite(values)):
            raise SimulationConfigError("Simulated outcomes contain non-finite values")

        step = values.size // ranks
        positions = (step - 1) + step * np.arange(ranks)
        return np.sort(values, kind="stable")[positions]
