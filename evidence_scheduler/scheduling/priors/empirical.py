from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from evidence_scheduler.scheduling.domain.models import Distributions, HistoricalData


logger = logging.getLogger(__name__)


def _usable(values: np.ndarray) -> np.ndarray:
    """Mask of ratios that can be sampled and divided by."""
    return np.isfinite(values) & (values > 0.0)


@dataclass(frozen=True)
class DistributionBuilder:
    """Build pooled empirical velocity and buffer distributions.

    Both distributions are pooled across projects: estimation accuracy and
    overhead are treated as properties of the organisation, sampled the same
    way whichever project is being forecast.
    """

    def velocity(self, history: HistoricalData) -> tuple[np.ndarray, int]:
        if not history.observed_pairs:
            return np.empty(0, dtype=float), 0
        pairs = np.asarray(history.observed_pairs, dtype=float)
        estimates, actuals = pairs[:, 0], pairs[:, 1]
        with np.errstate(divide="ignore", invalid="ignore"):
            ratios = estimates / actuals

        keep = _usable(ratios)
        excluded = int(np.count_nonzero(~keep))
        if excluded:
            logger.warning(
                "Excluded %d completed tasks from velocity: zero estimate or zero actual",
                excluded,
            )
        return np.sort(ratios[keep], kind="stable"), excluded

    def buffer(self, history: HistoricalData) -> tuple[np.ndarray, tuple[str, ...]]:
        ratios: list[float] = []
        excluded: list[str] = []
        for acc in history:
            if not acc.has_evidence:
                excluded.append(acc.name)
                continue
            ratios.append(acc.buffer_ratio())

        if excluded:
            logger.warning(
                "Excluded %d projects from buffer (no completed estimated work): %s",
                len(excluded),
                ", ".join(excluded),
            )
        values = np.asarray(ratios, dtype=float)
        return np.sort(values[_usable(values)], kind="stable"), tuple(excluded)

    def build(self, history: HistoricalData) -> Distributions:
        velocity, excluded_samples = self.velocity(history)
        buffer, excluded_projects = self.buffer(history)
        logger.info(
            "Built distributions: %d velocity samples, %d buffer samples",
            velocity.size,
            buffer.size,
        )
        return Distributions(
            velocity=velocity,
            buffer=buffer,
            excluded_buffer_projects=excluded_projects,
            excluded_velocity_samples=excluded_samples,
        )
