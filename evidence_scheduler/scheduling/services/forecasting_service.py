from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

import numpy as np

from evidence_scheduler.common.seeding import SeedContext, make_rng
from evidence_scheduler.scheduling.calendar.business_days import CalendarProjector
from evidence_scheduler.scheduling.domain.errors import SimulationConfigError, UnknownProjectError
from evidence_scheduler.scheduling.domain.models import (
    DateForecast,
    Distributions,
    HistoricalData,
    ProjectId,
    RandomSource,
    TaskRecord,
)
from evidence_scheduler.scheduling.history.loader import HistoricalLoader
from evidence_scheduler.scheduling.priors.empirical import DistributionBuilder
from evidence_scheduler.scheduling.simulator.monte_carlo import MonteCarloSimulator, ProgressCallback
from evidence_scheduler.scheduling.simulator.percentiles import PercentileSampler


logger = logging.getLogger(__name__)


@dataclass
class EvidenceSchedulingService:
    """Loader -> distributions -> simulation -> percentiles -> calendar dates."""

    history: HistoricalData
    distributions: Distributions
    simulator: MonteCarloSimulator = field(default_factory=MonteCarloSimulator)
    sampler: PercentileSampler = field(default_factory=PercentileSampler)
    calendar: CalendarProjector = field(default_factory=CalendarProjector)
    rng_seed: int | None = None
    rng: RandomSource | None = None

    seed_context: SeedContext | None = field(default=None, init=False)
    elapsed_seconds: float | None = field(default=None, init=False)
    _runs: dict[ProjectId, np.ndarray] = field(default_factory=dict, init=False, repr=False)
    _percentiles: dict[ProjectId, np.ndarray] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_records(
        cls,
        records: Iterable[TaskRecord],
        loader: HistoricalLoader | None = None,
        builder: DistributionBuilder | None = None,
        **kwargs: object,
    ) -> "EvidenceSchedulingService":
        history = (loader or HistoricalLoader()).load(records)
        distributions = (builder or DistributionBuilder()).build(history)
        return cls(history=history, distributions=distributions, **kwargs)  # type: ignore[arg-type]

    # --- Projects -----------------------------------------------------------

    @property
    def project_names(self) -> list[str]:
        return [p.name for p in self.history]

    def resolve(self, project: str | int) -> ProjectId:
        if isinstance(project, str):
            pid = self.history.lookup(project)
            if pid is None:
                raise UnknownProjectError(project)
            return pid
        try:
            index = int(project)
        except (TypeError, ValueError) as exc:
            raise UnknownProjectError(project) from exc
        if index != project or not 0 <= index < len(self.history):
            raise UnknownProjectError(project)
        return ProjectId(index)

    # --- Simulation ---------------------------------------------------------

    def simulate(
        self,
        trial_count: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> dict[ProjectId, np.ndarray]:
        rng = self.rng
        if rng is None:
            rng, self.seed_context = make_rng(self.rng_seed)
            logger.info("Simulating with seed %d", self.seed_context.seed)

        started = time.perf_counter()
        self._runs = self.simulator.simulate(
            self.distributions,
            self.history.backlogs(),
            rng,
            trial_count=trial_count,
            on_progress=on_progress,
        )
        self.elapsed_seconds = time.perf_counter() - started
        self._percentiles.clear()
        logger.info(
            "Simulations ran for %d projects in %.3fs",
            len(self._runs),
            self.elapsed_seconds,
        )
        return self._runs

    def outcomes(self, project: str | int) -> np.ndarray:
        pid = self.resolve(project)
        if not self._runs:
            self.simulate()
        return self._runs[pid]

    def percentiles(self, project: str | int) -> np.ndarray:
        pid = self.resolve(project)
        cached = self._percentiles.get(pid)
        if cached is None:
            cached = self.sampler.extract(self.outcomes(pid))
            self._percentiles[pid] = cached
        return cached

    # --- Forecasts ----------------------------------------------------------

    def forecast(self, project: str | int, rank: int, start_date: date) -> DateForecast:
        """Completion date that rank out of rank_count trials finish by."""
        rank_count = self.sampler.rank_count
        if not 1 <= rank <= rank_count:
            raise SimulationConfigError(f"rank must be within 1..{rank_count}, got {rank}")

        pid = self.resolve(project)
        hours = float(self.percentiles(pid)[rank - 1])
        return DateForecast(
            project=self.history.project(pid).name,
            rank=rank,
            rank_count=rank_count,
            required_hours=hours,
            completion_date=self.calendar.project_date(hours, start_date),
            business_days=self.calendar.business_days(hours),
        )

    def forecast_all(self, ranks: Sequence[int], start_date: date) -> dict[str, list[DateForecast]]:
        return {
            acc.name: [self.forecast(acc.project_id, r, start_date) for r in ranks]
            for acc in self.history
        }
