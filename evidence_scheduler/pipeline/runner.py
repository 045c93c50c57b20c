from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from evidence_scheduler.pipeline.config import SchedulingConfig
from evidence_scheduler.pipeline.progress_ui import Ui
from evidence_scheduler.scheduling.calendar.business_days import CalendarProjector
from evidence_scheduler.scheduling.domain.models import DateForecast
from evidence_scheduler.scheduling.history.csv_source import read_task_records
from evidence_scheduler.scheduling.priors.empirical import DistributionBuilder
from evidence_scheduler.scheduling.services.forecasting_service import EvidenceSchedulingService
from evidence_scheduler.scheduling.simulator.monte_carlo import MonteCarloSimulator
from evidence_scheduler.scheduling.simulator.percentiles import PercentileSampler

logger = logging.getLogger(__name__)


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, default=str))
    os.replace(tmp, path)


def _forecast_payload(f: DateForecast) -> dict[str, Any]:
    return {
        "confidence": f.confidence,
        "rank": f.rank,
        "required_hours": round(f.required_hours, 3),
        "completion_date": f.completion_date.isoformat(),
        "business_days": f.business_days,
    }


@dataclass
class ForecastRunner:
    config: SchedulingConfig
    ui: Ui | None = None
    base_dir: Path | None = None

    @classmethod
    def from_config_path(cls, config_path: Path, ui: Ui | None = None) -> "ForecastRunner":
        cfg = SchedulingConfig.load(config_path)
        return cls(config=cfg, ui=ui, base_dir=config_path.expanduser().resolve().parent)

    def build_service(self) -> EvidenceSchedulingService:
        cfg = self.config
        tasks_path = cfg.input.resolve(self.base_dir)
        logger.info("Reading task history from %s", tasks_path)
        records = read_task_records(tasks_path)

        return EvidenceSchedulingService.from_records(
            records,
            builder=DistributionBuilder(),
            simulator=MonteCarloSimulator(
                trial_count=cfg.simulation.trial_count,
                batch_size=cfg.simulation.batch_size,
                independent_projects=cfg.simulation.independent_projects,
            ),
            sampler=PercentileSampler(rank_count=cfg.simulation.rank_count),
            calendar=CalendarProjector(
                hours_per_day=cfg.calendar.hours_per_day,
                working_days=frozenset(cfg.calendar.working_days),
            ),
            rng_seed=cfg.simulation.rng_seed,
        )

    def run(self, start_date: date | None = None, write_report: bool = True) -> dict[str, Any]:
        cfg = self.config
        service = self.build_service()
        start = start_date or cfg.calendar.start_date

        on_progress = self.ui.on_progress if self.ui is not None else None
        service.simulate(on_progress=on_progress)
        forecasts = service.forecast_all(cfg.report.confidence_levels, start)

        dists = service.distributions
        report: dict[str, Any] = {
            "start_date": start.isoformat(),
            "trial_count": cfg.simulation.trial_count,
            "rank_count": cfg.simulation.rank_count,
            "seed": service.seed_context.seed if service.seed_context is not None else None,
            "elapsed_seconds": service.elapsed_seconds,
            "velocity_samples": int(dists.velocity.size),
            "buffer_samples": int(dists.buffer.size),
            "excluded_buffer_projects": list(dists.excluded_buffer_projects),
            "excluded_velocity_samples": dists.excluded_velocity_samples,
            "projects": {
                name: [_forecast_payload(f) for f in items] for name, items in forecasts.items()
            },
        }

        if write_report:
            out = cfg.report.output_path()
            _atomic_write_json(out, report)
            logger.info("Wrote forecast report to %s", out)
            report["report_path"] = str(out)
        return report
