from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


def _expand(path: str) -> Path:
    return Path(os.path.expanduser(path)).resolve()


def _read_toml(path: Path) -> dict[str, Any]:
    """Read TOML into a dict, supporting Python 3.10+.

    Uses tomllib when available, falls back to tomli.
    """
    data = path.read_bytes()
    try:
        import tomllib  # type: ignore[attr-defined]

        return tomllib.loads(data.decode("utf-8"))
    except ModuleNotFoundError:
        import tomli  # type: ignore[import-not-found]

        return tomli.loads(data.decode("utf-8"))


class InputConfig(BaseModel):
    tasks_path: str = Field(
        default="tasks.csv",
        description="CSV with columns project, task, assignee, estimate, actual.",
    )

    def resolve(self, base_dir: Path | None = None) -> Path:
        p = Path(os.path.expanduser(self.tasks_path))
        if not p.is_absolute() and base_dir is not None:
            p = base_dir / p
        return p.resolve()


class SimulationConfig(BaseModel):
    trial_count: int = Field(default=1000, ge=1)
    rank_count: int = Field(default=100, ge=1)
    rng_seed: int | None = Field(default=None, description="Set for reproducible forecasts.")
    batch_size: int = Field(default=10_000, ge=1, description="Trials evaluated per vectorised batch.")
    independent_projects: bool = Field(
        default=False,
        description="Forecast each project from zero instead of after the projects before it.",
    )

    @model_validator(mode="after")
    def _enough_trials(self) -> "SimulationConfig":
        if self.trial_count < self.rank_count:
            raise ValueError(
                f"trial_count ({self.trial_count}) must be at least rank_count ({self.rank_count})"
            )
        return self


class CalendarConfig(BaseModel):
    start_date: date = Field(default=date(2015, 9, 4))
    hours_per_day: float = Field(default=8.0, gt=0.0)
    working_days: tuple[int, ...] = Field(
        default=(0, 1, 2, 3, 4),
        description="Subset of Monday..Friday (0=Mon ... 4=Fri); weekends never count.",
    )

    @field_validator("working_days")
    @classmethod
    def _weekday_numbers(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        if not v:
            raise ValueError("at least one working day is required")
        bad = [d for d in v if not 0 <= d <= 4]
        if bad:
            raise ValueError(f"working days must be weekdays 0..4 (Mon..Fri), got {bad}")
        return v


class ReportConfig(BaseModel):
    confidence_levels: tuple[int, ...] = Field(default=(50, 95))
    output_dir: str = Field(default="~/evidence_scheduler_outputs")
    report_name: str = Field(default="forecasts.json")
    log_level: str = Field(default="INFO")

    def output_path(self) -> Path:
        return _expand(self.output_dir) / self.report_name


class SchedulingConfig(BaseModel):
    input: InputConfig = Field(default_factory=InputConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @model_validator(mode="after")
    def _levels_within_ranks(self) -> "SchedulingConfig":
        ranks = self.simulation.rank_count
        bad = [c for c in self.report.confidence_levels if not 1 <= c <= ranks]
        if bad:
            raise ValueError(f"confidence levels must be within 1..{ranks}, got {bad}")
        return self

    @classmethod
    def load(cls, path: Path) -> "SchedulingConfig":
        raw = _read_toml(path)
        return cls.model_validate(raw)
