from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta

from evidence_scheduler.scheduling.domain.errors import SimulationConfigError


DEFAULT_HOURS_PER_DAY = 8.0
DEFAULT_WORKING_DAYS = frozenset({0, 1, 2, 3, 4})  # 0=Mon ... 6=Sun


@dataclass(frozen=True)
class CalendarProjector:
    """Convert required working hours into a completion date.

    Starting from start_date, step forward a day at a time, crediting
    hours_per_day on working days, until the required hours are covered.
    The start date itself is treated as already elapsed.
    """

    hours_per_day: float = DEFAULT_HOURS_PER_DAY
    working_days: frozenset[int] = DEFAULT_WORKING_DAYS

    def __post_init__(self) -> None:
        if not math.isfinite(self.hours_per_day) or self.hours_per_day <= 0.0:
            raise SimulationConfigError(f"hours_per_day must be positive, got {self.hours_per_day}")
        if not self.working_days:
            raise SimulationConfigError("At least one working day is required")
        if any(d not in range(5) for d in self.working_days):
            raise SimulationConfigError(f"working_days must be within Mon..Fri (0..4), got {sorted(self.working_days)}")

    def is_working_day(self, day: date) -> bool:
        return day.weekday() in self.working_days

    def business_days(self, required_hours: float) -> int:
        self._check_hours(required_hours)
        return math.ceil(required_hours / self.hours_per_day)

    def project_date(self, required_hours: float, start_date: date) -> date:
        days_needed = self.business_days(required_hours)
        day = start_date
        if days_needed == 0:
            # Nothing left to do: first working day on or after the start.
            while not self.is_working_day(day):
                day += timedelta(days=1)
            return day

        counted = 0
        while counted < days_needed:
            day += timedelta(days=1)
            if self.is_working_day(day):
                counted += 1
        return day

    @staticmethod
    def _check_hours(required_hours: float) -> None:
        if not math.isfinite(required_hours) or required_hours < 0.0:
            raise SimulationConfigError(f"required_hours must be finite and non-negative, got {required_hours}")
