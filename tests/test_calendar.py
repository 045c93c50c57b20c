from __future__ import annotations

from datetime import date, timedelta

import pytest

from evidence_scheduler.scheduling.calendar.business_days import CalendarProjector
from evidence_scheduler.scheduling.domain.errors import SimulationConfigError


FRIDAY = date(2015, 9, 4)


def test_one_day_of_work_from_friday_lands_on_monday() -> None:
    assert CalendarProjector().project_date(8.0, FRIDAY) == date(2015, 9, 7)


def test_a_full_week_from_friday_lands_on_friday() -> None:
    assert CalendarProjector().project_date(40.0, FRIDAY) == date(2015, 9, 11)


def test_partial_days_round_up() -> None:
    cal = CalendarProjector()
    assert cal.project_date(0.5, FRIDAY) == date(2015, 9, 7)
    assert cal.project_date(8.5, FRIDAY) == date(2015, 9, 8)
    assert cal.business_days(8.5) == 2
    assert cal.business_days(8.0) == 1
    assert cal.business_days(0.0) == 0


def test_no_remaining_work_rolls_weekends_forward() -> None:
    cal = CalendarProjector()
    assert cal.project_date(0.0, date(2015, 9, 2)) == date(2015, 9, 2)
    assert cal.project_date(0.0, date(2015, 9, 5)) == date(2015, 9, 7)


def test_never_returns_a_weekend() -> None:
    cal = CalendarProjector()
    for offset in range(7):
        start = FRIDAY + timedelta(days=offset)
        for half_hours in range(0, 200):
            d = cal.project_date(half_hours / 2.0, start)
            assert d.weekday() < 5
            assert d >= start


def test_custom_hours_and_working_days() -> None:
    cal = CalendarProjector(hours_per_day=6.0, working_days=frozenset({0, 2, 4}))
    # Friday -> Monday (6h) -> Wednesday (12h).
    assert cal.project_date(12.0, FRIDAY) == date(2015, 9, 9)
    assert cal.business_days(13.0) == 3


@pytest.mark.parametrize("hours", [-1.0, float("nan"), float("inf")])
def test_invalid_hours_are_rejected(hours: float) -> None:
    with pytest.raises(SimulationConfigError):
        CalendarProjector().project_date(hours, FRIDAY)


def test_invalid_calendars_are_rejected() -> None:
    with pytest.raises(SimulationConfigError):
        CalendarProjector(hours_per_day=0.0)
    with pytest.raises(SimulationConfigError):
        CalendarProjector(working_days=frozenset())
    with pytest.raises(SimulationConfigError):
        CalendarProjector(working_days=frozenset({7}))


@pytest.mark.parametrize("weekend", [5, 6])
def test_weekends_cannot_be_working_days(weekend: int) -> None:
    with pytest.raises(SimulationConfigError, match="Mon..Fri"):
        CalendarProjector(working_days=frozenset({0, weekend}))
