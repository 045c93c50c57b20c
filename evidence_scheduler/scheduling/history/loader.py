from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from evidence_scheduler.scheduling.domain.errors import HistoryDataError
from evidence_scheduler.scheduling.domain.models import HistoricalData, TaskRecord


logger = logging.getLogger(__name__)


def _checked(value: float | None, field_name: str, index: int) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise HistoryDataError(f"Record {index}: {field_name} is not a number: {value!r}") from exc
    if not math.isfinite(number) or number < 0.0:
        raise HistoryDataError(f"Record {index}: {field_name} must be a finite, non-negative number, got {value!r}")
    return number


@dataclass
class HistoricalLoader:
    """Classify task records into velocity evidence, buffer sums and backlogs.

    Records without a project are discarded, as are records with neither an
    estimate nor an actual. A malformed numeric value aborts the whole load:
    skipping the row would silently bias the distributions built from it.
    """

    def load(self, records: Iterable[TaskRecord]) -> HistoricalData:
        history = HistoricalData()

        for index, record in enumerate(records):
            if not record.project:
                history.discarded_without_project += 1
                continue

            estimate = _checked(record.estimate, "estimate", index)
            actual = _checked(record.actual, "actual", index)

            acc = history.project(history.project_id(record.project))

            if estimate is not None and actual is not None:
                history.observed_pairs.append((estimate, actual))
                acc.all_actuals += actual
                acc.estimated_actuals += actual
                acc.observed_tasks += 1
            elif estimate is not None:
                acc.backlog.append(estimate)
            elif actual is not None:
                acc.all_actuals += actual
            else:
                history.discarded_empty += 1

        if history.discarded_without_project:
            logger.info("Discarded %d records without a project", history.discarded_without_project)
        if history.discarded_empty:
            logger.info("Discarded %d records with neither estimate nor actual", history.discarded_empty)
        logger.info(
            "Loaded %d projects: %d completed tasks, %d backlog tasks",
            len(history),
            len(history.observed_pairs),
            sum(len(p.backlog) for p in history),
        )
        return history
