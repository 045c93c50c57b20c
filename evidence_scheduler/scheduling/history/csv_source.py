from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator

from evidence_scheduler.scheduling.domain.errors import HistoryDataError
from evidence_scheduler.scheduling.domain.models import TaskRecord


REQUIRED_COLUMNS = ("project", "estimate", "actual")


def _text(row: dict[str, str | None], column: str) -> str | None:
    value = row.get(column)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _number(row: dict[str, str | None], column: str, line: int) -> float | None:
    value = _text(row, column)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise HistoryDataError(f"Line {line}: column {column!r} is not a number: {value!r}") from exc


def iter_task_records(path: Path) -> Iterator[TaskRecord]:
    """Yield task records from a CSV file with a header row.

    Expected columns: project, task, assignee, estimate, actual. Blank cells
    are treated as missing values. A leading UTF-8 byte-order mark, as written
    by spreadsheet exports, is ignored.
    """
    with path.open(newline="", encoding="utf-8-sig") as fh:
        try:
            reader = csv.DictReader(fh)
            header = [h.strip() for h in (reader.fieldnames or [])]
            missing = [c for c in REQUIRED_COLUMNS if c not in header]
            if missing:
                raise HistoryDataError(f"{path}: missing required columns: {', '.join(missing)}")
            reader.fieldnames = header

            for row in reader:
                line = reader.line_num
                yield TaskRecord(
                    project=_text(row, "project"),
                    task=_text(row, "task"),
                    assignee=_text(row, "assignee"),
                    estimate=_number(row, "estimate", line),
                    actual=_number(row, "actual", line),
                )
        except UnicodeDecodeError as exc:
            raise HistoryDataError(f"{path}: not a UTF-8 text file ({exc.reason} at byte {exc.start})") from exc
        except csv.Error as exc:
            raise HistoryDataError(f"{path}: malformed CSV: {exc}") from exc


def read_task_records(path: str | Path) -> list[TaskRecord]:
    p = Path(path).expanduser()
    if not p.is_file():
        raise FileNotFoundError(f"Task history not found: {p}")
    return list(iter_task_records(p))
