from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


@dataclass
class Ui:
    console: Console
    progress: Progress
    _tasks: dict[str, TaskID] = field(default_factory=dict)

    def log(self, message: str) -> None:
        self.console.print(message)

    def on_progress(self, phase: str, completed: int, total: int) -> None:
        """Progress callback compatible with MonteCarloSimulator.simulate."""
        task_id = self._tasks.get(phase)
        if task_id is None:
            task_id = self.progress.add_task(f"Simulating {phase}", total=total)
            self._tasks[phase] = task_id
        self.progress.update(task_id, completed=completed, total=total)


@contextmanager
def progress_ui(console: Console | None = None) -> Iterator[Ui]:
    console = console or Console(stderr=True)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    )
    with progress:
        yield Ui(console=console, progress=progress)
