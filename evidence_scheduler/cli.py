from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError

from evidence_scheduler.common.logging_config import configure_logging
from evidence_scheduler.common.time_utils import parse_start_date
from evidence_scheduler.pipeline.config import (
    CalendarConfig,
    InputConfig,
    ReportConfig,
    SchedulingConfig,
    SimulationConfig,
)
from evidence_scheduler.pipeline.progress_ui import progress_ui
from evidence_scheduler.pipeline.runner import ForecastRunner
from evidence_scheduler.scheduling.domain.errors import EvidenceSchedulingError, HistoryDataError


app = typer.Typer(add_completion=False, help="Evidence-based scheduling forecasts from task history.")


def _echo_report(report: dict[str, Any], as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(report, indent=2, default=str))
        return

    elapsed = report.get("elapsed_seconds") or 0.0
    typer.echo(f"Simulations ran for {len(report['projects'])} projects in {elapsed:.3f}s.")
    for name, forecasts in report["projects"].items():
        typer.echo(f"\n{name}")
        for f in forecasts:
            typer.echo(
                f"  {f['confidence']:g}% chance: {f['completion_date']} "
                f"({f['business_days']} working days, {f['required_hours']:.1f}h)"
            )
    if report.get("report_path"):
        typer.echo(f"\nWrote {report['report_path']}")


def _execute(runner: ForecastRunner, start: Optional[str], write_report: bool, as_json: bool) -> None:
    try:
        start_date = parse_start_date(start) if start else None
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid start date {start!r}: {exc}") from exc

    try:
        with progress_ui() as ui:
            runner.ui = ui
            report = runner.run(start_date=start_date, write_report=write_report)
    except (OSError, HistoryDataError) as exc:
        # Missing, unreadable or malformed input.
        raise typer.BadParameter(str(exc)) from exc
    except EvidenceSchedulingError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    _echo_report(report, as_json)


@app.command()
def forecast(
    tasks: Path = typer.Argument(..., help="CSV with columns project, task, assignee, estimate, actual"),
    trials: int = typer.Option(1000, help="Number of Monte Carlo trials"),
    ranks: int = typer.Option(100, help="Number of percentile ranks sampled from the outcomes"),
    confidence: list[int] = typer.Option([50, 95], help="Confidence ranks to report (repeatable)"),
    seed: Optional[int] = typer.Option(None, help="Random seed for reproducible forecasts"),
    start: str = typer.Option("2015-09-04", help="Start date (ISO date or 'today')"),
    hours_per_day: float = typer.Option(8.0, help="Working hours per business day"),
    independent: bool = typer.Option(False, help="Forecast each project independently"),
    output: Optional[Path] = typer.Option(None, help="Write the JSON report to this file"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    log_level: str = typer.Option("WARNING", help="Logging level"),
) -> None:
    """Forecast completion dates for every project in a task history CSV."""
    configure_logging(log_level)
    try:
        cfg = SchedulingConfig(
            input=InputConfig(tasks_path=str(tasks)),
            simulation=SimulationConfig(
                trial_count=trials,
                rank_count=ranks,
                rng_seed=seed,
                independent_projects=independent,
            ),
            calendar=CalendarConfig(hours_per_day=hours_per_day),
            report=ReportConfig(
                confidence_levels=tuple(confidence),
                output_dir=str(output.parent) if output else ".",
                report_name=output.name if output else "forecasts.json",
                log_level=log_level,
            ),
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    _execute(ForecastRunner(config=cfg), start, write_report=output is not None, as_json=as_json)


@app.command()
def run(
    config: Path = typer.Option(Path("scheduling_config.toml"), help="Path to scheduling_config.toml"),
    start: Optional[str] = typer.Option(None, help="Override the configured start date"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Run a configured forecast and write the JSON report."""
    config_path = config.expanduser()
    if not config_path.exists():
        raise typer.BadParameter(f"Missing config file: {config_path}")
    try:
        runner = ForecastRunner.from_config_path(config_path)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    cfg = runner.config
    configure_logging(cfg.report.log_level, log_dir=cfg.report.output_path().parent)
    logging.getLogger(__name__).info("Loaded config from %s", config_path)
    _execute(runner, start, write_report=True, as_json=as_json)


@app.command()
def init_config(
    path: str = typer.Argument(
        "scheduling_config.toml",
        help="Where to write the scheduling configuration TOML",
    ),
) -> None:
    """Write an example scheduling_config.toml."""
    project_root = Path(__file__).resolve().parents[1]
    template = project_root / "scheduling_config.example.toml"
    if not template.exists():
        raise RuntimeError(f"Missing template file: {template}")

    out = Path(path).expanduser()
    if out.exists():
        raise typer.BadParameter(f"Refusing to overwrite existing file: {out}")

    out.write_text(template.read_text())
    typer.echo(f"Wrote {out} (edit it, then run: evidence-scheduler run --config {out})")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
