"""Mnemos CLI — learning analytics over exported drill-app snapshots."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import TypeAdapter

from mnemos.application.analytics import AnalyticsReport, LearningAnalyticsService, WordTimeline
from mnemos.application.config import resolve_config
from mnemos.infrastructure.adapters.snapshot_repository import JsonSnapshotRepository, SnapshotError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mnemos: learning analytics for vocabulary drills.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Inspect mnemos configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

DEFAULT_USER = "default"
DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Enable debug logging."
        ),
    ] = 0,
):
    """Global settings for mnemos."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose >= 1:
        logging.getLogger().setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _open_repo(snapshot: Path, user: str | None) -> tuple[JsonSnapshotRepository, str]:
    """Load the snapshot and pick the learner to analyze."""
    try:
        repo = JsonSnapshotRepository(snapshot)
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1)

    users = repo.user_ids()
    if user:
        return repo, user
    if len(users) > 1:
        typer.secho(
            f"Snapshot holds {len(users)} learners; pick one with --user ({', '.join(users)}).",
            fg="red",
            err=True,
        )
        raise typer.Exit(1)
    return repo, users[0] if users else DEFAULT_USER


def _to_json(value: Any, type_: Any) -> str:
    return json.dumps(TypeAdapter(type_).dump_python(value, mode="json"), indent=2)


def _echo_report(report: AnalyticsReport) -> None:
    metrics = report.metrics
    if metrics is None:
        typer.secho("No test sessions yet: complete a test to see analytics.", fg="yellow")
    else:
        color = "green" if metrics.performance_index >= 75 else "yellow" if metrics.performance_index >= 60 else "red"
        typer.secho(f"Performance Index: {metrics.performance_index}/100", fg=color, bold=True)
        b = metrics.breakdown
        for label, term in (
            ("Precision", b.precision),
            ("Consistency", b.consistency),
            ("Efficiency", b.efficiency),
            ("Speed", b.speed),
            ("Difficulty", b.difficulty),
        ):
            typer.echo(f"  {label:<12} {term.value:>5} x {term.weight:.2f} = {term.points}")
        typer.echo(
            f"Sessions: {metrics.total_sessions}  Best streak: {metrics.best_streak}  "
            f"Trend: {metrics.improvement_trend:+}  Avg speed: {metrics.avg_speed}s/word"
        )

    if report.trend.has_sufficient_data:
        typer.echo(
            f"Velocity: {report.trend.velocity:+} pts/test  Level: {report.trend.current_level}  "
            f"Direction: {report.trend.direction}  Confidence: {report.trend.confidence}%"
        )

    if report.projections:
        typer.echo("\nProjections:")
        for projection in report.projections:
            typer.echo(
                f"  {projection.timeframe_days:>3} days: {projection.projected_metrics.accuracy}% "
                f"({projection.pessimistic_bound:.1f}-{projection.optimistic_bound:.1f}, "
                f"confidence {projection.confidence}%)"
            )

    if report.insights:
        for strength in report.insights.strengths:
            typer.secho(f"+ {strength}", fg="green")
        for improvement in report.insights.improvements:
            typer.secho(f"- {improvement}", fg="yellow")

    typer.echo("\nRecommendations:")
    for recommendation in report.recommendations:
        typer.echo(f"  * {recommendation}")

    for missing in report.validation.missing_requirements:
        typer.secho(f"  ! {missing}", fg="yellow")


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def report(
    snapshot: Annotated[Path, typer.Argument(help="Path to a JSON snapshot exported from the app.")],
    user: Annotated[str | None, typer.Option("--user", "-u", help="Learner id in a multi-user snapshot.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full report as JSON.")] = False,
    as_of: Annotated[
        datetime | None,
        typer.Option(formats=DATE_FORMATS, help="Reference date (UTC). Defaults to the newest session."),
    ] = None,
):
    """[bold green]Analyze[/bold green] a learner's history."""
    repo, user_id = _open_repo(snapshot, user)

    service = LearningAnalyticsService(repo, resolve_config())
    try:
        result = asyncio.run(service.analyze(user_id, as_of))
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(_to_json(result, AnalyticsReport))
    else:
        _echo_report(result)


@app.command()
def word(
    snapshot: Annotated[Path, typer.Argument(help="Path to a JSON snapshot exported from the app.")],
    word_id: Annotated[str, typer.Argument(help="Id of the word to inspect.")],
    user: Annotated[str | None, typer.Option("--user", "-u", help="Learner id in a multi-user snapshot.")] = None,
    limit: Annotated[int | None, typer.Option(min=1, help="Chart points to keep.")] = None,
):
    """Show a word's attempt timeline as JSON."""
    repo, user_id = _open_repo(snapshot, user)
    service = LearningAnalyticsService(repo, resolve_config({"chart_window": limit}))
    try:
        timeline = asyncio.run(service.word_detail(user_id, word_id))
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1)

    if timeline is None:
        typer.secho(f"Unknown word: {word_id}", fg="yellow", err=True)
        raise typer.Exit(1)
    typer.echo(_to_json(timeline, WordTimeline))


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))
