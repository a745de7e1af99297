from __future__ import annotations

import json
import logging
import random
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd
import typer

from . import services
from .config import as_dict as config_as_dict
from .constants import BARRIERS, LIFTS, WEEKDAYS
from .env import get_env
from .models import ValidationError, parse_iso_date
from .plan_endpoint import request_plan
from .planner import generate
from .rewards import ACHIEVEMENTS
from .scheduler import ScheduledSession
from .storage import CorruptStoreError
from .units import kg_to_lb

app = typer.Typer(help="Plan workouts, schedule splits, and track progress toward a strength roadmap.")


def _fail(message: str, *, code: int = 1) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


def _parse_date_option(value: Optional[str], *, name: str = "date") -> date:
    if value is None:
        return date.today()
    try:
        return parse_iso_date(value, field=name)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint=f"--{name}") from exc


def _weight_text(value: Optional[float], pounds: bool) -> str:
    if value is None:
        return "bodyweight"
    if pounds:
        return f"{kg_to_lb(value):.1f} lb"
    return f"{value:.1f} kg"


def _echo_session(session: ScheduledSession, pounds: bool) -> None:
    title = "Rest day" if session.rest else f"Session {session.key}"
    typer.echo(f"{session.day.isoformat()}: {title} ({session.label})")
    for exercise in session.exercises:
        line = f" • {exercise.name}: {exercise.sets}x{exercise.reps}"
        if not session.rest:
            line += f" @ {_weight_text(exercise.suggested_weight_kg, pounds)}"
        if exercise.notes:
            line += f" ({exercise.notes})"
        typer.echo(line)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ...). Defaults to $FIT_ROADMAP_LOG_LEVEL.",
    ),
) -> None:
    level = log_level or get_env("LOG_LEVEL", "WARNING")
    logging.basicConfig(level=str(level).upper())


@app.command()
def onboard(
    experience: str = typer.Option("beginner", "--experience", "-x", help="beginner, intermediate or advanced."),
    goals: List[str] = typer.Option([], "--goal", "-g", help="Goal id or label; repeat for several goals."),
    barriers: List[str] = typer.Option([], "--barrier", "-b", help=f"One of {', '.join(BARRIERS)}; repeatable."),
    duration: str = typer.Option("medium", "--duration", help="short, medium, long or minutes."),
    body_weight: Optional[float] = typer.Option(None, "--body-weight", "-w", help="Body weight in kilograms."),
    days: List[str] = typer.Option([], "--day", "-d", help=f"Training weekday ({', '.join(WEEKDAYS)}); repeatable."),
    sessions_per_week: int = typer.Option(3, "--sessions-per-week", "-s", help="2, 3 or 4."),
    goal_type: str = typer.Option("fit", "--goal-type", help="slim, fit or bulk (roadmap ratios)."),
    bench: Optional[float] = typer.Option(None, "--bench", help="Current bench press (kg)."),
    squat: Optional[float] = typer.Option(None, "--squat", help="Current squat (kg)."),
    dead: Optional[float] = typer.Option(None, "--dead", help="Current deadlift (kg)."),
    weeks_to_goal: Optional[int] = typer.Option(None, "--weeks-to-goal", help="Roadmap horizon in weeks."),
    from_json: Optional[Path] = typer.Option(
        None,
        "--from-json",
        help="Import a profile export (any historical shape) instead of using the options.",
    ),
) -> None:
    """
    Create or replace the profile.

    Examples:
        fit-roadmap onboard --goal waist --goal hip_up --barrier no-gym --duration 20 --body-weight 55
        fit-roadmap onboard --from-json old_profile.json
    """
    if from_json is not None:
        try:
            raw: Any = json.loads(from_json.expanduser().read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _fail(f"Could not read {from_json}: {exc}")
        if not isinstance(raw, dict):
            _fail(f"{from_json} must contain a JSON object.")
    else:
        raw = {
            "experience": experience,
            "goals": goals,
            "barriers": barriers,
            "duration": duration,
            "body_weight_kg": body_weight,
            "weekly_schedule": days,
            "sessions_per_week": sessions_per_week,
            "goal_type": goal_type,
            "started_at": date.today().isoformat(),
            "weeks_to_goal": weeks_to_goal,
            "lifts": {
                name: {"current": {"weight": value, "reps": 5}, "goal": {}}
                for name, value in (("bench", bench), ("squat", squat), ("dead", dead))
            },
        }

    try:
        profile = services.save_profile_input(raw)
    except CorruptStoreError as exc:
        _fail(f"Could not store profile: {exc}")

    areas = ", ".join(f"{area}={weight}" for area, weight in profile.goal_areas.items())
    typer.echo(f"Profile saved: {profile.experience}, {profile.session_duration} sessions, areas {areas}.")


@app.command()
def profile(
    as_json: bool = typer.Option(False, "--json", help="Print the canonical profile as JSON."),
) -> None:
    """Show the stored profile."""
    try:
        current = services.load_profile()
    except CorruptStoreError as exc:
        _fail(str(exc))
    payload = current.to_dict()
    if as_json:
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    for key, value in payload.items():
        if key == "lifts":
            continue
        typer.echo(f"{key}: {value}")
    for name in LIFTS:
        lift = current.lift(name)
        typer.echo(f"{name}: current {lift.current.weight} x{lift.current.reps}, goal {lift.goal.weight} x{lift.goal.reps}")


@app.command()
def menu(
    sessions: Optional[int] = typer.Option(None, "--sessions", help="Override completed sessions for progression."),
    pounds: bool = typer.Option(False, "--lb", help="Show loads in pounds."),
) -> None:
    """Show today's goal-driven menu."""
    try:
        current = services.load_profile()
    except CorruptStoreError as exc:
        _fail(str(exc))
    for item in generate(current, sessions):
        line = (
            f" • {item.name}: {item.target_sets}x{item.target_reps} "
            f"@ {_weight_text(item.suggested_weight_kg, pounds)}, rest {item.rest_seconds}s"
        )
        if item.notes:
            line += f" ({item.notes})"
        typer.echo(line)


@app.command()
def swap(
    target: str = typer.Argument(..., help="Menu exercise key (e.g. squat) or, with --session, a session kind."),
    session: bool = typer.Option(False, "--session", help="Swap a split-session kind (bench, squat, row, ...)."),
    date_text: Optional[str] = typer.Option(None, "--date", help="Session date for --session swaps (YYYY-MM-DD)."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed the random pick."),
    pounds: bool = typer.Option(False, "--lb", help="Show loads in pounds."),
) -> None:
    """Suggest a random eligible replacement exercise."""
    day = _parse_date_option(date_text)
    rng = random.Random(seed) if seed is not None else None
    try:
        result = services.swap_exercise(target, scope="session" if session else "menu", day=day, rng=rng)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint="TARGET") from exc
    except CorruptStoreError as exc:
        _fail(str(exc))
    if result is None:
        _fail(f"No alternative left for {target}.")
    payload = result.to_dict()
    typer.echo(f"Swap {target} -> {payload['name']} @ {_weight_text(payload['suggested_weight_kg'], pounds)}")


@app.command()
def today(
    date_text: Optional[str] = typer.Option(None, "--date", "-d", help="Date to plan (YYYY-MM-DD)."),
    pounds: bool = typer.Option(False, "--lb", help="Show loads in pounds."),
) -> None:
    """Show the split session (or recovery work) scheduled for a date."""
    day = _parse_date_option(date_text)
    try:
        session = services.today_plan(day)
    except CorruptStoreError as exc:
        _fail(str(exc))
    _echo_session(session, pounds)


@app.command()
def schedule(
    date_text: Optional[str] = typer.Option(None, "--date", "-d", help="Any date in the week (YYYY-MM-DD)."),
    toggle: List[int] = typer.Option([], "--toggle", "-t", help="Flip a weekday (0=Mon .. 6=Sun); repeatable."),
    sessions: Optional[int] = typer.Option(None, "--sessions", "-s", help="Set sessions per week (2, 3 or 4)."),
) -> None:
    """Show or edit the week plan."""
    day = _parse_date_option(date_text)
    try:
        plan = services.week_plan_for(day)
        for index in toggle:
            plan = services.toggle_week_day(day, index)
        if sessions is not None:
            plan = services.set_sessions_per_week(day, sessions)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except CorruptStoreError as exc:
        _fail(str(exc))

    marks = " ".join(f"{name}{'*' if on else '-'}" for name, on in zip(WEEKDAYS, plan.days))
    typer.echo(f"Week of {plan.week_start.isoformat()} ({plan.sessions_per_week} sessions/week): {marks}")


@app.command()
def log(
    date_text: Optional[str] = typer.Option(None, "--date", "-d", help="Log date (YYYY-MM-DD, defaults to today)."),
    body_weight: Optional[float] = typer.Option(None, "--weight", "-w", help="Body weight in kilograms."),
    bench: Optional[float] = typer.Option(None, "--bench", help="Bench press working weight (kg)."),
    squat: Optional[float] = typer.Option(None, "--squat", help="Squat working weight (kg)."),
    dead: Optional[float] = typer.Option(None, "--dead", help="Deadlift working weight (kg)."),
    reps: int = typer.Option(5, "--reps", help="Reps performed for each logged lift."),
    success: List[str] = typer.Option([], "--success", "-s", help="Lift completed as planned; repeatable."),
    seed: Optional[int] = typer.Option(None, "--seed", hidden=True),
) -> None:
    """
    Save a daily log and collect XP.

    Example:
        fit-roadmap log --weight 58.2 --bench 30 --squat 45 --dead 60 -s bench -s squat -s dead
    """
    day = _parse_date_option(date_text)
    unknown = [name for name in success if name not in LIFTS]
    if unknown:
        raise typer.BadParameter(f"Unknown lift(s): {', '.join(unknown)}", param_hint="--success")

    weights = {"bench": bench, "squat": squat, "dead": dead}
    lifts = {
        name: {"weight": weight, "reps": reps if weight is not None else None, "success": name in success}
        for name, weight in weights.items()
        if weight is not None or name in success
    }
    try:
        entry = services.build_daily_log(day, body_weight_kg=body_weight, lifts=lifts)
        outcome = services.record_daily_log(entry, rng=random.Random(seed) if seed is not None else None)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except CorruptStoreError as exc:
        _fail(f"Could not store log: {exc}")

    typer.echo(outcome.confirmation)
    typer.echo(outcome.praise)


@app.command()
def complete() -> None:
    """Mark a menu session as completed (drives progressive overload)."""
    try:
        updated = services.complete_session()
    except CorruptStoreError as exc:
        _fail(str(exc))
    typer.echo(f"Sessions completed: {updated.sessions_completed}")


@app.command()
def roadmap(
    date_text: Optional[str] = typer.Option(None, "--start", help="Start date when the profile has none."),
    pounds: bool = typer.Option(False, "--lb", help="Show loads in pounds."),
) -> None:
    """Show the weekly roadmap with logged actuals."""
    start = _parse_date_option(date_text, name="start")
    try:
        frame = services.roadmap_frame(today=start)
    except CorruptStoreError as exc:
        _fail(str(exc))
    if pounds:
        for column in frame.columns:
            if column != "date":
                frame[column] = frame[column].map(lambda value: kg_to_lb(value) if pd.notna(value) else value)
    typer.echo(services.render_table(frame))


@app.command()
def progress() -> None:
    """Weekly summary of logged training."""
    try:
        frame = services.progress_frame()
    except CorruptStoreError as exc:
        _fail(str(exc))
    if frame.empty:
        typer.echo("No logs yet.")
        return
    typer.echo(services.render_table(frame))


@app.command()
def rewards(
    date_text: Optional[str] = typer.Option(None, "--date", "-d", help="Reference day for the training streak."),
) -> None:
    """Show XP, streaks and badges."""
    day = _parse_date_option(date_text)
    try:
        summary = services.rewards_summary(day)
    except CorruptStoreError as exc:
        _fail(str(exc))
    typer.echo(f"XP: {summary['xp']}  streak: {summary['streak']}  training streak: {summary['training_streak']}")
    typer.echo("Badges: " + (", ".join(summary["badges"]) or "none yet"))


@app.command()
def achievements() -> None:
    """List unlocked achievements."""
    try:
        unlocked = set(services.achievements())
    except CorruptStoreError as exc:
        _fail(str(exc))
    for achievement in ACHIEVEMENTS:
        mark = "x" if achievement.id in unlocked else " "
        typer.echo(f"[{mark}] {achievement.title}: {achievement.description}")


@app.command()
def plan(
    goal_text: str = typer.Argument(..., help="Free-text description of the body you want."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw plan result."),
) -> None:
    """Ask the LLM endpoint for a one-day plan (falls back to a static plan)."""
    try:
        result = request_plan(goal_text)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint="GOAL_TEXT") from exc
    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    typer.echo(f"{result.plan['label']} [{result.source}]")
    for item in result.plan["exercises"]:
        typer.echo(f" • {item['name']}: {item['sets']}x{item['reps']}")
    if result.error:
        typer.secho(f"Plan endpoint error ({result.error['status']}): {result.error['detail']}", fg=typer.colors.YELLOW, err=True)


@app.command("config")
def config_show() -> None:
    """
    Show the effective configuration (roadmap defaults, weekly gain limits, plan endpoint).
    """
    config = config_as_dict()
    typer.echo(f"Config source: {config.get('source')}")
    typer.echo(f"Weeks to goal: {config['weeks_to_goal']}  daily XP: {config['daily_xp']}")
    gains = config["weekly_max_gain_kg"]
    typer.echo(f"Weekly max gain (kg): bench={gains['bench']} squat={gains['squat']} dead={gains['dead']}")
    endpoint = config["plan_endpoint"]
    typer.echo(f"Plan endpoint: {endpoint['url']} model={endpoint['model']} key=${endpoint['api_key_env']}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
