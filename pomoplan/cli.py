"""Pomoplan CLI -- a pomodoro timer with a task planner."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from pomoplan import config as cfg
from pomoplan import display, onboarding, settings as user_settings, stats, tasks
from pomoplan.db import DataAccessError, Database
from pomoplan.dispatch import Dispatcher
from pomoplan.identity import Identity
from pomoplan.models import SettingsUpdate, TaskCreate, TaskUpdate, TimerMode
from pomoplan.recorder import SessionRecorder
from pomoplan.timer import PomodoroTimer, format_time, run_countdown

log = logging.getLogger(__name__)

app = typer.Typer(
    name="pomoplan",
    help="Plan your tasks and work through them one pomodoro at a time.",
    no_args_is_help=True,
)

identity = Identity()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging before any command runs."""
    level = "DEBUG" if verbose else cfg.load_config().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _require_user() -> str:
    user_id = identity.get_current_user()
    if user_id is None:
        display.print_warning("Not signed in. Run `pomoplan login NAME` first.")
        raise typer.Exit(1)
    return user_id


@contextmanager
def _workspace() -> Iterator[tuple[Database, str]]:
    """Open the database for the signed-in user; data errors exit with 1."""
    user_id = _require_user()
    try:
        with Database.connect(cfg.get_db_path()) as database:
            yield database, user_id
    except DataAccessError as exc:
        log.error("Data access failed: %s", exc)
        display.print_warning(f"Could not reach your data: {exc}")
        raise typer.Exit(1)


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


# ---------------------------------------------------------------------------
# Identity & onboarding
# ---------------------------------------------------------------------------


@app.command()
def login(name: str = typer.Argument(..., help="Your user name")) -> None:
    """Sign in. All tasks and settings belong to this user."""
    try:
        user_id = identity.sign_in(name)
    except ValueError as exc:
        display.print_warning(str(exc))
        raise typer.Exit(1)
    display.print_success(f"Signed in as {user_id}.")
    if onboarding.needs_onboarding():
        display.print_info("New here? Run `pomoplan welcome` for a quick tour.")


@app.command()
def logout() -> None:
    """Sign out."""
    identity.sign_out()
    display.print_success("Signed out.")


@app.command()
def whoami() -> None:
    """Show who is signed in."""
    user_id = identity.get_current_user()
    if user_id is None:
        display.print_info("Not signed in.")
    else:
        display.print_info(f"Signed in as {user_id}.")


@app.command()
def welcome() -> None:
    """Show the getting-started tour."""
    for number, (title, description) in enumerate(onboarding.WELCOME_STEPS, 1):
        display.print_nudge(f"{number}. {title}\n\n{description}")
    onboarding.mark_onboarding_completed()


# ---------------------------------------------------------------------------
# Task management
# ---------------------------------------------------------------------------


@app.command()
def add(
    title: str = typer.Argument(..., help="What do you need to do?"),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Optional details"
    ),
) -> None:
    """Add a new task. Its pomodoro count is estimated from the text."""
    try:
        task_in = TaskCreate(title=title, description=description)
    except ValidationError as exc:
        display.print_warning(_validation_message(exc))
        raise typer.Exit(1)
    with _workspace() as (database, user_id):
        task = tasks.add_task(database, user_id, task_in)
    display.print_success(
        f"Added task #{task.id}: {task.title} "
        f"({task.estimated_pomodoros} pomodoro{'s' if task.estimated_pomodoros != 1 else ''})"
    )


@app.command()
def edit(
    task_id: int = typer.Argument(..., help="ID of the task to edit"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="New description"
    ),
) -> None:
    """Change a task's title or description."""
    changes = {}
    if title is not None:
        changes["title"] = title
    if description is not None:
        changes["description"] = description
    if not changes:
        display.print_info("Nothing to change. Use --title or --description.")
        return
    try:
        task_in = TaskUpdate(**changes)
    except ValidationError as exc:
        display.print_warning(_validation_message(exc))
        raise typer.Exit(1)
    with _workspace() as (database, user_id):
        task = tasks.edit_task(database, user_id, task_id, task_in)
        if task is None:
            display.print_warning(f"Task #{task_id} not found.")
            raise typer.Exit(1)
    display.print_success(f"Updated task #{task.id}: {task.title}")


@app.command()
def delete(
    task_id: int = typer.Argument(..., help="ID of the task to delete"),
) -> None:
    """Delete a task."""
    with _workspace() as (database, user_id):
        if not tasks.remove_task(database, user_id, task_id):
            display.print_warning(f"Task #{task_id} not found.")
            raise typer.Exit(1)
    display.print_success(f"Deleted task #{task_id}.")


@app.command()
def show(
    task_id: int = typer.Argument(..., help="ID of the task to show"),
) -> None:
    """Show one task in detail."""
    with _workspace() as (database, user_id):
        task = tasks.get_task(database, user_id, task_id)
    if task is None:
        display.print_warning(f"Task #{task_id} not found.")
        raise typer.Exit(1)
    display.print_task(task)


@app.command(name="list")
def list_tasks(
    all_tasks: bool = typer.Option(False, "--all", "-a", help="Include completed tasks"),
) -> None:
    """List your tasks, newest first."""
    with _workspace() as (database, user_id):
        found = tasks.list_tasks(database, user_id, include_completed=all_tasks)
    display.print_task_list(found, title="Tasks")


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------


_AFTER_INTERRUPT = ("resume", "skip", "reset", "mode", "quit")


def _ask_after_interrupt() -> str:
    while True:
        raw = typer.prompt(f"What now? ({', '.join(_AFTER_INTERRUPT)})", default="quit")
        choice = raw.strip().lower()
        if choice in _AFTER_INTERRUPT:
            return choice
        display.print_warning(f"Please enter one of: {', '.join(_AFTER_INTERRUPT)}.")


def _ask_mode() -> TimerMode:
    while True:
        raw = typer.prompt("Switch to", default=TimerMode.POMODORO.value)
        try:
            return TimerMode(raw.strip().lower())
        except ValueError:
            display.print_warning(
                f"Please enter one of: {', '.join(m.value for m in TimerMode)}."
            )


@app.command()
def timer(
    task_id: Optional[int] = typer.Option(None, "--task", "-t", help="Task to work on"),
    mode: TimerMode = typer.Option(
        TimerMode.POMODORO, "--mode", "-m", help="Phase to start with"
    ),
    phases: int = typer.Option(
        1, "--phases", "-n", min=1, help="How many phases to run back to back"
    ),
) -> None:
    """Run the pomodoro timer. Ctrl-C pauses it and asks what to do next."""
    with _workspace() as (database, user_id):
        prefs = user_settings.get_or_create_settings(database, user_id)
        task = None
        if task_id is not None:
            task = tasks.get_task(database, user_id, task_id)
            if task is None:
                display.print_warning(f"Task #{task_id} not found.")
                raise typer.Exit(1)
            if task.is_completed:
                display.print_warning(f"Task #{task_id} is already completed.")
                raise typer.Exit(1)

        with Dispatcher() as dispatcher:
            recorder = SessionRecorder(database, dispatcher, user_id)
            pomodoro = PomodoroTimer(prefs, recorder=recorder, task=task)
            pomodoro.on_complete(
                lambda finished, upcoming: display.print_success(
                    f"{finished.label} finished. Next: {upcoming.label} "
                    f"({format_time(pomodoro.total)})"
                )
            )
            if mode is not TimerMode.POMODORO:
                pomodoro.switch_mode(mode)

            done = 0
            while done < phases:
                if pomodoro.task is not None:
                    display.print_info(f'Working on: "{pomodoro.task.title}"')
                elif task is not None and not pomodoro.mode.is_break:
                    display.print_success(f'Task "{task.title}" is complete.')
                    break
                if run_countdown(pomodoro):
                    done += 1
                    continue

                choice = _ask_after_interrupt()
                if choice == "skip":
                    pomodoro.skip()
                    done += 1
                elif choice == "reset":
                    # Pick up settings changed while the timer was paused.
                    pomodoro.apply_settings(
                        user_settings.get_or_create_settings(database, user_id)
                    )
                elif choice == "mode":
                    pomodoro.switch_mode(_ask_mode())
                elif choice == "quit":
                    stopped_at = pomodoro.remaining
                    pomodoro.switch_mode(pomodoro.mode)
                    display.print_info(
                        f"Stopped at {format_time(stopped_at)}. "
                        "This phase was not recorded as finished."
                    )
                    break


# ---------------------------------------------------------------------------
# Statistics & settings
# ---------------------------------------------------------------------------


@app.command(name="stats")
def show_stats(
    chart: Optional[str] = typer.Option(
        None, "--chart", help="Also save a weekly bar chart PNG to this path"
    ),
) -> None:
    """See how many pomodoros you have finished."""
    with _workspace() as (database, user_id):
        summary = stats.compute_stats(database, user_id)
    display.print_stats(summary)
    if chart:
        from pomoplan.charts import save_weekly_chart

        save_weekly_chart(summary, chart)
        display.print_success(f"Chart saved to {chart}")


@app.command(name="settings")
def settings_command(
    work: Optional[int] = typer.Option(None, "--work", help="Pomodoro length, minutes (1-60)"),
    short_break: Optional[int] = typer.Option(
        None, "--short-break", help="Short break length, minutes (1-30)"
    ),
    long_break: Optional[int] = typer.Option(
        None, "--long-break", help="Long break length, minutes (1-60)"
    ),
    interval: Optional[int] = typer.Option(
        None, "--interval", help="Pomodoros before a long break (1-10)"
    ),
    sound: Optional[bool] = typer.Option(None, "--sound/--no-sound", help="Sound cue"),
    vibration: Optional[bool] = typer.Option(
        None, "--vibration/--no-vibration", help="Vibration cue"
    ),
) -> None:
    """Show or change your timer settings."""
    try:
        update = SettingsUpdate(
            pomodoro_duration=work * 60 if work is not None else None,
            short_break_duration=short_break * 60 if short_break is not None else None,
            long_break_duration=long_break * 60 if long_break is not None else None,
            long_break_interval=interval,
            sound_enabled=sound,
            vibration_enabled=vibration,
        )
    except ValidationError as exc:
        display.print_warning(_validation_message(exc))
        raise typer.Exit(1)

    with _workspace() as (database, user_id):
        if update.model_dump(exclude_none=True):
            prefs = user_settings.update_settings(database, user_id, update)
            display.print_success("Settings saved.")
        else:
            prefs = user_settings.get_or_create_settings(database, user_id)
    display.print_settings(prefs)


@app.command()
def config(
    db_path: Optional[str] = typer.Option(
        None, "--db-path",
        help="Set a custom database file path",
    ),
    reset: bool = typer.Option(False, "--reset", help="Reset to default local DB"),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level: DEBUG, INFO, WARNING, ERROR"
    ),
    show: bool = typer.Option(False, "--show", help="Show current config"),
) -> None:
    """Configure where your data is stored and how much is logged."""
    if db_path:
        result = cfg.set_db_path(db_path)
        display.print_success(f"Database path set to: {result.db_path}")
    elif reset:
        cfg.reset_db_path()
        display.print_success("Reset to default local database.")
    elif log_level:
        try:
            result = cfg.set_log_level(log_level)
        except ValueError as exc:
            display.print_warning(str(exc))
            raise typer.Exit(1)
        display.print_success(f"Log level set to {result.log_level}.")
    elif show:
        current = cfg.load_config()
        resolved = cfg.get_db_path()
        if current.db_path:
            display.print_info(f"Database: {current.db_path}")
        else:
            display.print_info(f"Database: {resolved} (default)")
        display.print_info(f"Log level: {current.log_level}")
    else:
        display.print_info("Use --db-path, --reset, --log-level, or --show.")
