"""Rich terminal formatting helpers."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table
from rich.text import Text

from pomoplan.models import StatsSummary, Task, TaskStatus, UserSettings

console = Console()

_STATUS_STYLE: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "dim",
    TaskStatus.IN_PROGRESS: "bold cyan",
    TaskStatus.COMPLETED: "green",
}

_STATUS_LABEL: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
}


def print_task_list(tasks: list[Task], title: str = "Tasks") -> None:
    """Print a list of tasks in a panel."""
    if not tasks:
        console.print(Panel("No tasks yet. Add one to get started!", title=title, border_style="dim"))
        return

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("id", width=5)
    table.add_column("title")
    table.add_column("status", width=12)
    table.add_column("pomodoros", justify="right")

    for task in tasks:
        table.add_row(
            f"#{task.id}",
            task.title,
            _STATUS_LABEL[task.status],
            f"{task.completed_pomodoros} / {task.estimated_pomodoros} Pomodoros",
            style=_STATUS_STYLE[task.status],
        )

    console.print(Panel(table, title=title, border_style="blue"))


def print_task(task: Task) -> None:
    """Print a single task with its description."""
    lines = [
        f"[bold]#{task.id}[/bold] {task.title}",
        f"Status: {_STATUS_LABEL[task.status]}",
        f"Pomodoros: {task.completed_pomodoros} / {task.estimated_pomodoros}",
    ]
    if task.description:
        lines.extend(["", task.description])
    console.print(Panel("\n".join(lines), border_style=_STATUS_STYLE[task.status]))


def print_settings(settings: UserSettings) -> None:
    """Print the user's timer settings."""
    lines = [
        f"Pomodoro: {settings.pomodoro_duration // 60} min",
        f"Short break: {settings.short_break_duration // 60} min",
        f"Long break: {settings.long_break_duration // 60} min",
        f"Long break every: {settings.long_break_interval} pomodoros",
        f"Sound: {'on' if settings.sound_enabled else 'off'}",
        f"Vibration: {'on' if settings.vibration_enabled else 'off'}",
    ]
    console.print(Panel("\n".join(lines), title="Settings", border_style="blue"))


def print_stats(summary: StatsSummary) -> None:
    """Print the statistics dashboard with a text bar chart of the week."""
    lines: list[str] = [
        f"Total pomodoros: {summary.total_pomodoros}",
        f"Total hours: {summary.total_hours}",
        f"Today: {summary.today_pomodoros}",
        f"Completed tasks: {summary.completed_tasks}",
    ]
    console.print(Panel("\n".join(lines), title="Statistics", border_style="green"))

    if not summary.weekly:
        return
    peak = max(max(d.count for d in summary.weekly), 1)
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("day", width=4)
    table.add_column("bar")
    table.add_column("count", justify="right")
    for day in summary.weekly:
        table.add_row(day.label, "█" * round(day.count / peak * 20), str(day.count))
    console.print(Panel(table, title="Weekly Overview", border_style="green"))


def print_nudge(message: str) -> None:
    """Print a highlighted message in a styled panel."""
    text = Text(message, justify="center")
    console.print(Panel(text, border_style="magenta", padding=(1, 4)))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]{message}[/blue]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{message}[/yellow]")


def create_timer_progress() -> Progress:
    """Create a Rich progress bar for the timer."""
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeRemainingColumn(),
        console=console,
    )
