"""Pydantic models: the single source of truth for all data types."""

from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Defaults for a user's first settings row (seconds / count).
DEFAULT_POMODORO_DURATION = 25 * 60
DEFAULT_SHORT_BREAK_DURATION = 5 * 60
DEFAULT_LONG_BREAK_DURATION = 15 * 60
DEFAULT_LONG_BREAK_INTERVAL = 4


class TaskStatus(str, enum.Enum):
    """Task lifecycle states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Task(BaseModel):
    """A to-do item with its pomodoro budget."""

    id: int
    user_id: str
    title: str
    description: Optional[str] = None
    estimated_pomodoros: int = Field(default=1, ge=1)
    completed_pomodoros: int = Field(default=0, ge=0)
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def record_pomodoro(self, now: Optional[datetime] = None) -> Task:
        """Return a copy of this task with one more finished work interval.

        A completed task is returned unchanged, so the count never runs past
        the estimate and ``completed_at`` is only ever stamped once.
        """
        if self.is_completed:
            return self
        done = self.completed_pomodoros + 1
        if done >= self.estimated_pomodoros:
            return self.model_copy(
                update={
                    "completed_pomodoros": done,
                    "status": TaskStatus.COMPLETED,
                    "completed_at": now or datetime.now(),
                }
            )
        return self.model_copy(
            update={"completed_pomodoros": done, "status": TaskStatus.IN_PROGRESS}
        )


class TaskCreate(BaseModel):
    """Input model for creating a new task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None


class TaskUpdate(BaseModel):
    """Input model for editing a task's text."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None


class PomodoroSession(BaseModel):
    """One recorded run of a work-interval timer."""

    id: int
    user_id: str
    task_id: Optional[int] = None
    duration: int = Field(gt=0)  # seconds
    completed: bool = False
    started_at: datetime = Field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None


class SessionCreate(BaseModel):
    """Input model for opening a session."""

    task_id: Optional[int] = None
    duration: int = Field(gt=0)


class UserSettings(BaseModel):
    """Per-user timer and notification preferences."""

    user_id: str
    pomodoro_duration: int = Field(default=DEFAULT_POMODORO_DURATION, gt=0)
    short_break_duration: int = Field(default=DEFAULT_SHORT_BREAK_DURATION, gt=0)
    long_break_duration: int = Field(default=DEFAULT_LONG_BREAK_DURATION, gt=0)
    long_break_interval: int = Field(default=DEFAULT_LONG_BREAK_INTERVAL, ge=1)
    sound_enabled: bool = True
    vibration_enabled: bool = False
    updated_at: datetime = Field(default_factory=datetime.now)


class SettingsUpdate(BaseModel):
    """Input model for changing settings. Durations are in seconds."""

    pomodoro_duration: Optional[int] = Field(default=None, ge=60, le=60 * 60)
    short_break_duration: Optional[int] = Field(default=None, ge=60, le=30 * 60)
    long_break_duration: Optional[int] = Field(default=None, ge=60, le=60 * 60)
    long_break_interval: Optional[int] = Field(default=None, ge=1, le=10)
    sound_enabled: Optional[bool] = None
    vibration_enabled: Optional[bool] = None


class TimerMode(str, enum.Enum):
    """The kind of phase the timer is counting down."""

    POMODORO = "pomodoro"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def is_break(self) -> bool:
        return self is not TimerMode.POMODORO

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class TimerState(str, enum.Enum):
    """Whether the countdown is advancing."""

    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"


class TimerSnapshot(BaseModel):
    """Read-only view of the timer for display."""

    mode: TimerMode
    state: TimerState
    remaining: int = Field(ge=0)
    total: int = Field(gt=0)
    completed_count: int = Field(default=0, ge=0)
    task: Optional[Task] = None

    @property
    def progress(self) -> float:
        return 1 - self.remaining / self.total


class DailyCount(BaseModel):
    """Completed pomodoros on a single day."""

    date: date
    label: str
    count: int = Field(ge=0)


class StatsSummary(BaseModel):
    """Dashboard data for the stats command."""

    total_pomodoros: int = Field(default=0, ge=0)
    total_hours: float = Field(default=0.0, ge=0)
    today_pomodoros: int = Field(default=0, ge=0)
    completed_tasks: int = Field(default=0, ge=0)
    weekly: list[DailyCount] = Field(default_factory=list)


class AppConfig(BaseModel):
    """Application configuration (persisted to ~/.config/pomoplan/config.json)."""

    db_path: Optional[str] = None  # None = use default (~/.local/share/pomoplan/)
    user: Optional[str] = None
    onboarding_completed: bool = False
    log_level: str = "WARNING"
