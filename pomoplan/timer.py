"""Pomodoro timer state machine and its one-second countdown driver."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from typing import Callable, Optional

from pomoplan.display import console, create_timer_progress
from pomoplan.models import (
    PomodoroSession,
    Task,
    TimerMode,
    TimerSnapshot,
    TimerState,
    UserSettings,
)
from pomoplan.notify import Notifier
from pomoplan.recorder import SessionRecorder

log = logging.getLogger(__name__)

TickCallback = Callable[[TimerSnapshot], None]
CompleteCallback = Callable[[TimerMode, TimerMode], None]


def format_time(seconds: int) -> str:
    """Format a second count as ``MM:SS``."""
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def mode_duration(settings: UserSettings, mode: TimerMode) -> int:
    """Configured length of *mode* in seconds."""
    if mode is TimerMode.POMODORO:
        return settings.pomodoro_duration
    if mode is TimerMode.SHORT_BREAK:
        return settings.short_break_duration
    return settings.long_break_duration


class PomodoroTimer:
    """Tracks the current phase, the countdown and finished work intervals.

    Nothing here blocks: the countdown is advanced by calling :meth:`tick`
    once per second, and every write to the data store goes through the
    recorder, which only queues it.
    """

    def __init__(
        self,
        settings: UserSettings,
        recorder: Optional[SessionRecorder] = None,
        notifier: Optional[Notifier] = None,
        task: Optional[Task] = None,
    ) -> None:
        self.settings = settings
        self.recorder = recorder
        self.notifier = notifier or Notifier(
            settings.sound_enabled, settings.vibration_enabled
        )
        self.mode = TimerMode.POMODORO
        self.state = TimerState.READY
        self.remaining = mode_duration(settings, self.mode)
        self.completed_count = 0
        self.task: Optional[Task] = None
        self._session: Optional[Future[PomodoroSession]] = None
        self._work_started = False
        self._on_tick: list[TickCallback] = []
        self._on_complete: list[CompleteCallback] = []
        if task is not None:
            self.select_task(task)

    # ----- Observers -----

    def on_tick(self, fn: TickCallback) -> None:
        self._on_tick.append(fn)

    def on_complete(self, fn: CompleteCallback) -> None:
        """Register *fn(finished_mode, next_mode)*."""
        self._on_complete.append(fn)

    # ----- Read-only views -----

    @property
    def total(self) -> int:
        return mode_duration(self.settings, self.mode)

    @property
    def progress(self) -> float:
        return 1 - self.remaining / self.total

    @property
    def has_open_session(self) -> bool:
        return self._session is not None

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            mode=self.mode,
            state=self.state,
            remaining=self.remaining,
            total=self.total,
            completed_count=self.completed_count,
            task=self.task,
        )

    # ----- Configuration -----

    def select_task(self, task: Optional[Task]) -> None:
        """Attach the task that work intervals count toward."""
        if task is not None and task.is_completed:
            raise ValueError(f"Task #{task.id} is already completed.")
        self.task = task

    def apply_settings(self, settings: UserSettings) -> None:
        """Use new durations; the current phase restarts from its full length."""
        self.settings = settings
        self.notifier.sound_enabled = settings.sound_enabled
        self.notifier.vibration_enabled = settings.vibration_enabled
        self.state = TimerState.READY
        self.remaining = self.total

    # ----- Transitions -----

    def start(self) -> None:
        if self.state is TimerState.RUNNING:
            return
        if self.mode is TimerMode.POMODORO:
            self._work_started = True
            if self._session is None:
                self._session = self._open_session()
        self.state = TimerState.RUNNING

    def pause(self) -> None:
        if self.state is not TimerState.RUNNING:
            return
        self.state = TimerState.PAUSED

    def reset(self) -> None:
        """Back to a full countdown of the current mode. An open session stays open."""
        self.state = TimerState.READY
        self.remaining = self.total

    def switch_mode(self, mode: TimerMode) -> None:
        """Jump to *mode* by hand, dropping any unfinished session."""
        if self._session is not None:
            log.debug("Discarding open session on switch to %s", mode.value)
        self._session = None
        self._work_started = False
        self.mode = mode
        self.state = TimerState.READY
        self.remaining = self.total

    def tick(self) -> bool:
        """Advance one second. Returns True if the phase finished."""
        if self.state is not TimerState.RUNNING:
            return False
        if self.remaining > 0:
            self.remaining -= 1
        for fn in self._on_tick:
            fn(self.snapshot())
        if self.remaining <= 0:
            self.complete()
            return True
        return False

    def skip(self) -> None:
        """Finish the current phase now, exactly as if it had run out.

        A work interval that was never started moves on to a short break
        without closing a session or counting toward the task.
        """
        self.complete()

    def complete(self) -> None:
        finished = self.mode
        self.state = TimerState.READY
        self.notifier.notify()

        if finished is TimerMode.POMODORO and self._work_started:
            self._close_session()
            self._record_task_progress()
            self.completed_count += 1
            if self.completed_count % self.settings.long_break_interval == 0:
                self.mode = TimerMode.LONG_BREAK
            else:
                self.mode = TimerMode.SHORT_BREAK
        elif finished is TimerMode.POMODORO:
            # Never started: nothing to finalize or credit.
            self.mode = TimerMode.SHORT_BREAK
        else:
            self.mode = TimerMode.POMODORO

        self._work_started = False
        self.remaining = self.total
        log.info("%s finished; next up: %s", finished.label, self.mode.label)
        for fn in self._on_complete:
            fn(finished, self.mode)

    # ----- Side effects -----

    def _open_session(self) -> Optional[Future[PomodoroSession]]:
        if self.recorder is None:
            return None
        task_id = self.task.id if self.task is not None else None
        return self.recorder.open_session(task_id, self.settings.pomodoro_duration)

    def _close_session(self) -> None:
        pending, self._session = self._session, None
        if pending is None or self.recorder is None:
            return
        self.recorder.close_session(pending)

    def _record_task_progress(self) -> None:
        if self.task is None:
            return
        self.task = self.task.record_pomodoro()
        if self.recorder is not None:
            self.recorder.save_task_progress(self.task)
        if self.task.is_completed:
            log.info("Task #%d reached its estimate", self.task.id)
            self.task = None


def run_countdown(timer: PomodoroTimer) -> bool:
    """Start *timer* and tick it once a second until the phase ends.

    Returns True if the phase ran to completion, False if interrupted.
    """
    label = timer.mode.label
    if timer.task is not None:
        label = f"{label} (task #{timer.task.id})"

    total = timer.total
    progress = create_timer_progress()
    timer.start()
    try:
        with progress:
            bar = progress.add_task(label, total=total, completed=total - timer.remaining)
            while timer.state is TimerState.RUNNING:
                time.sleep(1)
                finished = timer.tick()
                progress.update(bar, completed=total if finished else total - timer.remaining)
    except KeyboardInterrupt:
        timer.pause()
        console.print("\n[yellow]Timer paused.[/yellow]")
        return False
    return True
