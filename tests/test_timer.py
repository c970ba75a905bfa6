"""Tests for the timer state machine and countdown driver."""

from __future__ import annotations

from concurrent.futures import Future
from unittest.mock import MagicMock, patch

import pytest

from pomoplan.db import DataAccessError
from pomoplan.dispatch import Dispatcher
from pomoplan.models import (
    Task,
    TaskCreate,
    TaskStatus,
    TimerMode,
    TimerState,
    UserSettings,
)
from pomoplan.notify import Notifier
from pomoplan.recorder import SessionRecorder
from pomoplan.timer import PomodoroTimer, format_time, mode_duration, run_countdown


def _settings(**overrides) -> UserSettings:
    fields = {
        "user_id": "ana",
        "pomodoro_duration": 5,
        "short_break_duration": 2,
        "long_break_duration": 3,
        "long_break_interval": 4,
        "sound_enabled": False,
    }
    fields.update(overrides)
    return UserSettings(**fields)


def _task(estimated: int = 2) -> Task:
    return Task(id=7, user_id="ana", title="Essay", estimated_pomodoros=estimated)


def _timer(recorder=None, task=None, **overrides) -> PomodoroTimer:
    return PomodoroTimer(
        _settings(**overrides),
        recorder=recorder,
        notifier=MagicMock(spec=Notifier),
        task=task,
    )


def _run_out(timer: PomodoroTimer) -> None:
    timer.start()
    while timer.state is TimerState.RUNNING:
        timer.tick()


class TestFormatting:
    def test_format_time(self) -> None:
        assert format_time(1500) == "25:00"
        assert format_time(65) == "01:05"
        assert format_time(0) == "00:00"

    def test_mode_duration(self) -> None:
        settings = _settings()
        assert mode_duration(settings, TimerMode.POMODORO) == 5
        assert mode_duration(settings, TimerMode.SHORT_BREAK) == 2
        assert mode_duration(settings, TimerMode.LONG_BREAK) == 3

    def test_progress(self) -> None:
        timer = _timer(pomodoro_duration=4)
        timer.start()
        assert timer.progress == 0.0
        timer.tick()
        assert timer.progress == 0.25


class TestInitialState:
    def test_ready_on_pomodoro(self) -> None:
        timer = _timer()
        assert timer.mode is TimerMode.POMODORO
        assert timer.state is TimerState.READY
        assert timer.remaining == 5

    def test_tick_does_nothing_when_ready(self) -> None:
        timer = _timer()
        assert timer.tick() is False
        assert timer.remaining == 5


class TestStartPause:
    def test_start_runs(self) -> None:
        timer = _timer()
        timer.start()
        assert timer.state is TimerState.RUNNING
        timer.tick()
        assert timer.remaining == 4

    def test_pause_stops_countdown(self) -> None:
        timer = _timer()
        timer.start()
        timer.tick()
        timer.pause()
        assert timer.state is TimerState.PAUSED
        timer.tick()
        assert timer.remaining == 4

    def test_pause_when_paused_is_noop(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder)
        timer.start()
        timer.pause()
        before = timer.snapshot()
        timer.pause()
        assert timer.snapshot() == before
        assert [c[0] for c in recorder.method_calls] == ["open_session"]

    def test_pause_when_ready_is_noop(self) -> None:
        timer = _timer()
        timer.pause()
        assert timer.state is TimerState.READY

    def test_start_opens_one_session(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder, task=_task())
        timer.start()
        timer.pause()
        timer.start()
        timer.start()
        recorder.open_session.assert_called_once_with(7, 5)
        assert timer.has_open_session

    def test_break_opens_no_session(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder)
        timer.switch_mode(TimerMode.SHORT_BREAK)
        timer.start()
        recorder.open_session.assert_not_called()


class TestReset:
    def test_reset_while_running(self) -> None:
        timer = _timer()
        timer.start()
        timer.tick()
        timer.tick()
        timer.reset()
        assert timer.state is TimerState.READY
        assert timer.remaining == 5

    def test_reset_keeps_session_open(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder)
        timer.start()
        timer.reset()
        assert timer.has_open_session
        timer.start()
        recorder.open_session.assert_called_once()

    def test_reset_on_break(self) -> None:
        timer = _timer()
        timer.switch_mode(TimerMode.LONG_BREAK)
        timer.start()
        timer.tick()
        timer.reset()
        assert timer.remaining == 3
        assert timer.mode is TimerMode.LONG_BREAK


class TestCompletion:
    def test_pomodoro_leads_to_short_break(self) -> None:
        timer = _timer()
        _run_out(timer)
        assert timer.mode is TimerMode.SHORT_BREAK
        assert timer.state is TimerState.READY
        assert timer.remaining == 2
        assert timer.completed_count == 1

    def test_break_leads_to_pomodoro(self) -> None:
        timer = _timer()
        timer.switch_mode(TimerMode.SHORT_BREAK)
        _run_out(timer)
        assert timer.mode is TimerMode.POMODORO
        assert timer.remaining == 5
        assert timer.completed_count == 0

    def test_fourth_pomodoro_leads_to_long_break(self) -> None:
        timer = _timer()
        modes = []
        for _ in range(4):
            _run_out(timer)
            modes.append(timer.mode)
            _run_out(timer)
        assert modes == [
            TimerMode.SHORT_BREAK,
            TimerMode.SHORT_BREAK,
            TimerMode.SHORT_BREAK,
            TimerMode.LONG_BREAK,
        ]

    def test_cadence_of_one(self) -> None:
        timer = _timer(long_break_interval=1)
        _run_out(timer)
        assert timer.mode is TimerMode.LONG_BREAK

    def test_tick_reports_completion(self) -> None:
        timer = _timer(pomodoro_duration=2)
        timer.start()
        assert timer.tick() is False
        assert timer.tick() is True

    def test_notifies(self) -> None:
        timer = _timer()
        _run_out(timer)
        timer.notifier.notify.assert_called_once()

    def test_complete_callback(self) -> None:
        timer = _timer()
        seen = []
        timer.on_complete(lambda finished, upcoming: seen.append((finished, upcoming)))
        _run_out(timer)
        assert seen == [(TimerMode.POMODORO, TimerMode.SHORT_BREAK)]

    def test_tick_callback(self) -> None:
        timer = _timer()
        remaining = []
        timer.on_tick(lambda snap: remaining.append(snap.remaining))
        _run_out(timer)
        assert remaining == [4, 3, 2, 1, 0]

    def test_closes_session(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder)
        _run_out(timer)
        recorder.close_session.assert_called_once_with(recorder.open_session.return_value)
        assert not timer.has_open_session

    def test_complete_without_session_is_silent(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder)
        timer.complete()
        recorder.close_session.assert_not_called()
        assert timer.mode is TimerMode.SHORT_BREAK


class TestSkip:
    def test_skip_finalizes_like_completion(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder, task=_task())
        timer.start()
        timer.tick()
        timer.skip()
        recorder.close_session.assert_called_once()
        recorder.save_task_progress.assert_called_once()
        assert timer.completed_count == 1
        assert timer.mode is TimerMode.SHORT_BREAK

    def test_skip_break(self) -> None:
        timer = _timer()
        timer.switch_mode(TimerMode.SHORT_BREAK)
        timer.skip()
        assert timer.mode is TimerMode.POMODORO
        assert timer.state is TimerState.READY

    def test_skipping_unstarted_work_gives_no_credit(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        task = _task(estimated=3)
        timer = _timer(recorder, task=task)
        for _ in range(6):
            timer.skip()
        recorder.open_session.assert_not_called()
        recorder.close_session.assert_not_called()
        recorder.save_task_progress.assert_not_called()
        assert timer.completed_count == 0
        assert timer.task is task
        assert timer.task.status == TaskStatus.PENDING

    def test_unstarted_work_never_earns_long_break(self) -> None:
        timer = _timer(long_break_interval=1)
        timer.skip()
        assert timer.mode is TimerMode.SHORT_BREAK

    def test_reset_work_still_counts(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder, task=_task())
        timer.start()
        timer.tick()
        timer.reset()
        timer.skip()
        recorder.close_session.assert_called_once()
        assert timer.completed_count == 1

    def test_work_discarded_by_switch_gives_no_credit(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder, task=_task())
        timer.start()
        timer.switch_mode(TimerMode.POMODORO)
        timer.skip()
        recorder.close_session.assert_not_called()
        recorder.save_task_progress.assert_not_called()
        assert timer.completed_count == 0


class TestSwitchMode:
    def test_discards_session(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder)
        timer.start()
        timer.switch_mode(TimerMode.SHORT_BREAK)
        assert not timer.has_open_session
        assert timer.state is TimerState.READY
        assert timer.remaining == 2
        recorder.close_session.assert_not_called()

    def test_new_session_after_switch_back(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder)
        timer.start()
        timer.switch_mode(TimerMode.POMODORO)
        timer.start()
        assert recorder.open_session.call_count == 2


class TestTaskProgress:
    def test_task_goes_in_progress(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder, task=_task(estimated=2))
        _run_out(timer)
        saved = recorder.save_task_progress.call_args[0][0]
        assert saved.completed_pomodoros == 1
        assert saved.status == TaskStatus.IN_PROGRESS
        assert timer.task is not None

    def test_task_completes_and_detaches(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder, task=_task(estimated=1))
        _run_out(timer)
        saved = recorder.save_task_progress.call_args[0][0]
        assert saved.status == TaskStatus.COMPLETED
        assert saved.completed_at is not None
        assert timer.task is None

    def test_completion_stamped_once(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder, task=_task(estimated=3))
        for _ in range(6):
            _run_out(timer)
            timer.skip()
        written = [c[0][0] for c in recorder.save_task_progress.call_args_list]
        assert [t.completed_pomodoros for t in written] == [1, 2, 3]
        assert [t.completed_at is not None for t in written] == [False, False, True]

    def test_break_does_not_count(self) -> None:
        recorder = MagicMock(spec=SessionRecorder)
        timer = _timer(recorder, task=_task())
        timer.switch_mode(TimerMode.SHORT_BREAK)
        _run_out(timer)
        recorder.save_task_progress.assert_not_called()

    def test_completed_task_rejected(self) -> None:
        done = _task(estimated=1).record_pomodoro()
        with pytest.raises(ValueError):
            _timer(task=done)


class TestApplySettings:
    def test_new_durations(self) -> None:
        timer = _timer()
        timer.start()
        timer.tick()
        timer.apply_settings(_settings(pomodoro_duration=10, sound_enabled=True))
        assert timer.state is TimerState.READY
        assert timer.remaining == 10
        assert timer.notifier.sound_enabled is True


class TestPersistenceFailures:
    def test_timer_continues_when_store_fails(self) -> None:
        db = MagicMock()
        db.create_session.side_effect = DataAccessError("offline")
        db.save_task_progress.side_effect = DataAccessError("offline")
        with Dispatcher() as dispatcher:
            recorder = SessionRecorder(db, dispatcher, "ana")
            timer = _timer(recorder, task=_task(estimated=1))
            _run_out(timer)
        assert timer.mode is TimerMode.SHORT_BREAK
        assert timer.completed_count == 1
        db.complete_session.assert_not_called()


class TestWithDatabase:
    def test_full_cycle_persists(self, database) -> None:
        task = database.create_task("ana", TaskCreate(title="Essay"), 2)
        with Dispatcher() as dispatcher:
            recorder = SessionRecorder(database, dispatcher, "ana")
            timer = _timer(recorder, task=task)
            _run_out(timer)
            _run_out(timer)
            _run_out(timer)
        sessions = database.list_sessions("ana")
        assert len(sessions) == 2
        assert all(s.completed and s.task_id == task.id for s in sessions)
        stored = database.get_task("ana", task.id)
        assert stored is not None
        assert stored.status == TaskStatus.COMPLETED
        assert stored.completed_pomodoros == 2

    def test_discarded_session_stays_open(self, database) -> None:
        with Dispatcher() as dispatcher:
            recorder = SessionRecorder(database, dispatcher, "ana")
            timer = _timer(recorder)
            timer.start()
            timer.switch_mode(TimerMode.SHORT_BREAK)
        sessions = database.list_sessions("ana")
        assert len(sessions) == 1
        assert sessions[0].completed is False


class TestRunCountdown:
    @patch("pomoplan.timer.time.sleep")
    def test_completes(self, mock_sleep) -> None:
        timer = _timer()
        assert run_countdown(timer) is True
        assert mock_sleep.call_count == 5
        assert timer.mode is TimerMode.SHORT_BREAK

    @patch("pomoplan.timer.time.sleep", side_effect=KeyboardInterrupt)
    def test_interrupted_pauses(self, mock_sleep) -> None:
        timer = _timer()
        assert run_countdown(timer) is False
        assert timer.state is TimerState.PAUSED
        assert timer.remaining == 5

    @patch("pomoplan.timer.time.sleep")
    def test_resumes_from_pause(self, mock_sleep) -> None:
        timer = _timer()
        timer.start()
        timer.tick()
        timer.pause()
        assert run_countdown(timer) is True
        assert mock_sleep.call_count == 4
