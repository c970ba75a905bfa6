"""Tests for task and settings operations."""

from __future__ import annotations

from unittest.mock import patch

from pomoplan import settings as user_settings
from pomoplan import tasks
from pomoplan.models import SettingsUpdate, TaskCreate, TaskStatus, TaskUpdate


class TestAddTask:
    def test_uses_estimator(self, database) -> None:
        task = tasks.add_task(database, "ana", TaskCreate(title="a complex thing to do"))
        assert task.estimated_pomodoros == 2
        assert task.user_id == "ana"

    def test_minimum_estimate(self, database) -> None:
        task = tasks.add_task(database, "ana", TaskCreate(title="x"))
        assert task.estimated_pomodoros == 1


class TestListTasks:
    def test_hides_completed(self, database) -> None:
        open_task = tasks.add_task(database, "ana", TaskCreate(title="Open"))
        done = tasks.add_task(database, "ana", TaskCreate(title="Done"))
        database.save_task_progress(done.record_pomodoro())

        visible = tasks.list_tasks(database, "ana", include_completed=False)
        assert [t.id for t in visible] == [open_task.id]
        everything = tasks.list_tasks(database, "ana")
        assert {t.status for t in everything} == {TaskStatus.PENDING, TaskStatus.COMPLETED}

    def test_open_filter_runs_in_the_database(self, database) -> None:
        started = tasks.add_task(database, "ana", TaskCreate(title="Started"))
        database.save_task_progress(
            started.model_copy(update={"status": TaskStatus.IN_PROGRESS})
        )
        with patch.object(database, "list_tasks", wraps=database.list_tasks) as spy:
            visible = tasks.list_tasks(database, "ana", include_completed=False)
        spy.assert_called_once_with("ana", statuses=tasks.OPEN_STATUSES)
        assert [t.status for t in visible] == [TaskStatus.IN_PROGRESS]


class TestEditTask:
    def test_keeps_estimate(self, database) -> None:
        task = tasks.add_task(database, "ana", TaskCreate(title="a complex thing to do"))
        edited = tasks.edit_task(
            database, "ana", task.id, TaskUpdate(title="x")
        )
        assert edited is not None
        assert edited.title == "x"
        assert edited.estimated_pomodoros == 2

    def test_missing(self, database) -> None:
        assert tasks.edit_task(database, "ana", 42, TaskUpdate(title="x")) is None


class TestRemoveTask:
    def test_remove(self, database) -> None:
        task = tasks.add_task(database, "ana", TaskCreate(title="Bye"))
        assert tasks.remove_task(database, "ana", task.id)
        assert tasks.get_task(database, "ana", task.id) is None


class TestSettings:
    def test_created_lazily_with_defaults(self, database) -> None:
        assert database.get_settings("ana") is None
        settings = user_settings.get_or_create_settings(database, "ana")
        assert settings.pomodoro_duration == 1500
        assert settings.long_break_interval == 4
        assert database.get_settings("ana") is not None

    def test_second_access_reuses_row(self, database) -> None:
        first = user_settings.get_or_create_settings(database, "ana")
        second = user_settings.get_or_create_settings(database, "ana")
        assert first.updated_at == second.updated_at

    def test_update_creates_first(self, database) -> None:
        updated = user_settings.update_settings(
            database, "ana", SettingsUpdate(long_break_interval=2)
        )
        assert updated.long_break_interval == 2
        assert updated.pomodoro_duration == 1500
