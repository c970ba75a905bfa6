"""Task operations that sit above the raw data client."""

from __future__ import annotations

import logging
from typing import Optional

from pomoplan.db import Database
from pomoplan.estimator import estimate
from pomoplan.models import Task, TaskCreate, TaskStatus, TaskUpdate

log = logging.getLogger(__name__)

OPEN_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


def add_task(db: Database, user_id: str, task_in: TaskCreate) -> Task:
    """Estimate the task's pomodoros from its text and store it."""
    estimated = estimate(task_in.title, task_in.description)
    task = db.create_task(user_id, task_in, estimated_pomodoros=estimated)
    log.debug("Task #%d estimated at %d pomodoros", task.id, estimated)
    return task


def get_task(db: Database, user_id: str, task_id: int) -> Optional[Task]:
    return db.get_task(user_id, task_id)


def list_tasks(
    db: Database, user_id: str, include_completed: bool = True
) -> list[Task]:
    """List tasks newest first, hiding completed ones unless asked."""
    if include_completed:
        return db.list_tasks(user_id)
    return db.list_tasks(user_id, statuses=OPEN_STATUSES)


def edit_task(
    db: Database, user_id: str, task_id: int, task_in: TaskUpdate
) -> Optional[Task]:
    """Change a task's text. The estimate is kept as it was."""
    if db.get_task(user_id, task_id) is None:
        return None
    return db.update_task(user_id, task_id, task_in)


def remove_task(db: Database, user_id: str, task_id: int) -> bool:
    return db.delete_task(user_id, task_id)
