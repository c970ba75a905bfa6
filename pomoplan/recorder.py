"""Persists what the timer does: sessions and task progress."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from datetime import datetime
from typing import Optional

from pomoplan.db import Database
from pomoplan.dispatch import Dispatcher
from pomoplan.models import PomodoroSession, SessionCreate, Task

log = logging.getLogger(__name__)


class SessionRecorder:
    """Queues session and task writes for one user on a dispatcher.

    Every method returns immediately with a future; none of them raise.
    """

    def __init__(self, db: Database, dispatcher: Dispatcher, user_id: str) -> None:
        self.db = db
        self.dispatcher = dispatcher
        self.user_id = user_id

    def open_session(
        self, task_id: Optional[int], duration: int
    ) -> Future[PomodoroSession]:
        """Start a session record for a work interval."""
        session_in = SessionCreate(task_id=task_id, duration=duration)
        started_at = datetime.now()
        return self.dispatcher.submit(
            self.db.create_session,
            self.user_id,
            session_in,
            started_at,
            description="Creating session",
        )

    def close_session(
        self, pending: Future[PomodoroSession]
    ) -> Future[Optional[PomodoroSession]]:
        """Mark the session behind *pending* as completed."""
        ended_at = datetime.now()
        return self.dispatcher.submit(
            self._close, pending, ended_at, description="Completing session"
        )

    def _close(
        self, pending: Future[PomodoroSession], ended_at: datetime
    ) -> Optional[PomodoroSession]:
        # The open job was queued first, so it has already finished here.
        if pending.exception() is not None:
            log.debug("Not completing a session that failed to open")
            return None
        session = pending.result()
        if session is None:
            return None
        return self.db.complete_session(self.user_id, session.id, ended_at)

    def save_task_progress(self, task: Task) -> Future[Optional[Task]]:
        return self.dispatcher.submit(
            self.db.save_task_progress, task, description=f"Updating task #{task.id}"
        )
