"""SQLite data client. All public methods return Pydantic models."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Sequence

from pomoplan.models import (
    PomodoroSession,
    SessionCreate,
    SettingsUpdate,
    Task,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
    UserSettings,
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id              TEXT    NOT NULL,
    title                TEXT    NOT NULL,
    description          TEXT,
    estimated_pomodoros  INTEGER NOT NULL DEFAULT 1,
    completed_pomodoros  INTEGER NOT NULL DEFAULT 0,
    status               TEXT    NOT NULL DEFAULT 'pending',
    created_at           TEXT    NOT NULL,
    completed_at         TEXT
);

CREATE TABLE IF NOT EXISTS pomodoro_sessions (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT    NOT NULL,
    task_id     INTEGER REFERENCES tasks(id) ON DELETE SET NULL,
    duration    INTEGER NOT NULL,
    completed   INTEGER NOT NULL DEFAULT 0,
    started_at  TEXT    NOT NULL,
    ended_at    TEXT
);

CREATE TABLE IF NOT EXISTS user_settings (
    user_id               TEXT PRIMARY KEY,
    pomodoro_duration     INTEGER NOT NULL,
    short_break_duration  INTEGER NOT NULL,
    long_break_duration   INTEGER NOT NULL,
    long_break_interval   INTEGER NOT NULL,
    sound_enabled         INTEGER NOT NULL,
    vibration_enabled     INTEGER NOT NULL,
    updated_at            TEXT    NOT NULL
);
"""


class DataAccessError(Exception):
    """A read or write against the data store failed."""


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_task(row: sqlite3.Row) -> Task:
    """Convert a database row to a Task model."""
    return Task(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"],
        estimated_pomodoros=row["estimated_pomodoros"],
        completed_pomodoros=row["completed_pomodoros"],
        status=TaskStatus(row["status"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        completed_at=_parse_ts(row["completed_at"]),
    )


def _row_to_session(row: sqlite3.Row) -> PomodoroSession:
    """Convert a database row to a PomodoroSession model."""
    return PomodoroSession(
        id=row["id"],
        user_id=row["user_id"],
        task_id=row["task_id"],
        duration=row["duration"],
        completed=bool(row["completed"]),
        started_at=datetime.fromisoformat(row["started_at"]),
        ended_at=_parse_ts(row["ended_at"]),
    )


def _row_to_settings(row: sqlite3.Row) -> UserSettings:
    return UserSettings(
        user_id=row["user_id"],
        pomodoro_duration=row["pomodoro_duration"],
        short_break_duration=row["short_break_duration"],
        long_break_duration=row["long_break_duration"],
        long_break_interval=row["long_break_interval"],
        sound_enabled=bool(row["sound_enabled"]),
        vibration_enabled=bool(row["vibration_enabled"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class Database:
    """Owner-scoped CRUD over tasks, sessions and settings.

    Create one per process with :meth:`connect` and pass it to whatever
    needs it. The connection is shared with the dispatcher's worker thread,
    so every statement runs under a lock.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.RLock()

    @classmethod
    def connect(cls, path: Path) -> Database:
        """Open the database file and ensure the schema exists."""
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise DataAccessError(f"Could not open database {path}: {exc}") from exc
        return cls(conn)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Connection]:
        """Run statements under the lock, committing on success."""
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as exc:
                try:
                    self._conn.rollback()
                except sqlite3.ProgrammingError:
                    pass  # connection already closed
                raise DataAccessError(str(exc)) from exc

    # -----------------------------------------------------------------------
    # Tasks
    # -----------------------------------------------------------------------

    def create_task(
        self, user_id: str, task_in: TaskCreate, estimated_pomodoros: int
    ) -> Task:
        """Insert a new task and return it as a model."""
        now = datetime.now().isoformat()
        with self._cursor() as conn:
            cur = conn.execute(
                "INSERT INTO tasks (user_id, title, description, estimated_pomodoros, "
                "status, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    user_id,
                    task_in.title,
                    task_in.description,
                    estimated_pomodoros,
                    TaskStatus.PENDING.value,
                    now,
                ),
            )
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ?", (cur.lastrowid,)
            ).fetchone()
        return _row_to_task(row)

    def get_task(self, user_id: str, task_id: int) -> Optional[Task]:
        """Fetch a single task by ID."""
        with self._cursor() as conn:
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
            ).fetchone()
        return _row_to_task(row) if row else None

    def list_tasks(
        self, user_id: str, statuses: Optional[Sequence[TaskStatus]] = None
    ) -> list[Task]:
        """List a user's tasks, newest first, optionally limited to *statuses*."""
        query = "SELECT * FROM tasks WHERE user_id = ?"
        params: list[str | int] = [user_id]
        if statuses is not None:
            query += f" AND status IN ({', '.join('?' * len(statuses))})"
            params.extend(s.value for s in statuses)
        query += " ORDER BY created_at DESC, id DESC"
        with self._cursor() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_task(r) for r in rows]

    def update_task(
        self, user_id: str, task_id: int, task_in: TaskUpdate
    ) -> Optional[Task]:
        """Change a task's title and/or description."""
        fields = task_in.model_dump(exclude_unset=True)
        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            with self._cursor() as conn:
                conn.execute(
                    f"UPDATE tasks SET {assignments} WHERE id = ? AND user_id = ?",
                    (*fields.values(), task_id, user_id),
                )
        return self.get_task(user_id, task_id)

    def save_task_progress(self, task: Task) -> Optional[Task]:
        """Write a task's pomodoro count, status and completion time."""
        with self._cursor() as conn:
            conn.execute(
                "UPDATE tasks SET completed_pomodoros = ?, status = ?, completed_at = ? "
                "WHERE id = ? AND user_id = ?",
                (
                    task.completed_pomodoros,
                    task.status.value,
                    task.completed_at.isoformat() if task.completed_at else None,
                    task.id,
                    task.user_id,
                ),
            )
        return self.get_task(task.user_id, task.id)

    def delete_task(self, user_id: str, task_id: int) -> bool:
        """Delete a task. Returns False if it did not exist."""
        with self._cursor() as conn:
            cur = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
            )
        return cur.rowcount > 0

    def count_tasks(self, user_id: str, status: Optional[TaskStatus] = None) -> int:
        query = "SELECT COUNT(*) FROM tasks WHERE user_id = ?"
        params: list[str | int] = [user_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        with self._cursor() as conn:
            return conn.execute(query, params).fetchone()[0]

    # -----------------------------------------------------------------------
    # Pomodoro sessions
    # -----------------------------------------------------------------------

    def create_session(
        self,
        user_id: str,
        session_in: SessionCreate,
        started_at: Optional[datetime] = None,
    ) -> PomodoroSession:
        """Open a session record for a work interval that just started."""
        started = (started_at or datetime.now()).isoformat()
        with self._cursor() as conn:
            cur = conn.execute(
                "INSERT INTO pomodoro_sessions (user_id, task_id, duration, completed, "
                "started_at) VALUES (?, ?, ?, 0, ?)",
                (user_id, session_in.task_id, session_in.duration, started),
            )
            row = conn.execute(
                "SELECT * FROM pomodoro_sessions WHERE id = ?", (cur.lastrowid,)
            ).fetchone()
        return _row_to_session(row)

    def get_session(self, user_id: str, session_id: int) -> Optional[PomodoroSession]:
        with self._cursor() as conn:
            row = conn.execute(
                "SELECT * FROM pomodoro_sessions WHERE id = ? AND user_id = ?",
                (session_id, user_id),
            ).fetchone()
        return _row_to_session(row) if row else None

    def complete_session(
        self, user_id: str, session_id: int, ended_at: Optional[datetime] = None
    ) -> Optional[PomodoroSession]:
        """Mark a session completed and stamp its end time."""
        ended = (ended_at or datetime.now()).isoformat()
        with self._cursor() as conn:
            conn.execute(
                "UPDATE pomodoro_sessions SET completed = 1, ended_at = ? "
                "WHERE id = ? AND user_id = ?",
                (ended, session_id, user_id),
            )
        return self.get_session(user_id, session_id)

    def _session_filter(
        self,
        user_id: str,
        completed: Optional[bool],
        since: Optional[datetime],
        until: Optional[datetime],
    ) -> tuple[str, list[str | int]]:
        where = "user_id = ?"
        params: list[str | int] = [user_id]
        if completed is not None:
            where += " AND completed = ?"
            params.append(int(completed))
        if since is not None:
            where += " AND started_at >= ?"
            params.append(since.isoformat())
        if until is not None:
            where += " AND started_at <= ?"
            params.append(until.isoformat())
        return where, params

    def list_sessions(
        self,
        user_id: str,
        completed: Optional[bool] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[PomodoroSession]:
        """List a user's sessions in start order."""
        where, params = self._session_filter(user_id, completed, since, until)
        with self._cursor() as conn:
            rows = conn.execute(
                f"SELECT * FROM pomodoro_sessions WHERE {where} ORDER BY started_at ASC",
                params,
            ).fetchall()
        return [_row_to_session(r) for r in rows]

    def count_sessions(
        self,
        user_id: str,
        completed: Optional[bool] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int:
        where, params = self._session_filter(user_id, completed, since, until)
        with self._cursor() as conn:
            return conn.execute(
                f"SELECT COUNT(*) FROM pomodoro_sessions WHERE {where}", params
            ).fetchone()[0]

    # -----------------------------------------------------------------------
    # User settings
    # -----------------------------------------------------------------------

    def get_settings(self, user_id: str) -> Optional[UserSettings]:
        with self._cursor() as conn:
            row = conn.execute(
                "SELECT * FROM user_settings WHERE user_id = ?", (user_id,)
            ).fetchone()
        return _row_to_settings(row) if row else None

    def create_settings(self, settings: UserSettings) -> UserSettings:
        """Insert the settings row for a user."""
        with self._cursor() as conn:
            conn.execute(
                "INSERT INTO user_settings (user_id, pomodoro_duration, "
                "short_break_duration, long_break_duration, long_break_interval, "
                "sound_enabled, vibration_enabled, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    settings.user_id,
                    settings.pomodoro_duration,
                    settings.short_break_duration,
                    settings.long_break_duration,
                    settings.long_break_interval,
                    int(settings.sound_enabled),
                    int(settings.vibration_enabled),
                    settings.updated_at.isoformat(),
                ),
            )
        return settings

    def update_settings(
        self, user_id: str, update: SettingsUpdate
    ) -> Optional[UserSettings]:
        """Apply the fields set on *update* and bump ``updated_at``."""
        fields = update.model_dump(exclude_none=True)
        fields["updated_at"] = datetime.now().isoformat()
        values = [int(v) if isinstance(v, bool) else v for v in fields.values()]
        assignments = ", ".join(f"{name} = ?" for name in fields)
        with self._cursor() as conn:
            conn.execute(
                f"UPDATE user_settings SET {assignments} WHERE user_id = ?",
                (*values, user_id),
            )
        return self.get_settings(user_id)
