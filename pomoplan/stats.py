"""Aggregate statistics over a user's sessions and tasks."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional

from pomoplan.db import Database
from pomoplan.models import DailyCount, StatsSummary, TaskStatus

WEEK_DAYS = 7


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def weekly_counts(
    db: Database, user_id: str, today: Optional[date] = None
) -> list[DailyCount]:
    """Completed pomodoros for each of the last seven days, oldest first."""
    today = today or date.today()
    counts: list[DailyCount] = []
    for offset in range(WEEK_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        start, end = _day_bounds(day)
        counts.append(
            DailyCount(
                date=day,
                label=day.strftime("%a"),
                count=db.count_sessions(user_id, completed=True, since=start, until=end),
            )
        )
    return counts


def compute_stats(
    db: Database, user_id: str, today: Optional[date] = None
) -> StatsSummary:
    """Build the full statistics summary."""
    today = today or date.today()
    sessions = db.list_sessions(user_id, completed=True)
    total_seconds = sum(s.duration for s in sessions)
    start, end = _day_bounds(today)

    return StatsSummary(
        total_pomodoros=len(sessions),
        total_hours=round(total_seconds / 3600, 1),
        today_pomodoros=db.count_sessions(user_id, completed=True, since=start, until=end),
        completed_tasks=db.count_tasks(user_id, status=TaskStatus.COMPLETED),
        weekly=weekly_counts(db, user_id, today),
    )
