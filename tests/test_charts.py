"""Tests for the charts module."""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

from PIL import Image

from pomoplan.charts import save_weekly_chart, weekly_chart
from pomoplan.models import DailyCount, StatsSummary


def _summary(counts: list[int]) -> StatsSummary:
    start = date(2024, 5, 1)
    weekly = [
        DailyCount(date=start + timedelta(days=i), label=(start + timedelta(days=i)).strftime("%a"), count=c)
        for i, c in enumerate(counts)
    ]
    return StatsSummary(total_pomodoros=sum(counts), weekly=weekly)


class TestWeeklyChart:
    def test_returns_image(self) -> None:
        img = weekly_chart(_summary([1, 0, 3, 2, 0, 4, 1]))
        assert isinstance(img, Image.Image)
        assert img.size[0] > 0 and img.size[1] > 0

    def test_empty_week(self) -> None:
        img = weekly_chart(_summary([0] * 7))
        assert isinstance(img, Image.Image)

    def test_no_days(self) -> None:
        img = weekly_chart(StatsSummary())
        assert isinstance(img, Image.Image)

    def test_save(self, tmp_path: Path) -> None:
        out = tmp_path / "week.png"
        save_weekly_chart(_summary([2] * 7), str(out))
        assert out.exists()
        with Image.open(out) as img:
            assert img.format == "PNG"
