"""Keyword heuristic that turns task text into a pomodoro estimate."""

from __future__ import annotations

import math
from typing import Optional

MIN_POMODOROS = 1
MAX_POMODOROS = 8
WORDS_PER_POMODORO = 20

# Applied in order; every group with a hit multiplies the running factor.
# Matching is by substring, so "hardware" counts as "hard".
COMPLEXITY_FACTORS: list[tuple[tuple[str, ...], float]] = [
    (("complex", "difficult", "challenging", "hard", "complicated"), 1.5),
    (("research", "analyze", "investigate", "study"), 1.3),
    (("create", "develop", "build", "implement"), 1.2),
    (("review", "check", "test", "verify"), 0.8),
    (("quick", "simple", "easy", "small"), 0.6),
]


def complexity_multiplier(text: str) -> float:
    """Return the combined weight of every keyword group found in *text*."""
    multiplier = 1.0
    for keywords, weight in COMPLEXITY_FACTORS:
        if any(keyword in text for keyword in keywords):
            multiplier *= weight
    return multiplier


def estimate(title: str, description: Optional[str] = None) -> int:
    """Estimate how many pomodoros a task needs, between 1 and 8."""
    text = f"{title} {description or ''}".lower()
    word_count = len(text.split())
    base = math.ceil(word_count / WORDS_PER_POMODORO)
    estimated = math.ceil(base * complexity_multiplier(text))
    return max(MIN_POMODOROS, min(estimated, MAX_POMODOROS))
