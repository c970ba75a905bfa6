"""First-run welcome steps."""

from __future__ import annotations

from pomoplan import config as cfg

WELCOME_STEPS: list[tuple[str, str]] = [
    (
        "Welcome to Pomodoro Planner",
        "Boost your productivity with a pomodoro timer and task planner.",
    ),
    (
        "Smart Task Analysis",
        "Every task you add is analysed to suggest how many pomodoros it needs.",
    ),
    (
        "Track Your Progress",
        "Monitor your productivity with statistics on finished pomodoros and tasks.",
    ),
]


def needs_onboarding() -> bool:
    return not cfg.load_config().onboarding_completed


def mark_onboarding_completed() -> None:
    config = cfg.load_config()
    config.onboarding_completed = True
    cfg.save_config(config)
