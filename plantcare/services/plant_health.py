"""
Plant health score, care streak and badge tiers.

Read-only estimates for display. Nothing here feeds back into scheduling.
All day arithmetic happens on calendar dates in the owner's timezone.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Protocol

from plantcare.services.due_dates import local_date, today_in_timezone

MAX_HEALTH_SCORE = 100


class _TaskLike(Protocol):
    active: bool
    next_due_on: datetime


@dataclass(frozen=True)
class BadgeTier:
    name: str
    quote: str
    image: str
    min_streak: int


# Highest threshold first; the first tier the streak reaches wins
BADGE_TIERS: tuple[BadgeTier, ...] = (
    BadgeTier("Evergreen Legend", "Legendary, you're on your way to a greener world!",
              "/badges/evergreen-legend.png", 100),
    BadgeTier("Master Grower", "Master of the Flora.",
              "/badges/master-grower.png", 60),
    BadgeTier("Bloom Buddy", "Your plant is thriving, and so is your routine!",
              "/badges/bloom-buddy.png", 30),
    BadgeTier("Green Guardian", "You've built a steady habit. Your plant trusts you.",
              "/badges/green-guardian.png", 7),
    BadgeTier("Sprout Starter", "Your plant is just getting started, and so are you!",
              "/badges/sprout-starter.png", 0),
)


@dataclass(frozen=True)
class PlantHealth:
    health_score: int
    care_streak: int
    badge: BadgeTier


def _overdue_days(task: _TaskLike, today: date, tz: Optional[str]) -> int:
    due = local_date(task.next_due_on, tz)
    return (today - due).days if due < today else 0


def calculate_health_score(
    tasks: Iterable[_TaskLike],
    today: Optional[date] = None,
    tz: Optional[str] = None,
) -> int:
    """100 minus one point per full day each active task is overdue, never below 0."""
    today = today or today_in_timezone(tz)
    total_overdue_days = sum(_overdue_days(t, today, tz) for t in tasks if t.active)
    return max(0, MAX_HEALTH_SCORE - total_overdue_days)


def calculate_care_streak(
    tasks: Iterable[_TaskLike],
    created_at: datetime,
    today: Optional[date] = None,
    tz: Optional[str] = None,
) -> int:
    """
    Coarse streak: days since the plant was added, reset to 1 while anything is overdue.

    No per-completion history exists, so a single missed day and chronic
    neglect look the same here.
    """
    tasks = list(tasks)
    if not tasks:
        return 0

    today = today or today_in_timezone(tz)
    days_since_creation = (today - local_date(created_at, tz)).days
    if days_since_creation <= 0:
        return 1

    active = [t for t in tasks if t.active]
    if any(_overdue_days(t, today, tz) > 0 for t in active):
        return 1
    return days_since_creation + 1


def get_badge_tier(streak: int) -> BadgeTier:
    for tier in BADGE_TIERS:
        if streak >= tier.min_streak:
            return tier
    return BADGE_TIERS[-1]


def summarize_plant_health(plant, tz: Optional[str] = None, today: Optional[date] = None) -> PlantHealth:
    today = today or today_in_timezone(tz)
    streak = calculate_care_streak(plant.tasks, plant.created_at, today=today, tz=tz)
    return PlantHealth(
        health_score=calculate_health_score(plant.tasks, today=today, tz=tz),
        care_streak=streak,
        badge=get_badge_tier(streak),
    )
