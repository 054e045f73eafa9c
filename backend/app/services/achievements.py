"""
Achievement catalogue and unlock rules.

Rules are evaluated against counters read from gamification_log. An unlock is
itself a ledger row (activity_type 'achievement') tagged with the achievement
id; a unique index keeps it to one row per user and achievement.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

import aiosqlite

from app.db.sqlite import (
    add_achievement,
    get_achievement_progress,
    list_unlocked_achievements,
)
from app.models.gamification import Achievement, AchievementStatus

logger = logging.getLogger(__name__)

STUDY_MINUTES_PER_TASK_POINT = 10


@dataclass(frozen=True)
class AchievementProgress:
    task_completions: int = 0
    task_points_today: int = 0
    flashcard_reviews: int = 0
    early_task: bool = False
    late_task: bool = False
    weekend_activity: bool = False
    task_days: list[date] = field(default_factory=list)

    @property
    def study_minutes_today(self) -> int:
        return self.task_points_today * STUDY_MINUTES_PER_TASK_POINT

    @property
    def task_streak(self) -> int:
        return longest_streak(self.task_days)


CATALOGUE: list[Achievement] = [
    Achievement(
        id="first_task",
        title="First Step",
        description="Complete your first task",
        icon="🎯",
        points=10,
        activity_type="task_completion",
        requirement=1,
    ),
    Achievement(
        id="task_streak_3",
        title="Consistent",
        description="Complete tasks on 3 consecutive days",
        icon="🔥",
        points=25,
        activity_type="streak",
        requirement=3,
    ),
    Achievement(
        id="task_streak_7",
        title="Dedicated",
        description="Complete tasks on 7 consecutive days",
        icon="⚡",
        points=50,
        activity_type="streak",
        requirement=7,
    ),
    Achievement(
        id="task_streak_30",
        title="Unshakeable",
        description="Complete tasks on 30 consecutive days",
        icon="🏆",
        points=200,
        activity_type="streak",
        requirement=30,
    ),
    Achievement(
        id="study_time_1h",
        title="First Focus",
        description="Study for 1 hour in a day",
        icon="⏰",
        points=15,
        activity_type="study_time",
        requirement=60,
    ),
    Achievement(
        id="study_time_3h",
        title="Marathoner",
        description="Study for 3 hours in a day",
        icon="🚀",
        points=40,
        activity_type="study_time",
        requirement=180,
    ),
    Achievement(
        id="flashcard_master",
        title="Flashcard Master",
        description="Review 50 flashcards",
        icon="🧠",
        points=30,
        activity_type="flashcard_review",
        requirement=50,
    ),
    Achievement(
        id="early_bird",
        title="Early Bird",
        description="Complete a task before 8:00",
        icon="🌅",
        points=15,
        activity_type="early_bird",
        requirement=1,
    ),
    Achievement(
        id="night_owl",
        title="Night Owl",
        description="Complete a task after 22:00",
        icon="🦉",
        points=15,
        activity_type="night_owl",
        requirement=1,
    ),
    Achievement(
        id="weekend_warrior",
        title="Weekend Warrior",
        description="Study during the weekend",
        icon="💪",
        points=25,
        activity_type="weekend_study",
        requirement=1,
    ),
]


def longest_streak(days: list[date]) -> int:
    """Longest run of consecutive calendar days."""
    best = run = 0
    previous: date | None = None
    for day in sorted(set(days)):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def _measure(achievement: Achievement, progress: AchievementProgress) -> int:
    measures = {
        "task_completion": progress.task_completions,
        "streak": progress.task_streak,
        "study_time": progress.study_minutes_today,
        "flashcard_review": progress.flashcard_reviews,
        "early_bird": int(progress.early_task),
        "night_owl": int(progress.late_task),
        "weekend_study": int(progress.weekend_activity),
    }
    return measures[achievement.activity_type]


def earned_achievements(progress: AchievementProgress) -> list[Achievement]:
    return [a for a in CATALOGUE if _measure(a, progress) >= a.requirement]


async def list_achievements(
    db: aiosqlite.Connection, user_id: int
) -> list[AchievementStatus]:
    unlocked = await list_unlocked_achievements(db, user_id)
    return [
        AchievementStatus(
            **a.model_dump(), unlocked=a.id in unlocked, unlocked_at=unlocked.get(a.id)
        )
        for a in CATALOGUE
    ]


async def check_achievements(
    db: aiosqlite.Connection, user_id: int, today: date | None = None
) -> list[Achievement]:
    """Grant every earned achievement the user does not hold yet."""
    today = today or datetime.now(timezone.utc).date()
    raw = await get_achievement_progress(db, user_id, today)
    progress = AchievementProgress(
        task_completions=raw["task_completions"],
        task_points_today=raw["task_points_today"],
        flashcard_reviews=raw["flashcard_reviews"],
        early_task=bool(raw["early_task"]),
        late_task=bool(raw["late_task"]),
        weekend_activity=bool(raw["weekend_activity"]),
        task_days=raw["task_days"],
    )
    granted = []
    for achievement in earned_achievements(progress):
        added = await add_achievement(
            db,
            user_id,
            achievement.id,
            achievement.title,
            achievement.points,
            f"Achievement unlocked: {achievement.title}",
        )
        if added:
            granted.append(achievement)
            logger.info("User %s unlocked %s", user_id, achievement.id)
    return granted
