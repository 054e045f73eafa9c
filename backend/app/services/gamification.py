"""
Points ledger and level maths.

Every scoring activity appends one row to gamification_log; levels are
derived from the running total (level 1 starts at 0 points).
"""
from __future__ import annotations

import logging

import aiosqlite

from app.config import settings
from app.db.sqlite import (
    add_activity,
    get_activity_stats,
    get_leaderboard,
    get_points_summary,
    get_ranking,
    list_activities,
    list_unlocked_achievements,
)
from app.models.gamification import (
    GamificationProfile,
    LeaderboardEntry,
    LevelInfo,
)

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


def compute_level(total_points: int, points_per_level: int | None = None) -> LevelInfo:
    per_level = points_per_level or settings.points_per_level
    into_level = total_points % per_level
    return LevelInfo(
        total_points=total_points,
        current_level=total_points // per_level + 1,
        points_to_next_level=per_level - into_level,
        level_progress=into_level / per_level * 100,
    )


async def award_points(
    db: aiosqlite.Connection,
    user_id: int,
    points: int,
    description: str,
    activity_type: str = "generic",
) -> None:
    if points <= 0:
        return
    await add_activity(db, user_id, activity_type, points, description)
    logger.info("Awarded %d points to user %s (%s)", points, user_id, activity_type)


async def build_profile(db: aiosqlite.Connection, user_id: int) -> GamificationProfile:
    total_points, total_activities = await get_points_summary(db, user_id)
    recent, _ = await list_activities(db, user_id, limit=RECENT_ACTIVITY_LIMIT)
    return GamificationProfile(
        **compute_level(total_points).model_dump(),
        total_activities=total_activities,
        achievements_count=len(await list_unlocked_achievements(db, user_id)),
        ranking=await get_ranking(db, user_id),
        recent_activities=recent,
        activity_stats=await get_activity_stats(db, user_id),
    )


async def build_leaderboard(
    db: aiosqlite.Connection, limit: int = 10
) -> list[LeaderboardEntry]:
    rows = await get_leaderboard(db, limit=limit)
    return [
        LeaderboardEntry(
            user_id=r["user_id"],
            total_points=r["total_points"],
            total_activities=r["total_activities"],
            level=compute_level(r["total_points"]).current_level,
        )
        for r in rows
    ]
