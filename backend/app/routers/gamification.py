from datetime import datetime, timezone

import aiosqlite
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.db.sqlite import get_db, get_gamification_stats, list_activities
from app.dependencies import get_current_user_id
from app.models.flashcard import StatsPeriod
from app.models.gamification import (
    AchievementCheck,
    AchievementList,
    ActivityHistory,
    GamificationProfile,
    GamificationStats,
    Leaderboard,
)
from app.services.achievements import check_achievements, list_achievements
from app.services.gamification import award_points, build_leaderboard, build_profile

router = APIRouter()


class ActivityCreate(BaseModel):
    activity_type: str = Field(min_length=1, max_length=50)
    points: int = Field(ge=1, le=1000)
    description: str = Field(default="", max_length=255)


@router.get("/profile", response_model=GamificationProfile)
async def profile(
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    return await build_profile(db, user_id)


@router.get("/history", response_model=ActivityHistory)
async def history(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    items, total = await list_activities(db, user_id, offset=offset, limit=limit)
    return ActivityHistory(items=items, total=total, offset=offset, limit=limit)


@router.get("/stats", response_model=GamificationStats)
async def stats(
    period: StatsPeriod = Query(default=StatsPeriod.MONTH),
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    """Points per activity type and per day over the period, plus the best day."""
    now = datetime.now(timezone.utc)
    since = period.start(now)
    return GamificationStats(
        period=period,
        start_date=since.date().isoformat(),
        end_date=now.date().isoformat(),
        **await get_gamification_stats(db, user_id, since),
    )


@router.post("/activities", status_code=201)
async def record_activity(
    body: ActivityCreate,
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> dict:
    """Credit points earned outside the review flow (e.g. client-side study mode)."""
    await award_points(db, user_id, body.points, body.description, body.activity_type)
    return {"status": "ok", "points_earned": body.points}


@router.get("/achievements", response_model=AchievementList)
async def achievements(
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    return AchievementList(achievements=await list_achievements(db, user_id))


@router.post("/check-achievements", response_model=AchievementCheck)
async def grant_achievements(
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    granted = await check_achievements(db, user_id)
    return AchievementCheck(new_achievements=granted, total_granted=len(granted))


@router.get("/leaderboard", response_model=Leaderboard)
async def leaderboard(
    limit: int = Query(default=10, ge=1, le=100),
    db: aiosqlite.Connection = Depends(get_db),
):
    return Leaderboard(items=await build_leaderboard(db, limit=limit))
