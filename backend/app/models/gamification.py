from pydantic import BaseModel

from app.models.flashcard import StatsPeriod


class LevelInfo(BaseModel):
    total_points: int
    current_level: int
    points_to_next_level: int
    level_progress: float  # percent of the current level


class Activity(BaseModel):
    activity_type: str
    points_earned: int
    description: str
    achievement_type: str | None = None
    achievement_title: str | None = None
    created_at: str


class ActivityStats(BaseModel):
    activity_type: str
    count: int
    total_points: int


class GamificationProfile(LevelInfo):
    total_activities: int
    achievements_count: int
    ranking: int | None
    recent_activities: list[Activity]
    activity_stats: list[ActivityStats]


class ActivityHistory(BaseModel):
    items: list[Activity]
    total: int
    offset: int
    limit: int


class LeaderboardEntry(BaseModel):
    user_id: int
    total_points: int
    total_activities: int
    level: int


class Leaderboard(BaseModel):
    items: list[LeaderboardEntry]


class Achievement(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    points: int
    activity_type: str  # which counter the requirement is measured on
    requirement: int


class AchievementStatus(Achievement):
    unlocked: bool
    unlocked_at: str | None = None


class AchievementList(BaseModel):
    achievements: list[AchievementStatus]


class AchievementCheck(BaseModel):
    new_achievements: list[Achievement]
    total_granted: int


class GamificationGeneralStats(BaseModel):
    total_activities: int
    total_points: int
    achievements_unlocked: int
    avg_points_per_activity: float | None


class PeriodActivityStats(ActivityStats):
    avg_points: float


class DailyActivity(BaseModel):
    date: str
    activities: int
    points_earned: int
    achievements: int


class BestDay(BaseModel):
    date: str
    total_points: int


class GamificationStats(BaseModel):
    period: StatsPeriod
    start_date: str
    end_date: str
    general_stats: GamificationGeneralStats
    activity_stats: list[PeriodActivityStats]
    daily_stats: list[DailyActivity]
    best_day: BestDay | None
