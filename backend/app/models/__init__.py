from app.models.flashcard import (
    CardStatus,
    Difficulty,
    Flashcard,
    FlashcardCreate,
    FlashcardImport,
    FlashcardList,
    FlashcardStats,
    FlashcardUpdate,
    ImportResult,
    ReviewRequest,
    ReviewResponse,
    StatsPeriod,
)
from app.models.gamification import (
    Achievement,
    AchievementCheck,
    AchievementList,
    AchievementStatus,
    Activity,
    ActivityHistory,
    GamificationProfile,
    GamificationStats,
    Leaderboard,
    LeaderboardEntry,
    LevelInfo,
)
from app.models.subject import Subject, SubjectCreate, SubjectList

__all__ = [
    "Achievement",
    "AchievementCheck",
    "AchievementList",
    "AchievementStatus",
    "Activity",
    "ActivityHistory",
    "CardStatus",
    "Difficulty",
    "Flashcard",
    "FlashcardCreate",
    "FlashcardImport",
    "FlashcardList",
    "FlashcardStats",
    "FlashcardUpdate",
    "GamificationProfile",
    "GamificationStats",
    "ImportResult",
    "Leaderboard",
    "LeaderboardEntry",
    "LevelInfo",
    "ReviewRequest",
    "ReviewResponse",
    "StatsPeriod",
    "Subject",
    "SubjectCreate",
    "SubjectList",
]
