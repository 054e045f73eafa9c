from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from pydantic import (
    BaseModel,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    field_validator,
    model_validator,
)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class CardStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class StatsPeriod(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def days(self) -> int:
        return _PERIOD_DAYS[self.value]

    def start(self, now: datetime) -> datetime:
        """Midnight UTC at the beginning of the period ending at `now`."""
        return (now - timedelta(days=self.days)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )


_PERIOD_DAYS = {"week": 7, "month": 30, "year": 365}


def _trimmed(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not 3 <= len(value) <= 1000:
        raise ValueError("content must be between 3 and 1000 characters")
    return value


class FlashcardCreate(BaseModel):
    subject_id: str
    front_content: str
    back_content: str
    tags: list[str] = Field(default_factory=list)
    difficulty: Difficulty = Difficulty.MEDIUM

    @field_validator("front_content", "back_content")
    @classmethod
    def check_content(cls, value: str | None) -> str | None:
        return _trimmed(value)


class FlashcardUpdate(BaseModel):
    subject_id: str | None = None
    front_content: str | None = None
    back_content: str | None = None
    tags: list[str] | None = None
    difficulty: Difficulty | None = None
    status: CardStatus | None = None

    @field_validator("front_content", "back_content")
    @classmethod
    def check_content(cls, value: str | None) -> str | None:
        return _trimmed(value)


class FlashcardImport(BaseModel):
    subject_id: str
    flashcards: list[dict] = Field(min_length=1)


class Flashcard(BaseModel):
    id: str
    user_id: int
    subject_id: str
    subject_name: str | None = None
    subject_color: str | None = None
    front_content: str
    back_content: str
    tags: list[str]
    difficulty: Difficulty
    status: CardStatus
    interval_days: int      # 0 = never reviewed successfully
    ease_factor: float      # >= 1.3, starts at 2.5
    review_count: int
    correct_count: int
    incorrect_count: int
    next_review_at: str     # UTC "YYYY-MM-DD HH:MM:SS"
    last_reviewed_at: str | None
    created_at: str
    updated_at: str


class FlashcardList(BaseModel):
    items: list[Flashcard]
    total: int
    offset: int = 0
    limit: int = 0


class ImportResult(BaseModel):
    imported_count: int
    flashcards: list[Flashcard]


class ReviewRequest(BaseModel):
    """
    Either a 1-5 rating or a binary response, never both.

    `rating` is taken as sent, without coercion, so booleans and fractions
    reach the scheduler and are declined there as invalid ratings.
    """

    rating: StrictInt | StrictFloat | StrictBool | None = None
    response: str | None = None  # "correct" | "incorrect" | "skipped"

    @model_validator(mode="after")
    def check_one_outcome(self) -> ReviewRequest:
        if (self.rating is None) == (self.response is None):
            raise ValueError("provide exactly one of 'rating' or 'response'")
        return self

    @property
    def outcome(self) -> int | float | str:
        return self.rating if self.rating is not None else self.response  # type: ignore[return-value]


class ReviewResponse(BaseModel):
    flashcard: Flashcard
    points_earned: int
    next_review_at: str
    new_interval: int
    skipped: bool = False


class GeneralStats(BaseModel):
    total_reviews: int
    correct_reviews: int
    incorrect_reviews: int
    avg_rating: float | None
    accuracy_rate: float | None


class SubjectStats(BaseModel):
    subject_id: str | None
    subject_name: str | None
    subject_color: str | None
    total_reviews: int
    correct_reviews: int
    avg_rating: float | None


class DailyStats(BaseModel):
    date: str
    total_reviews: int
    correct_reviews: int
    avg_rating: float | None


class FlashcardStats(BaseModel):
    period: StatsPeriod
    start_date: str
    end_date: str
    general_stats: GeneralStats
    subject_stats: list[SubjectStats]
    daily_stats: list[DailyStats]
    due_for_review: int
