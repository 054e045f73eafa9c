"""
Spaced-repetition scheduler (SM-2 variant).

Pure functions only: callers load a card, call review(), persist the result
and forward `points` to the gamification ledger.

  rating 3-5  -> success: interval 0 -> 1 -> 6 -> interval * ease
  rating 1-2  -> failure: interval back to 1, ease - 0.2
  correct / incorrect -> rating 5 / rating 1
  skipped     -> no change, no points
"""
from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum

from app.exceptions import InvalidRating

MIN_EASE = 1.3
DEFAULT_EASE = 2.5
MIN_RATING = 1
MAX_RATING = 5
PASSING_RATING = 3
MAX_INTERVAL_DAYS = 36500


class BinaryOutcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    SKIPPED = "skipped"


_BINARY_RATING = {BinaryOutcome.CORRECT: MAX_RATING, BinaryOutcome.INCORRECT: MIN_RATING}


@dataclass(frozen=True)
class RewardPolicy:
    points_per_rating: int = 2
    failed_review_points: int = 1
    binary_review_points: int = 2


@dataclass(frozen=True)
class ReviewableCard:
    id: str
    interval_days: int = 0
    ease_factor: float = DEFAULT_EASE
    review_count: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    next_review_at: datetime | None = None
    last_reviewed_at: datetime | None = None
    subject_id: str | None = None
    difficulty: str | None = None


@dataclass(frozen=True)
class ReviewResult:
    card: ReviewableCard
    points: int
    rating: int | None
    skipped: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def new_card_state(card_id: str, now: datetime | None = None) -> ReviewableCard:
    """Scheduling state for a freshly created card: due immediately."""
    return ReviewableCard(id=card_id, next_review_at=now or _utcnow())


def normalize_outcome(
    outcome: int | float | str | BinaryOutcome,
) -> tuple[int | None, bool]:
    """
    Resolve a rating or binary outcome to (rating, is_binary).

    Returns rating None for a skipped review. Raises InvalidRating for anything
    outside 1..5, a non-integer rating or an unknown category.
    """
    if isinstance(outcome, (bool, float)):
        raise InvalidRating(f"rating must be an integer between 1 and 5, got {outcome!r}")
    if isinstance(outcome, int):
        if not MIN_RATING <= outcome <= MAX_RATING:
            raise InvalidRating(f"rating must be between 1 and 5, got {outcome}")
        return outcome, False
    try:
        binary = BinaryOutcome(outcome)
    except ValueError:
        raise InvalidRating(f"unknown review outcome {outcome!r}") from None
    if binary is BinaryOutcome.SKIPPED:
        return None, True
    return _BINARY_RATING[binary], True


def next_interval(
    interval_days: int, ease_factor: float, max_interval_days: int = MAX_INTERVAL_DAYS
) -> int:
    """Next success interval, capped so the due date stays representable."""
    if interval_days == 0:
        return 1
    if interval_days == 1:
        return 6
    return min(_round_half_up(interval_days * ease_factor), max_interval_days)


def next_ease(ease_factor: float, rating: int) -> float:
    if rating >= PASSING_RATING:
        miss = MAX_RATING - rating
        ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    else:
        ease = ease_factor - 0.2
    # every delta is a multiple of 0.02
    return max(MIN_EASE, round(ease, 2))


def reward_points(rating: int, is_binary: bool, policy: RewardPolicy) -> int:
    if is_binary:
        return policy.binary_review_points
    if rating >= PASSING_RATING:
        return math.floor(rating * policy.points_per_rating)
    return policy.failed_review_points


def review(
    card: ReviewableCard,
    outcome: int | float | str | BinaryOutcome,
    now: datetime | None = None,
    policy: RewardPolicy | None = None,
    max_interval_days: int = MAX_INTERVAL_DAYS,
) -> ReviewResult:
    """Apply one review outcome to `card` and return the next state plus points."""
    rating, is_binary = normalize_outcome(outcome)
    policy = policy or RewardPolicy()
    if rating is None:
        return ReviewResult(card=card, points=0, rating=None, skipped=True)

    now = now or _utcnow()
    if rating >= PASSING_RATING:
        interval = next_interval(card.interval_days, card.ease_factor, max_interval_days)
        correct_count = card.correct_count + 1
        incorrect_count = card.incorrect_count
    else:
        interval = 1
        correct_count = card.correct_count
        incorrect_count = card.incorrect_count + 1

    updated = replace(
        card,
        interval_days=interval,
        ease_factor=next_ease(card.ease_factor, rating),
        review_count=card.review_count + 1,
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        last_reviewed_at=now,
        next_review_at=now + timedelta(days=interval),
    )
    return ReviewResult(
        card=updated, points=reward_points(rating, is_binary, policy), rating=rating
    )


def is_due(card: ReviewableCard, now: datetime) -> bool:
    return card.next_review_at is None or card.next_review_at <= now


def select_due(
    cards: Iterable[ReviewableCard],
    now: datetime | None = None,
    subject_id: str | None = None,
    difficulty: str | None = None,
    limit: int | None = None,
) -> list[ReviewableCard]:
    """Cards due at `now`, oldest due date first. Ties keep input order."""
    now = now or _utcnow()
    due = [
        c
        for c in cards
        if is_due(c, now)
        and (subject_id is None or c.subject_id == subject_id)
        and (difficulty is None or c.difficulty == difficulty)
    ]
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    due.sort(key=lambda c: c.next_review_at or epoch)
    return due if limit is None else due[:limit]
