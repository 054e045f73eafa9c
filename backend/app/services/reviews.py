"""
Review submission: load card -> scheduler.review() -> persist -> points.

Ownership is enforced by loading the card scoped to the requesting user, so a
card belonging to someone else is indistinguishable from a missing one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

import aiosqlite

from app.config import settings
from app.db.sqlite import get_flashcard, save_review, to_reviewable
from app.exceptions import CardNotFound
from app.models.flashcard import Flashcard
from app.services.scheduler import RewardPolicy, review

logger = logging.getLogger(__name__)

DESCRIPTION_PREVIEW_CHARS = 50


@dataclass
class SubmittedReview:
    flashcard: Flashcard
    points: int
    skipped: bool


def reward_policy() -> RewardPolicy:
    return RewardPolicy(
        points_per_rating=settings.review_points_per_rating,
        failed_review_points=settings.failed_review_points,
        binary_review_points=settings.binary_review_points,
    )


async def submit_review(
    db: aiosqlite.Connection,
    user_id: int,
    card_id: str,
    outcome: int | float | str,
    now: datetime | None = None,
) -> SubmittedReview:
    card = await get_flashcard(db, user_id, card_id)
    if card is None:
        raise CardNotFound(f"Flashcard {card_id} not found")

    current = to_reviewable(card)
    result = review(
        current,
        outcome,
        now=now,
        policy=reward_policy(),
        max_interval_days=settings.max_interval_days,
    )
    if result.skipped:
        logger.debug("Card %s skipped by user %s", card_id, user_id)
        return SubmittedReview(flashcard=card, points=0, skipped=True)

    saved = await save_review(
        db,
        user_id,
        previous=current,
        updated=result.card,
        rating=result.rating,  # type: ignore[arg-type]
        outcome=outcome if isinstance(outcome, str) else "rating",
        points=result.points,
        description=f"Reviewed flashcard: {card.front_content[:DESCRIPTION_PREVIEW_CHARS]}",
    )
    logger.info(
        "Card %s reviewed by user %s: rating=%s interval=%d ease=%.2f points=%d",
        card_id,
        user_id,
        result.rating,
        saved.interval_days,
        saved.ease_factor,
        result.points,
    )
    return SubmittedReview(flashcard=saved, points=result.points, skipped=False)
