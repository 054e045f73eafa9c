"""
Flashcards & spaced repetition router.

Endpoints:
  GET    /flashcards              list cards (subject/status/difficulty/tag filters)
  POST   /flashcards              create a card (due immediately)
  POST   /flashcards/import       bulk create into one subject
  GET    /flashcards/review       due set, oldest due first
  GET    /flashcards/stats        review statistics for week/month/year
  GET    /flashcards/{id}         single card
  PUT    /flashcards/{id}         edit content / subject / status
  DELETE /flashcards/{id}         delete card
  PUT    /flashcards/{id}/review  submit a rating (1-5) or correct/incorrect/skipped
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

import aiosqlite
import pydantic
from fastapi import APIRouter, Depends, Query

from app.config import settings
from app.db.sqlite import (
    create_flashcard,
    delete_flashcard,
    get_db,
    get_flashcard,
    get_flashcard_stats,
    import_flashcards,
    list_due_flashcards,
    list_flashcards,
    update_flashcard,
)
from app.dependencies import get_current_user_id
from app.exceptions import CardNotFound, ValidationError
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
from app.services.reviews import submit_review

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=FlashcardList)
async def list_cards(
    subject_id: str | None = Query(default=None),
    status: CardStatus | None = Query(default=None),
    difficulty: Difficulty | None = Query(default=None),
    tag: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    items, total = await list_flashcards(
        db,
        user_id,
        subject_id=subject_id,
        status=status,
        difficulty=difficulty,
        tag=tag,
        offset=offset,
        limit=limit,
    )
    return FlashcardList(items=items, total=total, offset=offset, limit=limit)


@router.post("/", response_model=Flashcard, status_code=201)
async def create_card(
    body: FlashcardCreate,
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    return await create_flashcard(db, user_id, body)


@router.post("/import", response_model=ImportResult, status_code=201)
async def import_cards(
    body: FlashcardImport,
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> ImportResult:
    """Bulk-create cards in one subject. Entries without valid content are skipped."""
    cards: list[FlashcardCreate] = []
    for index, raw in enumerate(body.flashcards):
        try:
            cards.append(FlashcardCreate(**{**raw, "subject_id": body.subject_id}))
        except pydantic.ValidationError as e:
            logger.warning("Skipping import entry %d: %s", index, e.errors()[0]["msg"])
    if not cards:
        raise ValidationError("No valid flashcards to import")
    created = await import_flashcards(db, user_id, cards)
    return ImportResult(imported_count=len(created), flashcards=created)


@router.get("/review", response_model=FlashcardList)
async def get_due(
    subject_id: str | None = Query(default=None),
    difficulty: Difficulty | None = Query(default=None),
    limit: int = Query(default=settings.due_default_limit, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    """Return active cards due now, oldest first."""
    items = await list_due_flashcards(
        db,
        user_id,
        datetime.now(timezone.utc),
        subject_id=subject_id,
        difficulty=difficulty,
        limit=limit,
    )
    return FlashcardList(items=items, total=len(items), limit=limit)


@router.get("/stats", response_model=FlashcardStats)
async def card_stats(
    period: StatsPeriod = Query(default=StatsPeriod.MONTH),
    subject_id: str | None = Query(default=None),
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardStats:
    now = datetime.now(timezone.utc)
    since = period.start(now)
    stats = await get_flashcard_stats(db, user_id, since, now, subject_id=subject_id)
    return FlashcardStats(
        period=period,
        start_date=since.date().isoformat(),
        end_date=now.date().isoformat(),
        **stats,
    )


@router.get("/{card_id}", response_model=Flashcard)
async def get_card(
    card_id: str,
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    card = await get_flashcard(db, user_id, card_id)
    if not card:
        raise CardNotFound(f"Flashcard {card_id} not found")
    return card


@router.put("/{card_id}", response_model=Flashcard)
async def edit_card(
    card_id: str,
    body: FlashcardUpdate,
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    updated = await update_flashcard(db, user_id, card_id, body)
    if not updated:
        raise CardNotFound(f"Flashcard {card_id} not found")
    return updated


@router.delete("/{card_id}", status_code=204)
async def remove_card(
    card_id: str,
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_flashcard(db, user_id, card_id)
    if not deleted:
        raise CardNotFound(f"Flashcard {card_id} not found")


@router.put("/{card_id}/review", response_model=ReviewResponse)
async def review_card(
    card_id: str,
    body: ReviewRequest,
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResponse:
    """Submit a review. Runs the scheduler, persists the card and awards points."""
    submitted = await submit_review(db, user_id, card_id, body.outcome)
    card = submitted.flashcard
    return ReviewResponse(
        flashcard=card,
        points_earned=submitted.points,
        next_review_at=card.next_review_at,
        new_interval=card.interval_days,
        skipped=submitted.skipped,
    )
