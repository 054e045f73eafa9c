"""
Integration tests for the SQLite persistence layer: due-set query,
atomic review write-back and achievement grants.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.db.sqlite import (
    add_activity,
    create_flashcard,
    create_subject,
    format_ts,
    get_flashcard,
    get_points_summary,
    list_due_flashcards,
    save_review,
    to_reviewable,
)
from app.exceptions import ReviewConflict
from app.models.flashcard import Difficulty, FlashcardCreate
from app.models.subject import SubjectCreate
from app.services.achievements import check_achievements, list_achievements
from app.services.scheduler import review

pytestmark = pytest.mark.integration

USER = 1


async def _new_card(db, subject_id, front="Qual é a capital da França?"):
    return await create_flashcard(
        db,
        USER,
        FlashcardCreate(subject_id=subject_id, front_content=front, back_content="Paris"),
    )


async def _count(db, table):
    cursor = await db.execute(f"SELECT COUNT(*) FROM {table}")  # noqa: S608
    return (await cursor.fetchone())[0]


class TestDueQuery:
    async def test_due_set_yesterday_today_tomorrow(self, db):
        subject = await create_subject(db, USER, SubjectCreate(name="Geografia"))
        now = datetime.now(timezone.utc).replace(microsecond=0)
        due_dates = {
            "yesterday": now - timedelta(days=1),
            "today": now,
            "tomorrow": now + timedelta(days=1),
        }
        ids = {}
        for label, when in due_dates.items():
            card = await _new_card(db, subject.id, front=f"Pergunta {label}")
            await db.execute(
                "UPDATE flashcards SET next_review_at = ? WHERE id = ?",
                (format_ts(when), card.id),
            )
            ids[card.id] = label
        await db.commit()

        due = await list_due_flashcards(db, USER, now)
        assert [ids[c.id] for c in due] == ["yesterday", "today"]

    async def test_due_filtered_by_subject_and_difficulty(self, db):
        math = await create_subject(db, USER, SubjectCreate(name="Matemática"))
        bio = await create_subject(db, USER, SubjectCreate(name="Biologia"))
        ids = {}
        for label, subject, difficulty in [
            ("math-easy", math, Difficulty.EASY),
            ("math-hard", math, Difficulty.HARD),
            ("bio-hard", bio, Difficulty.HARD),
        ]:
            card = await create_flashcard(
                db,
                USER,
                FlashcardCreate(
                    subject_id=subject.id,
                    front_content=f"Pergunta {label}",
                    back_content="Resposta",
                    difficulty=difficulty,
                ),
            )
            ids[card.id] = label
        now = datetime.now(timezone.utc) + timedelta(seconds=1)

        due = await list_due_flashcards(db, USER, now, subject_id=math.id)
        assert {ids[c.id] for c in due} == {"math-easy", "math-hard"}

        due = await list_due_flashcards(db, USER, now, difficulty=Difficulty.HARD)
        assert {ids[c.id] for c in due} == {"math-hard", "bio-hard"}

        due = await list_due_flashcards(
            db, USER, now, subject_id=math.id, difficulty=Difficulty.HARD
        )
        assert [ids[c.id] for c in due] == ["math-hard"]

    async def test_due_scoped_to_user(self, db):
        subject = await create_subject(db, USER, SubjectCreate(name="Geografia"))
        await _new_card(db, subject.id)
        now = datetime.now(timezone.utc) + timedelta(seconds=1)

        assert len(await list_due_flashcards(db, USER, now)) == 1
        assert await list_due_flashcards(db, 99, now) == []


class TestSaveReview:
    async def test_review_written_atomically(self, db):
        subject = await create_subject(db, USER, SubjectCreate(name="História"))
        card = await _new_card(db, subject.id)
        current = to_reviewable(card)
        result = review(current, 4)

        saved = await save_review(
            db, USER, current, result.card, result.rating, "rating", result.points, "test"
        )
        assert saved.review_count == 1
        assert saved.interval_days == 1
        assert saved.last_reviewed_at is not None
        assert await _count(db, "flashcard_reviews") == 1
        assert await get_points_summary(db, USER) == (8, 1)

    async def test_stale_snapshot_is_declined(self, db):
        """A second write computed from the same snapshot must not land."""
        subject = await create_subject(db, USER, SubjectCreate(name="História"))
        card = await _new_card(db, subject.id)
        snapshot = to_reviewable(card)

        first = review(snapshot, 5)
        await save_review(db, USER, snapshot, first.card, first.rating, "rating", first.points, "a")

        second = review(snapshot, 1)
        with pytest.raises(ReviewConflict):
            await save_review(
                db, USER, snapshot, second.card, second.rating, "rating", second.points, "b"
            )

        stored = await get_flashcard(db, USER, card.id)
        assert stored.review_count == 1
        assert stored.correct_count == 1
        assert stored.incorrect_count == 0
        assert await _count(db, "flashcard_reviews") == 1
        assert await _count(db, "gamification_log") == 1


class TestAchievements:
    async def test_flashcard_master_granted_once(self, db):
        for i in range(50):
            await add_activity(db, USER, "flashcard_review", 2, f"review {i}")

        granted = await check_achievements(db, USER)
        assert "flashcard_master" in {a.id for a in granted}
        points_before = (await get_points_summary(db, USER))[0]

        assert await check_achievements(db, USER) == []
        assert (await get_points_summary(db, USER))[0] == points_before

        cursor = await db.execute(
            "SELECT COUNT(*) FROM gamification_log WHERE achievement_type = 'flashcard_master'"
        )
        assert (await cursor.fetchone())[0] == 1

        statuses = {s.id: s for s in await list_achievements(db, USER)}
        assert statuses["flashcard_master"].unlocked is True
        assert statuses["flashcard_master"].unlocked_at is not None
        assert statuses["task_streak_30"].unlocked is False

    async def test_below_threshold_grants_nothing_for_reviews(self, db):
        for i in range(49):
            await add_activity(db, USER, "flashcard_review", 2, f"review {i}")

        granted = await check_achievements(db, USER)
        assert "flashcard_master" not in {a.id for a in granted}

    async def test_first_task_from_task_completion(self, db):
        await add_activity(db, USER, "task_completion", 5, "Simulado")

        granted = {a.id for a in await check_achievements(db, USER)}
        assert "first_task" in granted
        assert "flashcard_master" not in granted
        assert await check_achievements(db, 99) == []
