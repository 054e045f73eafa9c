import json
import logging
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from app.config import settings
from app.exceptions import CardNotFound, NotOwner, ReviewConflict, SubjectNotFound
from app.models.flashcard import (
    CardStatus,
    Difficulty,
    Flashcard,
    FlashcardCreate,
    FlashcardUpdate,
)
from app.models.gamification import Activity, ActivityStats
from app.models.subject import Subject, SubjectCreate
from app.services.scheduler import ReviewableCard, new_card_state

logger = logging.getLogger(__name__)

_db_path: Path | None = None

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS subjects (
    id          TEXT PRIMARY KEY,
    user_id     INTEGER NOT NULL,
    name        TEXT NOT NULL,
    color       TEXT NOT NULL DEFAULT '#3B82F6',
    created_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_subjects_user ON subjects(user_id);

CREATE TABLE IF NOT EXISTS flashcards (
    id               TEXT PRIMARY KEY,
    user_id          INTEGER NOT NULL,
    subject_id       TEXT NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
    front_content    TEXT NOT NULL,
    back_content     TEXT NOT NULL,
    tags             TEXT NOT NULL DEFAULT '[]',
    difficulty       TEXT NOT NULL DEFAULT 'medium',
    status           TEXT NOT NULL DEFAULT 'active',
    interval_days    INTEGER NOT NULL DEFAULT 0 CHECK (interval_days >= 0),
    ease_factor      REAL NOT NULL DEFAULT 2.5 CHECK (ease_factor >= 1.3),
    review_count     INTEGER NOT NULL DEFAULT 0,
    correct_count    INTEGER NOT NULL DEFAULT 0,
    incorrect_count  INTEGER NOT NULL DEFAULT 0,
    next_review_at   TEXT NOT NULL,
    last_reviewed_at TEXT,
    created_at       TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_flashcards_user ON flashcards(user_id);
CREATE INDEX IF NOT EXISTS idx_flashcards_review ON flashcards(user_id, next_review_at);

CREATE TABLE IF NOT EXISTS flashcard_reviews (
    id             TEXT PRIMARY KEY,
    flashcard_id   TEXT NOT NULL REFERENCES flashcards(id) ON DELETE CASCADE,
    user_id        INTEGER NOT NULL,
    rating         INTEGER NOT NULL,
    outcome        TEXT NOT NULL DEFAULT 'rating',
    interval_days  INTEGER NOT NULL,
    ease_factor    REAL NOT NULL,
    reviewed_at    TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_reviews_user_time ON flashcard_reviews(user_id, reviewed_at);

CREATE TABLE IF NOT EXISTS gamification_log (
    id             TEXT PRIMARY KEY,
    user_id        INTEGER NOT NULL,
    activity_type  TEXT NOT NULL,
    points_earned  INTEGER NOT NULL DEFAULT 0,
    description    TEXT NOT NULL DEFAULT '',
    created_at     TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_gamification_user ON gamification_log(user_id, created_at);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        cursor = await db.execute("SELECT MAX(version) FROM schema_version")
        current_version = (await cursor.fetchone())[0]
        # v2: achievements are ledger rows tagged with the achievement id
        if current_version < 2:
            await db.executescript("""
                ALTER TABLE gamification_log ADD COLUMN achievement_type TEXT;
                ALTER TABLE gamification_log ADD COLUMN achievement_title TEXT;
                CREATE UNIQUE INDEX IF NOT EXISTS idx_gamification_achievement
                    ON gamification_log(user_id, achievement_type)
                    WHERE achievement_type IS NOT NULL;
                INSERT OR IGNORE INTO schema_version(version) VALUES (2);
            """)
        await db.commit()
    logger.info("SQLite ready at %s", _db_path)


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def format_ts(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def _now() -> str:
    return format_ts(datetime.now(timezone.utc))


# --- Subjects ---


def _row_to_subject(row: aiosqlite.Row) -> Subject:
    return Subject(**dict(row))


async def create_subject(
    db: aiosqlite.Connection, user_id: int, body: SubjectCreate
) -> Subject:
    subject_id = str(uuid.uuid4())
    await db.execute(
        "INSERT INTO subjects (id, user_id, name, color, created_at) VALUES (?, ?, ?, ?, ?)",
        (subject_id, user_id, body.name.strip(), body.color, _now()),
    )
    await db.commit()
    return await get_subject(db, subject_id)  # type: ignore[return-value]


async def get_subject(db: aiosqlite.Connection, subject_id: str) -> Subject | None:
    cursor = await db.execute("SELECT * FROM subjects WHERE id = ?", (subject_id,))
    row = await cursor.fetchone()
    return _row_to_subject(row) if row else None


async def list_subjects(db: aiosqlite.Connection, user_id: int) -> list[Subject]:
    cursor = await db.execute(
        "SELECT * FROM subjects WHERE user_id = ? ORDER BY name ASC", (user_id,)
    )
    rows = await cursor.fetchall()
    return [_row_to_subject(r) for r in rows]


async def require_own_subject(
    db: aiosqlite.Connection, user_id: int, subject_id: str
) -> Subject:
    subject = await get_subject(db, subject_id)
    if subject is None:
        raise SubjectNotFound(f"Subject {subject_id} not found")
    if subject.user_id != user_id:
        raise NotOwner(f"Subject {subject_id} belongs to another user")
    return subject


# --- Flashcards ---

_FLASHCARD_SELECT = """
    SELECT f.*, s.name AS subject_name, s.color AS subject_color
    FROM flashcards f
    LEFT JOIN subjects s ON s.id = f.subject_id
"""


def _row_to_flashcard(row: aiosqlite.Row) -> Flashcard:
    d = dict(row)
    d["tags"] = json.loads(d["tags"] or "[]")
    return Flashcard(**d)


def to_reviewable(card: Flashcard) -> ReviewableCard:
    return ReviewableCard(
        id=card.id,
        interval_days=card.interval_days,
        ease_factor=card.ease_factor,
        review_count=card.review_count,
        correct_count=card.correct_count,
        incorrect_count=card.incorrect_count,
        next_review_at=parse_ts(card.next_review_at),
        last_reviewed_at=parse_ts(card.last_reviewed_at),
        subject_id=card.subject_id,
        difficulty=card.difficulty.value,
    )


async def _insert_flashcard(
    db: aiosqlite.Connection, user_id: int, body: FlashcardCreate, now: datetime
) -> str:
    state = new_card_state(str(uuid.uuid4()), now)
    created = format_ts(now)
    await db.execute(
        """INSERT INTO flashcards
           (id, user_id, subject_id, front_content, back_content, tags,
            difficulty, status, interval_days, ease_factor, next_review_at,
            created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            state.id,
            user_id,
            body.subject_id,
            body.front_content,
            body.back_content,
            json.dumps(body.tags),
            body.difficulty.value,
            CardStatus.ACTIVE.value,
            state.interval_days,
            state.ease_factor,
            format_ts(state.next_review_at),  # type: ignore[arg-type]
            created,
            created,
        ),
    )
    return state.id


async def create_flashcard(
    db: aiosqlite.Connection, user_id: int, body: FlashcardCreate
) -> Flashcard:
    await require_own_subject(db, user_id, body.subject_id)
    card_id = await _insert_flashcard(db, user_id, body, datetime.now(timezone.utc))
    await db.commit()
    return await get_flashcard(db, user_id, card_id)  # type: ignore[return-value]


async def import_flashcards(
    db: aiosqlite.Connection, user_id: int, cards: list[FlashcardCreate]
) -> list[Flashcard]:
    """Insert a batch of cards in one transaction. Subjects are checked up front."""
    for subject_id in {c.subject_id for c in cards}:
        await require_own_subject(db, user_id, subject_id)
    now = datetime.now(timezone.utc)
    card_ids = [await _insert_flashcard(db, user_id, c, now) for c in cards]
    await db.commit()
    return [await get_flashcard(db, user_id, cid) for cid in card_ids]  # type: ignore[misc]


async def get_flashcard(
    db: aiosqlite.Connection, user_id: int, card_id: str
) -> Flashcard | None:
    cursor = await db.execute(
        _FLASHCARD_SELECT + " WHERE f.id = ? AND f.user_id = ?", (card_id, user_id)
    )
    row = await cursor.fetchone()
    return _row_to_flashcard(row) if row else None


async def list_flashcards(
    db: aiosqlite.Connection,
    user_id: int,
    subject_id: str | None = None,
    status: CardStatus | None = None,
    difficulty: Difficulty | None = None,
    tag: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Flashcard], int]:
    conditions = ["f.user_id = ?"]
    params: list = [user_id]
    if subject_id:
        conditions.append("f.subject_id = ?")
        params.append(subject_id)
    if status:
        conditions.append("f.status = ?")
        params.append(status.value)
    if difficulty:
        conditions.append("f.difficulty = ?")
        params.append(difficulty.value)
    if tag:
        conditions.append("EXISTS (SELECT 1 FROM json_each(f.tags) WHERE value = ?)")
        params.append(tag)
    where = " AND ".join(conditions)

    cursor = await db.execute(
        f"SELECT COUNT(*) FROM flashcards f WHERE {where}",  # noqa: S608
        params,
    )
    total = (await cursor.fetchone())[0]

    cursor = await db.execute(
        _FLASHCARD_SELECT
        + f" WHERE {where} ORDER BY f.next_review_at ASC, f.created_at DESC LIMIT ? OFFSET ?",  # noqa: S608
        [*params, limit, offset],
    )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows], total


async def list_due_flashcards(
    db: aiosqlite.Connection,
    user_id: int,
    now: datetime,
    subject_id: str | None = None,
    difficulty: Difficulty | None = None,
    limit: int = 20,
) -> list[Flashcard]:
    """Active cards with next_review_at <= now, oldest due first, random tiebreak."""
    conditions = ["f.user_id = ?", "f.status = ?", "f.next_review_at <= ?"]
    params: list = [user_id, CardStatus.ACTIVE.value, format_ts(now)]
    if subject_id:
        conditions.append("f.subject_id = ?")
        params.append(subject_id)
    if difficulty:
        conditions.append("f.difficulty = ?")
        params.append(difficulty.value)
    cursor = await db.execute(
        _FLASHCARD_SELECT
        + f" WHERE {' AND '.join(conditions)} ORDER BY f.next_review_at ASC, RANDOM() LIMIT ?",  # noqa: S608
        [*params, limit],
    )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def update_flashcard(
    db: aiosqlite.Connection, user_id: int, card_id: str, updates: FlashcardUpdate
) -> Flashcard | None:
    fields = updates.model_dump(exclude_none=True)
    if not fields:
        return await get_flashcard(db, user_id, card_id)
    if "subject_id" in fields:
        await require_own_subject(db, user_id, fields["subject_id"])

    for key, val in fields.items():
        if hasattr(val, "value"):
            fields[key] = val.value
    if "tags" in fields:
        fields["tags"] = json.dumps(fields["tags"])

    fields["updated_at"] = _now()
    set_clause = ", ".join(f"{k} = ?" for k in fields)
    values = [*fields.values(), card_id, user_id]

    cursor = await db.execute(
        f"UPDATE flashcards SET {set_clause} WHERE id = ? AND user_id = ?",  # noqa: S608
        values,
    )
    await db.commit()
    if (cursor.rowcount or 0) == 0:
        return None
    return await get_flashcard(db, user_id, card_id)


async def delete_flashcard(db: aiosqlite.Connection, user_id: int, card_id: str) -> bool:
    cursor = await db.execute(
        "DELETE FROM flashcards WHERE id = ? AND user_id = ?", (card_id, user_id)
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


async def save_review(
    db: aiosqlite.Connection,
    user_id: int,
    previous: ReviewableCard,
    updated: ReviewableCard,
    rating: int,
    outcome: str,
    points: int,
    description: str,
) -> Flashcard:
    """
    Persist a review atomically: scheduling fields, review log and points.

    The UPDATE only matches if review_count is still the one the review was
    computed from; otherwise nothing is written and ReviewConflict is raised.
    """
    now = _now()
    try:
        cursor = await db.execute(
            """UPDATE flashcards
               SET interval_days = ?, ease_factor = ?, review_count = ?,
                   correct_count = ?, incorrect_count = ?,
                   next_review_at = ?, last_reviewed_at = ?, updated_at = ?
               WHERE id = ? AND user_id = ? AND review_count = ?""",
            (
                updated.interval_days,
                updated.ease_factor,
                updated.review_count,
                updated.correct_count,
                updated.incorrect_count,
                format_ts(updated.next_review_at),  # type: ignore[arg-type]
                format_ts(updated.last_reviewed_at),  # type: ignore[arg-type]
                now,
                updated.id,
                user_id,
                previous.review_count,
            ),
        )
        if (cursor.rowcount or 0) == 0:
            raise ReviewConflict(f"Flashcard {updated.id} changed during review")

        await db.execute(
            """INSERT INTO flashcard_reviews
               (id, flashcard_id, user_id, rating, outcome, interval_days, ease_factor, reviewed_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                str(uuid.uuid4()),
                updated.id,
                user_id,
                rating,
                outcome,
                updated.interval_days,
                updated.ease_factor,
                now,
            ),
        )
        await add_activity(
            db, user_id, "flashcard_review", points, description, commit=False
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    card = await get_flashcard(db, user_id, updated.id)
    if card is None:
        raise CardNotFound(f"Flashcard {updated.id} not found")
    return card


async def get_flashcard_stats(
    db: aiosqlite.Connection,
    user_id: int,
    since: datetime,
    now: datetime,
    subject_id: str | None = None,
) -> dict:
    """Review totals, per-subject and per-day breakdowns since `since`, plus due count."""
    conditions = ["r.user_id = ?", "r.reviewed_at >= ?"]
    params: list = [user_id, format_ts(since)]
    if subject_id:
        conditions.append("f.subject_id = ?")
        params.append(subject_id)
    where = " AND ".join(conditions)

    cursor = await db.execute(
        f"""SELECT COUNT(*) AS total_reviews,
                  COALESCE(SUM(CASE WHEN r.rating >= 3 THEN 1 ELSE 0 END), 0) AS correct_reviews,
                  COALESCE(SUM(CASE WHEN r.rating < 3 THEN 1 ELSE 0 END), 0) AS incorrect_reviews,
                  ROUND(AVG(r.rating), 2) AS avg_rating,
                  ROUND(SUM(CASE WHEN r.rating >= 3 THEN 1 ELSE 0 END) * 100.0
                        / NULLIF(COUNT(*), 0), 2) AS accuracy_rate
           FROM flashcard_reviews r
           LEFT JOIN flashcards f ON f.id = r.flashcard_id
           WHERE {where}""",  # noqa: S608
        params,
    )
    general = dict(await cursor.fetchone())

    cursor = await db.execute(
        f"""SELECT s.id AS subject_id, s.name AS subject_name, s.color AS subject_color,
                  COUNT(r.id) AS total_reviews,
                  SUM(CASE WHEN r.rating >= 3 THEN 1 ELSE 0 END) AS correct_reviews,
                  ROUND(AVG(r.rating), 2) AS avg_rating
           FROM flashcard_reviews r
           LEFT JOIN flashcards f ON f.id = r.flashcard_id
           LEFT JOIN subjects s ON s.id = f.subject_id
           WHERE {where}
           GROUP BY s.id, s.name, s.color
           ORDER BY total_reviews DESC""",  # noqa: S608
        params,
    )
    per_subject = [dict(r) for r in await cursor.fetchall()]

    cursor = await db.execute(
        f"""SELECT date(r.reviewed_at) AS date,
                  COUNT(*) AS total_reviews,
                  SUM(CASE WHEN r.rating >= 3 THEN 1 ELSE 0 END) AS correct_reviews,
                  ROUND(AVG(r.rating), 2) AS avg_rating
           FROM flashcard_reviews r
           LEFT JOIN flashcards f ON f.id = r.flashcard_id
           WHERE {where}
           GROUP BY date(r.reviewed_at)
           ORDER BY date""",  # noqa: S608
        params,
    )
    daily = [dict(r) for r in await cursor.fetchall()]

    cursor = await db.execute(
        """SELECT COUNT(*) FROM flashcards
           WHERE user_id = ? AND status = ? AND next_review_at <= ?""",
        (user_id, CardStatus.ACTIVE.value, format_ts(now)),
    )
    due = (await cursor.fetchone())[0]

    return {
        "general_stats": general,
        "subject_stats": per_subject,
        "daily_stats": daily,
        "due_for_review": due,
    }


# --- Gamification ledger ---


async def add_activity(
    db: aiosqlite.Connection,
    user_id: int,
    activity_type: str,
    points: int,
    description: str,
    commit: bool = True,
) -> None:
    await db.execute(
        """INSERT INTO gamification_log
           (id, user_id, activity_type, points_earned, description, created_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (str(uuid.uuid4()), user_id, activity_type, points, description, _now()),
    )
    if commit:
        await db.commit()


async def get_points_summary(db: aiosqlite.Connection, user_id: int) -> tuple[int, int]:
    """Return (total_points, total_activities)."""
    cursor = await db.execute(
        """SELECT COALESCE(SUM(points_earned), 0), COUNT(*)
           FROM gamification_log WHERE user_id = ?""",
        (user_id,),
    )
    row = await cursor.fetchone()
    return int(row[0]), int(row[1])


async def list_activities(
    db: aiosqlite.Connection, user_id: int, offset: int = 0, limit: int = 10
) -> tuple[list[Activity], int]:
    cursor = await db.execute(
        "SELECT COUNT(*) FROM gamification_log WHERE user_id = ?", (user_id,)
    )
    total = (await cursor.fetchone())[0]
    cursor = await db.execute(
        """SELECT activity_type, points_earned, description,
                  achievement_type, achievement_title, created_at
           FROM gamification_log WHERE user_id = ?
           ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?""",
        (user_id, limit, offset),
    )
    rows = await cursor.fetchall()
    return [Activity(**dict(r)) for r in rows], total


async def get_activity_stats(
    db: aiosqlite.Connection, user_id: int
) -> list[ActivityStats]:
    cursor = await db.execute(
        """SELECT activity_type, COUNT(*) AS count, SUM(points_earned) AS total_points
           FROM gamification_log WHERE user_id = ?
           GROUP BY activity_type ORDER BY total_points DESC""",
        (user_id,),
    )
    rows = await cursor.fetchall()
    return [ActivityStats(**dict(r)) for r in rows]


async def get_ranking(db: aiosqlite.Connection, user_id: int) -> int | None:
    cursor = await db.execute(
        """SELECT position FROM (
               SELECT user_id,
                      ROW_NUMBER() OVER (ORDER BY SUM(points_earned) DESC) AS position
               FROM gamification_log GROUP BY user_id
           ) WHERE user_id = ?""",
        (user_id,),
    )
    row = await cursor.fetchone()
    return int(row[0]) if row else None


async def get_leaderboard(db: aiosqlite.Connection, limit: int = 10) -> list[dict]:
    cursor = await db.execute(
        """SELECT user_id, SUM(points_earned) AS total_points, COUNT(*) AS total_activities
           FROM gamification_log
           GROUP BY user_id
           ORDER BY total_points DESC, total_activities DESC
           LIMIT ?""",
        (limit,),
    )
    rows = await cursor.fetchall()
    return [dict(r) for r in rows]


async def get_gamification_stats(
    db: aiosqlite.Connection, user_id: int, since: datetime
) -> dict:
    """Ledger totals, per-activity and per-day breakdowns since `since`, plus best day."""
    params = (user_id, format_ts(since))

    cursor = await db.execute(
        """SELECT COUNT(*) AS total_activities,
                  COALESCE(SUM(points_earned), 0) AS total_points,
                  COUNT(achievement_type) AS achievements_unlocked,
                  ROUND(AVG(points_earned), 2) AS avg_points_per_activity
           FROM gamification_log
           WHERE user_id = ? AND created_at >= ?""",
        params,
    )
    general = dict(await cursor.fetchone())

    cursor = await db.execute(
        """SELECT activity_type, COUNT(*) AS count,
                  SUM(points_earned) AS total_points,
                  ROUND(AVG(points_earned), 2) AS avg_points
           FROM gamification_log
           WHERE user_id = ? AND created_at >= ?
           GROUP BY activity_type
           ORDER BY total_points DESC""",
        params,
    )
    per_activity = [dict(r) for r in await cursor.fetchall()]

    cursor = await db.execute(
        """SELECT date(created_at) AS date, COUNT(*) AS activities,
                  SUM(points_earned) AS points_earned,
                  COUNT(achievement_type) AS achievements
           FROM gamification_log
           WHERE user_id = ? AND created_at >= ?
           GROUP BY date(created_at)
           ORDER BY date""",
        params,
    )
    daily = [dict(r) for r in await cursor.fetchall()]

    best_day = max(daily, key=lambda d: d["points_earned"], default=None)
    return {
        "general_stats": general,
        "activity_stats": per_activity,
        "daily_stats": daily,
        "best_day": (
            {"date": best_day["date"], "total_points": best_day["points_earned"]}
            if best_day
            else None
        ),
    }


# --- Achievements ---


async def list_unlocked_achievements(
    db: aiosqlite.Connection, user_id: int
) -> dict[str, str]:
    """Map of unlocked achievement id to unlock timestamp."""
    cursor = await db.execute(
        """SELECT achievement_type, created_at FROM gamification_log
           WHERE user_id = ? AND achievement_type IS NOT NULL""",
        (user_id,),
    )
    rows = await cursor.fetchall()
    return {r["achievement_type"]: r["created_at"] for r in rows}


async def add_achievement(
    db: aiosqlite.Connection,
    user_id: int,
    achievement_type: str,
    title: str,
    points: int,
    description: str,
) -> bool:
    """Record an unlock. Returns False if the user already holds it."""
    cursor = await db.execute(
        """INSERT OR IGNORE INTO gamification_log
           (id, user_id, activity_type, points_earned, description,
            achievement_type, achievement_title, created_at)
           VALUES (?, ?, 'achievement', ?, ?, ?, ?, ?)""",
        (str(uuid.uuid4()), user_id, points, description, achievement_type, title, _now()),
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


async def get_achievement_progress(
    db: aiosqlite.Connection, user_id: int, today: date
) -> dict:
    """Raw counters the achievement rules are evaluated against."""
    cursor = await db.execute(
        """SELECT
             COALESCE(SUM(CASE WHEN activity_type = 'task_completion' THEN 1 ELSE 0 END), 0)
               AS task_completions,
             COALESCE(SUM(CASE WHEN activity_type = 'task_completion'
                               AND date(created_at) = ? THEN points_earned ELSE 0 END), 0)
               AS task_points_today,
             COALESCE(SUM(CASE WHEN activity_type = 'flashcard_review' THEN 1 ELSE 0 END), 0)
               AS flashcard_reviews,
             COALESCE(MAX(CASE WHEN activity_type = 'task_completion'
                               AND strftime('%H', created_at) < '08' THEN 1 ELSE 0 END), 0)
               AS early_task,
             COALESCE(MAX(CASE WHEN activity_type = 'task_completion'
                               AND strftime('%H', created_at) >= '22' THEN 1 ELSE 0 END), 0)
               AS late_task,
             COALESCE(MAX(CASE WHEN activity_type != 'achievement'
                               AND strftime('%w', created_at) IN ('0', '6') THEN 1 ELSE 0 END), 0)
               AS weekend_activity
           FROM gamification_log WHERE user_id = ?""",
        (today.isoformat(), user_id),
    )
    progress = dict(await cursor.fetchone())

    cursor = await db.execute(
        """SELECT DISTINCT date(created_at) FROM gamification_log
           WHERE user_id = ? AND activity_type = 'task_completion'
           ORDER BY 1""",
        (user_id,),
    )
    progress["task_days"] = [date.fromisoformat(r[0]) for r in await cursor.fetchall()]
    return progress
