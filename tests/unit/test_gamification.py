"""Unit tests for level maths and achievement rules."""
from datetime import date

import pydantic
import pytest

from app.config import Settings
from app.services.achievements import (
    AchievementProgress,
    earned_achievements,
    longest_streak,
)
from app.services.gamification import compute_level


class TestComputeLevel:
    @pytest.mark.parametrize(
        "points, level, to_next, progress",
        [
            (0, 1, 100, 0.0),
            (12, 1, 88, 12.0),
            (99, 1, 1, 99.0),
            (100, 2, 100, 0.0),
            (250, 3, 50, 50.0),
        ],
    )
    def test_default_levels(self, points, level, to_next, progress):
        info = compute_level(points)
        assert info.total_points == points
        assert info.current_level == level
        assert info.points_to_next_level == to_next
        assert info.level_progress == pytest.approx(progress)

    def test_custom_points_per_level(self):
        info = compute_level(75, points_per_level=50)
        assert info.current_level == 2
        assert info.points_to_next_level == 25

    @pytest.mark.parametrize("value", [0, -100])
    def test_points_per_level_must_be_positive(self, value):
        with pytest.raises(pydantic.ValidationError):
            Settings(points_per_level=value)


class TestLongestStreak:
    def test_empty(self):
        assert longest_streak([]) == 0

    def test_gap_breaks_the_run(self):
        days = [date(2024, 3, d) for d in (1, 2, 3, 5, 6)]
        assert longest_streak(days) == 3

    def test_duplicates_and_order_ignored(self):
        days = [date(2024, 3, 2), date(2024, 3, 1), date(2024, 3, 2), date(2024, 2, 29)]
        assert longest_streak(days) == 3


def _ids(progress: AchievementProgress) -> set[str]:
    return {a.id for a in earned_achievements(progress)}


class TestEarnedAchievements:
    def test_nothing_for_a_new_user(self):
        assert _ids(AchievementProgress()) == set()

    def test_flashcard_master_needs_fifty_reviews(self):
        assert "flashcard_master" not in _ids(AchievementProgress(flashcard_reviews=49))
        assert "flashcard_master" in _ids(AchievementProgress(flashcard_reviews=50))

    def test_task_based(self):
        progress = AchievementProgress(
            task_completions=4,
            task_points_today=6,
            task_days=[date(2024, 3, d) for d in (1, 2, 3)],
        )
        assert _ids(progress) == {"first_task", "task_streak_3", "study_time_1h"}

    def test_time_of_day_and_weekend(self):
        progress = AchievementProgress(early_task=True, late_task=True, weekend_activity=True)
        assert _ids(progress) == {"early_bird", "night_owl", "weekend_warrior"}
