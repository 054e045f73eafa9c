"""
Unit tests for the spaced-repetition scheduler.

Pure functions only: every test passes an explicit `now`.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.exceptions import InvalidRating
from app.services.scheduler import (
    MAX_INTERVAL_DAYS,
    MIN_EASE,
    BinaryOutcome,
    ReviewableCard,
    RewardPolicy,
    new_card_state,
    review,
    select_due,
)

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_card(**kwargs) -> ReviewableCard:
    return ReviewableCard(id=kwargs.pop("id", "card-1"), **kwargs)


class TestRatingReview:
    """Rating-based (1-5) reviews."""

    def test_first_perfect_review(self):
        """A never-reviewed card rated 5 moves to a 1-day interval with ease 2.6."""
        card = make_card(interval_days=0, ease_factor=2.5, review_count=0)
        result = review(card, 5, now=NOW)

        assert result.card.interval_days == 1
        assert result.card.ease_factor == pytest.approx(2.6)
        assert result.card.correct_count == 1
        assert result.card.review_count == 1
        assert result.card.last_reviewed_at == NOW
        assert result.card.next_review_at == NOW + timedelta(days=1)

    def test_second_success_jumps_to_six_days(self):
        card = make_card(interval_days=1, ease_factor=2.5)
        assert review(card, 4, now=NOW).card.interval_days == 6

    def test_later_success_multiplies_by_ease(self):
        card = make_card(interval_days=6, ease_factor=2.5)
        result = review(card, 5, now=NOW)

        assert result.card.interval_days == 15
        assert result.card.ease_factor == pytest.approx(2.6)
        assert result.card.next_review_at == NOW + timedelta(days=15)

    def test_interval_rounds_half_up(self):
        """5 * 2.5 = 12.5 rounds to 13, not to the even 12."""
        card = make_card(interval_days=5, ease_factor=2.5)
        assert review(card, 4, now=NOW).card.interval_days == 13

    def test_failure_resets_interval(self):
        card = make_card(interval_days=6, ease_factor=2.5, incorrect_count=2)
        result = review(card, 1, now=NOW)

        assert result.card.interval_days == 1
        assert result.card.ease_factor == pytest.approx(2.3)
        assert result.card.incorrect_count == 3
        assert result.card.correct_count == 0

    @pytest.mark.parametrize(
        "rating, expected_ease", [(3, 2.36), (4, 2.5), (5, 2.6)]
    )
    def test_ease_adjustment_by_rating(self, rating, expected_ease):
        card = make_card(interval_days=6, ease_factor=2.5)
        assert review(card, rating, now=NOW).card.ease_factor == pytest.approx(expected_ease)

    @pytest.mark.parametrize("rating", [3, 4, 5])
    def test_success_only_touches_correct_count(self, rating):
        card = make_card(interval_days=6, correct_count=4, incorrect_count=2, review_count=6)
        result = review(card, rating, now=NOW)

        assert result.card.correct_count == 5
        assert result.card.incorrect_count == 2

    @pytest.mark.parametrize("rating", [1, 2])
    @pytest.mark.parametrize("ease", [2.5, 1.45, 1.3])
    def test_failure_interval_and_ease(self, rating, ease):
        card = make_card(interval_days=15, ease_factor=ease)
        result = review(card, rating, now=NOW)

        assert result.card.interval_days == 1
        assert result.card.ease_factor == pytest.approx(max(MIN_EASE, ease - 0.2))

    def test_input_card_is_not_mutated(self):
        card = make_card(interval_days=6)
        review(card, 5, now=NOW)
        assert card.interval_days == 6
        assert card.review_count == 0


class TestInvariants:
    def test_ease_never_drops_below_floor(self):
        """Repeated failures converge to 1.3 and stay there."""
        card = make_card()
        eases = []
        for _ in range(10):
            card = review(card, 1, now=NOW).card
            eases.append(card.ease_factor)

        assert min(eases) >= MIN_EASE
        assert eases[-1] == pytest.approx(MIN_EASE)
        assert eases[-4:] == [eases[-1]] * 4

    def test_hard_successes_respect_floor(self):
        card = make_card(ease_factor=1.35)
        for _ in range(5):
            card = review(card, 3, now=NOW).card
        assert card.ease_factor >= MIN_EASE

    def test_review_count_matches_outcome_counts(self):
        card = make_card()
        for rating in [5, 1, 3, 2, 4, "correct", "incorrect", "skipped", 5]:
            card = review(card, rating, now=NOW).card
            assert card.review_count == card.correct_count + card.incorrect_count
        assert card.review_count == 8

    def test_interval_at_least_one_after_rated_review(self):
        card = make_card()
        for rating in [1, 2, 3, 4, 5]:
            card = review(card, rating, now=NOW).card
            assert card.interval_days >= 1

    def test_long_success_run_is_capped(self):
        """Fifty perfect reviews in a row keep a representable due date."""
        card = make_card()
        for _ in range(50):
            card = review(card, 5, now=NOW).card

        assert card.interval_days == MAX_INTERVAL_DAYS
        assert card.next_review_at == NOW + timedelta(days=MAX_INTERVAL_DAYS)
        assert card.correct_count == 50

    def test_interval_cap_is_configurable(self):
        card = make_card(interval_days=300, ease_factor=2.5)
        result = review(card, 4, now=NOW, max_interval_days=365)
        assert result.card.interval_days == 365


class TestOutcomes:
    def test_binary_correct_matches_rating_five(self):
        card = make_card(interval_days=6, ease_factor=2.5)
        binary = review(card, BinaryOutcome.CORRECT, now=NOW).card
        rated = review(card, 5, now=NOW).card
        assert binary == rated

    def test_binary_incorrect_matches_rating_one(self):
        card = make_card(interval_days=6, ease_factor=2.5)
        assert review(card, "incorrect", now=NOW).card == review(card, 1, now=NOW).card

    def test_skipped_leaves_card_untouched(self):
        card = make_card(interval_days=6, review_count=3, correct_count=3)
        result = review(card, "skipped", now=NOW)

        assert result.skipped is True
        assert result.card is card
        assert result.points == 0
        assert result.rating is None

    @pytest.mark.parametrize("bad", [0, 6, -1, 3.5, True, "maybe", None])
    def test_invalid_outcome_rejected(self, bad):
        with pytest.raises(InvalidRating):
            review(make_card(), bad, now=NOW)


class TestRewards:
    @pytest.mark.parametrize("rating, points", [(1, 1), (2, 1), (3, 6), (4, 8), (5, 10)])
    def test_rating_points(self, rating, points):
        assert review(make_card(), rating, now=NOW).points == points

    @pytest.mark.parametrize("outcome", ["correct", "incorrect"])
    def test_binary_points_are_fixed(self, outcome):
        assert review(make_card(), outcome, now=NOW).points == 2

    def test_policy_is_configurable(self):
        policy = RewardPolicy(points_per_rating=3, failed_review_points=0, binary_review_points=7)
        assert review(make_card(), 4, now=NOW, policy=policy).points == 12
        assert review(make_card(), 2, now=NOW, policy=policy).points == 0
        assert review(make_card(), "correct", now=NOW, policy=policy).points == 7


class TestDueSelection:
    def test_due_set_includes_past_and_present(self):
        yesterday = make_card(id="y", next_review_at=NOW - timedelta(days=1))
        today = make_card(id="t", next_review_at=NOW)
        tomorrow = make_card(id="m", next_review_at=NOW + timedelta(days=1))

        due = select_due([tomorrow, today, yesterday], now=NOW)
        assert [c.id for c in due] == ["y", "t"]

    def test_filters_by_subject_and_difficulty(self):
        past = NOW - timedelta(hours=1)
        cards = [
            make_card(id="a", next_review_at=past, subject_id="math", difficulty="easy"),
            make_card(id="b", next_review_at=past, subject_id="math", difficulty="hard"),
            make_card(id="c", next_review_at=past, subject_id="bio", difficulty="hard"),
        ]
        assert [c.id for c in select_due(cards, now=NOW, subject_id="math")] == ["a", "b"]
        assert [c.id for c in select_due(cards, now=NOW, difficulty="hard")] == ["b", "c"]
        assert [
            c.id for c in select_due(cards, now=NOW, subject_id="math", difficulty="hard")
        ] == ["b"]

    def test_limit_keeps_oldest(self):
        cards = [
            make_card(id=str(i), next_review_at=NOW - timedelta(days=i)) for i in range(5)
        ]
        assert [c.id for c in select_due(cards, now=NOW, limit=2)] == ["4", "3"]

    def test_new_card_is_due_immediately(self):
        card = new_card_state("fresh", now=NOW)
        assert card.interval_days == 0
        assert card.ease_factor == 2.5
        assert card.review_count == card.correct_count == card.incorrect_count == 0
        assert card.last_reviewed_at is None
        assert select_due([card], now=NOW) == [card]
