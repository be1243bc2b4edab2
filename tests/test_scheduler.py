from datetime import datetime, timezone

from pdfcards.models import CardProgress
from pdfcards.scheduler import Grade, is_due, next_progress

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestNextProgress:
    def test_first_good_review(self):
        result = next_progress(None, Grade.GOOD, now=NOW)

        assert result.streak == 1
        assert result.interval_days == 1
        assert result.done is True
        assert result.last_reviewed_at == "2024-01-01T12:00:00.000Z"
        assert result.next_due_at == "2024-01-02T12:00:00.000Z"

    def test_second_good_review_adds_streak(self):
        result = next_progress(CardProgress(streak=1, interval_days=1), Grade.GOOD, now=NOW)

        assert result.streak == 2
        assert result.interval_days == 3
        assert result.done is True
        assert result.next_due_at == "2024-01-04T12:00:00.000Z"

    def test_intervals_grow_with_consecutive_good_grades(self):
        progress = None
        intervals = []
        for _ in range(4):
            progress = next_progress(progress, Grade.GOOD, now=NOW)
            intervals.append(progress.interval_days)

        assert intervals == [1, 3, 6, 10]

    def test_again_resets_regardless_of_prior_state(self):
        for previous in (None, CardProgress(), CardProgress(streak=7, interval_days=28, done=True)):
            result = next_progress(previous, Grade.AGAIN, now=NOW)

            assert result.streak == 0
            assert result.interval_days == 0
            assert result.done is False
            assert result.next_due_at == result.last_reviewed_at

    def test_previous_is_not_mutated(self):
        previous = CardProgress(streak=2, interval_days=3, done=True)
        next_progress(previous, Grade.AGAIN, now=NOW)

        assert previous == CardProgress(streak=2, interval_days=3, done=True)

    def test_accepts_string_grade(self):
        assert next_progress(None, "good", now=NOW).done is True

    def test_grade_from_bool(self):
        assert Grade.from_bool(True) is Grade.GOOD
        assert Grade.from_bool(False) is Grade.AGAIN


class TestIsDue:
    def test_never_reviewed_is_due(self):
        assert is_due(None, now=NOW)

    def test_due_after_interval(self):
        progress = next_progress(None, Grade.GOOD, now=NOW)

        assert not is_due(progress, now=NOW)
        assert is_due(progress, now=datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc))

    def test_again_is_due_immediately(self):
        assert is_due(next_progress(None, Grade.AGAIN, now=NOW), now=NOW)
