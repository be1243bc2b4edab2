"""Progress scheduling for flashcard reviews.

A deliberately simple reinforcement rule rather than a full spaced
repetition algorithm: there is no ease factor and no forgetting curve.
Each consecutive ``good`` grade grows the interval by the new streak length;
``again`` resets everything and makes the card due immediately.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from .models import CardProgress
from .utils import iso_timestamp, parse_timestamp, utc_now


class Grade(str, Enum):
    GOOD = "good"
    AGAIN = "again"

    @classmethod
    def from_bool(cls, is_good: bool) -> "Grade":
        return cls.GOOD if is_good else cls.AGAIN


def next_progress(
    previous: Optional[CardProgress],
    grade: Grade,
    now: Optional[datetime] = None,
) -> CardProgress:
    """Calculate the next review state for a card.

    Args:
        previous: Current progress, or None for a card never reviewed.
        grade: Review outcome.
        now: Review time (defaults to the current UTC time).

    Returns:
        A new CardProgress; ``previous`` is left untouched.
    """
    now = now or utc_now()
    streak = previous.streak if previous else 0
    interval_days = previous.interval_days if previous else 0

    if Grade(grade) is Grade.GOOD:
        streak += 1
        interval_days = max(1, interval_days + streak)
        done = True
    else:
        streak = 0
        interval_days = 0
        done = False

    return CardProgress(
        streak=streak,
        interval_days=interval_days,
        last_reviewed_at=iso_timestamp(now),
        next_due_at=iso_timestamp(now + timedelta(days=interval_days)),
        done=done,
    )


def is_due(progress: Optional[CardProgress], now: Optional[datetime] = None) -> bool:
    """Whether a card should be surfaced again at ``now``."""
    if progress is None or not progress.next_due_at:
        return True
    try:
        due = parse_timestamp(progress.next_due_at)
    except ValueError:
        return True
    return due <= (now or utc_now())
