"""Flashcard review session.

Cycles through the cards not yet marked done. Grading runs the scheduler
through the store and moves on to the next remaining card.
"""

from enum import Enum
from typing import Optional

from .models import CardProgress, Flashcard
from .scheduler import Grade
from .storage import Store


class SessionStatus(str, Enum):
    EMPTY = "empty"  # no cards have ever existed
    FINISHED = "finished"
    REVIEWING = "reviewing"


class ReviewSession:
    """State for one open review view."""

    def __init__(self, store: Store):
        self._store = store
        self.cards: list[Flashcard] = []
        self.progress: dict[str, CardProgress] = {}
        self.index = 0
        self.showing_answer = False

    async def load(self) -> "ReviewSession":
        self.cards = await self._store.load_all_cards()
        self.progress = await self._store.load_progress()
        self.index = 0
        self.showing_answer = False
        return self

    refresh = load

    def remaining(self) -> list[Flashcard]:
        return [
            card for card in self.cards
            if not (card.id in self.progress and self.progress[card.id].done is True)
        ]

    def current(self) -> Optional[Flashcard]:
        remaining = self.remaining()
        if not remaining:
            return None
        return remaining[self.index % len(remaining)]

    @property
    def status(self) -> SessionStatus:
        if not self.cards:
            return SessionStatus.EMPTY
        if not self.remaining():
            return SessionStatus.FINISHED
        return SessionStatus.REVIEWING

    def toggle_reveal(self) -> bool:
        self.showing_answer = not self.showing_answer
        return self.showing_answer

    def face(self) -> str:
        """Text currently shown for the current card."""
        card = self.current()
        if card is None:
            return ""
        return card.answer if self.showing_answer else card.question

    def summary(self) -> str:
        return f"Remaining {len(self.remaining())} of {len(self.cards)}"

    async def grade(self, is_good: bool) -> Optional[CardProgress]:
        """Grade the current card and advance. Returns None if nothing to grade."""
        before = self.remaining()
        if not before:
            return None
        position = self.index % len(before)
        card = before[position]
        result = await self._store.upsert_progress(card.id, Grade.from_bool(is_good))
        self.progress = await self._store.load_progress()

        remaining = self.remaining()
        if not remaining:
            self.index = 0
        elif card in remaining:
            self.index = (remaining.index(card) + 1) % len(remaining)
        else:
            # The graded card left the rotation; its successor now sits at `position`.
            self.index = position % len(remaining)
        self.showing_answer = False
        return result

    async def reset(self) -> None:
        """Clear all progress and restart from the first card."""
        await self._store.reset_progress()
        await self.load()
