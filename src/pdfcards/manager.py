"""Manual management of the flashcard set: add, edit and delete cards.

Every change rewrites the full card list; deleting a card also removes its
review progress.
"""

import logging
from typing import Optional

from .models import MANUAL_SOURCE, Flashcard
from .storage import Store
from .utils import new_id, utc_now_iso

logger = logging.getLogger(__name__)


class FlashcardManager:
    def __init__(self, store: Store):
        self._store = store
        self.cards: list[Flashcard] = []

    async def load(self) -> list[Flashcard]:
        self.cards = await self._store.load_all_cards()
        return self.cards

    refresh = load

    def find(self, card_id: str) -> Optional[Flashcard]:
        return next((c for c in self.cards if c.id == card_id), None)

    async def add(self, question: str, answer: str) -> Optional[Flashcard]:
        """Add a manual card at the top of the list; blank input is ignored."""
        question, answer = question.strip(), answer.strip()
        if not question or not answer:
            return None
        card = Flashcard(
            id=new_id(),
            question=question,
            answer=answer,
            source_path=MANUAL_SOURCE,
            highlight_ids=[],
            created_at=utc_now_iso(),
        )
        self.cards.insert(0, card)
        await self._store.replace_all_flashcards(self.cards)
        logger.info(f"Added manual flashcard {card.id}")
        return card

    async def edit(self, card_id: str, question: str, answer: str) -> Optional[Flashcard]:
        """Replace a card's question and answer. Returns None if not applied."""
        question, answer = question.strip(), answer.strip()
        if not question or not answer:
            return None
        for i, card in enumerate(self.cards):
            if card.id == card_id:
                updated = Flashcard(
                    id=card.id,
                    question=question,
                    answer=answer,
                    source_path=card.source_path,
                    highlight_ids=list(card.highlight_ids),
                    created_at=card.created_at,
                )
                self.cards[i] = updated
                await self._store.replace_all_flashcards(self.cards)
                return updated
        return None

    async def delete(self, card_id: str) -> bool:
        card = self.find(card_id)
        if card is None:
            return False
        self.cards = [c for c in self.cards if c.id != card_id]
        await self._store.replace_all_flashcards(self.cards)
        await self._store.delete_progress(card_id)
        logger.info(f"Deleted flashcard {card_id}")
        return True
