"""The user-facing command surface.

Each command takes no arguments (the active document comes from the host)
and returns a ``Notice``: a confirmation, a nothing-to-do notice, or a
failure.
"""

import logging
from typing import Callable, Optional

from .config import Config
from .exceptions import ConfigError, PdfCardsError
from .exporter import write_annotations
from .generator import FlashcardGenerator, pending_flashcard_highlights
from .llm import get_llm_provider
from .llm.base import LLMProvider
from .manager import FlashcardManager
from .models import Notice
from .review import ReviewSession
from .storage import Store

logger = logging.getLogger(__name__)


class Commands:
    """Wires config, storage and the LLM into the four user actions."""

    def __init__(
        self,
        config: Config,
        store: Store,
        active_document: Callable[[], Optional[str]],
        llm_factory: Callable[[Config], LLMProvider] = get_llm_provider,
    ):
        self.config = config
        self.store = store
        self._active_document = active_document
        self._llm_factory = llm_factory
        self.review: Optional[ReviewSession] = None
        self.manager: Optional[FlashcardManager] = None

    async def generate_flashcards(self) -> Notice:
        """Generate flashcards from the active document's new flashcard highlights."""
        source_path = self._active_document()
        if not source_path:
            return Notice.nothing("Open a PDF first.")

        try:
            self.config.require_llm()
        except ConfigError as e:
            return Notice.nothing(f"Set your API key first. {e}")

        highlights = pending_flashcard_highlights(
            await self.store.load_highlights(source_path)
        )
        if not highlights:
            return Notice.nothing("No new flashcard highlights found.")

        try:
            generator = FlashcardGenerator(self._llm_factory(self.config))
            cards = await generator.generate(source_path, highlights)
            if not cards:
                return Notice.nothing("No flashcards returned by the model.")
            await self.store.append_flashcards(cards)
        except (PdfCardsError, OSError) as e:
            logger.error(f"Flashcard generation failed for {source_path}: {e}")
            return Notice.failure("Failed to generate flashcards.")

        await self._refresh_views()
        try:
            await self.store.mark_highlights_generated(
                source_path, [h.id for h in highlights]
            )
        except OSError as e:
            # The cards are already saved; the highlights stay pending.
            logger.error(f"Could not mark highlights generated for {source_path}: {e}")
            return Notice.failure(
                f"Generated {len(cards)} flashcards, but could not mark the highlights as used."
            )
        return Notice.confirm(f"Generated {len(cards)} flashcards.")

    async def open_review(self) -> Notice:
        """Open the review session, or reload the one already open."""
        if self.review is None:
            self.review = ReviewSession(self.store)
        await self.review.load()
        return Notice.confirm(self.review.summary())

    async def open_manager(self) -> Notice:
        if self.manager is None:
            self.manager = FlashcardManager(self.store)
        cards = await self.manager.load()
        if not cards:
            return Notice.nothing("No flashcards yet.")
        return Notice.confirm(f"{len(cards)} flashcards.")

    async def export_annotations(self) -> Notice:
        """Write the active document's highlights to a sibling markdown file."""
        source_path = self._active_document()
        if not source_path:
            return Notice.nothing("Open a PDF first.")
        highlights = await self.store.load_highlights(source_path)
        try:
            path = await write_annotations(self.config.vault_path / source_path, highlights)
        except OSError as e:
            logger.error(f"Annotation export failed for {source_path}: {e}")
            return Notice.failure("Failed to export annotations.")
        return Notice.confirm(f"Exported annotations to {path}.")

    async def _refresh_views(self) -> None:
        if self.review is not None:
            await self.review.refresh()
        if self.manager is not None:
            await self.manager.refresh()
