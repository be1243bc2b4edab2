"""Versioned JSON persistence for highlights, flashcards and review progress.

Layout under the storage root::

    highlights-<hash>.json   one per source document
    flashcards.json          every flashcard
    progress.json            review progress keyed by card id

Reads never fail: a missing or unparsable document degrades to its typed
default. Writes replace the whole file atomically. The progress document is
held in memory after first access and persisted in the background; the other
two are re-read on every access.
"""

import asyncio
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, TypeVar

import aiofiles
import aiofiles.os

from .models import (
    CardProgress,
    Flashcard,
    FlashcardFile,
    Highlight,
    HighlightFile,
    ProgressFile,
)
from .scheduler import Grade, next_progress
from .utils import fnv1a_hash

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def ensure_dir(path: Path) -> None:
    await aiofiles.os.makedirs(path, exist_ok=True)


async def read_json(path: Path, parse: Callable[[Any], T], default: Callable[[], T]) -> T:
    """Read and parse a JSON document, returning ``default()`` on any failure."""
    if not await aiofiles.os.path.exists(path):
        return default()
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            raw = await f.read()
        return parse(json.loads(raw))
    except (OSError, ValueError, OverflowError, RecursionError) as e:
        logger.warning(f"Unreadable document {path}, using defaults: {e}")
        return default()


async def write_json_atomic(path: Path, data: Any) -> None:
    """Replace ``path`` with ``data`` via a temp file in the same directory."""
    content = json.dumps(data, indent=2)
    tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(content)
        await aiofiles.os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    logger.debug(f"Wrote {path}")


class ProgressCache:
    """Read-through / write-back cache of the progress document.

    Mutations land in memory before the method returns; durable writes are
    queued behind a lock so the file always ends at the latest snapshot.
    No caller awaits a write: failures are logged and the next write retries
    with the then-current snapshot. ``flush()`` waits for the queue.
    """

    def __init__(self, path: Path):
        self._path = path
        self._doc: Optional[ProgressFile] = None
        self._load_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

    @property
    def loaded(self) -> bool:
        return self._doc is not None

    async def get(self) -> ProgressFile:
        if self._doc is None:
            async with self._load_lock:
                if self._doc is None:
                    loaded = await read_json(
                        self._path, ProgressFile.from_dict, ProgressFile
                    )
                    # replace() may have run while the read was suspended.
                    if self._doc is None:
                        self._doc = loaded
        return self._doc

    def replace(self, doc: ProgressFile) -> None:
        self._doc = doc

    def schedule_write(self) -> asyncio.Task:
        """Queue a durable write of the current snapshot without awaiting it."""
        snapshot = (self._doc or ProgressFile()).to_dict()
        task = asyncio.get_running_loop().create_task(self._persist(snapshot))
        self._pending.add(task)
        task.add_done_callback(self._on_written)
        return task

    async def _persist(self, snapshot: dict) -> None:
        async with self._write_lock:
            await ensure_dir(self._path.parent)
            await write_json_atomic(self._path, snapshot)

    def _on_written(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Failed to persist progress to {self._path}: {error}")

    async def flush(self) -> None:
        """Wait for every queued write to reach disk."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class Store:
    """Persistence for all three document kinds under one storage root."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.progress_cache = ProgressCache(self.progress_path)

    # -- paths ---------------------------------------------------------

    def highlight_path_for(self, source_path: str) -> Path:
        return self.root / f"highlights-{fnv1a_hash(source_path)}.json"

    @property
    def flashcard_path(self) -> Path:
        return self.root / "flashcards.json"

    @property
    def progress_path(self) -> Path:
        return self.root / "progress.json"

    async def ensure_root(self) -> Path:
        await ensure_dir(self.root)
        return self.root

    # -- highlights ----------------------------------------------------

    async def read_highlights(self, source_path: str) -> HighlightFile:
        return await read_json(
            self.highlight_path_for(source_path),
            lambda data: HighlightFile.from_dict(data, source_path),
            lambda: HighlightFile.default(source_path),
        )

    async def write_highlights(self, doc: HighlightFile) -> None:
        await self.ensure_root()
        await write_json_atomic(self.highlight_path_for(doc.source_path), doc.to_dict())

    async def load_highlights(self, source_path: str) -> list[Highlight]:
        return (await self.read_highlights(source_path)).highlights

    async def append_highlight(self, source_path: str, highlight: Highlight) -> None:
        """Append a highlight, or patch the stored one with the same id."""
        doc = await self.read_highlights(source_path)
        doc.source_path = source_path
        for i, existing in enumerate(doc.highlights):
            if existing.id == highlight.id:
                doc.highlights[i] = highlight
                break
        else:
            doc.highlights.append(highlight)
        await self.write_highlights(doc)
        logger.info(f"Saved highlight {highlight.id} for {source_path}")

    async def mark_highlights_generated(
        self, source_path: str, highlight_ids: Iterable[str]
    ) -> None:
        ids = set(highlight_ids)
        doc = await self.read_highlights(source_path)
        doc.source_path = source_path
        for highlight in doc.highlights:
            if highlight.id in ids:
                highlight.flashcard_generated = True
        await self.write_highlights(doc)

    # -- flashcards ----------------------------------------------------

    async def read_flashcards(self) -> FlashcardFile:
        return await read_json(self.flashcard_path, FlashcardFile.from_dict, FlashcardFile)

    async def write_flashcards(self, doc: FlashcardFile) -> None:
        await self.ensure_root()
        await write_json_atomic(self.flashcard_path, doc.to_dict())

    async def load_all_cards(self) -> list[Flashcard]:
        return (await self.read_flashcards()).cards

    async def append_flashcards(self, cards: Iterable[Flashcard]) -> None:
        doc = await self.read_flashcards()
        doc.cards.extend(cards)
        await self.write_flashcards(doc)

    async def replace_all_flashcards(self, cards: Iterable[Flashcard]) -> None:
        """Replace the whole card set and drop progress for vanished cards."""
        cards = list(cards)
        await self.write_flashcards(FlashcardFile(cards=cards))
        await self._prune_progress({c.id for c in cards})

    # -- progress ------------------------------------------------------

    async def read_progress(self) -> ProgressFile:
        return await self.progress_cache.get()

    async def write_progress(self, doc: ProgressFile) -> None:
        await self.ensure_root()
        self.progress_cache.replace(doc)
        self.progress_cache.schedule_write()

    async def load_progress(self) -> dict[str, CardProgress]:
        return (await self.progress_cache.get()).progress

    async def upsert_progress(self, card_id: str, grade: Grade) -> CardProgress:
        """Grade a card. The in-memory view reflects it on return; disk lags."""
        await self.ensure_root()
        doc = await self.progress_cache.get()
        current = next_progress(doc.progress.get(card_id), grade)
        doc.progress[card_id] = current
        self.progress_cache.schedule_write()
        return current

    async def delete_progress(self, card_id: str) -> None:
        await self.ensure_root()
        doc = await self.progress_cache.get()
        doc.progress.pop(card_id, None)
        self.progress_cache.schedule_write()

    async def reset_progress(self) -> None:
        await self.write_progress(ProgressFile())

    async def _prune_progress(self, keep_ids: set[str]) -> None:
        doc = await self.progress_cache.get()
        for card_id in list(doc.progress):
            if card_id not in keep_ids:
                del doc.progress[card_id]
        self.progress_cache.schedule_write()

    async def flush(self) -> None:
        await self.progress_cache.flush()

    async def close(self) -> None:
        await self.flush()
