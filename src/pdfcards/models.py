"""Data models for pdfcards.

Documents are stored as camelCase JSON. ``from_dict`` merges whatever was
read against typed defaults so partial or legacy files still load.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

HIGHLIGHT_VERSION = 1
FLASHCARD_VERSION = 1
PROGRESS_VERSION = 1

HIGHLIGHT_COLORS = ("yellow", "green", "blue", "flashcard")
FLASHCARD_COLOR = "flashcard"
MANUAL_SOURCE = "manual"

COLOR_MAP = {
    "yellow": "#ffe066",
    "green": "#b2f2bb",
    "blue": "#a5d8ff",
    "flashcard": "#ffb3c1",
}


def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return default


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    try:
        result = float(value)
    except OverflowError:
        return default
    return result if math.isfinite(result) else default


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


@dataclass
class HighlightRect:
    """A rectangle in page-local unit coordinates."""

    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_dict(cls, data: Any) -> "HighlightRect":
        data = _as_dict(data)
        return cls(
            x=_as_float(data.get("x")),
            y=_as_float(data.get("y")),
            w=_as_float(data.get("w")),
            h=_as_float(data.get("h")),
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass
class HighlightPage:
    """Rectangles of one highlight on one zero-based page."""

    page: int
    rects: list[HighlightRect] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "HighlightPage":
        data = _as_dict(data)
        return cls(
            page=_as_int(data.get("page")),
            rects=[HighlightRect.from_dict(r) for r in _as_list(data.get("rects"))],
        )

    def to_dict(self) -> dict:
        return {"page": self.page, "rects": [r.to_dict() for r in self.rects]}


@dataclass
class Highlight:
    id: str
    color: str
    text: str = ""
    created_at: str = ""
    pages: list[HighlightPage] = field(default_factory=list)
    flashcard_generated: Optional[bool] = None

    @property
    def is_flashcard(self) -> bool:
        return self.color == FLASHCARD_COLOR

    @classmethod
    def from_dict(cls, data: Any) -> "Highlight":
        data = _as_dict(data)
        color = _as_str(data.get("color"), "yellow")
        if color not in HIGHLIGHT_COLORS:
            color = "yellow"
        generated = data.get("flashcardGenerated")
        return cls(
            id=_as_str(data.get("id")),
            color=color,
            text=_as_str(data.get("text")),
            created_at=_as_str(data.get("createdAt")),
            pages=[HighlightPage.from_dict(p) for p in _as_list(data.get("pages"))],
            flashcard_generated=generated if isinstance(generated, bool) else None,
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "color": self.color,
            "isFlashcard": self.is_flashcard,
            "text": self.text,
            "createdAt": self.created_at,
            "pages": [p.to_dict() for p in self.pages],
        }
        if self.flashcard_generated is not None:
            data["flashcardGenerated"] = self.flashcard_generated
        return data


@dataclass
class HighlightFile:
    source_path: str
    highlights: list[Highlight] = field(default_factory=list)
    version: int = HIGHLIGHT_VERSION

    @classmethod
    def default(cls, source_path: str) -> "HighlightFile":
        return cls(source_path=source_path)

    @classmethod
    def from_dict(cls, data: Any, source_path: str) -> "HighlightFile":
        data = _as_dict(data)
        return cls(
            source_path=_as_str(data.get("sourcePath"), source_path),
            highlights=[Highlight.from_dict(h) for h in _as_list(data.get("highlights"))],
            version=_as_int(data.get("version"), HIGHLIGHT_VERSION),
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "sourcePath": self.source_path,
            "highlights": [h.to_dict() for h in self.highlights],
        }


@dataclass
class Flashcard:
    id: str
    question: str
    answer: str
    source_path: str = MANUAL_SOURCE
    highlight_ids: list[str] = field(default_factory=list)
    created_at: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "Flashcard":
        data = _as_dict(data)
        return cls(
            id=_as_str(data.get("id")),
            question=_as_str(data.get("question")),
            answer=_as_str(data.get("answer")),
            source_path=_as_str(data.get("sourcePath"), MANUAL_SOURCE),
            highlight_ids=[
                h for h in _as_list(data.get("highlightIds")) if isinstance(h, str)
            ],
            created_at=_as_str(data.get("createdAt")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sourcePath": self.source_path,
            "highlightIds": list(self.highlight_ids),
            "question": self.question,
            "answer": self.answer,
            "createdAt": self.created_at,
        }


@dataclass
class FlashcardFile:
    cards: list[Flashcard] = field(default_factory=list)
    version: int = FLASHCARD_VERSION

    @classmethod
    def from_dict(cls, data: Any) -> "FlashcardFile":
        data = _as_dict(data)
        return cls(
            cards=[Flashcard.from_dict(c) for c in _as_list(data.get("cards"))],
            version=_as_int(data.get("version"), FLASHCARD_VERSION),
        )

    def to_dict(self) -> dict:
        return {"version": self.version, "cards": [c.to_dict() for c in self.cards]}


@dataclass
class CardProgress:
    streak: int = 0
    interval_days: int = 0
    last_reviewed_at: Optional[str] = None
    next_due_at: Optional[str] = None
    done: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CardProgress":
        data = _as_dict(data)
        done = data.get("done")
        last = data.get("lastReviewedAt")
        due = data.get("nextDueAt")
        return cls(
            streak=max(0, _as_int(data.get("streak"))),
            interval_days=max(0, _as_int(data.get("intervalDays"))),
            last_reviewed_at=last if isinstance(last, str) else None,
            next_due_at=due if isinstance(due, str) else None,
            done=done if isinstance(done, bool) else None,
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {}
        if self.last_reviewed_at is not None:
            data["lastReviewedAt"] = self.last_reviewed_at
        if self.next_due_at is not None:
            data["nextDueAt"] = self.next_due_at
        data["streak"] = self.streak
        data["intervalDays"] = self.interval_days
        if self.done is not None:
            data["done"] = self.done
        return data


@dataclass
class ProgressFile:
    progress: dict[str, CardProgress] = field(default_factory=dict)
    version: int = PROGRESS_VERSION

    @classmethod
    def from_dict(cls, data: Any) -> "ProgressFile":
        data = _as_dict(data)
        return cls(
            progress={
                card_id: CardProgress.from_dict(entry)
                for card_id, entry in _as_dict(data.get("progress")).items()
            },
            version=_as_int(data.get("version"), PROGRESS_VERSION),
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "progress": {k: v.to_dict() for k, v in self.progress.items()},
        }


@dataclass
class GeneratedPair:
    """A question/answer pair parsed from an LLM response."""

    question: str
    answer: str


class NoticeKind(str, Enum):
    CONFIRMATION = "confirmation"
    NOTHING_TO_DO = "nothing_to_do"
    FAILURE = "failure"


@dataclass
class Notice:
    """A short user-visible outcome of a command."""

    kind: NoticeKind
    message: str

    @property
    def ok(self) -> bool:
        return self.kind is not NoticeKind.FAILURE

    @classmethod
    def confirm(cls, message: str) -> "Notice":
        return cls(NoticeKind.CONFIRMATION, message)

    @classmethod
    def nothing(cls, message: str) -> "Notice":
        return cls(NoticeKind.NOTHING_TO_DO, message)

    @classmethod
    def failure(cls, message: str) -> "Notice":
        return cls(NoticeKind.FAILURE, message)
