"""Fakes and builders shared by the test modules."""

from typing import Callable, Optional

from pdfcards.geometry import ClientRect, Overlay, PageBox
from pdfcards.llm.base import LLMProvider
from pdfcards.models import Flashcard, Highlight, HighlightPage, HighlightRect
from pdfcards.viewer import Selection


class FakeLLM(LLMProvider):
    """LLM provider returning a canned response or raising a canned error."""

    def __init__(self, response: str = "[]", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str]] = []

    @property
    def default_max_output_tokens(self) -> int:
        return 1024

    async def generate(self, system_prompt, user_prompt, max_output_tokens=None):
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.response


class FakeSurface:
    """In-memory viewer surface with two stacked 600x800 pages."""

    def __init__(self, source: Optional[str] = "docs/book.pdf", mounted: bool = True):
        self.view_id = "leaf-1"
        self.source = source
        self.mounted = mounted
        self.current_selection: Optional[Selection] = None
        self.pages = [
            PageBox(page_number=1, box=ClientRect(left=100, top=0, width=600, height=800)),
            PageBox(page_number=2, box=ClientRect(left=100, top=820, width=600, height=800)),
        ]
        self.drawn: list[list[Overlay]] = []
        self.subscribers: list[Callable[[], None]] = []
        self.selection_cleared = False

    def source_path(self):
        return self.source

    def is_mounted(self):
        return self.mounted

    def selection(self):
        return self.current_selection

    def mounted_pages(self):
        return list(self.pages)

    def subscribe(self, callback):
        self.subscribers.append(callback)
        return lambda: self.subscribers.remove(callback)

    def draw_overlays(self, overlays):
        self.drawn.append(overlays)

    def clear_selection(self):
        self.current_selection = None
        self.selection_cleared = True

    def notify(self):
        for callback in list(self.subscribers):
            callback()


def make_highlight(
    highlight_id: str,
    color: str = "yellow",
    text: str = "some text",
    pages: tuple = (0,),
    generated: Optional[bool] = None,
) -> Highlight:
    return Highlight(
        id=highlight_id,
        color=color,
        text=text,
        created_at="2024-01-01T00:00:00.000Z",
        pages=[
            HighlightPage(page=p, rects=[HighlightRect(x=0.1, y=0.2, w=0.5, h=0.02)])
            for p in pages
        ],
        flashcard_generated=generated,
    )


def make_card(card_id: str, question: str = "Q?", answer: str = "A.") -> Flashcard:
    return Flashcard(
        id=card_id,
        question=f"{question} {card_id}",
        answer=answer,
        source_path="docs/book.pdf",
        highlight_ids=[],
        created_at="2024-01-01T00:00:00.000Z",
    )
