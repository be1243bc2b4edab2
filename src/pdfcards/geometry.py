"""Highlight geometry: viewport selections to page-relative unit rectangles.

Only unit coordinates relative to each page's box are stored, so a highlight
replays at the same relative position at any zoom level or window size.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import COLOR_MAP, Highlight, HighlightPage, HighlightRect
from .utils import new_id, utc_now_iso

# Selection noise filter, in device pixels.
MIN_RECT_SIZE = 1.0


@dataclass(frozen=True)
class ClientRect:
    """An axis-aligned rectangle in client (viewport) space."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> tuple[float, float]:
        return self.left + self.width / 2, self.top + self.height / 2

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


@dataclass(frozen=True)
class PageBox:
    """A mounted page element: 1-based page number plus its client box."""

    page_number: int
    box: ClientRect

    @property
    def page_index(self) -> int:
        return self.page_number - 1


@dataclass
class Overlay:
    """A colored overlay rectangle to draw on a mounted page."""

    page_number: int
    highlight_id: str
    color: str
    is_flashcard: bool
    rect: ClientRect
    style: dict = field(default_factory=dict)


def is_degenerate(rect: ClientRect) -> bool:
    return rect.width <= MIN_RECT_SIZE or rect.height <= MIN_RECT_SIZE


def find_page(rect: ClientRect, pages: Iterable[PageBox]) -> Optional[PageBox]:
    """Return the first laid-out page whose box contains the rectangle's center."""
    cx, cy = rect.center
    for page in pages:
        if page.box.width <= 0 or page.box.height <= 0:
            continue
        if page.box.contains(cx, cy):
            return page
    return None


def normalize(rect: ClientRect, box: ClientRect) -> HighlightRect:
    return HighlightRect(
        x=(rect.left - box.left) / box.width,
        y=(rect.top - box.top) / box.height,
        w=rect.width / box.width,
        h=rect.height / box.height,
    )


def denormalize(rect: HighlightRect, box: ClientRect) -> ClientRect:
    """Place a stored unit rectangle against a page's current box."""
    return ClientRect(
        left=box.left + rect.x * box.width,
        top=box.top + rect.y * box.height,
        width=rect.w * box.width,
        height=rect.h * box.height,
    )


def normalize_selection(
    rects: Iterable[ClientRect], pages: Iterable[PageBox]
) -> list[HighlightPage]:
    """Group a selection's rectangles by zero-based page, in unit coordinates.

    Degenerate rectangles and rectangles whose center falls outside every
    page are dropped. Pages appear in first-encounter order.
    """
    pages = list(pages)
    grouped: dict[int, list[HighlightRect]] = {}
    for rect in rects:
        if is_degenerate(rect):
            continue
        page = find_page(rect, pages)
        if page is None:
            continue
        grouped.setdefault(page.page_index, []).append(normalize(rect, page.box))
    return [HighlightPage(page=index, rects=found) for index, found in grouped.items()]


def build_highlight(
    rects: Iterable[ClientRect],
    pages: Iterable[PageBox],
    color: str,
    text: str,
) -> Optional[Highlight]:
    """Build a highlight draft from a selection, or None when nothing matched."""
    page_groups = normalize_selection(rects, pages)
    if not page_groups:
        return None
    return Highlight(
        id=new_id(),
        color=color,
        text=text,
        created_at=utc_now_iso(),
        pages=page_groups,
    )


def overlay_style(rect: HighlightRect, color: str) -> dict:
    """CSS placement of an overlay relative to its page element."""
    return {
        "left": f"{rect.x * 100}%",
        "top": f"{rect.y * 100}%",
        "width": f"{rect.w * 100}%",
        "height": f"{rect.h * 100}%",
        "background": COLOR_MAP[color],
    }


def overlays_for_pages(
    highlights: Iterable[Highlight], pages: Iterable[PageBox]
) -> list[Overlay]:
    """Compute overlays for every stored rectangle on a mounted page."""
    highlights = list(highlights)
    overlays = []
    for page in pages:
        for highlight in highlights:
            entry = next(
                (p for p in highlight.pages if p.page == page.page_index), None
            )
            if entry is None:
                continue
            for rect in entry.rects:
                overlays.append(
                    Overlay(
                        page_number=page.page_number,
                        highlight_id=highlight.id,
                        color=COLOR_MAP[highlight.color],
                        is_flashcard=highlight.is_flashcard,
                        rect=denormalize(rect, page.box),
                        style=overlay_style(rect, highlight.color),
                    )
                )
    return overlays
