"""Markdown export of a document's highlights, grouped by color."""

import logging
from pathlib import Path
from typing import Iterable

import aiofiles

from .models import Highlight
from .utils import collapse_whitespace

logger = logging.getLogger(__name__)

COLOR_ORDER = ("flashcard", "yellow", "green", "blue")
EMPTY_MARKER = "_No annotations found._"


def title_for_color(color: str) -> str:
    if color == "flashcard":
        return "Flashcard"
    return color[:1].upper() + color[1:]


def format_pages(highlight: Highlight) -> str:
    """``" (pages 1, 3)"`` for the 1-based pages touched, or empty."""
    pages = sorted({p.page + 1 for p in highlight.pages})
    if not pages:
        return ""
    return f" (pages {', '.join(str(p) for p in pages)})"


def build_annotation_markdown(highlights: Iterable[Highlight]) -> str:
    """Render highlights as markdown. Same input always gives the same text."""
    highlights = list(highlights)
    if not highlights:
        return EMPTY_MARKER

    groups: dict[str, list[Highlight]] = {}
    for highlight in highlights:
        groups.setdefault(highlight.color, []).append(highlight)

    lines = []
    for color in COLOR_ORDER:
        group = groups.get(color)
        if not group:
            continue
        lines.append(f"## {title_for_color(color)}")
        for highlight in group:
            lines.append(f"- {collapse_whitespace(highlight.text)}{format_pages(highlight)}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def annotation_path_for(pdf_path: Path) -> Path:
    """Sibling markdown file, e.g. ``book.pdf`` -> ``book Annotations.md``."""
    pdf_path = Path(pdf_path)
    return pdf_path.with_name(f"{pdf_path.stem} Annotations.md")


async def write_annotations(pdf_path: Path, highlights: Iterable[Highlight]) -> Path:
    """Create or overwrite the annotation file next to the PDF."""
    path = annotation_path_for(pdf_path)
    content = build_annotation_markdown(highlights)
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(content)
    logger.info(f"Exported annotations to {path}")
    return path
