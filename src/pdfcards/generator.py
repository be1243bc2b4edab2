"""Flashcard generation from flashcard-colored highlights.

The LLM is an opaque collaborator: prompts in, raw text out. A response that
does not parse into question/answer pairs yields an empty list rather than
an error; only a failed call raises.
"""

import json
import logging
import re
from typing import Iterable

from .llm.base import LLMProvider
from .models import Flashcard, GeneratedPair, Highlight
from .utils import new_id, utc_now_iso

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant that turns study highlights into flashcards."


def pending_flashcard_highlights(highlights: Iterable[Highlight]) -> list[Highlight]:
    """Flashcard highlights that have not produced cards yet."""
    return [h for h in highlights if h.is_flashcard and not h.flashcard_generated]


def build_user_prompt(highlights: list[Highlight]) -> str:
    context = "\n".join(f"({i + 1}) {h.text}" for i, h in enumerate(highlights))
    return (
        "Create concise flashcards from the following highlights. "
        "Return a JSON array where each item has 'question' and 'answer'. "
        "Avoid markdown, and keep questions short and clear.\n\n"
        f"{context}"
    )


def _strip_code_fence(text: str) -> str:
    """Remove a markdown code fence if the model wrapped its JSON in one."""
    match = re.match(r"^```[a-zA-Z]*\s*\n(.*?)\n?```$", text.strip(), re.DOTALL)
    return match.group(1) if match else text


def parse_flashcards(raw: str) -> list[GeneratedPair]:
    """Parse a JSON array of ``{question, answer}`` objects.

    Items missing either field are dropped. Anything that is not a JSON
    array yields an empty list.
    """
    try:
        parsed = json.loads(_strip_code_fence(raw or ""))
    except (ValueError, RecursionError):
        logger.debug("LLM response was not valid JSON")
        return []
    if not isinstance(parsed, list):
        return []
    pairs = []
    for item in parsed:
        if not isinstance(item, dict):
            continue
        question = item.get("question")
        answer = item.get("answer")
        if not question or not answer:
            continue
        pairs.append(GeneratedPair(question=str(question), answer=str(answer)))
    return pairs


class FlashcardGenerator:
    """Turns highlights into flashcards through an LLM provider."""

    def __init__(self, llm: LLMProvider):
        self._llm = llm

    async def generate(
        self, source_path: str, highlights: list[Highlight]
    ) -> list[Flashcard]:
        """Generate cards for ``highlights``. Raises LLMError if the call fails."""
        response = await self._llm.generate(SYSTEM_PROMPT, build_user_prompt(highlights))
        pairs = parse_flashcards(response)
        logger.info(f"Parsed {len(pairs)} flashcards from {len(highlights)} highlights")

        now = utc_now_iso()
        highlight_ids = [h.id for h in highlights]
        return [
            Flashcard(
                id=new_id(),
                question=pair.question,
                answer=pair.answer,
                source_path=source_path,
                highlight_ids=list(highlight_ids),
                created_at=now,
            )
            for pair in pairs
        ]
