import json

import pytest

from pdfcards.exceptions import LLMError
from pdfcards.generator import (
    SYSTEM_PROMPT,
    FlashcardGenerator,
    build_user_prompt,
    parse_flashcards,
    pending_flashcard_highlights,
)

from tests.helpers import FakeLLM, make_highlight


class TestParseFlashcards:
    def test_parses_array(self):
        raw = json.dumps([
            {"question": "What is ATP?", "answer": "Energy currency."},
            {"question": "Where is it made?", "answer": "Mitochondria."},
        ])

        pairs = parse_flashcards(raw)

        assert [(p.question, p.answer) for p in pairs] == [
            ("What is ATP?", "Energy currency."),
            ("Where is it made?", "Mitochondria."),
        ]

    def test_drops_incomplete_items(self):
        raw = json.dumps([
            {"question": "Q1", "answer": "A1"},
            {"question": "Q2"},
            {"answer": "A3"},
            {"question": "", "answer": "A4"},
            "not an object",
            {"question": 5, "answer": 6},
        ])

        pairs = parse_flashcards(raw)

        assert [(p.question, p.answer) for p in pairs] == [("Q1", "A1"), ("5", "6")]

    @pytest.mark.parametrize(
        "raw", ["", "not json", '{"question": "Q", "answer": "A"}', "null", "[" * 100000]
    )
    def test_non_array_yields_empty_list(self, raw):
        assert parse_flashcards(raw) == []

    def test_tolerates_code_fence(self):
        raw = '```json\n[{"question": "Q", "answer": "A"}]\n```'

        assert len(parse_flashcards(raw)) == 1


class TestPrompts:
    def test_pending_skips_generated_and_non_flashcard(self):
        highlights = [
            make_highlight("1", color="flashcard"),
            make_highlight("2", color="flashcard", generated=True),
            make_highlight("3", color="yellow"),
            make_highlight("4", color="flashcard", generated=False),
        ]

        assert [h.id for h in pending_flashcard_highlights(highlights)] == ["1", "4"]

    def test_user_prompt_numbers_highlights(self):
        prompt = build_user_prompt([
            make_highlight("1", text="first"),
            make_highlight("2", text="second"),
        ])

        assert "Return a JSON array" in prompt
        assert prompt.endswith("(1) first\n(2) second")


class TestFlashcardGenerator:
    @pytest.mark.asyncio
    async def test_cards_reference_all_highlights(self):
        llm = FakeLLM(json.dumps([{"question": "Q", "answer": "A"}, {"question": "Q2", "answer": "A2"}]))
        highlights = [make_highlight("h1", color="flashcard"), make_highlight("h2", color="flashcard")]

        cards = await FlashcardGenerator(llm).generate("docs/book.pdf", highlights)

        assert len(cards) == 2
        assert all(c.highlight_ids == ["h1", "h2"] for c in cards)
        assert all(c.source_path == "docs/book.pdf" for c in cards)
        assert cards[0].id != cards[1].id
        assert llm.calls[0][0] == SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_unusable_response_yields_no_cards(self):
        cards = await FlashcardGenerator(FakeLLM("Sorry, I can't help.")).generate(
            "docs/book.pdf", [make_highlight("h1", color="flashcard")]
        )

        assert cards == []

    @pytest.mark.asyncio
    async def test_call_failure_propagates(self, llm_error):
        with pytest.raises(LLMError):
            await FlashcardGenerator(FakeLLM(error=llm_error)).generate(
                "docs/book.pdf", [make_highlight("h1", color="flashcard")]
            )
