import pytest

from pdfcards.review import ReviewSession, SessionStatus

from tests.helpers import make_card


async def _session(store, *ids):
    if ids:
        await store.append_flashcards([make_card(i) for i in ids])
    return await ReviewSession(store).load()


def _ids(cards):
    return [c.id for c in cards]


class TestReviewSession:
    @pytest.mark.asyncio
    async def test_no_cards_is_empty_state(self, store):
        session = await _session(store)

        assert session.remaining() == []
        assert session.current() is None
        assert session.status is SessionStatus.EMPTY

    @pytest.mark.asyncio
    async def test_all_cards_remaining_without_progress(self, store):
        session = await _session(store, "A", "B", "C")

        assert _ids(session.remaining()) == ["A", "B", "C"]
        assert session.current().id == "A"
        assert session.status is SessionStatus.REVIEWING
        assert session.summary() == "Remaining 3 of 3"

    @pytest.mark.asyncio
    async def test_good_grade_removes_card_and_moves_to_next(self, store):
        session = await _session(store, "A", "B", "C")

        await session.grade(True)

        assert _ids(session.remaining()) == ["B", "C"]
        assert session.current().id == "B"
        assert (await store.load_progress())["A"].done is True

    @pytest.mark.asyncio
    async def test_again_keeps_card_and_rotates(self, store):
        session = await _session(store, "A", "B", "C")

        await session.grade(False)

        assert _ids(session.remaining()) == ["A", "B", "C"]
        assert session.current().id == "B"

        await session.grade(False)
        await session.grade(False)
        assert session.current().id == "A"

    @pytest.mark.asyncio
    async def test_finishing_all_cards(self, store):
        session = await _session(store, "A", "B")

        await session.grade(True)
        await session.grade(True)

        assert session.remaining() == []
        assert session.current() is None
        assert session.status is SessionStatus.FINISHED
        assert session.index == 0

    @pytest.mark.asyncio
    async def test_grade_without_current_card_is_noop(self, store):
        session = await _session(store)

        assert await session.grade(True) is None
        assert await store.load_progress() == {}

    @pytest.mark.asyncio
    async def test_reveal_is_local_and_reset_by_grade(self, store):
        session = await _session(store, "A", "B")

        assert session.face() == session.current().question
        assert session.toggle_reveal() is True
        assert session.face() == session.current().answer
        assert await store.load_progress() == {}

        await session.grade(False)
        assert session.showing_answer is False

    @pytest.mark.asyncio
    async def test_reset_restarts_from_first_card(self, store):
        session = await _session(store, "A", "B", "C")
        await session.grade(True)
        await session.grade(True)
        session.toggle_reveal()

        await session.reset()

        assert _ids(session.remaining()) == ["A", "B", "C"]
        assert session.current().id == "A"
        assert session.showing_answer is False
        assert await store.load_progress() == {}

    @pytest.mark.asyncio
    async def test_previously_done_cards_are_skipped_on_load(self, store):
        first = await _session(store, "A", "B")
        await first.grade(True)

        second = await ReviewSession(store).load()

        assert _ids(second.remaining()) == ["B"]
        assert second.summary() == "Remaining 1 of 2"
