from __future__ import annotations

import pytest

from codedoctor.domain.enums import CardStatus
from codedoctor.domain.models import CardStats, Flashcard
from codedoctor.engine.mastery_engine import MasteryEngine
from codedoctor.engine.review_session import ReviewSession, next_active


def _card(card_id: str, status: CardStatus = CardStatus.NEW) -> Flashcard:
    return Flashcard(
        id=card_id,
        concept=card_id,
        front_code="x = 2",
        back_code="x = 1",
        explanation="",
        stats=CardStats(status=status),
    )


def _engine(make_draft, n: int) -> MasteryEngine:
    engine = MasteryEngine(clock_ms=lambda: 1)
    engine.ingest([make_draft(f"C{i}") for i in range(n)])
    return engine


# --- next_active ---
def test_next_active_empty_collection() -> None:
    assert next_active([], None) is None


def test_next_active_only_mastered() -> None:
    assert next_active([_card("a", CardStatus.MASTERED)], "a") is None


def test_next_active_starts_at_first_active() -> None:
    cards = [_card("a", CardStatus.MASTERED), _card("b"), _card("c")]
    assert next_active(cards, None) == "b"


def test_next_active_moves_forward_and_wraps() -> None:
    cards = [_card("a"), _card("b"), _card("c")]
    assert next_active(cards, "a") == "b"
    assert next_active(cards, "b") == "c"
    assert next_active(cards, "c") == "a"


def test_next_active_skips_mastered_cards() -> None:
    cards = [_card("a"), _card("b", CardStatus.MASTERED), _card("c")]
    assert next_active(cards, "a") == "c"


def test_next_active_after_current_became_mastered() -> None:
    cards = [_card("a"), _card("b", CardStatus.MASTERED), _card("c"), _card("d")]
    assert next_active(cards, "b") == "c"


def test_next_active_unknown_id_restarts() -> None:
    cards = [_card("a"), _card("b")]
    assert next_active(cards, "gone") == "a"


def test_next_active_single_card_loops_on_itself() -> None:
    assert next_active([_card("a")], "a") == "a"


# --- ReviewSession ---
def test_empty_deck_is_completed_immediately() -> None:
    session = ReviewSession(MasteryEngine())
    assert session.completed
    assert session.current() is None
    assert session.position() == (0, 0)


def test_session_walks_cards_in_order_and_loops(make_draft) -> None:
    engine = _engine(make_draft, 3)
    session = ReviewSession(engine)
    seen = []
    for _ in range(4):
        seen.append(session.current().concept)
        session.advance()
    assert seen == ["C0", "C1", "C2", "C0"]


def test_check_records_answer_and_reveals_result(make_draft) -> None:
    engine = _engine(make_draft, 1)
    session = ReviewSession(engine)
    res = session.check(" x=1 ")
    assert res.is_correct
    assert res.card.stats.correct_streak == 1
    assert session.result is res
    assert session.draft_answer == " x=1 "


def test_wrong_answer_is_recorded(make_draft) -> None:
    engine = _engine(make_draft, 1)
    session = ReviewSession(engine)
    res = session.check("x = 2")
    assert not res.is_correct
    assert engine.all_cards()[0].stats.incorrect_count == 1


def test_second_check_on_same_visit_is_refused(make_draft) -> None:
    session = ReviewSession(_engine(make_draft, 1))
    session.check("x = 1")
    with pytest.raises(RuntimeError):
        session.check("x = 1")


def test_advance_resets_visit_state(make_draft) -> None:
    session = ReviewSession(_engine(make_draft, 2))
    session.check("nope")
    session.advance()
    assert session.result is None
    assert session.draft_answer == ""


def test_mastered_card_leaves_the_rotation_without_skipping(make_draft) -> None:
    engine = _engine(make_draft, 3)
    c0, c1, c2 = engine.all_cards()
    for _ in range(2):
        engine.record_answer(c1.id, True)

    session = ReviewSession(engine)
    session.advance()
    assert session.current().id == c1.id
    session.check("x = 1")
    assert session.current().id == c1.id  # still shown while the result is revealed
    assert session.position() == (1, 2)

    session.advance()
    assert session.current().id == c2.id
    session.advance()
    assert session.current().id == c0.id


def test_session_completes_when_last_card_is_mastered(make_draft) -> None:
    engine = _engine(make_draft, 1)
    session = ReviewSession(engine)
    for _ in range(3):
        assert not session.completed
        session.check("x = 1")
        session.advance()
    assert session.completed
    assert session.current() is None


def test_session_recovers_when_current_card_is_purged(make_draft) -> None:
    engine = _engine(make_draft, 2)
    c0, c1 = engine.all_cards()
    session = ReviewSession(engine)
    for _ in range(3):
        engine.record_answer(c0.id, True)
    engine.purge_mastered()
    assert session.current().id == c1.id


def test_position_reports_progress(make_draft) -> None:
    session = ReviewSession(_engine(make_draft, 3))
    session.advance()
    assert session.position() == (2, 3)
