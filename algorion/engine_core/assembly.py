"""
Final Assembly & Resolution.

The slot board holds one slot per hint House. A hint card sits in at most
one slot at a time; the assembled text is recomputed on every change. The
final challenge opens when every slot is filled or PH has run out, and its
answer ends the match either way.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

from .errors import CardNotFoundError, InvalidSlotError, RiddleStateError
from .state import Outcome

if TYPE_CHECKING:
    from .state import GameSession

logger = logging.getLogger(__name__)


def recompute_text(session: GameSession) -> str:
    """Join the texts of occupied slots, in slot order."""
    texts = []
    for slot in session.final_slots:
        if slot.card_id is None:
            continue
        card = session.get_hint_card(slot.card_id)
        texts.append(card.text if card else "")
    session.assembled_text = " ".join(texts)
    return session.assembled_text


def _check_slot(session: GameSession, slot_index) -> int:
    if (
        not isinstance(slot_index, int)
        or isinstance(slot_index, bool)
        or slot_index < 0
        or slot_index >= len(session.final_slots)
    ):
        raise InvalidSlotError(f"Invalid slot: {slot_index}")
    return slot_index


def place_card(session: GameSession, card_id: str, slot_index: int) -> str:
    """Move a hint card into a slot, vacating any slot it held before."""
    slot_index = _check_slot(session, slot_index)
    if session.get_hint_card(card_id) is None:
        raise CardNotFoundError(f"Hint card {card_id} not found in the deck")

    for slot in session.final_slots:
        if slot.card_id == card_id:
            slot.card_id = None
    session.final_slots[slot_index].card_id = card_id
    return recompute_text(session)


def clear_slot(session: GameSession, slot_index: int) -> str:
    slot_index = _check_slot(session, slot_index)
    session.final_slots[slot_index].card_id = None
    return recompute_text(session)


def all_slots_filled(session: GameSession) -> bool:
    return all(slot.card_id is not None for slot in session.final_slots)


def final_challenge_available(session: GameSession) -> bool:
    return all_slots_filled(session) or session.ph <= 0


def normalize_answer(text: str) -> str:
    """Trim, collapse inner whitespace and case-fold."""
    return " ".join((text or "").split()).casefold()


def resolve_final_answer(session: GameSession, answer: str, expected: str) -> Outcome:
    """
    Judge the final answer. Terminal: the match is over either way.
    """
    if not final_challenge_available(session):
        raise RiddleStateError(
            "The final challenge opens once every slot is filled or PH runs out"
        )

    won = normalize_answer(answer) == normalize_answer(expected)
    session.game_over = True
    session.outcome = Outcome.WIN if won else Outcome.LOSS
    session.final_challenge_pending = False
    logger.info(
        "Session %s finished: %s", session.session_id, session.outcome.value,
    )
    return session.outcome
