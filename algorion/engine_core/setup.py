"""
Game setup - Building a fresh session for a new match.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

from .board import build_board
from .events import EventService
from .state import FRAGMENT_COUNT, GameSession, HintDeck

if TYPE_CHECKING:
    from ..content import ContentCatalog

logger = logging.getLogger(__name__)


def new_hint_deck(events: EventService) -> HintDeck:
    """A freshly shuffled permutation of fragment indices 1..8."""
    pile = list(range(1, FRAGMENT_COUNT + 1))
    events.rng.shuffle(pile)
    return HintDeck(draw_pile=pile)


def create_game_session(
    session_id: str,
    content: ContentCatalog,
    events: EventService,
    initial_ph: int | None = None,
    master_id: str | None = None,
) -> GameSession:
    """
    Create a session ready for the lobby.

    The board is built from the content's cost table, the event deck and the
    fragment pool are shuffled once, and round 1's event is dealt.
    """
    session = GameSession(
        session_id=session_id,
        ph=content.initial_ph if initial_ph is None else initial_ph,
        board=build_board(content.cost_table(), content.house_names()),
        master_id=master_id,
    )
    session.event_deck = events.new_deck()
    session.hint_deck = new_hint_deck(events)
    events.start_round(session)

    logger.info(
        "Session %s created with %d PH", session.session_id, session.ph,
    )
    return session
