"""
Round/Turn Controller.

ActivePlayer(i) -> ActivePlayer((i + 1) mod N) after every turn-consuming
action. When the new index is not greater than the previous one the turn has
wrapped: the round advances and a new event is dealt. With a single player
this happens on every turn.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from .errors import NotYourTurnError
from .events import EventCard, EventService

if TYPE_CHECKING:
    from .state import GameSession, Player

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnChange:
    player_id: str
    player_name: str
    index: int
    round: int
    round_wrapped: bool
    event: EventCard | None = None


def assert_active_player(session: GameSession, player_id: str | None) -> Player:
    """Reject anyone but the player whose turn it is."""
    player = session.current_player
    if player is None:
        raise NotYourTurnError("No player is set for the current turn")
    if player.player_id != player_id:
        raise NotYourTurnError(
            f"Action denied: only the active player ({player.name}) can act now."
        )
    return player


def advance_turn(session: GameSession, events: EventService) -> TurnChange | None:
    """
    Pass the turn to the next player.

    Returns None when the roster is empty (no-op).
    """
    if not session.players:
        return None

    previous_index = session.active_player_index
    session.active_player_index = (previous_index + 1) % len(session.players)

    # An unanswered scrying offer dies with the turn and spends the ability.
    if session.pending_reveal is not None:
        session.flags_for(session.pending_reveal.player_id).ability_used = True
        session.pending_reveal = None

    wrapped = session.active_player_index <= previous_index
    event = session.active_event
    if wrapped:
        session.round += 1
        event = events.start_round(session)

    player = session.current_player
    logger.debug(
        "Session %s turn -> %s (index %d, round %d)",
        session.session_id, player.player_id, session.active_player_index, session.round,
    )
    return TurnChange(
        player_id=player.player_id,
        player_name=player.name,
        index=session.active_player_index,
        round=session.round,
        round_wrapped=wrapped,
        event=event,
    )
