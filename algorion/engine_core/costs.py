"""
Action Cost Engine - What an action costs in PH, and paying for it.

Costs are computed first as a CostQuote that names every one-shot flag the
payment would consume. debit() then checks affordability and, only on
success, subtracts the amount and consumes those flags. A rejected debit
leaves the session untouched.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING

from .errors import InsufficientPointsError

if TYPE_CHECKING:
    from .state import GameSession

logger = logging.getLogger(__name__)

BASE_MOVE_COST = 1
EXPLORE_COST = 1
REEXPLORE_COST = 2
RETRY_SURCHARGE = 2
LONG_JUMP_COST = 2


class CostKind(str, Enum):
    MOVE = "move"
    EXPLORE = "explore"
    REEXPLORE = "reexplore"
    RESOLVE_RIDDLE = "resolve_riddle"
    RETRY_RIDDLE = "retry_riddle"
    LONG_JUMP = "long_jump"


@dataclass(frozen=True)
class CostQuote:
    """A computed cost plus the one-shot flags paying it would consume."""
    kind: CostKind
    amount: int
    player_id: str | None = None
    uses_event_free_move: bool = False
    uses_hero_free_move: bool = False
    uses_event_riddle_discount: bool = False
    uses_hero_riddle_delta: bool = False


def compute_cost(
    session: GameSession,
    kind: CostKind,
    player_id: str | None = None,
    base_cost: int = 0,
) -> CostQuote:
    """
    Compute the PH cost of an action without touching the session.

    Args:
        session: Session whose active event and trackers apply
        kind: Which action is being priced
        player_id: Acting player (needed for per-player modifiers)
        base_cost: The House's fixed cost, for RESOLVE_RIDDLE

    Returns:
        CostQuote ready for debit()
    """
    modifiers = session.active_event.modifiers if session.active_event else None
    flags = session.player_flags.get(player_id) if player_id else None

    if kind == CostKind.MOVE:
        event_free = bool(
            player_id
            and modifiers
            and modifiers.first_move_free
            and not (flags and flags.free_move_used_this_round)
        )
        hero_free = bool(flags and flags.hero_free_move_pending)
        # The round-scoped grant goes first; the hero grant keeps for later.
        if event_free:
            return CostQuote(kind, 0, player_id, uses_event_free_move=True)
        if hero_free:
            return CostQuote(kind, 0, player_id, uses_hero_free_move=True)
        delta = modifiers.move_delta if modifiers else 0
        return CostQuote(kind, max(0, BASE_MOVE_COST + delta), player_id)

    if kind == CostKind.EXPLORE:
        return CostQuote(kind, EXPLORE_COST, player_id)

    if kind == CostKind.REEXPLORE:
        return CostQuote(kind, REEXPLORE_COST, player_id)

    if kind == CostKind.RESOLVE_RIDDLE:
        event_discount = 0
        if modifiers and modifiers.first_riddle_discount and not session.first_riddle_discount_used:
            event_discount = modifiers.first_riddle_discount
        hero_delta = flags.hero_riddle_delta if flags else 0
        # The hero delta waits for a riddle it can actually lower.
        if base_cost + event_discount <= 0:
            hero_delta = 0
        amount = max(0, base_cost + event_discount + hero_delta)
        return CostQuote(
            kind,
            amount,
            player_id,
            uses_event_riddle_discount=event_discount != 0,
            uses_hero_riddle_delta=hero_delta != 0,
        )

    if kind == CostKind.RETRY_RIDDLE:
        return CostQuote(kind, RETRY_SURCHARGE, player_id)

    if kind == CostKind.LONG_JUMP:
        if modifiers and modifiers.jump_cost is not None:
            return CostQuote(kind, modifiers.jump_cost, player_id)
        return CostQuote(kind, LONG_JUMP_COST, player_id)

    raise ValueError(f"Unknown cost kind: {kind}")


def debit(session: GameSession, quote: CostQuote) -> int:
    """
    Pay a quote from the shared pool.

    Raises InsufficientPointsError (and changes nothing) when the pool
    cannot cover the amount. Returns the remaining PH.
    """
    if session.ph < quote.amount:
        raise InsufficientPointsError(quote.amount, session.ph)

    session.ph -= quote.amount

    if quote.player_id:
        flags = session.flags_for(quote.player_id)
        if quote.uses_event_free_move:
            flags.free_move_used_this_round = True
        if quote.uses_hero_free_move:
            flags.hero_free_move_pending = False
        if quote.uses_hero_riddle_delta:
            flags.hero_riddle_delta = 0
    if quote.uses_event_riddle_discount:
        session.first_riddle_discount_used = True

    logger.debug(
        "Session %s paid %d PH for %s (remaining %d)",
        session.session_id, quote.amount, quote.kind.value, session.ph,
    )
    return session.ph


def charge(
    session: GameSession,
    kind: CostKind,
    player_id: str | None = None,
    base_cost: int = 0,
) -> CostQuote:
    """Compute and debit in one step."""
    quote = compute_cost(session, kind, player_id=player_id, base_cost=base_cost)
    debit(session, quote)
    return quote
