"""
Riddle & Hint Pipeline.

Per-session state machine, orthogonal to the turn:

    Idle -> RiddleSubmitted(house, player, retry?) -> Idle (on confirm)

The cost is charged at submission. Confirmation carries the master's
verdict, which picks the hint tier; the House draws its fragment index from
the no-repetition pool the first time it yields a hint and keeps it for the
rest of the match. Answering a House again replaces its hint card in place.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Protocol, TYPE_CHECKING

from .assembly import recompute_text
from .board import CENTER_HOUSE, house_number
from .costs import CostKind, CostQuote, compute_cost, debit
from .errors import RiddleStateError
from .state import HintCard, HintTier, PendingRiddle, RiddleQuality

if TYPE_CHECKING:
    from .state import GameSession

logger = logging.getLogger(__name__)


class FragmentSource(Protocol):
    """The slice of the content catalog the pipeline reads."""

    def fragment_text(self, index: int, tier: HintTier): ...

    def house_card_front(self, house_id: str) -> str: ...


@dataclass
class RiddleOutcome:
    """What a confirmed riddle produced."""
    house_id: str
    player_id: str
    quality: RiddleQuality
    tier: HintTier | None = None
    card: HintCard | None = None
    created: bool = False
    skipped: bool = False  # the centre House never yields a hint


def submit_riddle(
    session: GameSession,
    player_id: str,
    house_id: str,
    retry: bool = False,
) -> tuple[PendingRiddle, CostQuote]:
    """
    Register a riddle answer and charge for it.

    A retry is only allowed on a House that already produced a confirmed
    result and is currently revealed; it costs the flat surcharge and never
    consults any discount.
    """
    if session.pending_riddle is not None:
        raise RiddleStateError("A riddle is already awaiting the master's verdict")

    house = session.get_house(house_id)

    if retry:
        if house_id not in session.resolved_houses or not house.revealed:
            raise RiddleStateError(
                f"Cannot retry {house_id}: it has not been resolved yet"
            )
        quote = compute_cost(session, CostKind.RETRY_RIDDLE, player_id=player_id)
    else:
        quote = compute_cost(
            session, CostKind.RESOLVE_RIDDLE, player_id=player_id, base_cost=house.base_cost
        )

    debit(session, quote)

    pending = PendingRiddle(
        house_id=house_id,
        base_cost=house.base_cost,
        player_id=player_id,
        is_retry=retry,
        charged=quote.amount,
    )
    session.pending_riddle = pending
    logger.info(
        "Session %s: %s submitted riddle at %s (retry=%s, charged %d)",
        session.session_id, player_id, house_id, retry, quote.amount,
    )
    return pending, quote


def confirm_riddle(
    session: GameSession,
    quality: RiddleQuality,
    content: FragmentSource,
) -> RiddleOutcome:
    """
    Apply the master's verdict to the pending riddle.

    Content is read before anything is mutated.
    """
    pending = session.pending_riddle
    if pending is None:
        raise RiddleStateError("No riddle is awaiting confirmation")

    house_id = pending.house_id
    quality = RiddleQuality(quality)

    if house_id == CENTER_HOUSE:
        session.pending_riddle = None
        session.resolved_houses.add(house_id)
        return RiddleOutcome(
            house_id=house_id,
            player_id=pending.player_id,
            quality=quality,
            skipped=True,
        )

    tier = quality.tier
    index = session.hint_deck.peek_index(house_id)
    fragment = content.fragment_text(index, tier)
    front_source = content.house_card_front(house_id)

    session.pending_riddle = None
    session.hint_deck.assign(house_id)

    card = session.hint_card_for_house(house_id)
    created = card is None
    if card is None:
        card = HintCard(
            card_id=session.next_hint_card_id(),
            house_id=house_id,
            tier=tier,
            text=fragment.text,
            citation=fragment.citation,
            front_source=front_source,
            fragment_index=index,
            order=house_number(house_id),
        )
        session.hint_cards.append(card)
    else:
        card.tier = tier
        card.text = fragment.text
        card.citation = fragment.citation
        card.front_source = front_source
        card.fragment_index = index

    session.resolved_houses.add(house_id)

    # The card may already sit in a slot; its text may have changed.
    recompute_text(session)

    logger.info(
        "Session %s: %s resolved as %s -> fragment %d (%s)",
        session.session_id, house_id, quality.value, index, tier.value,
    )
    return RiddleOutcome(
        house_id=house_id,
        player_id=pending.player_id,
        quality=quality,
        tier=tier,
        card=card,
        created=created,
    )
