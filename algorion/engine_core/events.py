"""
Event Deck - Round-modifier cards.

The deck is shuffled once at match start and dealt without replacement,
one card per round. Once it runs out, rounds continue with no active event.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random
from typing import Iterable, TYPE_CHECKING

from .errors import IntegrityError

if TYPE_CHECKING:
    from .state import GameSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventModifiers:
    """Pure data describing how a card bends the action economy."""
    move_delta: int = 0
    first_move_free: bool = False  # per player, per round
    first_riddle_discount: int = 0  # negative; once per match
    jump_cost: int | None = None  # overrides the long jump base cost
    group_discussion_blocked: bool = False  # informational only

    def to_dict(self) -> dict:
        return {
            "move_delta": self.move_delta,
            "first_move_free": self.first_move_free,
            "first_riddle_discount": self.first_riddle_discount,
            "jump_cost": self.jump_cost,
            "group_discussion_blocked": self.group_discussion_blocked,
        }


@dataclass(frozen=True)
class EventCard:
    name: str
    description: str
    modifiers: EventModifiers = EventModifiers()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "modifiers": self.modifiers.to_dict(),
        }


DEFAULT_EVENTS: tuple[EventCard, ...] = (
    EventCard(
        name="Laminar Flow",
        description="The river of fate glides on without charging the first step.",
        modifiers=EventModifiers(first_move_free=True),
    ),
    EventCard(
        name="Echo of the Contract",
        description="The oath reverberates: the first riddle demands less breath.",
        modifiers=EventModifiers(first_riddle_discount=-1),
    ),
    EventCard(
        name="Brittle Ground",
        description="The earth gives way underfoot. Every step weighs more.",
        modifiers=EventModifiers(move_delta=1),
    ),
    EventCard(
        name="Ephemeral Shortcut",
        description="A glimmer opens a short path; the jump costs less.",
        modifiers=EventModifiers(jump_cost=1),
    ),
    EventCard(
        name="Fog of Doubt",
        description="Dissonant whispers fill the air, turning logic into a lonely road.",
        modifiers=EventModifiers(group_discussion_blocked=True),
    ),
)


class EventService:
    """
    Deals round-modifier cards.

    Usage:
        events = EventService(catalog, rng=random.Random(seed))
        session.event_deck = events.new_deck()
        events.start_round(session)
    """

    def __init__(
        self,
        catalog: Iterable[EventCard] | None = None,
        rng: random.Random | None = None,
    ):
        self._cards = {card.name: card for card in (catalog or DEFAULT_EVENTS)}
        self.rng = rng or random.Random()

    @property
    def names(self) -> list[str]:
        return list(self._cards)

    def get(self, name: str) -> EventCard | None:
        return self._cards.get(name)

    def new_deck(self) -> list[str]:
        """Build a freshly shuffled deck with every card exactly once."""
        deck = self.names
        self.rng.shuffle(deck)
        return deck

    def start_round(self, session: GameSession) -> EventCard | None:
        """
        Deal the next card and clear the round-scoped trackers.

        Returns the new active event, or None once the deck is exhausted.
        """
        event = self._draw(session)
        session.active_event = event
        for flags in session.player_flags.values():
            flags.free_move_used_this_round = False
        logger.info(
            "Session %s round %d event: %s",
            session.session_id,
            session.round,
            event.name if event else "none",
        )
        return event

    def _draw(self, session: GameSession) -> EventCard | None:
        if not session.event_deck:
            return None
        name = session.event_deck.pop(0)
        event = self.get(name)
        if event is None:
            raise IntegrityError(f"Unknown event card in deck: {name}")
        return event
