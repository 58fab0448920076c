"""
Game Session - The aggregate root holding all mutable game state.

Design principles:
- One GameSession per match; it is the sole unit of consistency
- Mutated in place by the reducer, always on a working clone
- Everything the match needs lives here, including the ephemeral
  pending selections and counters that are scoped to the session
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum

from .board import Board, House, CENTER_HOUSE, HINT_HOUSES, iter_houses
from .errors import FragmentPoolExhaustedError, InvalidHouseError
from .events import EventCard

DEFAULT_INITIAL_PH = 40
FRAGMENT_COUNT = len(HINT_HOUSES)


class HeroType(str, Enum):
    """Hero archetypes. Each has one once-per-game ability."""
    DWARF = "dwarf"
    HUMAN = "human"
    SIREN = "siren"  # water-themed
    WITCH = "witch"  # trickster-themed


class Outcome(str, Enum):
    WIN = "win"
    LOSS = "loss"


class HintTier(str, Enum):
    EASY = "easy"
    HARD = "hard"


class RiddleQuality(str, Enum):
    """Master's verdict on a riddle answer."""
    OPTIMAL = "optimal"
    POOR = "poor"

    @property
    def tier(self) -> HintTier:
        return HintTier.EASY if self is RiddleQuality.OPTIMAL else HintTier.HARD


@dataclass
class Player:
    player_id: str
    name: str
    hero: HeroType
    position: str = CENTER_HOUSE


@dataclass
class PlayerFlags:
    """One-shot trackers for a single player."""
    free_move_used_this_round: bool = False  # reset every round
    ability_used: bool = False  # never reset
    hero_free_move_pending: bool = False
    hero_riddle_delta: int = 0  # consumed on the next paid riddle


@dataclass
class PendingRiddle:
    """The single riddle awaiting the master's verdict."""
    house_id: str
    base_cost: int
    player_id: str
    is_retry: bool = False
    charged: int = 0


@dataclass
class PendingReveal:
    """Phase 1 of the trickster ability: Houses offered to one player."""
    player_id: str
    offered: list[str] = field(default_factory=list)


@dataclass
class HintDeck:
    """
    Permutation of fragment indices 1..8 not yet assigned,
    plus the stable House -> fragment mapping.
    """
    draw_pile: list[int] = field(default_factory=list)
    assigned_by_house: dict[str, int] = field(default_factory=dict)

    def index_for(self, house_id: str) -> int | None:
        return self.assigned_by_house.get(house_id)

    def peek_index(self, house_id: str) -> int:
        """Index the House holds or would draw next, without drawing."""
        assigned = self.assigned_by_house.get(house_id)
        if assigned is not None:
            return assigned
        if not self.draw_pile:
            raise FragmentPoolExhaustedError(
                f"Fragment pool exhausted while {house_id} still needs one. "
                "Check whether a House is being granted more than one fragment."
            )
        return self.draw_pile[0]

    def assign(self, house_id: str) -> int:
        """Bind a fragment to the House the first time it yields a hint."""
        index = self.peek_index(house_id)
        if house_id not in self.assigned_by_house:
            self.draw_pile.pop(0)
            self.assigned_by_house[house_id] = index
        return index


@dataclass
class HintCard:
    card_id: str
    house_id: str
    tier: HintTier
    text: str
    citation: str
    front_source: str
    fragment_index: int
    order: int

    def to_dict(self) -> dict:
        return {
            "card_id": self.card_id,
            "house_id": self.house_id,
            "tier": self.tier.value,
            "text": self.text,
            "citation": self.citation,
            "front_source": self.front_source,
            "fragment_index": self.fragment_index,
            "order": self.order,
        }


@dataclass
class FinalSlot:
    slot_index: int
    card_id: str | None = None


def new_final_slots() -> list[FinalSlot]:
    return [FinalSlot(slot_index=i) for i in range(len(HINT_HOUSES))]


@dataclass
class GameSession:
    """
    Complete state of one match.

    All state changes go through the reducer.
    """
    session_id: str
    ph: int = DEFAULT_INITIAL_PH
    round: int = 1
    event_deck: list[str] = field(default_factory=list)
    active_event: EventCard | None = None
    board: Board = field(default_factory=list)

    # Roster; order defines turn sequence
    players: list[Player] = field(default_factory=list)
    active_player_index: int = 0
    player_flags: dict[str, PlayerFlags] = field(default_factory=dict)
    master_id: str | None = None
    started: bool = False

    # Terminal state
    game_over: bool = False
    outcome: Outcome | None = None

    # Riddles and hints
    first_riddle_discount_used: bool = False
    pending_riddle: PendingRiddle | None = None
    hint_deck: HintDeck = field(default_factory=HintDeck)
    hint_cards: list[HintCard] = field(default_factory=list)
    resolved_houses: set[str] = field(default_factory=set)
    hint_card_seq: int = 0

    # Final assembly
    final_slots: list[FinalSlot] = field(default_factory=new_final_slots)
    assembled_text: str = ""
    final_challenge_pending: bool = False

    # Session-scoped ephemeral state
    pending_reveal: PendingReveal | None = None
    reserved_names: dict[str, str] = field(default_factory=dict)  # player_id -> name
    water_signal_sent: bool = False
    timer_seconds: int = 0

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def current_player(self) -> Player | None:
        if not self.players:
            return None
        return self.players[self.active_player_index]

    def get_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def flags_for(self, player_id: str) -> PlayerFlags:
        """Get a player's trackers, creating them on first use."""
        if player_id not in self.player_flags:
            self.player_flags[player_id] = PlayerFlags()
        return self.player_flags[player_id]

    def find_house(self, house_id: str) -> House | None:
        for house in iter_houses(self.board):
            if house.house_id == house_id:
                return house
        return None

    def get_house(self, house_id: str) -> House:
        house = self.find_house(house_id)
        if house is None:
            raise InvalidHouseError(f"Invalid house: {house_id}")
        return house

    def hint_card_for_house(self, house_id: str) -> HintCard | None:
        for card in self.hint_cards:
            if card.house_id == house_id:
                return card
        return None

    def get_hint_card(self, card_id: str) -> HintCard | None:
        for card in self.hint_cards:
            if card.card_id == card_id:
                return card
        return None

    def next_hint_card_id(self) -> str:
        self.hint_card_seq += 1
        return f"hint_{self.hint_card_seq}"

    def clone(self) -> GameSession:
        """Deep copy the session."""
        return deepcopy(self)
