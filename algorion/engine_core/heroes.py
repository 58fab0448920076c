"""
Hero Abilities - One once-per-game ability per archetype.

Abilities are a closed set keyed by HeroType. Each carries a descriptor of
its effect and is dispatched in use_ability():

- DWARF: the next riddle this hero pays for costs 1 less
- HUMAN: the next ordinary move is free
- SIREN: a subtle-hint signal to the room. It also fires by itself on the
  hero's first riddle submission while unused, which spends it
- WITCH: two-phase scrying. Phase 1 offers up to two hidden Houses;
  phase 2 reveals the chosen costs to the Witch only. An offer left
  unanswered when the turn ends spends the ability.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random
from typing import TYPE_CHECKING

from .board import CENTER_HOUSE, iter_houses
from .errors import AbilityMisuseError, PlayerNotFoundError
from .notifications import Notification, NotificationKind
from .state import HeroType, PendingReveal

if TYPE_CHECKING:
    from .state import GameSession, Player, PlayerFlags

logger = logging.getLogger(__name__)

MAX_REVEAL = 2


@dataclass(frozen=True)
class HeroAbility:
    hero: HeroType
    skill: str
    riddle_cost_delta: int = 0
    grants_free_move: bool = False
    room_signal: bool = False
    two_phase_reveal: bool = False


HERO_ABILITIES: dict[HeroType, HeroAbility] = {
    HeroType.DWARF: HeroAbility(HeroType.DWARF, "Stonewise", riddle_cost_delta=-1),
    HeroType.HUMAN: HeroAbility(HeroType.HUMAN, "Steady Stride", grants_free_move=True),
    HeroType.SIREN: HeroAbility(HeroType.SIREN, "Tide Whisper", room_signal=True),
    HeroType.WITCH: HeroAbility(HeroType.WITCH, "Scrying", two_phase_reveal=True),
}


def _player_and_flags(session: GameSession, player_id: str) -> tuple[Player, PlayerFlags]:
    player = session.get_player(player_id)
    if player is None:
        raise PlayerNotFoundError(f"Player {player_id} not found")
    flags = session.flags_for(player_id)
    if flags.ability_used:
        raise AbilityMisuseError("Ability already used this match")
    return player, flags


def _ability_used_notice(player: Player) -> Notification:
    ability = HERO_ABILITIES[player.hero]
    return Notification.room(NotificationKind.ABILITY_USED, {
        "player_id": player.player_id,
        "player_name": player.name,
        "hero": player.hero.value,
        "skill": ability.skill,
    })


def _reveal_offer(player: Player, offered: list[str]) -> Notification:
    return Notification.private(NotificationKind.REVEAL_OFFER, player.player_id, {
        "houses": list(offered),
        "max_choices": len(offered),
    })


def _subtle_signal(player: Player) -> Notification:
    return Notification.room(NotificationKind.SUBTLE_HINT_SIGNAL, {
        "player_id": player.player_id,
        "hero": player.hero.value,
    })


def use_ability(
    session: GameSession,
    player_id: str,
    rng: random.Random,
) -> list[Notification]:
    """Activate the player's hero ability. Not turn-consuming."""
    player, flags = _player_and_flags(session, player_id)
    ability = HERO_ABILITIES[player.hero]
    notifications: list[Notification] = []

    if player.hero == HeroType.WITCH:
        return offer_reveal(session, player, rng)
    elif player.hero == HeroType.DWARF:
        flags.hero_riddle_delta = ability.riddle_cost_delta
    elif player.hero == HeroType.HUMAN:
        flags.hero_free_move_pending = True
    elif player.hero == HeroType.SIREN:
        session.water_signal_sent = True
        notifications.append(_subtle_signal(player))

    flags.ability_used = True
    notifications.append(_ability_used_notice(player))
    logger.info(
        "Session %s: %s used %s", session.session_id, player_id, ability.skill,
    )
    return notifications


def offer_reveal(
    session: GameSession,
    player: Player,
    rng: random.Random,
) -> list[Notification]:
    """
    Witch phase 1: reserve up to two hidden, non-centre Houses.

    While an offer is pending for this player it is sent again unchanged.
    """
    pending = session.pending_reveal
    if pending is not None and pending.player_id == player.player_id:
        return [_reveal_offer(player, pending.offered)]

    hidden = [
        h.house_id for h in iter_houses(session.board)
        if not h.revealed and h.house_id != CENTER_HOUSE
    ]
    if not hidden:
        raise AbilityMisuseError("No hidden houses left to scry")

    rng.shuffle(hidden)
    offered = hidden[:MAX_REVEAL]
    session.pending_reveal = PendingReveal(player_id=player.player_id, offered=offered)
    return [_reveal_offer(player, offered)]


def choose_reveal(
    session: GameSession,
    player_id: str,
    house_ids: list[str],
) -> list[Notification]:
    """
    Witch phase 2: reveal the chosen costs privately and spend the ability.

    Stale or mismatched calls are rejected without touching the session.
    """
    pending = session.pending_reveal
    if pending is None or pending.player_id != player_id:
        raise AbilityMisuseError("No scrying offer is pending for this player")
    player, flags = _player_and_flags(session, player_id)

    if not isinstance(house_ids, (list, tuple)) or not 1 <= len(house_ids) <= MAX_REVEAL:
        raise AbilityMisuseError(f"Choose between 1 and {MAX_REVEAL} houses")
    if len(set(house_ids)) != len(house_ids):
        raise AbilityMisuseError("Houses must be distinct")

    revealed_costs = []
    for house_id in house_ids:
        if house_id == CENTER_HOUSE:
            raise AbilityMisuseError("The centre house cannot be scried")
        if house_id not in pending.offered:
            raise AbilityMisuseError(f"{house_id} was not offered")
        house = session.get_house(house_id)
        if house.revealed:
            raise AbilityMisuseError(f"{house_id} is already revealed")
        revealed_costs.append({"house_id": house_id, "base_cost": house.base_cost})

    flags.ability_used = True
    session.pending_reveal = None
    logger.info(
        "Session %s: %s scried %s", session.session_id, player_id, ", ".join(house_ids),
    )
    return [
        Notification.private(NotificationKind.COSTS_REVEALED, player_id, {
            "houses": revealed_costs,
        }),
        _ability_used_notice(player),
    ]


def siren_signal_on_submit(session: GameSession, player: Player) -> Notification | None:
    """The water hero's one-time signal on its first riddle submission."""
    if player.hero != HeroType.SIREN or session.water_signal_sent:
        return None
    flags = session.flags_for(player.player_id)
    if flags.ability_used:
        return None
    flags.ability_used = True
    session.water_signal_sent = True
    return _subtle_signal(player)
