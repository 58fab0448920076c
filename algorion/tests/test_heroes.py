"""
Tests for hero abilities.
"""

import random

import pytest

from ..engine_core.board import CENTER_HOUSE, HINT_HOUSES
from ..engine_core.errors import AbilityMisuseError, PlayerNotFoundError
from ..engine_core.heroes import (
    HERO_ABILITIES,
    choose_reveal,
    siren_signal_on_submit,
    use_ability,
)
from ..engine_core.notifications import Audience, NotificationKind
from ..engine_core.state import HeroType, Player


@pytest.fixture
def rng():
    return random.Random(5)


@pytest.fixture
def siren(game):
    player = Player(player_id="p4", name="Dara", hero=HeroType.SIREN)
    game.players.append(player)
    game.flags_for("p4")
    return player


class TestSimpleAbilities:
    """Tests for the single-phase abilities."""

    def test_every_hero_has_an_ability(self):
        """The ability table covers every hero."""
        assert set(HERO_ABILITIES) == set(HeroType)

    def test_dwarf_discounts_next_riddle(self, game, rng):
        """Stonewise stores a -1 riddle delta."""
        notices = use_ability(game, "p1", rng)

        flags = game.player_flags["p1"]
        assert flags.hero_riddle_delta == -1
        assert flags.ability_used
        assert [n.kind for n in notices] == [NotificationKind.ABILITY_USED]
        assert notices[0].payload["skill"] == "Stonewise"
        assert notices[0].payload["player_name"] == "Ana"

    def test_human_grants_free_move(self, game, rng):
        """Steady Stride makes the next move free."""
        use_ability(game, "p2", rng)
        assert game.player_flags["p2"].hero_free_move_pending
        assert game.player_flags["p2"].ability_used

    def test_siren_signals_the_room(self, game, siren, rng):
        """Tide Whisper sends a subtle-hint signal to everyone."""
        notices = use_ability(game, "p4", rng)

        assert game.water_signal_sent
        assert [n.kind for n in notices] == [
            NotificationKind.SUBTLE_HINT_SIGNAL,
            NotificationKind.ABILITY_USED,
        ]
        assert all(n.audience == Audience.ROOM for n in notices)

    def test_ability_once_per_match(self, game, rng):
        """A spent ability cannot be used again."""
        use_ability(game, "p1", rng)
        with pytest.raises(AbilityMisuseError):
            use_ability(game, "p1", rng)

    def test_unknown_player(self, game, rng):
        """Unknown players are rejected."""
        with pytest.raises(PlayerNotFoundError):
            use_ability(game, "ghost", rng)


class TestSirenOnSubmit:
    """Tests for the water hero's automatic signal."""

    def test_first_submission_signals_and_spends(self, game, siren):
        """The first submission sends the signal once."""
        notice = siren_signal_on_submit(game, siren)
        assert notice.kind == NotificationKind.SUBTLE_HINT_SIGNAL
        assert game.water_signal_sent
        assert game.player_flags["p4"].ability_used

        assert siren_signal_on_submit(game, siren) is None

    def test_other_heroes_never_signal(self, game):
        """Only the Siren signals on submission."""
        assert siren_signal_on_submit(game, game.get_player("p1")) is None
        assert not game.water_signal_sent

    def test_no_signal_after_manual_use(self, game, siren, rng):
        """A manually used ability does not signal again."""
        use_ability(game, "p4", rng)
        assert siren_signal_on_submit(game, siren) is None


class TestScrying:
    """Tests for the Witch's two-phase reveal."""

    def test_offer_is_private_and_does_not_spend(self, game, rng):
        """Phase 1 offers two hidden Houses to the Witch only."""
        notices = use_ability(game, "p3", rng)

        assert len(notices) == 1
        offer = notices[0]
        assert offer.kind == NotificationKind.REVEAL_OFFER
        assert offer.audience == Audience.PLAYER
        assert offer.target_id == "p3"
        assert len(offer.payload["houses"]) == 2
        assert offer.payload["max_choices"] == 2
        assert CENTER_HOUSE not in offer.payload["houses"]
        assert game.pending_reveal.offered == offer.payload["houses"]
        assert not game.player_flags["p3"].ability_used

    def test_repeat_offer_is_unchanged(self, game, rng):
        """Asking again while an offer is pending re-sends the same Houses."""
        first = use_ability(game, "p3", rng)[0].payload["houses"]

        for _ in range(5):
            again = use_ability(game, "p3", rng)
            assert again[0].payload["houses"] == first

        assert game.pending_reveal.offered == first
        assert not game.player_flags["p3"].ability_used

    def test_offer_only_hidden_houses(self, game, rng):
        """Revealed Houses are never offered."""
        for house_id in HINT_HOUSES[1:]:
            game.get_house(house_id).revealed = True

        notices = use_ability(game, "p3", rng)
        assert notices[0].payload["houses"] == [HINT_HOUSES[0]]
        assert notices[0].payload["max_choices"] == 1

    def test_offer_with_nothing_hidden(self, game, rng):
        """Nothing to scry is a misuse."""
        for house_id in HINT_HOUSES:
            game.get_house(house_id).revealed = True
        with pytest.raises(AbilityMisuseError):
            use_ability(game, "p3", rng)

    def test_choose_reveals_costs_privately(self, game, rng):
        """Phase 2 sends the chosen costs to the Witch and spends the ability."""
        offered = use_ability(game, "p3", rng)[0].payload["houses"]

        notices = choose_reveal(game, "p3", offered)

        private, public = notices
        assert private.kind == NotificationKind.COSTS_REVEALED
        assert private.target_id == "p3"
        assert private.payload["houses"] == [
            {"house_id": h, "base_cost": game.get_house(h).base_cost} for h in offered
        ]
        assert public.kind == NotificationKind.ABILITY_USED
        assert public.audience == Audience.ROOM
        assert "houses" not in public.payload
        # The board itself stays hidden
        assert not any(game.get_house(h).revealed for h in offered)
        assert game.player_flags["p3"].ability_used
        assert game.pending_reveal is None

    def test_choose_single_house(self, game, rng):
        """Choosing one of the offered Houses is enough."""
        offered = use_ability(game, "p3", rng)[0].payload["houses"]
        private = choose_reveal(game, "p3", offered[:1])[0]
        assert len(private.payload["houses"]) == 1

    def test_choose_without_offer(self, game):
        """A choice with no pending offer is stale."""
        with pytest.raises(AbilityMisuseError):
            choose_reveal(game, "p3", ["C1"])

    def test_choose_by_other_player(self, game, rng):
        """Only the player who got the offer may choose."""
        offered = use_ability(game, "p3", rng)[0].payload["houses"]
        with pytest.raises(AbilityMisuseError):
            choose_reveal(game, "p1", offered)

    def test_choose_house_not_offered(self, game, rng):
        """Houses outside the offer are rejected."""
        offered = use_ability(game, "p3", rng)[0].payload["houses"]
        other = next(h for h in HINT_HOUSES if h not in offered)
        with pytest.raises(AbilityMisuseError):
            choose_reveal(game, "p3", [other])
        assert game.pending_reveal is not None

    @pytest.mark.parametrize("choice", [[], ["C1", "C1"], ["C1", "C2", "C3"], [CENTER_HOUSE]])
    def test_invalid_choices(self, game, rng, choice):
        """Empty, duplicate, oversized and centre choices are rejected."""
        use_ability(game, "p3", rng)
        game.pending_reveal.offered = ["C1", "C2", "C3"]
        with pytest.raises(AbilityMisuseError):
            choose_reveal(game, "p3", choice)
        assert not game.player_flags["p3"].ability_used

    def test_choose_house_revealed_since_offer(self, game, rng):
        """A House revealed after the offer can no longer be chosen."""
        offered = use_ability(game, "p3", rng)[0].payload["houses"]
        game.get_house(offered[0]).revealed = True
        with pytest.raises(AbilityMisuseError):
            choose_reveal(game, "p3", offered[:1])
