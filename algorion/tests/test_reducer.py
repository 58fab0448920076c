"""
Tests for the reducer.

Tests:
- Intent validation (phase, turn, pending riddle)
- Atomic application: rejected intents change nothing
- Turn cycling and round events
- Whole-match scenarios through the intent surface
"""

import pytest

from ..engine_core.action import Action, ActionType
from ..engine_core.board import HINT_HOUSES
from ..engine_core.errors import FragmentPoolExhaustedError
from ..engine_core.notifications import Audience, NotificationKind
from ..engine_core.state import HeroType, HintTier, Outcome


def kinds(result):
    return [n.kind for n in result.notifications]


class TestValidation:
    """Tests for intent validation."""

    def test_input_session_is_never_mutated(self, reducer, game):
        """The reducer works on a copy."""
        result = reducer.apply(game, Action.move("p1", "C2"))

        assert result.success
        assert result.new_state is not game
        assert result.new_state.ph == 39
        assert game.ph == 40
        assert game.get_player("p1").position == "C5"

    def test_not_your_turn(self, reducer, game):
        """Only the active player may act."""
        result = reducer.apply(game, Action.move("p2", "C2"))

        assert not result.success
        assert result.error_code == "NOT_YOUR_TURN"
        assert result.new_state is None

    def test_rejection_goes_to_actor_only(self, reducer, game):
        """A rejection produces a single actor-scoped notice."""
        result = reducer.apply(game, Action.move("p1", "C9"))

        assert len(result.notifications) == 1
        notice = result.notifications[0]
        assert notice.kind == NotificationKind.ACTION_REJECTED
        assert notice.audience == Audience.ACTOR
        assert notice.target_id == "p1"
        assert notice.payload["error_code"] == "INVALID_MOVE"

    def test_lobby_rejects_intents(self, reducer, lobby_game):
        """Nothing but the timer works before the game starts."""
        result = reducer.apply(lobby_game, Action.advance_turn())
        assert result.error_code == "LOBBY_ERROR"

        result = reducer.apply(lobby_game, Action.set_timer(90))
        assert result.success
        assert result.new_state.timer_seconds == 90

    def test_game_over_rejects_intents(self, reducer, game):
        """A finished match only accepts the timer."""
        game.game_over = True
        game.outcome = Outcome.LOSS

        assert reducer.apply(game, Action.pass_turn("p1")).error_code == "GAME_OVER"
        assert reducer.apply(game, Action.confirm_riddle("optimal")).error_code == "GAME_OVER"
        assert reducer.apply(game, Action.set_timer(0)).success

    @pytest.mark.parametrize("seconds", [-1, None, "10", True])
    def test_invalid_timer(self, reducer, game, seconds):
        result = reducer.apply(game, Action.set_timer(seconds))
        assert result.error_code == "INVALID_TIMER"

    def test_unknown_house(self, reducer, game):
        result = reducer.apply(game, Action.move("p1", "C10"))
        assert result.error_code == "INVALID_HOUSE"


class TestMovement:
    """Tests for moving around the board."""

    def test_move_charges_and_passes_turn(self, reducer, game):
        """A move costs 1 PH and ends the turn."""
        result = reducer.apply(game, Action.move("p1", "C2"))

        state = result.new_state
        assert state.get_player("p1").position == "C2"
        assert state.current_player.player_id == "p2"
        turn = result.notifications[-1]
        assert turn.kind == NotificationKind.TURN_CHANGED
        assert turn.payload["player_id"] == "p2"
        assert not turn.payload["round_wrapped"]

    def test_non_adjacent_move(self, reducer, game):
        """Diagonal moves are rejected and charge nothing."""
        result = reducer.apply(game, Action.move("p1", "C1"))
        assert result.error_code == "INVALID_MOVE"
        assert game.ph == 40

    def test_insufficient_ph(self, reducer, game):
        """An unaffordable move is rejected."""
        game.ph = 0
        result = reducer.apply(game, Action.move("p1", "C2"))
        assert result.error_code == "INSUFFICIENT_PH"
        assert game.current_player.player_id == "p1"

    def test_long_jump(self, reducer, game):
        """A long jump ignores adjacency and costs 2."""
        state = reducer.apply(game, Action.long_jump("p1", "C9")).new_state
        assert state.get_player("p1").position == "C9"
        assert state.ph == 38
        assert state.current_player.player_id == "p2"

    def test_long_jump_to_own_house(self, reducer, game):
        result = reducer.apply(game, Action.long_jump("p1", "C5"))
        assert result.error_code == "INVALID_MOVE"

    def test_long_jump_unaffordable(self, reducer, game):
        """PH never goes negative."""
        game.ph = 1
        result = reducer.apply(game, Action.long_jump("p1", "C9"))
        assert result.error_code == "INSUFFICIENT_PH"

    def test_explore_keeps_turn(self, reducer, game):
        """Exploring reveals the House underfoot without ending the turn."""
        state = reducer.apply(game, Action.explore("p1")).new_state
        assert state.get_house("C5").revealed
        assert state.ph == 39
        assert state.current_player.player_id == "p1"

    def test_reexplore(self, reducer, game):
        """Exploring again costs 2 and asks the master to redraw."""
        result = reducer.apply(game, Action.reexplore("p1"))
        assert result.new_state.ph == 38
        notice = result.notifications[0]
        assert notice.kind == NotificationKind.REEXPLORE_REQUESTED
        assert notice.payload == {"player_id": "p1", "house_id": "C5"}

    def test_human_free_move(self, play, game):
        """Steady Stride makes the Human's next move free."""
        game.active_player_index = 1
        state = play(game, Action.use_ability("p2"))
        state = play(state, Action.move("p2", "C4"))
        assert state.ph == 40
        assert not state.player_flags["p2"].hero_free_move_pending

    def test_free_move_resets_each_round(self, play, reducer, game):
        """The event free move is granted again after the round wraps."""
        laminar = reducer.events.get("Laminar Flow")
        game.active_event = laminar
        game.event_deck = ["Laminar Flow"]

        state = play(game, Action.move("p1", "C2"))
        state = play(state, Action.move("p2", "C4"))
        state = play(state, Action.move("p3", "C6"))
        assert state.round == 2
        assert state.active_event.name == "Laminar Flow"

        state = play(state, Action.move("p1", "C1"))
        assert state.ph == 40


class TestTurns:
    """Tests for turn cycling through intents."""

    def test_pass_cycles_and_wraps(self, reducer, game):
        """Three passes bring the turn back and start a new round."""
        game.event_deck = ["Fog of Doubt"]
        state = game
        for player_id in ["p1", "p2"]:
            state = reducer.apply(state, Action.pass_turn(player_id)).new_state

        result = reducer.apply(state, Action.pass_turn("p3"))
        state = result.new_state
        assert state.round == 2
        assert state.current_player.player_id == "p1"
        assert kinds(result)[-2:] == [NotificationKind.TURN_CHANGED, NotificationKind.ACTIVE_EVENT]
        assert result.notifications[-1].payload["event"]["name"] == "Fog of Doubt"
        assert result.notifications[-1].payload["round"] == 2

    def test_master_advance_turn(self, reducer, game):
        """The master can skip a turn without identifying as a player."""
        state = reducer.apply(game, Action.advance_turn()).new_state
        assert state.current_player.player_id == "p2"
        assert state.ph == 40

    def test_master_reveal_house(self, reducer, game):
        state = reducer.apply(game, Action.reveal_house("C8")).new_state
        assert state.get_house("C8").revealed
        assert state.current_player.player_id == "p1"


class TestRiddles:
    """Tests for riddles through the reducer."""

    def test_submit_and_confirm(self, reducer, game, content):
        """A submitted riddle blocks the turn until the master confirms."""
        game.get_player("p1").position = "C6"

        submitted = reducer.apply(game, Action.submit_riddle("p1"))
        state = submitted.new_state
        assert state.ph == 37
        assert state.pending_riddle.house_id == "C6"
        assert state.current_player.player_id == "p1"
        assert submitted.notifications[0].kind == NotificationKind.RIDDLE_SUBMITTED
        assert submitted.notifications[0].payload["charged"] == 3

        blocked = reducer.apply(state, Action.move("p1", "C3"))
        assert blocked.error_code == "RIDDLE_STATE"

        confirmed = reducer.apply(state, Action.confirm_riddle("optimal"))
        state = confirmed.new_state
        assert kinds(confirmed) == [
            NotificationKind.HINT_CARD_ADDED,
            NotificationKind.HINT_ADDED,
            NotificationKind.RIDDLE_RESULT,
            NotificationKind.TURN_CHANGED,
        ]
        card = state.hint_cards[0]
        assert card.tier == HintTier.EASY
        assert card.text == content.fragment_text(card.fragment_index, HintTier.EASY).text
        assert confirmed.notifications[2].payload["correct"] is True
        assert state.current_player.player_id == "p2"

    def test_confirm_without_pending(self, reducer, game):
        result = reducer.apply(game, Action.confirm_riddle("optimal"))
        assert result.error_code == "RIDDLE_STATE"

    def test_confirm_unknown_quality(self, reducer, game):
        state = reducer.apply(game, Action.submit_riddle("p1", "C2")).new_state
        result = reducer.apply(state, Action.confirm_riddle("brilliant"))
        assert result.error_code == "RIDDLE_STATE"
        assert state.pending_riddle is not None

    def test_rejected_retry_charges_nothing(self, reducer, game):
        """Retrying an unresolved House is rejected without a charge."""
        game.get_house("C6").revealed = True
        result = reducer.apply(game, Action.retry_riddle("p1", "C6"))
        assert result.error_code == "RIDDLE_STATE"
        assert game.ph == 40

    def test_retry_updates_card(self, play, reducer, game):
        """A retry replaces the House's card in place."""
        state = play(game, Action.submit_riddle("p1", "C2"))
        state = play(state, Action.confirm_riddle("poor"))
        state = play(state, Action.reveal_house("C2"))

        result = reducer.apply(state, Action.retry_riddle("p2", "C2"))
        assert result.new_state.ph == 40 - 1 - 2
        assert result.notifications[0].payload["is_retry"]

        confirmed = reducer.apply(result.new_state, Action.confirm_riddle("optimal"))
        assert kinds(confirmed)[0] == NotificationKind.HINT_CARD_UPDATED
        assert len(confirmed.new_state.hint_cards) == 1

    def test_dwarf_discount(self, play, game):
        """Stonewise takes 1 off the Dwarf's next riddle."""
        game.get_player("p1").position = "C6"
        state = play(game, Action.use_ability("p1"))
        state = play(state, Action.submit_riddle("p1"))
        assert state.pending_riddle.charged == 2
        assert state.ph == 38

    def test_first_riddle_discount(self, play, reducer, game):
        """The event discount applies to the first riddle of the match only."""
        game.active_event = reducer.events.get("Echo of the Contract")

        state = play(game, Action.submit_riddle("p1", "C6"))
        assert state.pending_riddle.charged == 2
        state = play(state, Action.confirm_riddle("optimal"))

        state = play(state, Action.submit_riddle("p2", "C8"))
        assert state.pending_riddle.charged == 3

    def test_siren_signal_on_first_submission(self, reducer, game):
        """The Siren's first riddle also signals the room."""
        game.get_player("p2").hero = HeroType.SIREN
        game.active_player_index = 1

        result = reducer.apply(game, Action.submit_riddle("p2", "C2"))
        assert kinds(result) == [
            NotificationKind.RIDDLE_SUBMITTED,
            NotificationKind.SUBTLE_HINT_SIGNAL,
        ]
        assert result.new_state.player_flags["p2"].ability_used

    def test_center_house_resolves_without_hint(self, play, reducer, game):
        state = play(game, Action.submit_riddle("p1"))
        result = reducer.apply(state, Action.confirm_riddle("poor"))
        assert result.notifications[0].payload == {"house_id": "C5", "skipped": True}
        assert result.new_state.hint_cards == []

    def test_integrity_error_propagates(self, play, reducer, game):
        """An exhausted pool is not a rejection; the input stays intact."""
        state = play(game, Action.submit_riddle("p1", "C1"))
        state.hint_deck.draw_pile = []

        with pytest.raises(FragmentPoolExhaustedError):
            reducer.apply(state, Action.confirm_riddle("optimal"))
        assert state.pending_riddle is not None


class TestAbilities:
    """Tests for abilities through the reducer."""

    def test_witch_two_phase(self, play, reducer, game):
        """The Witch gets a private offer, then private costs."""
        game.active_player_index = 2

        offer = reducer.apply(game, Action.use_ability("p3"))
        houses = offer.notifications[0].payload["houses"]
        assert offer.notifications[0].audience == Audience.PLAYER

        result = reducer.apply(offer.new_state, Action.choose_reveal("p3", houses))
        assert result.success
        assert kinds(result) == [NotificationKind.COSTS_REVEALED, NotificationKind.ABILITY_USED]
        assert result.new_state.player_flags["p3"].ability_used
        assert result.new_state.current_player.player_id == "p3"

    def test_stale_reveal_after_turn(self, play, reducer, game):
        """An unanswered offer expires with the turn and spends the ability."""
        game.active_player_index = 2
        state = play(game, Action.use_ability("p3"))
        houses = state.pending_reveal.offered
        state = play(state, Action.advance_turn())
        state = play(state, Action.advance_turn())
        state = play(state, Action.advance_turn())

        result = reducer.apply(state, Action.choose_reveal("p3", houses))
        assert result.error_code == "ABILITY_MISUSE"
        assert state.player_flags["p3"].ability_used
        assert reducer.apply(state, Action.use_ability("p3")).error_code == "ABILITY_MISUSE"

    def test_ability_twice(self, play, reducer, game):
        state = play(game, Action.use_ability("p1"))
        assert reducer.apply(state, Action.use_ability("p1")).error_code == "ABILITY_MISUSE"


class TestAssembly:
    """Tests for slot placement and the final answer."""

    def test_place_requires_active_player(self, play, reducer, game):
        state = play(game, Action.submit_riddle("p1", "C2"))
        state = play(state, Action.confirm_riddle("optimal"))
        card_id = state.hint_cards[0].card_id

        assert reducer.apply(state, Action.place_hint("p1", card_id, 0)).error_code == "NOT_YOUR_TURN"

        result = reducer.apply(state, Action.place_hint("p2", card_id, 0))
        assert result.notifications[0].kind == NotificationKind.SLOT_UPDATED
        assert result.notifications[0].payload["final_slots"][0]["card_id"] == card_id

        cleared = reducer.apply(result.new_state, Action.clear_slot("p2", 0))
        assert cleared.new_state.final_slots[0].card_id is None

    def test_final_answer_too_early(self, reducer, game):
        result = reducer.apply(game, Action.final_answer("p1", "Diamond Inheritance"))
        assert result.error_code == "RIDDLE_STATE"

    def test_final_answer_when_ph_exhausted(self, reducer, game):
        """Running out of PH opens the final challenge."""
        game.ph = 0
        result = reducer.apply(game, Action.final_answer("p1", "diamond inheritance"))

        state = result.new_state
        assert state.game_over
        assert state.outcome == Outcome.WIN
        finished = result.notifications[-1]
        assert finished.kind == NotificationKind.GAME_FINISHED
        assert finished.payload["outcome"] == "win"
        assert finished.payload["correct_answer"] == "Diamond Inheritance"
        assert finished.payload["submitted_answer"] == "diamond inheritance"


class TestFullMatch:
    """Whole-match scenarios."""

    def test_collect_assemble_and_answer(self, play, content, game):
        """Every House yields a distinct fragment; a wrong answer loses."""
        state = game
        for house_id in HINT_HOUSES:
            actor = state.current_player.player_id
            state = play(state, Action.submit_riddle(actor, house_id))
            state = play(state, Action.confirm_riddle("optimal"))

        assert sorted(c.fragment_index for c in state.hint_cards) == list(range(1, 9))
        assert state.hint_deck.draw_pile == []
        assert state.ph >= 0

        cards = sorted(state.hint_cards, key=lambda c: c.order)
        actor = state.current_player.player_id
        for slot, card in enumerate(cards):
            state = play(state, Action.place_hint(actor, card.card_id, slot))

        expected = " ".join(
            content.fragment_text(c.fragment_index, HintTier.EASY).text for c in cards
        )
        assert state.assembled_text == expected

        result_state = play(state, Action.final_answer(actor, "Binary Search"))
        assert result_state.game_over
        assert result_state.outcome == Outcome.LOSS

    def test_action_type_values(self):
        """Intent names are stable on the wire."""
        assert ActionType("submit_riddle") == ActionType.SUBMIT_RIDDLE
        assert ActionType("pass") == ActionType.PASS
