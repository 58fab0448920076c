"""
Tests for the action cost engine.

Tests:
- Base prices of every action kind
- Event and hero modifiers, and which one-shot flags they consume
- Affordability checks that leave the session untouched
"""

import pytest

from ..engine_core.costs import CostKind, CostQuote, charge, compute_cost, debit
from ..engine_core.errors import InsufficientPointsError
from ..engine_core.events import EventCard, EventModifiers


def with_event(game, **modifiers):
    game.active_event = EventCard("Test Event", "", EventModifiers(**modifiers))
    return game


class TestBaseCosts:
    """Tests for prices without modifiers."""

    def test_move(self, game):
        """An ordinary move costs 1."""
        assert compute_cost(game, CostKind.MOVE, "p1").amount == 1

    def test_explore_and_reexplore(self, game):
        """Exploring costs 1, exploring again costs 2."""
        assert compute_cost(game, CostKind.EXPLORE, "p1").amount == 1
        assert compute_cost(game, CostKind.REEXPLORE, "p1").amount == 2

    def test_resolve_riddle_uses_base_cost(self, game):
        """A riddle costs the House's base cost."""
        quote = compute_cost(game, CostKind.RESOLVE_RIDDLE, "p1", base_cost=3)
        assert quote.amount == 3
        assert not quote.uses_event_riddle_discount

    def test_retry_surcharge(self, game):
        """A retry costs a flat 2."""
        assert compute_cost(game, CostKind.RETRY_RIDDLE, "p1").amount == 2

    def test_long_jump(self, game):
        """A long jump costs 2."""
        assert compute_cost(game, CostKind.LONG_JUMP, "p1").amount == 2

    def test_compute_does_not_mutate(self, game):
        """Quoting never touches the pool or the trackers."""
        with_event(game, first_move_free=True)
        compute_cost(game, CostKind.MOVE, "p1")
        assert game.ph == 40
        assert not game.player_flags["p1"].free_move_used_this_round


class TestEventModifiers:
    """Tests for round-modifier cards."""

    def test_move_delta(self, game):
        """Brittle ground makes moves cost more."""
        with_event(game, move_delta=1)
        assert compute_cost(game, CostKind.MOVE, "p1").amount == 2

    def test_move_cost_never_negative(self, game):
        """Negative deltas clamp at zero."""
        with_event(game, move_delta=-3)
        assert compute_cost(game, CostKind.MOVE, "p1").amount == 0

    def test_first_move_free_once_per_round(self, game):
        """The free move is per player and consumed by the first paid move."""
        with_event(game, first_move_free=True)

        first = charge(game, CostKind.MOVE, "p1")
        assert first.amount == 0
        assert first.uses_event_free_move
        assert game.player_flags["p1"].free_move_used_this_round

        second = charge(game, CostKind.MOVE, "p1")
        assert second.amount == 1

        # Other players still have theirs
        assert compute_cost(game, CostKind.MOVE, "p2").amount == 0
        assert game.ph == 39

    def test_first_riddle_discount_is_global_and_single_use(self, game):
        """The riddle discount applies to the first riddle of the match only."""
        with_event(game, first_riddle_discount=-1)

        first = charge(game, CostKind.RESOLVE_RIDDLE, "p1", base_cost=3)
        assert first.amount == 2
        assert game.first_riddle_discount_used

        second = compute_cost(game, CostKind.RESOLVE_RIDDLE, "p2", base_cost=3)
        assert second.amount == 3

    def test_discount_not_applied_to_retry(self, game):
        """Retries never consult the discount."""
        with_event(game, first_riddle_discount=-1)
        quote = charge(game, CostKind.RETRY_RIDDLE, "p1")
        assert quote.amount == 2
        assert not game.first_riddle_discount_used

    def test_jump_cost_override(self, game):
        """The shortcut event overrides the jump price."""
        with_event(game, jump_cost=1)
        assert compute_cost(game, CostKind.LONG_JUMP, "p1").amount == 1

    def test_informational_event_changes_nothing(self, game):
        """Fog of Doubt has no cost effect."""
        with_event(game, group_discussion_blocked=True)
        assert compute_cost(game, CostKind.MOVE, "p1").amount == 1
        assert compute_cost(game, CostKind.LONG_JUMP, "p1").amount == 2


class TestHeroModifiers:
    """Tests for ability-granted modifiers."""

    def test_hero_free_move(self, game):
        """The pending hero free move makes the next move free and is consumed."""
        game.player_flags["p2"].hero_free_move_pending = True

        quote = charge(game, CostKind.MOVE, "p2")
        assert quote.amount == 0
        assert quote.uses_hero_free_move
        assert not game.player_flags["p2"].hero_free_move_pending

    def test_event_free_move_spent_before_hero_free_move(self, game):
        """With both grants available, the round grant is used first."""
        with_event(game, first_move_free=True)
        game.player_flags["p2"].hero_free_move_pending = True

        quote = charge(game, CostKind.MOVE, "p2")
        assert quote.uses_event_free_move
        assert not quote.uses_hero_free_move
        assert game.player_flags["p2"].hero_free_move_pending

        quote = charge(game, CostKind.MOVE, "p2")
        assert quote.amount == 0
        assert quote.uses_hero_free_move
        assert game.ph == 40

    def test_hero_riddle_delta(self, game):
        """The riddle delta lowers one riddle and is then cleared."""
        game.player_flags["p1"].hero_riddle_delta = -1

        quote = charge(game, CostKind.RESOLVE_RIDDLE, "p1", base_cost=2)
        assert quote.amount == 1
        assert game.player_flags["p1"].hero_riddle_delta == 0

    def test_riddle_delta_kept_for_free_riddle(self, game):
        """A riddle that already costs nothing leaves the delta for later."""
        game.player_flags["p1"].hero_riddle_delta = -1

        quote = charge(game, CostKind.RESOLVE_RIDDLE, "p1", base_cost=0)
        assert quote.amount == 0
        assert not quote.uses_hero_riddle_delta
        assert game.player_flags["p1"].hero_riddle_delta == -1

        quote = charge(game, CostKind.RESOLVE_RIDDLE, "p1", base_cost=2)
        assert quote.amount == 1
        assert game.player_flags["p1"].hero_riddle_delta == 0

    def test_stacked_discounts_clamp_at_zero(self, game):
        """Event discount and hero delta stack but never go below zero."""
        with_event(game, first_riddle_discount=-1)
        game.player_flags["p1"].hero_riddle_delta = -1

        quote = compute_cost(game, CostKind.RESOLVE_RIDDLE, "p1", base_cost=1)
        assert quote.amount == 0


class TestDebit:
    """Tests for paying from the shared pool."""

    def test_exact_balance_is_allowed(self, game):
        """The pool may reach exactly zero."""
        game.ph = 2
        assert debit(game, CostQuote(CostKind.LONG_JUMP, 2, "p1")) == 0
        assert game.ph == 0

    def test_insufficient_points_changes_nothing(self, game):
        """An unaffordable debit raises and consumes no flag."""
        game.ph = 1
        game.player_flags["p1"].hero_riddle_delta = -1
        quote = compute_cost(game, CostKind.RESOLVE_RIDDLE, "p1", base_cost=3)
        assert quote.amount == 2

        with pytest.raises(InsufficientPointsError) as exc_info:
            debit(game, quote)

        assert exc_info.value.error_code == "INSUFFICIENT_PH"
        assert exc_info.value.cost == 2
        assert exc_info.value.available == 1
        assert game.ph == 1
        assert game.player_flags["p1"].hero_riddle_delta == -1

    def test_free_action_with_empty_pool(self, game):
        """A zero-cost action is affordable with no PH left."""
        game.ph = 0
        game.player_flags["p2"].hero_free_move_pending = True
        charge(game, CostKind.MOVE, "p2")
        assert game.ph == 0
