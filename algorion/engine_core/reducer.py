"""
Reducer - Applies intents to a game session.

The reducer is the single point of state mutation.
All state changes must go through apply().

Design principles:
- Works on a clone: (session, action) -> new session, or nothing at all
- Validates before applying
- Returns ActionResult with the new session and its notifications
- ActionRejected is the only exception turned into a failure result;
  integrity and content errors propagate
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random
from typing import TYPE_CHECKING

from .action import (
    Action, ActionType, ActionResult,
    BLOCKED_BY_PENDING_RIDDLE, MASTER_ACTIONS, TURN_CONSUMING,
)
from .assembly import clear_slot, place_card, resolve_final_answer
from .board import are_adjacent
from .costs import CostKind, charge
from .errors import (
    ActionRejected, GameOverError, InvalidMoveError, LobbyError,
    PlayerNotFoundError, RiddleStateError,
)
from .events import EventService
from .heroes import choose_reveal, siren_signal_on_submit, use_ability
from .notifications import (
    Notification, NotificationKind, event_payload, slots_payload, turn_payload,
)
from .riddles import confirm_riddle, submit_riddle
from .state import Outcome, RiddleQuality
from .turns import advance_turn, assert_active_player

if TYPE_CHECKING:
    from ..content import ContentCatalog
    from .state import GameSession, Player

logger = logging.getLogger(__name__)


@dataclass
class Reducer:
    """
    Reducer applies intents to a session.

    Stateless apart from its collaborators - all game state is in
    GameSession. Content provides fragments and the final answer.
    """
    content: ContentCatalog
    events: EventService
    rng: random.Random = field(default_factory=random.Random)

    def apply(self, session: GameSession, action: Action) -> ActionResult:
        """
        Apply an intent to the session.

        The input session is never mutated. On success the result carries a
        new session; on rejection it carries the reason and a notice for the
        originating actor.
        """
        working = session.clone()
        try:
            self._validate_action(working, action)

            handler = self._get_handler(action.action_type)
            if not handler:
                raise ActionRejected(
                    f"No handler for action type: {action.action_type}", "NO_HANDLER"
                )

            result = handler(working, action)

            if action.action_type in TURN_CONSUMING and not working.game_over:
                result.notifications.extend(self._advance(working))
        except ActionRejected as e:
            logger.warning(
                "Session %s rejected %s from %s: %s",
                session.session_id, action.action_type.value,
                action.payload.player_id or "master", e.reason,
            )
            return ActionResult.failure(
                e.reason,
                error_code=e.error_code,
                notifications=[
                    Notification.rejected(action.payload.player_id, e.reason, e.error_code)
                ],
            )
        return result

    def _validate_action(self, session: GameSession, action: Action) -> None:
        """Raise ActionRejected if the intent is not legal right now."""
        action_type = action.action_type

        # The timer is a master tool that works in any phase
        if action_type == ActionType.SET_TIMER:
            return

        if session.game_over:
            raise GameOverError()

        if not session.started:
            raise LobbyError("Game has not started yet")

        if session.pending_riddle is not None and action_type in BLOCKED_BY_PENDING_RIDDLE:
            raise RiddleStateError("A riddle is awaiting the master's verdict")

        if action_type not in MASTER_ACTIONS:
            assert_active_player(session, action.payload.player_id)

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.MOVE: self._handle_move,
            ActionType.LONG_JUMP: self._handle_long_jump,
            ActionType.EXPLORE: self._handle_explore,
            ActionType.REEXPLORE: self._handle_reexplore,
            ActionType.SUBMIT_RIDDLE: self._handle_submit_riddle,
            ActionType.RETRY_RIDDLE: self._handle_submit_riddle,
            ActionType.USE_ABILITY: self._handle_use_ability,
            ActionType.CHOOSE_REVEAL: self._handle_choose_reveal,
            ActionType.PLACE_HINT: self._handle_place_hint,
            ActionType.CLEAR_SLOT: self._handle_clear_slot,
            ActionType.FINAL_ANSWER: self._handle_final_answer,
            ActionType.PASS: self._handle_pass,
            ActionType.CONFIRM_RIDDLE: self._handle_confirm_riddle,
            ActionType.ADVANCE_TURN: self._handle_pass,
            ActionType.REVEAL_HOUSE: self._handle_reveal_house,
            ActionType.SET_TIMER: self._handle_set_timer,
        }
        return handlers.get(action_type)

    def _advance(self, session: GameSession) -> list[Notification]:
        change = advance_turn(session, self.events)
        if change is None:
            return []
        notifications = [Notification.room(NotificationKind.TURN_CHANGED, {
            **turn_payload(session),
            "round_wrapped": change.round_wrapped,
        })]
        if change.round_wrapped:
            notifications.append(Notification.room(NotificationKind.ACTIVE_EVENT, {
                "round": session.round,
                "event": event_payload(session),
            }))
        return notifications

    def _actor(self, session: GameSession, action: Action) -> Player:
        player = session.get_player(action.payload.player_id)
        if player is None:
            raise PlayerNotFoundError(f"Player {action.payload.player_id} not found")
        return player

    # =========================================================================
    # Movement
    # =========================================================================

    def _handle_move(self, session: GameSession, action: Action) -> ActionResult:
        """Ordinary move to an orthogonally adjacent House."""
        player = self._actor(session, action)
        target = session.get_house(action.payload.house_id).house_id

        if not are_adjacent(player.position, target):
            raise InvalidMoveError(
                f"Invalid move: {target} is not adjacent to {player.position}"
            )

        quote = charge(session, CostKind.MOVE, player_id=player.player_id)
        origin, player.position = player.position, target
        return ActionResult.success_with_state(
            session,
            changes=[f"{player.name} moved {origin} -> {target} ({quote.amount} PH)"],
        )

    def _handle_long_jump(self, session: GameSession, action: Action) -> ActionResult:
        """Jump to any other House, ignoring adjacency."""
        player = self._actor(session, action)
        target = session.get_house(action.payload.house_id).house_id

        if target == player.position:
            raise InvalidMoveError(f"Invalid jump: already at {target}")

        quote = charge(session, CostKind.LONG_JUMP, player_id=player.player_id)
        origin, player.position = player.position, target
        return ActionResult.success_with_state(
            session,
            changes=[f"{player.name} jumped {origin} -> {target} ({quote.amount} PH)"],
        )

    def _handle_explore(self, session: GameSession, action: Action) -> ActionResult:
        """Reveal the House under the player."""
        player = self._actor(session, action)
        house = session.get_house(player.position)

        charge(session, CostKind.EXPLORE, player_id=player.player_id)
        house.revealed = True
        return ActionResult.success_with_state(
            session, changes=[f"{player.name} explored {house.house_id}"],
        )

    def _handle_reexplore(self, session: GameSession, action: Action) -> ActionResult:
        """Pay to have the master redraw the card under the player."""
        player = self._actor(session, action)

        charge(session, CostKind.REEXPLORE, player_id=player.player_id)
        return ActionResult.success_with_state(
            session,
            changes=[f"{player.name} asked to explore {player.position} again"],
            notifications=[Notification.room(NotificationKind.REEXPLORE_REQUESTED, {
                "player_id": player.player_id,
                "house_id": player.position,
            })],
        )

    def _handle_pass(self, session: GameSession, action: Action) -> ActionResult:
        """Handle pass / master advance; the turn moves on in apply()."""
        return ActionResult.success_with_state(session, changes=["Turn passed"])

    # =========================================================================
    # Riddles
    # =========================================================================

    def _handle_submit_riddle(self, session: GameSession, action: Action) -> ActionResult:
        player = self._actor(session, action)
        house_id = action.payload.house_id or player.position
        retry = action.action_type == ActionType.RETRY_RIDDLE

        pending, quote = submit_riddle(session, player.player_id, house_id, retry=retry)

        notifications = [Notification.room(NotificationKind.RIDDLE_SUBMITTED, {
            "house_id": pending.house_id,
            "player": {"id": player.player_id, "name": player.name},
            "text": action.payload.params.get("text", ""),
            "is_retry": pending.is_retry,
            "charged": quote.amount,
        })]
        signal = siren_signal_on_submit(session, player)
        if signal is not None:
            notifications.append(signal)

        return ActionResult.success_with_state(
            session,
            changes=[f"{player.name} answered the riddle at {house_id} ({quote.amount} PH)"],
            notifications=notifications,
        )

    def _handle_confirm_riddle(self, session: GameSession, action: Action) -> ActionResult:
        try:
            quality = RiddleQuality(action.payload.quality)
        except ValueError:
            raise RiddleStateError(f"Unknown answer quality: {action.payload.quality}")

        outcome = confirm_riddle(session, quality, self.content)
        player = session.get_player(outcome.player_id)
        notifications = []

        if outcome.skipped:
            notifications.append(Notification.room(NotificationKind.HINT_ADDED, {
                "house_id": outcome.house_id,
                "skipped": True,
            }))
        else:
            card = outcome.card
            if outcome.created:
                notifications.append(Notification.room(NotificationKind.HINT_CARD_ADDED, {
                    "card": card.to_dict(),
                    "total_cards": len(session.hint_cards),
                }))
            else:
                notifications.append(Notification.room(NotificationKind.HINT_CARD_UPDATED, {
                    "card": card.to_dict(),
                }))
            notifications.append(Notification.room(NotificationKind.HINT_ADDED, {
                "house_id": outcome.house_id,
                "tier": outcome.tier.value,
                "text": card.text,
                "citation": card.citation,
                "front_source": card.front_source,
                "fragment_index": card.fragment_index,
            }))

        notifications.append(Notification.room(NotificationKind.RIDDLE_RESULT, {
            "house_id": outcome.house_id,
            "correct": quality == RiddleQuality.OPTIMAL,
            "player": {
                "id": outcome.player_id,
                "name": player.name if player else "",
            },
        }))
        return ActionResult.success_with_state(
            session,
            changes=[f"Riddle at {outcome.house_id} judged {quality.value}"],
            notifications=notifications,
        )

    # =========================================================================
    # Hero abilities
    # =========================================================================

    def _handle_use_ability(self, session: GameSession, action: Action) -> ActionResult:
        player = self._actor(session, action)
        notifications = use_ability(session, player.player_id, self.rng)
        return ActionResult.success_with_state(
            session,
            changes=[f"{player.name} used the {player.hero.value} ability"],
            notifications=notifications,
        )

    def _handle_choose_reveal(self, session: GameSession, action: Action) -> ActionResult:
        player = self._actor(session, action)
        notifications = choose_reveal(session, player.player_id, action.payload.house_ids or [])
        return ActionResult.success_with_state(
            session,
            changes=[f"{player.name} scried {len(action.payload.house_ids)} house(s)"],
            notifications=notifications,
        )

    # =========================================================================
    # Final assembly
    # =========================================================================

    def _handle_place_hint(self, session: GameSession, action: Action) -> ActionResult:
        place_card(session, action.payload.card_id, action.payload.slot_index)
        return ActionResult.success_with_state(
            session,
            changes=[f"{action.payload.card_id} placed in slot {action.payload.slot_index}"],
            notifications=[Notification.room(NotificationKind.SLOT_UPDATED, slots_payload(session))],
        )

    def _handle_clear_slot(self, session: GameSession, action: Action) -> ActionResult:
        clear_slot(session, action.payload.slot_index)
        return ActionResult.success_with_state(
            session,
            changes=[f"Slot {action.payload.slot_index} cleared"],
            notifications=[Notification.room(NotificationKind.SLOT_UPDATED, slots_payload(session))],
        )

    def _handle_final_answer(self, session: GameSession, action: Action) -> ActionResult:
        answer = action.payload.answer or ""
        challenge = self.content.final_challenge
        outcome = resolve_final_answer(session, answer, self.content.final_answer)

        message = challenge.success_outcome if outcome == Outcome.WIN else challenge.failure_outcome
        return ActionResult.success_with_state(
            session,
            changes=[f"Final answer judged: {outcome.value}"],
            notifications=[Notification.room(NotificationKind.GAME_FINISHED, {
                "outcome": outcome.value,
                "message": message,
                "correct_answer": challenge.answer,
                "submitted_answer": answer,
            })],
        )

    # =========================================================================
    # Master tools
    # =========================================================================

    def _handle_reveal_house(self, session: GameSession, action: Action) -> ActionResult:
        house = session.get_house(action.payload.house_id)
        house.revealed = True
        return ActionResult.success_with_state(
            session, changes=[f"Master revealed {house.house_id}"],
        )

    def _handle_set_timer(self, session: GameSession, action: Action) -> ActionResult:
        seconds = action.payload.seconds
        if not isinstance(seconds, int) or isinstance(seconds, bool) or seconds < 0:
            raise ActionRejected(f"Invalid timer value: {seconds}", "INVALID_TIMER")
        session.timer_seconds = seconds
        return ActionResult.success_with_state(
            session, changes=[f"Timer set to {seconds}s"],
        )
