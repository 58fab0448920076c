"""
Action System - Intents, payloads, and results.

Actions represent:
1. Player intents (move, explore, riddles, abilities, slot placement)
2. Master intents (confirm a riddle, advance the turn, reveal, timer)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .notifications import Notification


class ActionType(Enum):
    """Types of intents in the system."""
    # Player actions
    MOVE = "move"
    LONG_JUMP = "long_jump"
    EXPLORE = "explore"
    REEXPLORE = "reexplore"
    SUBMIT_RIDDLE = "submit_riddle"
    RETRY_RIDDLE = "retry_riddle"
    USE_ABILITY = "use_ability"
    CHOOSE_REVEAL = "choose_reveal"
    PLACE_HINT = "place_hint"
    CLEAR_SLOT = "clear_slot"
    FINAL_ANSWER = "final_answer"
    PASS = "pass"

    # Master actions
    CONFIRM_RIDDLE = "confirm_riddle"
    ADVANCE_TURN = "advance_turn"
    REVEAL_HOUSE = "reveal_house"
    SET_TIMER = "set_timer"


# Actions after which the turn passes to the next player.
TURN_CONSUMING = frozenset({
    ActionType.MOVE,
    ActionType.LONG_JUMP,
    ActionType.CONFIRM_RIDDLE,
    ActionType.PASS,
    ActionType.ADVANCE_TURN,
})

# Issued by the game master; not bound to the active player.
MASTER_ACTIONS = frozenset({
    ActionType.CONFIRM_RIDDLE,
    ActionType.ADVANCE_TURN,
    ActionType.REVEAL_HOUSE,
    ActionType.SET_TIMER,
})

# Refused while a riddle awaits the master's verdict.
BLOCKED_BY_PENDING_RIDDLE = frozenset({
    ActionType.MOVE,
    ActionType.LONG_JUMP,
    ActionType.EXPLORE,
    ActionType.REEXPLORE,
    ActionType.SUBMIT_RIDDLE,
    ActionType.RETRY_RIDDLE,
    ActionType.PASS,
    ActionType.ADVANCE_TURN,
    ActionType.FINAL_ANSWER,
})


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    This is a generic container; validation happens in the reducer.
    """
    player_id: str | None = None

    # Board targets
    house_id: str | None = None
    house_ids: list[str] | None = None

    # Final assembly
    card_id: str | None = None
    slot_index: int | None = None
    answer: str | None = None

    # Master verdicts and tools
    quality: str | None = None
    seconds: int | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete intent to be applied to a session.

    Actions are validated before application and applied atomically by the
    reducer.
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def move(cls, player_id: str, house_id: str) -> Action:
        return cls(ActionType.MOVE, ActionPayload(player_id=player_id, house_id=house_id))

    @classmethod
    def long_jump(cls, player_id: str, house_id: str) -> Action:
        return cls(ActionType.LONG_JUMP, ActionPayload(player_id=player_id, house_id=house_id))

    @classmethod
    def explore(cls, player_id: str) -> Action:
        return cls(ActionType.EXPLORE, ActionPayload(player_id=player_id))

    @classmethod
    def reexplore(cls, player_id: str) -> Action:
        return cls(ActionType.REEXPLORE, ActionPayload(player_id=player_id))

    @classmethod
    def submit_riddle(cls, player_id: str, house_id: str | None = None) -> Action:
        """Factory for a riddle answer. Defaults to the player's House."""
        return cls(ActionType.SUBMIT_RIDDLE, ActionPayload(player_id=player_id, house_id=house_id))

    @classmethod
    def retry_riddle(cls, player_id: str, house_id: str | None = None) -> Action:
        return cls(ActionType.RETRY_RIDDLE, ActionPayload(player_id=player_id, house_id=house_id))

    @classmethod
    def use_ability(cls, player_id: str) -> Action:
        return cls(ActionType.USE_ABILITY, ActionPayload(player_id=player_id))

    @classmethod
    def choose_reveal(cls, player_id: str, house_ids: list[str]) -> Action:
        return cls(ActionType.CHOOSE_REVEAL, ActionPayload(player_id=player_id, house_ids=house_ids))

    @classmethod
    def place_hint(cls, player_id: str | None, card_id: str, slot_index: int) -> Action:
        return cls(
            ActionType.PLACE_HINT,
            ActionPayload(player_id=player_id, card_id=card_id, slot_index=slot_index),
        )

    @classmethod
    def clear_slot(cls, player_id: str | None, slot_index: int) -> Action:
        return cls(ActionType.CLEAR_SLOT, ActionPayload(player_id=player_id, slot_index=slot_index))

    @classmethod
    def final_answer(cls, player_id: str, answer: str) -> Action:
        return cls(ActionType.FINAL_ANSWER, ActionPayload(player_id=player_id, answer=answer))

    @classmethod
    def pass_turn(cls, player_id: str) -> Action:
        return cls(ActionType.PASS, ActionPayload(player_id=player_id))

    @classmethod
    def confirm_riddle(cls, quality: str) -> Action:
        """Factory for the master's verdict ("optimal" or "poor")."""
        return cls(ActionType.CONFIRM_RIDDLE, ActionPayload(quality=quality))

    @classmethod
    def advance_turn(cls) -> Action:
        return cls(ActionType.ADVANCE_TURN)

    @classmethod
    def reveal_house(cls, house_id: str) -> Action:
        return cls(ActionType.REVEAL_HOUSE, ActionPayload(house_id=house_id))

    @classmethod
    def set_timer(cls, seconds: int) -> Action:
        return cls(ActionType.SET_TIMER, ActionPayload(seconds=seconds))


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action succeeded
    - New session (if it succeeded)
    - Error and error code (if it failed)
    - Notifications for the transport to deliver
    """
    success: bool
    new_state: Any | None = None  # GameSession
    error: str | None = None
    error_code: str | None = None

    notifications: list[Notification] = field(default_factory=list)
    state_changes: list[str] = field(default_factory=list)  # Human-readable changes

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        notifications: list[Notification] | None = None,
    ) -> ActionResult:
        """Create a failure result."""
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            notifications=notifications or [],
        )

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        notifications: list[Notification] | None = None,
    ) -> ActionResult:
        """Create a success result with the new session."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            notifications=notifications or [],
        )
