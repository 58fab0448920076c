"""
Engine Errors - Exception taxonomy for the session engine.

Two families:
- ActionRejected: a precondition of an intent failed. Caught at the reducer
  boundary and turned into a rejection notice for the originating actor.
  Never leaves partial state behind.
- IntegrityError / ContentError: configuration or invariant violations.
  These propagate as hard failures.
"""

from __future__ import annotations


class AlgorionError(Exception):
    """Base class for all engine errors."""


class ActionRejected(AlgorionError):
    """Raised when an intent fails validation."""

    error_code = "ACTION_REJECTED"

    def __init__(self, reason: str, error_code: str | None = None):
        self.reason = reason
        if error_code:
            self.error_code = error_code
        super().__init__(reason)


class NotYourTurnError(ActionRejected):
    error_code = "NOT_YOUR_TURN"


class InvalidMoveError(ActionRejected):
    error_code = "INVALID_MOVE"


class InvalidHouseError(ActionRejected):
    error_code = "INVALID_HOUSE"


class InsufficientPointsError(ActionRejected):
    error_code = "INSUFFICIENT_PH"

    def __init__(self, cost: int, available: int):
        self.cost = cost
        self.available = available
        super().__init__(f"Insufficient PH: action costs {cost}, pool has {available}")


class InvalidSlotError(ActionRejected):
    error_code = "INVALID_SLOT"


class CardNotFoundError(ActionRejected):
    error_code = "CARD_NOT_FOUND"


class DuplicateNameError(ActionRejected):
    error_code = "DUPLICATE_NAME"


class AbilityMisuseError(ActionRejected):
    error_code = "ABILITY_MISUSE"


class RiddleStateError(ActionRejected):
    error_code = "RIDDLE_STATE"


class GameOverError(ActionRejected):
    error_code = "GAME_OVER"

    def __init__(self, reason: str = "Game already finished"):
        super().__init__(reason)


class PlayerNotFoundError(ActionRejected):
    error_code = "PLAYER_NOT_FOUND"


class LobbyError(ActionRejected):
    error_code = "LOBBY_ERROR"


class SessionNotFoundError(ActionRejected):
    error_code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class IntegrityError(AlgorionError):
    """A session invariant was broken mid-game."""


class FragmentPoolExhaustedError(IntegrityError):
    """A House needs a fragment but the no-repetition pool is empty."""


class ContentError(AlgorionError):
    """Static game content is missing or incomplete."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            f"Game content invalid with {len(errors)} error(s): " + "; ".join(errors)
        )
