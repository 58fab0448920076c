"""
Game Loop - Runs intents against a session and commits the results.

The loop:
1. An intent arrives (from REST or the WebSocket)
2. The reducer applies it to a working copy of the match
3. On success the copy becomes the session's match
4. If PH has run out, the final challenge is forced
5. A full state snapshot closes every committed intent
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING

from ..engine_core.notifications import Notification, NotificationKind, snapshot

if TYPE_CHECKING:
    from ..engine_core.action import Action
    from .manager import Session

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """
    Result of processing one intent.

    Contains the notifications for the transport and a human-readable
    account of what changed.
    """
    success: bool
    error: str | None = None
    error_code: str | None = None

    notifications: list[Notification] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)

    # Game over info
    game_over: bool = False
    outcome: str | None = None


class GameLoop:
    """
    The intent loop driver for one session.

    Usage:
        loop = GameLoop(session)
        result = loop.process(Action.move("p1", "C2"))
        for notification in result.notifications:
            deliver(notification)
    """

    def __init__(self, session: Session):
        self.session = session

    def process(self, action: Action) -> TurnResult:
        """Apply one intent; commit it only if it succeeded."""
        from .manager import SessionState

        result = self.session.reducer.apply(self.session.game, action)
        if not result.success:
            return TurnResult(
                success=False,
                error=result.error,
                error_code=result.error_code,
                notifications=result.notifications,
            )

        game = result.new_state
        self.session.game = game
        notifications = list(result.notifications)

        if game.ph <= 0 and not game.game_over and not game.final_challenge_pending:
            game.final_challenge_pending = True
            logger.info("Session %s ran out of PH; final challenge forced", game.session_id)
            notifications.append(Notification.room(NotificationKind.FINAL_CHALLENGE_FORCED, {
                "ph": game.ph,
                "message": "The pool of PH is empty. The final challenge must be faced now.",
            }))

        if game.game_over:
            self.session.state = SessionState.GAME_OVER

        notifications.append(self.snapshot_notification())

        return TurnResult(
            success=True,
            notifications=notifications,
            changes=result.state_changes,
            game_over=game.game_over,
            outcome=game.outcome.value if game.outcome else None,
        )

    def snapshot_notification(self) -> Notification:
        return Notification.room(NotificationKind.STATE_SNAPSHOT, snapshot(self.session.game))
