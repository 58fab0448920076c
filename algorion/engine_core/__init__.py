"""
Engine Core - Game session state machine and action economy.

The engine is the runtime that:
1. Holds the GameSession (PH pool, board, roster, riddles, slots)
2. Prices actions and debits the shared pool
3. Cycles turns and deals round events
4. Turns answered riddles into hint fragments
5. Applies intents atomically via the reducer
"""

from .state import GameSession, Player, PlayerFlags, HeroType, HintTier, RiddleQuality, Outcome
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer
from .events import EventService, EventCard, EventModifiers
from .notifications import Notification, NotificationKind, Audience
from .setup import create_game_session

__all__ = [
    "GameSession",
    "Player",
    "PlayerFlags",
    "HeroType",
    "HintTier",
    "RiddleQuality",
    "Outcome",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "EventService",
    "EventCard",
    "EventModifiers",
    "Notification",
    "NotificationKind",
    "Audience",
    "create_game_session",
]
