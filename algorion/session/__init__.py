"""
Session Module - Manages ephemeral game sessions.

A session represents one match:
- Created by the game master
- Holds the current GameSession and its reducer
- Runs the lobby, then processes intents through the GameLoop
- Removed when the match is ended

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, TurnResult

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "TurnResult",
]
