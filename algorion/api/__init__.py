"""
API Module - Game client interface.

Exposes the engine via REST and WebSocket. A client:
1. Creates or probes a session
2. Reserves a name and picks a hero in the lobby
3. Sends intents and receives room / private notifications
4. Reads the full state at any time

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    ActionRequest,
    AnswerQualityRequest,
    ChooseHeroRequest,
    CreateSessionRequest,
    ReserveNameRequest,
    # Responses
    ActionResponse,
    ErrorResponse,
    GameStateResponse,
    LobbyResponse,
    SessionResponse,
    # Shared
    PlayerInfo,
    NotificationInfo,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "ActionRequest",
    "AnswerQualityRequest",
    "ChooseHeroRequest",
    "CreateSessionRequest",
    "ReserveNameRequest",
    # Responses
    "ActionResponse",
    "ErrorResponse",
    "GameStateResponse",
    "LobbyResponse",
    "SessionResponse",
    # Shared
    "PlayerInfo",
    "NotificationInfo",
    # Service
    "APIService",
    "create_app",
]
