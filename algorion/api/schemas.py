"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between game clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- NOT_YOUR_TURN: Only the active player may act
- INSUFFICIENT_PH: The shared pool cannot cover the action
- RIDDLE_STATE: A riddle is pending, or none is pending when one is required
- ABILITY_MISUSE: Hero ability already spent, or a stale scrying choice
- VALIDATION_ERROR: Malformed request
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    LOBBY = "lobby"
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class ErrorCode(str, Enum):
    """Structured error codes."""
    ACTION_REJECTED = "ACTION_REJECTED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_MOVE = "INVALID_MOVE"
    INVALID_HOUSE = "INVALID_HOUSE"
    INSUFFICIENT_PH = "INSUFFICIENT_PH"
    INVALID_SLOT = "INVALID_SLOT"
    CARD_NOT_FOUND = "CARD_NOT_FOUND"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    ABILITY_MISUSE = "ABILITY_MISUSE"
    RIDDLE_STATE = "RIDDLE_STATE"
    GAME_OVER = "GAME_OVER"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    LOBBY_ERROR = "LOBBY_ERROR"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_TIMER = "INVALID_TIMER"
    INVALID_QUALITY = "INVALID_QUALITY"
    NO_HANDLER = "NO_HANDLER"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class HeroChoice(str, Enum):
    """Selectable heroes."""
    DWARF = "dwarf"
    HUMAN = "human"
    SIREN = "siren"
    WITCH = "witch"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: str
    name: str
    hero: HeroChoice
    position: str
    is_current_turn: bool = False
    ability_used: bool = False

    model_config = {"from_attributes": True}


class HouseInfo(BaseModel):
    """A board cell. The cost is only public once the House is revealed."""
    house_id: str
    name: str = ""
    revealed: bool = False
    base_cost: Optional[int] = Field(None, ge=0, le=3)


class EventInfo(BaseModel):
    """The round-modifier card in play."""
    name: str
    description: str
    modifiers: dict[str, Any] = Field(default_factory=dict)


class HintCardInfo(BaseModel):
    """A collected hint fragment."""
    card_id: str
    house_id: str
    tier: str = Field(description="easy or hard")
    text: str
    citation: str
    front_source: str
    fragment_index: int = Field(..., ge=1, le=8)
    order: int


class SlotInfo(BaseModel):
    """One slot of the final assembly."""
    slot_index: int = Field(..., ge=0, le=7)
    card_id: Optional[str] = None


class PendingRiddleInfo(BaseModel):
    """The riddle awaiting the master's verdict."""
    house_id: str
    base_cost: int
    player_id: str
    is_retry: bool = False
    charged: int = 0


class NotificationInfo(BaseModel):
    """A message produced by the engine, with its intended audience."""
    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    audience: str = Field("room", description="room, actor or player")
    target_id: Optional[str] = None


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    session_id: Optional[str] = Field(None, description="Key to use; generated if omitted")
    master_id: Optional[str] = Field(None, description="Participant acting as game master")
    initial_ph: Optional[int] = Field(None, ge=0, description="Starting PH pool")
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")


class ReserveNameRequest(BaseModel):
    """Request to hold a display name in the lobby."""
    player_id: str
    name: str = Field(..., min_length=1)


class ChooseHeroRequest(BaseModel):
    """Request to join the roster, or switch hero, before the game starts."""
    player_id: str
    hero: HeroChoice
    name: Optional[str] = Field(None, description="Defaults to the reserved name")


class ActionRequest(BaseModel):
    """
    An intent, as sent over REST or the WebSocket.

    Only the fields the action type needs are read.
    """
    action_type: str = Field(..., description="move, long_jump, explore, submit_riddle, ...")
    player_id: Optional[str] = None
    house_id: Optional[str] = None
    house_ids: Optional[list[str]] = None
    card_id: Optional[str] = None
    slot_index: Optional[int] = None
    answer: Optional[str] = None
    quality: Optional[str] = Field(None, description="optimal or poor")
    seconds: Optional[int] = None
    text: Optional[str] = Field(None, description="Riddle answer text, relayed to the master")


class AnswerQualityRequest(BaseModel):
    """Master's verdict on a player's answer, for the audit log."""
    player_id: str
    quality: str = Field(..., description="optimal or poor")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    players: list[PlayerInfo] = Field(default_factory=list)
    current_turn_player_id: Optional[str] = None
    round: int = 1
    ph: int = 0
    started: bool = False
    created_at: float = 0.0
    api_version: str = "v1"


class SessionExistsResponse(BaseModel):
    """Probe result for a session key."""
    session_id: str
    exists: bool
    players_connected: int = 0


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    status: SessionStatus
    ph: int = Field(..., ge=0)
    round: int = Field(..., ge=1)
    started: bool
    active_event: Optional[EventInfo] = None
    event_deck_remaining: int = 0
    board: list[list[Optional[HouseInfo]]] = Field(default_factory=list)
    players: list[PlayerInfo] = Field(default_factory=list)
    current_turn_player_id: Optional[str] = None
    pending_riddle: Optional[PendingRiddleInfo] = None
    hint_cards: list[HintCardInfo] = Field(default_factory=list)
    resolved_houses: list[str] = Field(default_factory=list)
    final_slots: list[SlotInfo] = Field(default_factory=list)
    assembled_text: str = ""
    all_slots_filled: bool = False
    final_challenge_available: bool = False
    final_challenge_pending: bool = False
    timer_seconds: int = 0
    game_over: bool = False
    outcome: Optional[str] = None
    api_version: str = "v1"


class LobbyResponse(BaseModel):
    """Roster after a lobby change."""
    session_id: str
    players: list[PlayerInfo] = Field(default_factory=list)
    started: bool = False
    notifications: list[NotificationInfo] = Field(default_factory=list)
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of an intent."""
    session_id: str
    action_type: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    changes: list[str] = Field(default_factory=list)
    notifications: list[NotificationInfo] = Field(default_factory=list)
    game_state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class AnswerQualityResponse(BaseModel):
    """Logged verdict."""
    session_id: str
    player_id: str
    quality: str
    round: int


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
