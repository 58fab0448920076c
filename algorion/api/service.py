"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine intents
2. Manages sessions and the lobby
3. Formats responses for game clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Rejections never raise out of the service: they come back as an
ErrorResponse or as an ActionResponse with success=False.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    ActionRequest,
    AnswerQualityRequest,
    ChooseHeroRequest,
    CreateSessionRequest,
    ReserveNameRequest,
    # Responses
    ActionResponse,
    AnswerQualityResponse,
    ErrorResponse,
    GameStateResponse,
    LobbyResponse,
    SessionExistsResponse,
    SessionResponse,
    # Shared
    EventInfo,
    HintCardInfo,
    HouseInfo,
    NotificationInfo,
    PendingRiddleInfo,
    PlayerInfo,
    SlotInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from ..engine_core.action import Action, ActionPayload, ActionType
from ..engine_core.errors import ActionRejected
from ..engine_core.notifications import (
    Notification, NotificationKind, player_payload, snapshot,
)
from ..session import SessionManager, Session, GameLoop

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service for game clients.

    Usage:
        service = APIService()

        # Create a session and fill the lobby
        session = service.create_session(CreateSessionRequest())
        service.choose_hero(session.session_id, ChooseHeroRequest(...))
        service.start_game(session.session_id)

        # Play
        response = service.apply_action(session.session_id, ActionRequest(...))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """
        Create a new game session.
        """
        try:
            session = self.session_manager.create_session(
                session_id=request.session_id,
                initial_ph=request.initial_ph,
                seed=request.random_seed,
                master_id=request.master_id,
            )
        except ActionRejected as e:
            return self._error(e)

        self._game_loops[session.session_id] = GameLoop(session)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """
        Get session status.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )
        return self._session_to_response(session)

    def session_exists(self, session_id: str) -> SessionExistsResponse:
        return SessionExistsResponse(**self.session_manager.session_exists(session_id))

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """
        Get current game state.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )
        return self._build_game_state(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        """
        End a game session.
        """
        self._game_loops.pop(session_id, None)
        return self.session_manager.end_session(session_id, reason)

    def reset_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """
        Start the match over with the same roster.
        """
        try:
            session = self.session_manager.reset_session(session_id)
        except ActionRejected as e:
            return self._error(e)
        self._game_loops[session_id] = GameLoop(session)
        return self._session_to_response(session)

    def list_sessions(self) -> list[str]:
        """
        List active session IDs.
        """
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Lobby
    # =========================================================================

    def reserve_name(self, session_id: str, request: ReserveNameRequest) -> LobbyResponse | ErrorResponse:
        try:
            self.session_manager.reserve_name(session_id, request.player_id, request.name)
        except ActionRejected as e:
            return self._error(e)
        return self._lobby_response(self.session_manager.get_session(session_id))

    def choose_hero(self, session_id: str, request: ChooseHeroRequest) -> LobbyResponse | ErrorResponse:
        try:
            self.session_manager.choose_hero(
                session_id, request.player_id, request.hero.value, name=request.name,
            )
        except ActionRejected as e:
            return self._error(e)
        return self._lobby_response(self.session_manager.get_session(session_id))

    def remove_player(self, session_id: str, player_id: str) -> LobbyResponse | ErrorResponse:
        try:
            self.session_manager.remove_player(session_id, player_id)
        except ActionRejected as e:
            return self._error(e)
        return self._lobby_response(self.session_manager.get_session(session_id))

    def start_game(self, session_id: str) -> LobbyResponse | ErrorResponse:
        """
        Start the match. Announces the start, the first turn and the
        round's event.
        """
        try:
            session = self.session_manager.start_game(session_id)
        except ActionRejected as e:
            return self._error(e)

        game = session.game
        started = [
            Notification.room(NotificationKind.GAME_STARTED, {
                "session_id": session_id,
                "players": player_payload(game),
                "ph": game.ph,
                "round": game.round,
                "active_event": game.active_event.to_dict() if game.active_event else None,
            }),
            Notification.room(NotificationKind.ACTIVE_EVENT, {
                "round": game.round,
                "event": game.active_event.to_dict() if game.active_event else None,
            }),
        ]
        return self._lobby_response(session, extra=started)

    # =========================================================================
    # Intents
    # =========================================================================

    def apply_action(self, session_id: str, request: ActionRequest) -> ActionResponse | ErrorResponse:
        """
        Run an intent through the session's game loop.

        Engine rejections come back as ActionResponse(success=False) with an
        actor-only notice; malformed requests as ErrorResponse.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error=f"Session {session_id} not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )

        try:
            action = self._to_action(request)
        except ValueError:
            return ErrorResponse(
                error=f"Unknown action type: {request.action_type}",
                error_code=ErrorCode.VALIDATION_ERROR,
                details={"valid_types": [t.value for t in ActionType]},
            )

        game_loop = self._game_loops.get(session_id)
        if game_loop is None or game_loop.session is not session:
            game_loop = self._game_loops[session_id] = GameLoop(session)

        result = game_loop.process(action)

        return ActionResponse(
            session_id=session_id,
            action_type=action.action_type.value,
            success=result.success,
            error=result.error,
            error_code=result.error_code,
            changes=result.changes,
            notifications=[self._notification_info(n) for n in result.notifications],
            game_state=self._build_game_state(session),
        )

    def record_answer_quality(
        self, session_id: str, request: AnswerQualityRequest,
    ) -> AnswerQualityResponse | ErrorResponse:
        try:
            entry = self.session_manager.record_answer_quality(
                session_id, request.player_id, request.quality,
            )
        except ActionRejected as e:
            return self._error(e)
        return AnswerQualityResponse(
            session_id=session_id,
            player_id=entry["player_id"],
            quality=entry["quality"],
            round=entry["round"],
        )

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _to_action(self, request: ActionRequest) -> Action:
        """Convert an ActionRequest to an engine Action. Raises ValueError."""
        action_type = ActionType(request.action_type)
        params = {"text": request.text} if request.text is not None else {}
        return Action(
            action_type=action_type,
            payload=ActionPayload(
                player_id=request.player_id,
                house_id=request.house_id,
                house_ids=request.house_ids,
                card_id=request.card_id,
                slot_index=request.slot_index,
                answer=request.answer,
                quality=request.quality,
                seconds=request.seconds,
                params=params,
            ),
        )

    def _error(self, error: ActionRejected) -> ErrorResponse:
        try:
            code = ErrorCode(error.error_code)
        except ValueError:
            code = ErrorCode.ACTION_REJECTED
        return ErrorResponse(error=error.reason, error_code=code)

    def _notification_info(self, notification: Notification) -> NotificationInfo:
        return NotificationInfo(
            type=notification.kind.value,
            payload=notification.payload,
            audience=notification.audience.value,
            target_id=notification.target_id,
        )

    def _lobby_response(
        self,
        session: Session,
        extra: list[Notification] | None = None,
    ) -> LobbyResponse:
        game = session.game
        notifications = [
            Notification.room(NotificationKind.LOBBY_UPDATED, {"players": player_payload(game)}),
            *(extra or []),
            Notification.room(NotificationKind.STATE_SNAPSHOT, snapshot(game)),
        ]
        return LobbyResponse(
            session_id=session.session_id,
            players=self._players(session),
            started=game.started,
            notifications=[self._notification_info(n) for n in notifications],
        )

    def _players(self, session: Session) -> list[PlayerInfo]:
        game = session.game
        current = game.current_player if game.started else None
        return [
            PlayerInfo(
                player_id=p.player_id,
                name=p.name,
                hero=p.hero.value,
                position=p.position,
                is_current_turn=current is not None and p.player_id == current.player_id,
                ability_used=bool(
                    game.player_flags.get(p.player_id)
                    and game.player_flags[p.player_id].ability_used
                ),
            )
            for p in game.players
        ]

    def _session_status(self, session: Session) -> SessionStatus:
        return SessionStatus(session.state.value)

    def _session_to_response(self, session: Session) -> SessionResponse:
        """Convert Session to SessionResponse."""
        game = session.game
        current = game.current_player if game.started else None
        return SessionResponse(
            session_id=session.session_id,
            status=self._session_status(session),
            players=self._players(session),
            current_turn_player_id=current.player_id if current else None,
            round=game.round,
            ph=game.ph,
            started=game.started,
            created_at=session.created_at,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        """Build complete game state response."""
        state = snapshot(session.game)
        current = session.game.current_player if session.game.started else None
        return GameStateResponse(
            session_id=session.session_id,
            status=self._session_status(session),
            ph=state["ph"],
            round=state["round"],
            started=state["started"],
            active_event=EventInfo(**state["active_event"]) if state["active_event"] else None,
            event_deck_remaining=state["event_deck_remaining"],
            board=[
                [HouseInfo(**h) if h else None for h in row]
                for row in state["board"]
            ],
            players=self._players(session),
            current_turn_player_id=current.player_id if current else None,
            pending_riddle=(
                PendingRiddleInfo(**state["pending_riddle"]) if state["pending_riddle"] else None
            ),
            hint_cards=[HintCardInfo(**c) for c in state["hint_cards"]],
            resolved_houses=state["resolved_houses"],
            final_slots=[SlotInfo(**s) for s in state["final_slots"]],
            assembled_text=state["assembled_text"],
            all_slots_filled=state["all_slots_filled"],
            final_challenge_available=state["final_challenge_available"],
            final_challenge_pending=state["final_challenge_pending"],
            timer_seconds=state["timer_seconds"],
            game_over=state["game_over"],
            outcome=state["outcome"],
        )
