"""
FastAPI Application - REST + WebSocket API for game clients.

Endpoints:
    POST   /api/v1/sessions                         Create game session
    GET    /api/v1/sessions                         List active sessions
    GET    /api/v1/sessions/{id}                    Get session status
    GET    /api/v1/sessions/{id}/exists             Probe a session key
    DELETE /api/v1/sessions/{id}                    End session
    POST   /api/v1/sessions/{id}/reset              Restart with the same roster
    GET    /api/v1/sessions/{id}/state              Get game state
    POST   /api/v1/sessions/{id}/lobby/names        Reserve a display name
    POST   /api/v1/sessions/{id}/lobby/heroes       Join / switch hero
    DELETE /api/v1/sessions/{id}/lobby/players/{p}  Leave the roster
    POST   /api/v1/sessions/{id}/start              Start the match
    POST   /api/v1/sessions/{id}/actions            Submit an intent
    POST   /api/v1/sessions/{id}/answers            Log the master's verdict
    WS     /api/v1/sessions/{id}/ws?player_id=...   Real-time updates and intents

Notification routing:
    room   -> every socket of the session
    actor  -> the socket that sent the intent (REST: the HTTP response)
    player -> the sockets registered for target_id

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import json
import logging

from ..config import ALGORION_CONTENT_PATH, ALGORION_ENV, ALGORION_INITIAL_PH, ALLOWED_ORIGINS

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )
    from pydantic import ValidationError

    from .. import __version__
    from ..content import ContentCatalog
    from ..session import SessionManager
    from .service import APIService
    from .schemas import (
        # Request models
        ActionRequest,
        AnswerQualityRequest,
        ChooseHeroRequest,
        CreateSessionRequest,
        ReserveNameRequest,
        # Response models
        ActionResponse,
        AnswerQualityResponse,
        EndSessionResponse,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        LobbyResponse,
        SessionExistsResponse,
        SessionListResponse,
        SessionResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Algorion Game API",
        description="""
Cooperative riddle game server: shared PH pool, turns and events, riddles
that yield hint fragments, hero abilities and the final challenge.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `NOT_YOUR_TURN` | Only the active player may act |
| `INSUFFICIENT_PH` | The pool cannot cover the action |
| `RIDDLE_STATE` | Riddle pending / not pending |
| `ABILITY_MISUSE` | Ability spent or stale scrying choice |
| `GAME_OVER` | The match has ended |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(
        session_manager=SessionManager(
            ContentCatalog.load(ALGORION_CONTENT_PATH),
            initial_ph=ALGORION_INITIAL_PH,
        )
    )

    # WebSocket connections: session_id -> [(player_id, socket)]
    ws_connections: dict[str, list[tuple[Optional[str], WebSocket]]] = {}

    # =========================================================================
    # Helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_status(error_code: ErrorCode) -> int:
        if error_code == ErrorCode.SESSION_NOT_FOUND:
            return 404
        if error_code == ErrorCode.VALIDATION_ERROR:
            return 400
        return 409

    def from_error(response: ErrorResponse) -> JSONResponse:
        return make_error_response(
            response.error_code,
            response.error,
            status_code=error_status(response.error_code),
            details=response.details,
        )

    async def run_locked(session_id: str, fn, *args):
        """Run a service call while holding the session's lock."""
        session = api_service.session_manager.get_session(session_id)
        if session is None:
            return fn(*args)
        async with session.lock:
            return fn(*args)

    async def send_safely(session_id: str, ws: WebSocket, message: dict) -> bool:
        try:
            await ws.send_json(message)
            return True
        except Exception:
            logger.debug("Dropping dead socket in session %s", session_id)
            return False

    async def broadcast_to_session(session_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a session."""
        if session_id in ws_connections:
            dead_connections = []
            for entry in ws_connections[session_id]:
                if not await send_safely(session_id, entry[1], message):
                    dead_connections.append(entry)
            for entry in dead_connections:
                ws_connections[session_id].remove(entry)

    async def send_to_player(session_id: str, player_id: Optional[str], message: dict):
        for entry in list(ws_connections.get(session_id, [])):
            if entry[0] == player_id and player_id is not None:
                if not await send_safely(session_id, entry[1], message):
                    ws_connections[session_id].remove(entry)

    async def deliver(session_id: str, notifications, actor_ws: Optional[WebSocket] = None):
        """Route notifications by audience."""
        for n in notifications:
            message = {"type": n.type, "payload": n.payload, "session_id": session_id}
            if n.audience == "room":
                await broadcast_to_session(session_id, message)
            elif n.audience == "actor":
                if actor_ws is not None:
                    await send_safely(session_id, actor_ws, message)
            else:
                await send_to_player(session_id, n.target_id, message)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={409: {"model": ErrorResponse, "description": "Session key already in use"}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Create a new game session.

        The board, event deck and hint fragment pool are shuffled and the
        first round's event is dealt. Players then join through the lobby.
        """
        response = api_service.create_session(body)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the current status of a game session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/exists",
        response_model=SessionExistsResponse,
        tags=["Sessions"],
        summary="Check whether a session exists",
    )
    async def session_exists(session_id: str) -> SessionExistsResponse:
        """Probe a session key. Never fails."""
        return api_service.session_exists(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session and release resources."""
        success = await run_locked(session_id, api_service.end_session, session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Restart the match with the same roster",
    )
    async def reset_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        response = await run_locked(session_id, api_service.reset_session, session_id)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        state = api_service.get_game_state(session_id)
        await broadcast_to_session(session_id, {
            "type": "state_snapshot",
            "payload": state.model_dump(mode="json"),
            "session_id": session_id,
        })
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get current game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Get the complete current game state for display."""
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    # =========================================================================
    # Lobby Endpoints
    # =========================================================================

    async def lobby_call(session_id: str, fn, *args) -> Union[LobbyResponse, JSONResponse]:
        response = await run_locked(session_id, fn, session_id, *args)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        await deliver(session_id, response.notifications)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/lobby/names",
        response_model=LobbyResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Lobby"],
        summary="Reserve a display name",
    )
    async def reserve_name(session_id: str, body: ReserveNameRequest):
        """Names are unique per session, ignoring case."""
        return await lobby_call(session_id, api_service.reserve_name, body)

    @app.post(
        "/api/v1/sessions/{session_id}/lobby/heroes",
        response_model=LobbyResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Lobby"],
        summary="Join the roster or switch hero",
    )
    async def choose_hero(session_id: str, body: ChooseHeroRequest):
        return await lobby_call(session_id, api_service.choose_hero, body)

    @app.delete(
        "/api/v1/sessions/{session_id}/lobby/players/{player_id}",
        response_model=LobbyResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Lobby"],
        summary="Leave the roster",
    )
    async def remove_player(session_id: str, player_id: str):
        return await lobby_call(session_id, api_service.remove_player, player_id)

    @app.post(
        "/api/v1/sessions/{session_id}/start",
        response_model=LobbyResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Lobby"],
        summary="Start the match",
    )
    async def start_game(session_id: str):
        """Freeze the roster; the first player to join takes the first turn."""
        return await lobby_call(session_id, api_service.start_game)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Unknown action type"},
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Intent rejected by the engine"},
        },
        tags=["Game"],
        summary="Submit an intent",
    )
    async def submit_action(session_id: str, body: ActionRequest) -> Union[ActionResponse, JSONResponse]:
        """
        Submit an intent (move, explore, submit_riddle, confirm_riddle, ...).

        **Request Body:**
        ```json
        {"action_type": "move", "player_id": "p1", "house_id": "C2"}
        ```
        """
        response = await run_locked(session_id, api_service.apply_action, session_id, body)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        if not response.success:
            return make_error_response(
                response.error_code or ErrorCode.ACTION_REJECTED,
                response.error or "Action rejected",
                status_code=409,
                details={"action_type": response.action_type},
            )
        await deliver(session_id, response.notifications)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/answers",
        response_model=AnswerQualityResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Log the master's verdict on an answer",
    )
    async def record_answer(session_id: str, body: AnswerQualityRequest):
        response = await run_locked(
            session_id, api_service.record_answer_quality, session_id, body,
        )
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(
        websocket: WebSocket,
        session_id: str,
        player_id: Optional[str] = None,
    ):
        """
        WebSocket for real-time updates and intents.

        Messages from server:
        - state_snapshot, turn_changed, active_event, hint_card_added, ...
        - action_rejected: only to the socket that sent the intent
        - reveal_offer / costs_revealed: only to the scrying player
        - error: malformed message

        Messages from client:
        - {"type": "ping"}
        - {"type": "action", "payload": {"action_type": "move", "house_id": "C2"}}
        """
        await websocket.accept()

        entry = (player_id, websocket)
        ws_connections.setdefault(session_id, []).append(entry)

        try:
            # Send initial state
            state = api_service.get_game_state(session_id)
            if isinstance(state, ErrorResponse):
                await websocket.send_json({
                    "type": "error",
                    "payload": state.model_dump(mode="json"),
                    "session_id": session_id,
                })
            else:
                await websocket.send_json({
                    "type": "state_snapshot",
                    "payload": state.model_dump(mode="json"),
                    "session_id": session_id,
                })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue

                if message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})
                    continue

                if message.get("type") != "action":
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": f"Unknown message type: {message.get('type')}"},
                    })
                    continue

                payload = dict(message.get("payload") or {})
                payload.setdefault("player_id", player_id)
                try:
                    request = ActionRequest(**payload)
                except ValidationError as e:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid action", "details": e.errors()},
                    })
                    continue

                response = await run_locked(
                    session_id, api_service.apply_action, session_id, request,
                )
                if isinstance(response, ErrorResponse):
                    await websocket.send_json({
                        "type": "error",
                        "payload": response.model_dump(mode="json"),
                        "session_id": session_id,
                    })
                    continue
                await deliver(session_id, response.notifications, actor_ws=websocket)

        except WebSocketDisconnect:
            logger.debug("Socket for %s left session %s", player_id, session_id)
        finally:
            if entry in ws_connections.get(session_id, []):
                ws_connections[session_id].remove(entry)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="algorion",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Algorion Game API",
            "version": __version__,
            "environment": ALGORION_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
