"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Master creates a session -> board, event deck and fragment pool are
   shuffled, round 1's event is dealt
2. Lobby: players reserve a name and pick a hero (names are unique per
   session, case-insensitive); they may drop out and pick again
3. Master starts the game -> the roster is frozen, turn order is join order
4. Intents flow through the GameLoop until the final answer ends the match
5. Session ended -> removed from memory

PERSISTENCE RULES:
- Sessions are in-memory only
- One asyncio.Lock per session serializes intents from concurrent sockets
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import asyncio
import logging
import random
import time
import uuid

from ..config import ALGORION_CONTENT_PATH
from ..content import ContentCatalog
from ..engine_core.board import CENTER_HOUSE
from ..engine_core.errors import (
    ActionRejected, DuplicateNameError, LobbyError, PlayerNotFoundError,
    SessionNotFoundError,
)
from ..engine_core.events import EventService
from ..engine_core.reducer import Reducer
from ..engine_core.setup import create_game_session
from ..engine_core.state import GameSession, HeroType, Player, RiddleQuality

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    LOBBY = "lobby"  # Waiting for players to pick heroes
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Final answer given
    ABANDONED = "abandoned"  # Ended before the final answer


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The current GameSession (replaced on every committed intent)
    - The reducer, bound to this session's random source
    - Session state and the master's verdict log
    """
    session_id: str
    game: GameSession
    reducer: Reducer
    created_at: float

    state: SessionState = SessionState.LOBBY
    seed: int | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    # Master's per-player verdicts, in the order they were given
    answer_log: list[dict[str, Any]] = field(default_factory=list)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {SessionState.LOBBY, SessionState.ACTIVE}


def _same_name(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions from the loaded content
    - Run the lobby (names, heroes, start)
    - Track and clean up sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, content: ContentCatalog | None = None, initial_ph: int | None = None):
        self.content = content or ContentCatalog.load(ALGORION_CONTENT_PATH)
        self.initial_ph = initial_ph
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        session_id: str | None = None,
        initial_ph: int | None = None,
        seed: int | None = None,
        master_id: str | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            session_id: Key to use (generated if not provided)
            initial_ph: Starting PH (content default if not provided)
            seed: Seed for every shuffle in this session, for replays
            master_id: Participant acting as game master

        Returns:
            New Session in the lobby
        """
        session_id = session_id or uuid.uuid4().hex[:8]
        if session_id in self._sessions:
            raise LobbyError(f"Session {session_id} already exists")

        session = self._build(session_id, initial_ph, seed, master_id)
        self._sessions[session_id] = session
        return session

    def _build(
        self,
        session_id: str,
        initial_ph: int | None,
        seed: int | None,
        master_id: str | None,
    ) -> Session:
        rng = random.Random(seed)
        events = EventService(self.content.events, rng=rng)
        if initial_ph is None:
            initial_ph = self.initial_ph
        game = create_game_session(
            session_id,
            self.content,
            events,
            initial_ph=initial_ph,
            master_id=master_id,
        )
        return Session(
            session_id=session_id,
            game=game,
            reducer=Reducer(content=self.content, events=events, rng=rng),
            created_at=time.time(),
            seed=seed,
        )

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> Session:
        """Get a session by ID, raising SessionNotFoundError if absent."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def session_exists(self, session_id: str) -> dict[str, Any]:
        """Probe used by clients before joining. Never raises."""
        session = self._sessions.get(session_id)
        return {
            "session_id": session_id,
            "exists": session is not None,
            "players_connected": session.game.num_players if session else 0,
        }

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and remove it from memory.

        Returns False when the session did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.game.game_over:
            session.state = SessionState.GAME_OVER
        else:
            session.state = SessionState.ABANDONED
        logger.info("Session %s ended (%s)", session_id, reason)
        return True

    def reset_session(self, session_id: str, seed: int | None = None) -> Session:
        """
        Start the match over with the same roster.

        The board, decks and PH are rebuilt; players go back to the
        lobby at the centre House with fresh trackers.
        """
        old = self.require_session(session_id)
        session = self._build(
            session_id,
            None,
            seed if seed is not None else old.seed,
            old.game.master_id,
        )
        for player in old.game.players:
            session.game.players.append(Player(
                player_id=player.player_id,
                name=player.name,
                hero=player.hero,
                position=CENTER_HOUSE,
            ))
            session.game.flags_for(player.player_id)
        self._sessions[session_id] = session
        logger.info("Session %s reset", session_id)
        return session

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    # =========================================================================
    # Lobby
    # =========================================================================

    def _require_lobby(self, session: Session) -> GameSession:
        if session.game.started:
            raise LobbyError("Game already started")
        return session.game

    def _check_name(self, game: GameSession, player_id: str, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise LobbyError("Name must not be empty")
        for p in game.players:
            if p.player_id != player_id and _same_name(p.name, name):
                raise DuplicateNameError(f"Name '{name}' is already taken")
        for pid, reserved in game.reserved_names.items():
            if pid != player_id and _same_name(reserved, name):
                raise DuplicateNameError(f"Name '{name}' is already taken")
        return name

    def reserve_name(self, session_id: str, player_id: str, name: str) -> str:
        """Hold a display name for a player who has not picked a hero yet."""
        game = self._require_lobby(self.require_session(session_id))
        name = self._check_name(game, player_id, name)
        game.reserved_names[player_id] = name
        return name

    def choose_hero(
        self,
        session_id: str,
        player_id: str,
        hero: str | HeroType,
        name: str | None = None,
    ) -> Player:
        """
        Add a player to the roster with a hero, or switch an existing
        player's hero. The name falls back to the player's reservation.
        """
        game = self._require_lobby(self.require_session(session_id))
        try:
            hero_type = HeroType(hero)
        except ValueError:
            raise LobbyError(f"Unknown hero: {hero}")

        player = game.get_player(player_id)
        name = name or (player.name if player else game.reserved_names.get(player_id))
        name = self._check_name(game, player_id, name)

        if player is not None:
            player.hero = hero_type
            player.name = name
        else:
            player = Player(player_id=player_id, name=name, hero=hero_type)
            game.players.append(player)
            game.flags_for(player_id)
        game.reserved_names.pop(player_id, None)

        logger.info(
            "Session %s: %s (%s) chose %s", session_id, name, player_id, hero_type.value,
        )
        return player

    def remove_player(self, session_id: str, player_id: str) -> None:
        """Drop a player from the lobby roster so they can choose again."""
        game = self._require_lobby(self.require_session(session_id))
        player = game.get_player(player_id)
        if player is None:
            raise PlayerNotFoundError(f"Player {player_id} not found")
        game.players.remove(player)
        game.player_flags.pop(player_id, None)
        game.active_player_index = 0

    def start_game(self, session_id: str) -> Session:
        """Freeze the roster and hand the first turn to the first player."""
        session = self.require_session(session_id)
        game = self._require_lobby(session)
        if not game.players:
            raise LobbyError("No players connected")

        game.started = True
        game.active_player_index = 0
        game.reserved_names.clear()
        session.state = SessionState.ACTIVE
        logger.info(
            "Session %s started with %d player(s)", session_id, game.num_players,
        )
        return session

    # =========================================================================
    # Master tools
    # =========================================================================

    def record_answer_quality(
        self,
        session_id: str,
        player_id: str,
        quality: str | RiddleQuality,
    ) -> dict[str, Any]:
        """Log the master's verdict on a player's answer, outside the riddle flow."""
        session = self.require_session(session_id)
        if session.game.get_player(player_id) is None:
            raise PlayerNotFoundError(f"Player {player_id} not found")
        try:
            quality = RiddleQuality(quality)
        except ValueError:
            raise ActionRejected(f"Unknown answer quality: {quality}", "INVALID_QUALITY")

        entry = {
            "player_id": player_id,
            "quality": quality.value,
            "round": session.game.round,
            "timestamp": time.time(),
        }
        session.answer_log.append(entry)
        return entry
