"""
Pytest fixtures for Algorion tests.
"""

import random

import pytest

from ..content import ContentCatalog
from ..engine_core.events import EventService
from ..engine_core.reducer import Reducer
from ..engine_core.setup import create_game_session
from ..engine_core.state import GameSession, HeroType, Player


@pytest.fixture
def content() -> ContentCatalog:
    """Load the bundled game content."""
    return ContentCatalog.load()


@pytest.fixture
def events(content: ContentCatalog) -> EventService:
    """Event service with a fixed seed."""
    return EventService(content.events, rng=random.Random(7))


@pytest.fixture
def lobby_game(content: ContentCatalog, events: EventService) -> GameSession:
    """A fresh session that has not started yet."""
    return create_game_session("test_game", content, events)


@pytest.fixture
def game(lobby_game: GameSession) -> GameSession:
    """
    A started three-player match with no active event, so every cost is
    the plain base cost unless a test sets one.
    """
    roster = [
        ("p1", "Ana", HeroType.DWARF),
        ("p2", "Bruno", HeroType.HUMAN),
        ("p3", "Carla", HeroType.WITCH),
    ]
    for player_id, name, hero in roster:
        lobby_game.players.append(Player(player_id=player_id, name=name, hero=hero))
        lobby_game.flags_for(player_id)
    lobby_game.started = True
    lobby_game.active_event = None
    return lobby_game


@pytest.fixture
def reducer(content: ContentCatalog, events: EventService) -> Reducer:
    """Reducer sharing the event service of the game fixture."""
    return Reducer(content=content, events=events, rng=random.Random(11))


@pytest.fixture
def play(reducer: Reducer):
    """Apply an intent and return the committed session, failing on rejection."""
    def _play(session: GameSession, action) -> GameSession:
        result = reducer.apply(session, action)
        assert result.success, result.error
        return result.new_state
    return _play
