"""
Notifications - Transport-agnostic messages produced by the engine.

The engine never talks to sockets. Every operation returns a list of
Notification objects; the transport layer broadcasts ROOM messages to the
whole session and delivers ACTOR / PLAYER messages to a single participant.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .state import GameSession


class Audience(str, Enum):
    ROOM = "room"  # everyone in the session
    ACTOR = "actor"  # whoever sent the intent
    PLAYER = "player"  # a specific player (private payloads)


class NotificationKind(str, Enum):
    STATE_SNAPSHOT = "state_snapshot"
    LOBBY_UPDATED = "lobby_updated"
    GAME_STARTED = "game_started"
    ACTIVE_EVENT = "active_event"
    TURN_CHANGED = "turn_changed"
    RIDDLE_SUBMITTED = "riddle_submitted"
    RIDDLE_RESULT = "riddle_result"
    HINT_ADDED = "hint_added"
    HINT_CARD_ADDED = "hint_card_added"
    HINT_CARD_UPDATED = "hint_card_updated"
    SLOT_UPDATED = "slot_updated"
    ABILITY_USED = "ability_used"
    SUBTLE_HINT_SIGNAL = "subtle_hint_signal"
    REVEAL_OFFER = "reveal_offer"
    COSTS_REVEALED = "costs_revealed"
    REEXPLORE_REQUESTED = "reexplore_requested"
    FINAL_CHALLENGE_FORCED = "final_challenge_forced"
    GAME_FINISHED = "game_finished"
    ACTION_REJECTED = "action_rejected"


@dataclass
class Notification:
    kind: NotificationKind
    payload: dict[str, Any] = field(default_factory=dict)
    audience: Audience = Audience.ROOM
    target_id: str | None = None

    @classmethod
    def room(cls, kind: NotificationKind, payload: dict[str, Any] | None = None) -> Notification:
        return cls(kind=kind, payload=payload or {})

    @classmethod
    def private(
        cls, kind: NotificationKind, player_id: str, payload: dict[str, Any] | None = None
    ) -> Notification:
        return cls(kind=kind, payload=payload or {}, audience=Audience.PLAYER, target_id=player_id)

    @classmethod
    def rejected(cls, actor_id: str | None, reason: str, error_code: str) -> Notification:
        return cls(
            kind=NotificationKind.ACTION_REJECTED,
            payload={"reason": reason, "error_code": error_code},
            audience=Audience.ACTOR,
            target_id=actor_id,
        )

    def to_message(self, session_id: str | None = None) -> dict[str, Any]:
        """Wire shape: {"type", "payload", "session_id"}."""
        return {
            "type": self.kind.value,
            "payload": self.payload,
            "session_id": session_id,
        }


# =============================================================================
# Payload builders
# =============================================================================

def player_payload(session: GameSession) -> list[dict[str, Any]]:
    return [
        {
            "player_id": p.player_id,
            "name": p.name,
            "hero": p.hero.value,
            "position": p.position,
        }
        for p in session.players
    ]


def turn_payload(session: GameSession) -> dict[str, Any]:
    player = session.current_player
    return {
        "player_id": player.player_id if player else None,
        "player_name": player.name if player else None,
        "index": session.active_player_index,
        "round": session.round,
    }


def event_payload(session: GameSession) -> dict[str, Any] | None:
    return session.active_event.to_dict() if session.active_event else None


def slots_payload(session: GameSession) -> dict[str, Any]:
    return {
        "final_slots": [
            {"slot_index": s.slot_index, "card_id": s.card_id}
            for s in session.final_slots
        ],
        "assembled_text": session.assembled_text,
        "all_slots_filled": all(s.card_id is not None for s in session.final_slots),
    }


def snapshot(session: GameSession) -> dict[str, Any]:
    """Full state snapshot, as broadcast after every change."""
    return {
        "session_id": session.session_id,
        "ph": session.ph,
        "round": session.round,
        "started": session.started,
        "event_deck_remaining": len(session.event_deck),
        "active_event": event_payload(session),
        "board": [
            [
                {
                    "house_id": h.house_id,
                    "name": h.name,
                    "revealed": h.revealed,
                    # Hidden costs are only ever shown privately
                    "base_cost": h.base_cost if h.revealed else None,
                } if h else None
                for h in row
            ]
            for row in session.board
        ],
        "players": player_payload(session),
        "active_player_index": session.active_player_index,
        "player_flags": {
            pid: {
                "free_move_used_this_round": f.free_move_used_this_round,
                "ability_used": f.ability_used,
                "hero_free_move_pending": f.hero_free_move_pending,
                "hero_riddle_delta": f.hero_riddle_delta,
            }
            for pid, f in session.player_flags.items()
        },
        "first_riddle_discount_used": session.first_riddle_discount_used,
        "pending_riddle": (
            {
                "house_id": session.pending_riddle.house_id,
                "base_cost": session.pending_riddle.base_cost,
                "player_id": session.pending_riddle.player_id,
                "is_retry": session.pending_riddle.is_retry,
                "charged": session.pending_riddle.charged,
            } if session.pending_riddle else None
        ),
        "hint_deck": {
            "remaining": len(session.hint_deck.draw_pile),
            "assigned_by_house": dict(session.hint_deck.assigned_by_house),
        },
        "hint_cards": [c.to_dict() for c in session.hint_cards],
        "resolved_houses": sorted(session.resolved_houses),
        **slots_payload(session),
        "final_challenge_available": (
            all(s.card_id is not None for s in session.final_slots) or session.ph <= 0
        ),
        "final_challenge_pending": session.final_challenge_pending,
        "timer_seconds": session.timer_seconds,
        "game_over": session.game_over,
        "outcome": session.outcome.value if session.outcome else None,
    }
