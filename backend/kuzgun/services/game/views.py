"""Outbound payload builders.

Hands are private: every payload that describes players goes through
``player_counts`` which exposes card counts only. ``for_recipient`` adds the
recipient's own count and nothing else.
"""
from typing import List, Optional

from kuzgun.models import Room


def player_counts(room: Room) -> List[dict]:
    return [p.to_dict() for p in room.players]


def _identity(room: Room, player_id: Optional[str]):
    if player_id is None:
        return None
    player = room.get_player(player_id)
    return {'id': player_id, 'username': player.username if player else None}


def room_snapshot(room: Room) -> dict:
    return {
        'roomId': room.room_id,
        'gameStarted': room.game_started,
        'phase': room.phase.value,
        'turn': room.turn,
        'players': player_counts(room),
    }


def for_recipient(room: Room, recipient_id: str) -> dict:
    """The ``gameStarted`` view for one player: public roster plus own hand size."""
    me = room.get_player(recipient_id)
    return {
        'roomId': room.room_id,
        'turn': room.turn,
        'players': player_counts(room),
        'myCardCount': len(me.hand) if me else 0,
    }


def game_state(room: Room, is_match: bool) -> dict:
    return {
        'turn': room.turn,
        'playedCards': [c.value for c in room.played_cards],
        'lastPlayed': room.last_played,
        'players': player_counts(room),
        'isMatch': is_match,
    }


def match_result(room: Room, loser_id, fastest_id, cards_taken: int) -> dict:
    return {
        'loser': _identity(room, loser_id),
        'fastest': _identity(room, fastest_id),
        'cardsTakenCount': cards_taken,
        'turn': room.turn,
        'playedCards': [c.value for c in room.played_cards],
        'players': player_counts(room),
        'gameWinner': _identity(room, room.winner_id),
    }
