from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import random
import string
import time


class Card(str, Enum):
    DONER = 'Döner'
    INEK = 'İnek'
    ESEK = 'Eşek'
    PIDE = 'Pide'
    KEBAP = 'Kebap'

    @classmethod
    def parse(cls, value) -> Optional['Card']:
        """Return the card kind for a wire name, or None if it is not one."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# Fixed multiplicities; 64 cards in total
CARD_COUNTS = {
    Card.DONER: 13,
    Card.INEK: 13,
    Card.ESEK: 13,
    Card.PIDE: 13,
    Card.KEBAP: 12,
}

DECK_SIZE = sum(CARD_COUNTS.values())


class Phase(str, Enum):
    LOBBY = 'lobby'
    IN_PLAY = 'in_play'
    MATCH_PENDING = 'match_pending'
    FINISHED = 'finished'


@dataclass
class Player:
    id: str
    username: str
    hand: List[Card] = field(default_factory=list)
    connected: bool = True

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'cardCount': len(self.hand),
            'connected': self.connected,
        }


@dataclass
class MatchState:
    match_id: int
    active: bool = True
    responded: List[str] = field(default_factory=list)  # arrival order
    timer: Optional[object] = None  # TimerHandle while the race is pending


@dataclass
class Room:
    room_id: str
    players: List[Player] = field(default_factory=list)
    phase: Phase = Phase.LOBBY
    turn: Optional[str] = None
    played_cards: List[Card] = field(default_factory=list)
    match: Optional[MatchState] = None
    last_played: Optional[dict] = None
    winner_id: Optional[str] = None
    match_counter: int = 0
    created_at: float = field(default_factory=time.monotonic)
    touched_at: float = field(default_factory=time.monotonic)

    @property
    def owner(self) -> Optional[Player]:
        return self.players[0] if self.players else None

    @property
    def game_started(self) -> bool:
        return self.phase != Phase.LOBBY

    @property
    def match_active(self) -> bool:
        return self.match is not None and self.match.active

    def get_player(self, player_id) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def index_of(self, player_id) -> int:
        for idx, player in enumerate(self.players):
            if player.id == player_id:
                return idx
        return -1

    def connected_players(self) -> List[Player]:
        return [p for p in self.players if p.connected]

    def touch(self, now: Optional[float] = None) -> None:
        self.touched_at = time.monotonic() if now is None else now


def generate_room_code(length=5, rng=None):
    """Generate a short lowercase base-36 room code (not checked for uniqueness)."""
    rng = rng or random
    alphabet = string.ascii_lowercase + string.digits
    return ''.join(rng.choice(alphabet) for _ in range(length))


def default_username(rng=None):
    rng = rng or random
    return f"Oyuncu-{rng.randrange(1000)}"
