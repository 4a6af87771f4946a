import logging
import threading
import time
from typing import Dict, List, Optional

from kuzgun.models import Player, Room, generate_room_code

logger = logging.getLogger(__name__)


class RoomRegistry:
    """In-memory collection of live rooms, keyed by room code.

    Rooms live for the lifetime of the process unless removed explicitly
    (last connected player gone) or reaped for inactivity.
    """

    def __init__(self, code_length: int = 5, rng=None, clock=time.monotonic):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()
        self.code_length = code_length
        self._rng = rng
        self._clock = clock

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return self.get(room_id) is not None

    def create(self, owner_id: str, username: str) -> Room:
        with self._lock:
            code = generate_room_code(self.code_length, self._rng)
            while code in self._rooms:
                logger.warning(f"[room-code-collision] {code} already in use, regenerating")
                code = generate_room_code(self.code_length, self._rng)
            now = self._clock()
            room = Room(room_id=code, created_at=now, touched_at=now)
            room.players.append(Player(id=owner_id, username=username))
            self._rooms[code] = room
        logger.info(f"[room-create] room={code} owner={owner_id}")
        return room

    def get(self, room_id) -> Optional[Room]:
        if not isinstance(room_id, str):
            return None
        return self._rooms.get(room_id.strip().lower())

    def remove(self, room_id: str) -> Optional[Room]:
        with self._lock:
            room = self._rooms.pop(room_id, None)
        if room:
            logger.info(f"[room-remove] room={room_id}")
        return room

    def rooms_for_player(self, player_id: str) -> List[Room]:
        return [r for r in list(self._rooms.values()) if r.get_player(player_id)]

    def reap_idle(self, max_idle_sec: float, now: Optional[float] = None) -> List[Room]:
        """Remove and return rooms untouched for longer than ``max_idle_sec``."""
        if not max_idle_sec or max_idle_sec <= 0:
            return []
        now = self._clock() if now is None else now
        with self._lock:
            stale = [r for r in self._rooms.values() if now - r.touched_at > max_idle_sec]
            for room in stale:
                self._rooms.pop(room.room_id, None)
        for room in stale:
            logger.info(f"[room-reap] room={room.room_id} idle={now - room.touched_at:.0f}s age={now - room.created_at:.0f}s")
        return stale
