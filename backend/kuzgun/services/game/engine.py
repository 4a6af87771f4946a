import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Optional

from kuzgun.models import Card, MatchState, Phase, Player, Room, default_username
from . import views
from .deck import build_deck
from .exceptions import RoomFull, RoomNotFound

logger = logging.getLogger(__name__)


def _as_index(value) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class GameEngine:
    """Room lifecycle, turn rotation and the match reaction race.

    The engine owns no transport. Outbound events go through ``broadcaster``
    (``to_room``, ``to_player``, ``enter``, ``close``) and match timeouts are
    armed through ``scheduler.schedule(delay_sec, callback, key)``, which
    returns a handle with ``cancel()``.

    Every command takes the addressed room's lock for its whole duration, so
    a timer firing on another thread cannot interleave with a command.
    Illegal commands return without touching state.
    """

    def __init__(self, registry, broadcaster, scheduler, hand_size=8, max_players=4,
                 min_players=1, match_timeout_ms=5000, username_min_length=2,
                 username_max_length=15, room_idle_timeout_sec=0, rng=None):
        self.registry = registry
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.hand_size = hand_size
        self.max_players = max_players
        self.min_players = min_players
        self.match_timeout_ms = match_timeout_ms
        self.username_min_length = username_min_length
        self.username_max_length = username_max_length
        self.room_idle_timeout_sec = room_idle_timeout_sec
        self._rng = rng
        self._locks = defaultdict(threading.RLock)
        self._locks_guard = threading.Lock()

    @classmethod
    def from_config(cls, config, registry, broadcaster, scheduler, rng=None):
        return cls(
            registry,
            broadcaster,
            scheduler,
            hand_size=int(config.get('HAND_SIZE', 8)),
            max_players=int(config.get('MAX_PLAYERS', 4)),
            min_players=int(config.get('MIN_PLAYERS', 1)),
            match_timeout_ms=int(config.get('MATCH_TIMEOUT_MS', 5000)),
            username_min_length=int(config.get('USERNAME_MIN_LENGTH', 2)),
            username_max_length=int(config.get('USERNAME_MAX_LENGTH', 15)),
            room_idle_timeout_sec=int(config.get('ROOM_IDLE_TIMEOUT_SEC', 0)),
            rng=rng,
        )

    # ---- locking ----

    def _room_lock(self, room_id):
        with self._locks_guard:
            return self._locks[room_id]

    @contextmanager
    def _locked_room(self, room_id):
        """Yield the live room under its lock, or None if it does not exist."""
        room = self.registry.get(room_id)
        if room is None:
            yield None
            return
        with self._room_lock(room.room_id):
            # the room may have been removed while we waited for the lock
            yield room if self.registry.get(room.room_id) is room else None

    def _drop_room(self, room: Room) -> None:
        self._cancel_match(room)
        self.registry.remove(room.room_id)
        self.broadcaster.close(room.room_id)
        with self._locks_guard:
            self._locks.pop(room.room_id, None)

    # ---- room registry operations ----

    def create_room(self, owner_id: str) -> str:
        self.reap_idle()
        room = self.registry.create(owner_id, default_username(self._rng))
        with self._room_lock(room.room_id):
            self.broadcaster.enter(owner_id, room.room_id)
            self.broadcaster.to_player(owner_id, 'updateRoom', views.room_snapshot(room))
        return room.room_id

    def join_room(self, room_id, player_id: str) -> str:
        """Add ``player_id`` to the room. Raises RoomNotFound or RoomFull."""
        with self._locked_room(room_id) as room:
            if room is None:
                raise RoomNotFound(room_id)
            if room.get_player(player_id):
                return room.room_id
            if len(room.players) >= self.max_players:
                raise RoomFull(room.room_id, self.max_players)
            room.players.append(Player(id=player_id, username=default_username(self._rng)))
            room.touch()
            self.broadcaster.enter(player_id, room.room_id)
            logger.info(f"[room-join] room={room.room_id} player={player_id} size={len(room.players)}")
            self._broadcast_room(room)
            return room.room_id

    def set_username(self, room_id, player_id: str, proposed) -> None:
        with self._locked_room(room_id) as room:
            if room is None or not isinstance(proposed, str):
                return
            player = room.get_player(player_id)
            if player is None:
                return
            sanitized = proposed.strip()[:self.username_max_length]
            if len(sanitized) < self.username_min_length:
                return
            player.username = sanitized
            room.touch()
            self._broadcast_room(room)

    def reap_idle(self, now=None) -> int:
        reaped = self.registry.reap_idle(self.room_idle_timeout_sec, now)
        for room in reaped:
            with self._room_lock(room.room_id):
                self._cancel_match(room)
            self.broadcaster.close(room.room_id)
            with self._locks_guard:
                self._locks.pop(room.room_id, None)
        return len(reaped)

    # ---- turn state machine ----

    def _eligible(self, player: Player) -> bool:
        return player.connected

    def _next_turn(self, room: Room, current_id: str) -> str:
        """Next eligible player after ``current_id`` in join order, wrapping around.

        Absent players are skipped. If nobody is connected, plain rotation
        applies.
        """
        count = len(room.players)
        start = room.index_of(current_id)
        for step in range(1, count + 1):
            candidate = room.players[(start + step) % count]
            if self._eligible(candidate):
                return candidate.id
        return room.players[(start + 1) % count].id

    def start_game(self, room_id, requester_id: str) -> None:
        with self._locked_room(room_id) as room:
            if room is None or room.owner is None or room.owner.id != requester_id:
                return
            if len(room.players) < self.min_players:
                return
            self._cancel_match(room)
            deck = build_deck(self._rng)
            for player in room.players:
                player.hand = deck[:self.hand_size]
                del deck[:self.hand_size]
            # the undealt remainder is discarded
            room.turn = room.owner.id
            room.played_cards = []
            room.last_played = None
            room.winner_id = None
            room.phase = Phase.IN_PLAY
            room.touch()
            logger.info(f"[game-start] room={room.room_id} players={len(room.players)} discarded={len(deck)}")
            for player in room.players:
                self.broadcaster.to_player(player.id, 'gameStarted', views.for_recipient(room, player.id))

    def play_card(self, room_id, player_id: str, card_index, guessed_kind) -> None:
        with self._locked_room(room_id) as room:
            if room is None or room.phase != Phase.IN_PLAY or room.turn != player_id:
                return
            player = room.get_player(player_id)
            idx = _as_index(card_index)
            if player is None or idx is None or not 0 <= idx < len(player.hand):
                return

            card = player.hand.pop(idx)
            room.played_cards.append(card)
            guess = Card.parse(guessed_kind)
            is_match = guess is not None and card == guess
            room.turn = self._next_turn(room, player_id)
            room.last_played = {
                'playerId': player.id,
                'username': player.username,
                'guessedKind': guess.value if guess else (guessed_kind if isinstance(guessed_kind, str) else None),
                'card': card.value,
            }
            room.touch()
            self.broadcaster.to_room(room.room_id, 'updateGameState', views.game_state(room, is_match))
            if is_match:
                self._open_match(room)

    # ---- match resolution ----

    def _open_match(self, room: Room) -> None:
        room.match_counter += 1
        match = MatchState(match_id=room.match_counter)
        room.match = match
        room.phase = Phase.MATCH_PENDING
        self.broadcaster.to_room(room.room_id, 'matchOccurred')
        rid, mid = room.room_id, match.match_id
        match.timer = self.scheduler.schedule(
            self.match_timeout_ms / 1000.0,
            lambda: self.resolve_match(rid, mid),
            key=f"{rid}:{mid}",
        )

    def _cancel_match(self, room: Room) -> None:
        match = room.match
        if match is None:
            return
        if match.timer is not None:
            match.timer.cancel()
        match.active = False
        match.timer = None
        room.match = None

    def _all_responded(self, room: Room) -> bool:
        responded = set(room.match.responded)
        return all(p.id in responded for p in room.connected_players())

    def player_reacted(self, room_id, player_id: str) -> None:
        with self._locked_room(room_id) as room:
            if room is None or not room.match_active or room.get_player(player_id) is None:
                return
            match = room.match
            if player_id in match.responded:
                return
            match.responded.append(player_id)
            room.touch()
            if self._all_responded(room):
                if match.timer is not None:
                    match.timer.cancel()
                self._resolve(room)

    def resolve_match(self, room_id, match_id=None) -> None:
        """Resolve the pending race. No-op if it is gone or already resolved."""
        with self._locked_room(room_id) as room:
            if room is None or not room.match_active:
                return
            if match_id is not None and room.match.match_id != match_id:
                return
            self._resolve(room)

    def _resolve(self, room: Room) -> None:
        match = room.match
        responded = list(match.responded)
        non_responders = [p.id for p in room.players if p.id not in responded]
        if non_responders:
            loser_id = non_responders[0]
        else:
            loser_id = responded[-1]
        fastest_id = responded[0] if responded else None

        taken = list(room.played_cards)
        loser = room.get_player(loser_id)
        loser.hand.extend(taken)
        room.played_cards = []
        room.turn = loser.id
        if not loser.connected:
            room.turn = self._next_turn(room, loser.id)

        match.active = False
        match.timer = None
        room.match = None

        winner = next((p for p in room.players if not p.hand), None)
        if winner is not None:
            room.winner_id = winner.id
            room.phase = Phase.FINISHED
        else:
            room.phase = Phase.IN_PLAY
        room.touch()
        logger.info(
            f"[match-resolve] room={room.room_id} match={match.match_id} loser={loser_id} "
            f"fastest={fastest_id} taken={len(taken)} winner={room.winner_id}"
        )
        self.broadcaster.to_room(
            room.room_id, 'matchResult', views.match_result(room, loser_id, fastest_id, len(taken))
        )

    # ---- presence ----

    def player_disconnected(self, player_id: str) -> None:
        for candidate in self.registry.rooms_for_player(player_id):
            with self._locked_room(candidate.room_id) as room:
                if room is None:
                    continue
                room.get_player(player_id).connected = False
                room.touch()
                if not room.connected_players():
                    self._drop_room(room)
                    continue
                if room.phase == Phase.IN_PLAY and room.turn == player_id:
                    room.turn = self._next_turn(room, player_id)
                self._broadcast_room(room)
                if room.match_active and self._all_responded(room):
                    if room.match.timer is not None:
                        room.match.timer.cancel()
                    self._resolve(room)

    def _broadcast_room(self, room: Room) -> None:
        self.broadcaster.to_room(room.room_id, 'updateRoom', views.room_snapshot(room))
