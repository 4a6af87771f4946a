"""Game domain services: deck, room registry, engine and timers.

This package contains the transport-free game logic; Socket.IO handlers
call into ``GameEngine`` and hand it a broadcaster and a scheduler.
"""
from .deck import build_deck
from .engine import GameEngine
from .exceptions import KuzgunGameError, RoomFull, RoomNotFound
from .registry import RoomRegistry
from .scheduler import SocketIOScheduler, TimerHandle

__all__ = [
    'build_deck',
    'GameEngine',
    'KuzgunGameError',
    'RoomFull',
    'RoomNotFound',
    'RoomRegistry',
    'SocketIOScheduler',
    'TimerHandle',
]
