"""Game errors surfaced to callers.

Only joining a room reports failures back to the client; every other illegal
command is dropped without a reply.
"""


class KuzgunGameError(Exception):
    """Base class for all game errors."""
    code = 'GameError'
    message = 'Game error.'

    def to_ack(self):
        return {'error': True, 'code': self.code, 'message': self.message}


class RoomNotFound(KuzgunGameError):
    code = 'NotFound'
    message = 'Room not found.'

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class RoomFull(KuzgunGameError):
    code = 'Full'
    message = 'Room is full.'

    def __init__(self, room_id, capacity):
        self.room_id = room_id
        self.capacity = capacity
        super().__init__(f"Room {room_id} already has {capacity} players")
