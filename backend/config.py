import os


def _origins(value):
    origins = [o.strip() for o in value.split(',') if o.strip()]
    return '*' if origins == ['*'] else origins


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    ALLOWED_ORIGINS = _origins(os.environ.get('ALLOWED_ORIGINS', 'http://localhost:5173'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    # Reaction race window (milliseconds)
    MATCH_TIMEOUT_MS = int(os.environ.get('MATCH_TIMEOUT_MS', '5000'))
    HAND_SIZE = int(os.environ.get('HAND_SIZE', '8'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    # The owner may start alone unless raised
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '1'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '5'))
    USERNAME_MIN_LENGTH = int(os.environ.get('USERNAME_MIN_LENGTH', '2'))
    USERNAME_MAX_LENGTH = int(os.environ.get('USERNAME_MAX_LENGTH', '15'))
    # Rooms untouched this long are dropped on the next room creation. 0 disables.
    ROOM_IDLE_TIMEOUT_SEC = int(os.environ.get('ROOM_IDLE_TIMEOUT_SEC', '3600'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
