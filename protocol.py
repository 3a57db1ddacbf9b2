import math


class MessageType:
    # client -> server
    JOIN = "JOIN"
    CHAT = "CHAT"
    BLOCK = "BLOCK"
    CHUNK_REQUEST = "CHUNK_REQUEST"
    PLAYER_STATE = "PLAYER_STATE"
    # server -> client
    SYSTEM = "SYSTEM"
    SELF = "SELF"
    ROOM_SNAPSHOT = "ROOM_SNAPSHOT"
    PLAYER_JOIN = "PLAYER_JOIN"
    PLAYER_LEAVE = "PLAYER_LEAVE"
    CHUNK_DATA = "CHUNK_DATA"


DEFAULT_ROOM = "GLOBAL"
ROOM_KEY_MAX = 32
NAME_MAX = 24
SKIN_MAX = 200000
CHAT_MAX = 280
CHUNK_SIZE = 16


def to_finite(value):
    """Coerce a wire value to a finite float, or None.

    Accepts ints, floats and numeric strings. Booleans are not numbers here.
    """
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    if math.isfinite(number):
        return number
    return None


def to_int(value):
    number = to_finite(value)
    if number is None:
        return None
    return math.floor(number)
