# rooms.py
import logging
from typing import Dict, List

from packet_factory import PacketFactory
from protocol import DEFAULT_ROOM, ROOM_KEY_MAX

logger = logging.getLogger(__name__)


def normalize_room(raw) -> str:
    if not isinstance(raw, str):
        return DEFAULT_ROOM
    return raw.strip().upper()[:ROOM_KEY_MAX] or DEFAULT_ROOM


class RoomMultiplexer:
    """Room membership and room-scoped broadcast.

    Each membership set is a dict used as an insertion-ordered set of peers.
    A room key is present only while its set is non-empty.
    """

    def __init__(self):
        self.rooms: Dict[str, Dict[object, None]] = {}

    def join(self, peer, room_key: str) -> str:
        """Move `peer` into `room_key`; returns the room it came from."""
        previous = peer.room
        self._discard(peer, previous)
        self.rooms.setdefault(room_key, {})[peer] = None
        peer.room = room_key
        return previous

    def leave(self, peer):
        self._discard(peer, peer.room)

    def _discard(self, peer, room_key):
        members = self.rooms.get(room_key)
        if members is None:
            return
        members.pop(peer, None)
        if not members:
            del self.rooms[room_key]

    def members(self, room_key) -> List:
        return list(self.rooms.get(room_key, ()))

    def room_keys(self) -> List[str]:
        return list(self.rooms)

    def __contains__(self, room_key):
        return room_key in self.rooms

    def broadcast(self, room_key, message: dict, exclude=None) -> int:
        members = self.rooms.get(room_key)
        if not members:
            return 0
        encoded = PacketFactory.encode(message)
        delivered = 0
        for peer in list(members):
            if peer is exclude:
                continue
            if peer.conn.send(encoded):
                delivered += 1
        logger.debug("[BROADCAST] %s %s -> %d peers", room_key, message.get("type"), delivered)
        return delivered

    def snapshot(self, room_key, exclude=None) -> List[dict]:
        return [p.summary() for p in self.rooms.get(room_key, ()) if p is not exclude]
