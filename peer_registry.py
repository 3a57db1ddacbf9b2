# peer_registry.py
import itertools
from typing import Dict, Optional

from protocol import DEFAULT_ROOM, NAME_MAX, SKIN_MAX, to_finite, to_int

DEFAULT_NAME = "Player"
DEFAULT_HELD_BLOCK = 2


def default_state():
    return {
        "x": 0.0,
        "y": 80.0,
        "z": 0.0,
        "yaw": 0.0,
        "pitch": 0.0,
        "moving": False,
        "crouching": False,
        "punchAnim": 0.0,
        "placeAnim": 0.0,
        "heldBlock": DEFAULT_HELD_BLOCK,
    }


def _clamp_anim(value):
    number = to_finite(value)
    if number is None:
        return 0.0
    return max(0.0, min(1.0, number))


class Peer:
    def __init__(self, peer_id, conn):
        self.id = peer_id
        self.conn = conn
        self.name = DEFAULT_NAME
        self.skin = ""
        self.room = DEFAULT_ROOM
        self.state = default_state()

    def summary(self):
        # identity + state, as carried by ROOM_SNAPSHOT and PLAYER_STATE
        return {"id": self.id, "name": self.name, "skin": self.skin, **self.state}

    def __repr__(self):
        return f"<Peer {self.id} {self.name!r} room={self.room}>"


class PeerRegistry:
    def __init__(self):
        self.peers: Dict[object, Peer] = {}  # conn -> Peer
        self._ids = itertools.count(1)

    def register(self, conn) -> Peer:
        peer = Peer(f"p{next(self._ids)}", conn)
        self.peers[conn] = peer
        return peer

    def get(self, conn) -> Optional[Peer]:
        return self.peers.get(conn)

    def unregister(self, peer):
        self.peers.pop(peer.conn, None)

    def update_identity(self, peer, name=None, skin=None):
        peer.name = name[:NAME_MAX] if isinstance(name, str) else DEFAULT_NAME
        peer.skin = skin[:SKIN_MAX] if isinstance(skin, str) else ""

    def update_state(self, peer, candidate) -> bool:
        """Replace the peer's state if position and orientation are finite.

        Animation values are clamped to [0, 1] and fall back to 0; heldBlock
        falls back to the default block. Returns False on rejection, leaving
        the previous state untouched.
        """
        if not isinstance(candidate, dict):
            return False
        core = {k: to_finite(candidate.get(k)) for k in ("x", "y", "z", "yaw", "pitch")}
        if any(v is None for v in core.values()):
            return False

        held = to_int(candidate.get("heldBlock"))
        peer.state = {
            **core,
            "moving": bool(candidate.get("moving")),
            "crouching": bool(candidate.get("crouching")),
            "punchAnim": _clamp_anim(candidate.get("punchAnim")),
            "placeAnim": _clamp_anim(candidate.get("placeAnim")),
            "heldBlock": DEFAULT_HELD_BLOCK if held is None else held,
        }
        return True

    def __len__(self):
        return len(self.peers)
