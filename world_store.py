# world_store.py
from typing import Callable, Dict, List, Optional, Tuple

from protocol import CHUNK_SIZE

ChunkKey = Tuple[int, int]
BlockKey = Tuple[int, int, int]


def chunk_key(x: int, z: int) -> ChunkKey:
    # floor division keeps negative coordinates in the right chunk
    return (x // CHUNK_SIZE, z // CHUNK_SIZE)


class WorldStore:
    """Sparse per-room block storage, partitioned into 16x16 column chunks.

    Layout: {room: {(cx, cz): {(x, y, z): block_id}}}. Empty chunks and
    rooms are pruned as soon as their last block is removed.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self.rooms: Dict[str, Dict[ChunkKey, Dict[BlockKey, int]]] = {}
        self.on_change = on_change

    def set_block(self, room, x, y, z, block_id):
        key = chunk_key(x, z)
        if block_id <= 0:
            chunks = self.rooms.get(room)
            if not chunks:
                return
            blocks = chunks.get(key)
            if not blocks or (x, y, z) not in blocks:
                return
            del blocks[(x, y, z)]
            if not blocks:
                del chunks[key]
            if not chunks:
                del self.rooms[room]
        else:
            chunks = self.rooms.setdefault(room, {})
            chunks.setdefault(key, {})[(x, y, z)] = block_id
        self._changed()

    def get_block(self, room, x, y, z) -> int:
        chunk = self.rooms.get(room, {}).get(chunk_key(x, z), {})
        return chunk.get((x, y, z), 0)

    def get_chunk_blocks(self, room, cx, cz) -> List[dict]:
        chunk = self.rooms.get(room, {}).get((cx, cz), {})
        return [
            {"x": x, "y": y, "z": z, "id": block_id}
            for (x, y, z), block_id in chunk.items()
        ]

    def load_rooms(self, rooms):
        """Replace the whole world without signalling a change."""
        self.rooms = rooms

    def clear(self):
        self.rooms = {}

    def stats(self):
        chunks = sum(len(c) for c in self.rooms.values())
        blocks = sum(len(b) for c in self.rooms.values() for b in c.values())
        return {"worldRooms": len(self.rooms), "chunks": chunks, "blocks": blocks}

    def _changed(self):
        if self.on_change is not None:
            self.on_change()
