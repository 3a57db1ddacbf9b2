# persistence.py
import asyncio
import json
import logging
import os
from contextlib import suppress

from protocol import to_int
from world_store import chunk_key

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """Keeps the world store on disk as one JSON document.

    Every store mutation calls `schedule_persist`, which (re)arms a single
    debounce timer on the event loop; when it fires the whole world is
    written once. `flush_now` supersedes any pending timer and writes
    synchronously, which is what shutdown relies on.
    """

    def __init__(self, store, path, debounce=0.25):
        self.store = store
        self.path = path
        self.debounce = debounce
        self.dirty = False
        self.writes = 0
        self._timer = None  # asyncio.TimerHandle while a write is pending
        store.on_change = self.schedule_persist

    @property
    def pending(self):
        return self._timer is not None

    # --- document format ---

    def serialize(self):
        rooms = {}
        for room, chunks in self.store.rooms.items():
            room_doc = {}
            for (cx, cz), blocks in chunks.items():
                if not blocks:
                    continue
                room_doc[f"{cx},{cz}"] = [
                    {"x": x, "y": y, "z": z, "id": block_id}
                    for (x, y, z), block_id in blocks.items()
                ]
            if room_doc:
                rooms[room] = room_doc
        return {"rooms": rooms}

    def hydrate(self, document):
        rooms = {}
        dropped = 0
        room_docs = document.get("rooms") if isinstance(document, dict) else None
        if not isinstance(room_docs, dict):
            room_docs = {}

        for room, chunk_docs in room_docs.items():
            if not isinstance(room, str) or not isinstance(chunk_docs, dict):
                dropped += 1
                continue
            for blocks in chunk_docs.values():
                if not isinstance(blocks, list):
                    dropped += 1
                    continue
                for block in blocks:
                    parsed = _parse_block(block)
                    if parsed is None:
                        dropped += 1
                        continue
                    x, y, z, block_id = parsed
                    # chunk is recomputed from the block, not trusted from the key
                    chunk = rooms.setdefault(room, {}).setdefault(chunk_key(x, z), {})
                    chunk[(x, y, z)] = block_id

        self.store.load_rooms(rooms)
        if dropped:
            logger.warning("[PERSIST] Dropped %d malformed entries while loading world", dropped)
        return self.store.stats()

    # --- debounce cycle ---

    def schedule_persist(self):
        self.dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop (offline tooling, tests); flush_now will pick it up
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.debounce, self._on_timer)

    def cancel_pending(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self):
        self._timer = None
        self._write()

    def flush_now(self) -> bool:
        self.cancel_pending()
        return self._write()

    def _write(self) -> bool:
        tmp_path = f"{self.path}.tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            payload = json.dumps(self.serialize(), separators=(",", ":"))
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError):
            logger.exception("[PERSIST] Failed to write world to %s", self.path)
            with suppress(OSError):
                os.remove(tmp_path)
            return False
        self.dirty = False
        self.writes += 1
        logger.debug("[PERSIST] Wrote world to %s (%d bytes)", self.path, len(payload))
        return True

    # --- startup ---

    def load_on_startup(self):
        if not os.path.exists(self.path):
            logger.info("[PERSIST] No world file at %s, starting empty", self.path)
            self.store.clear()
            return self.store.stats()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("[PERSIST] Could not read %s (%s), starting empty", self.path, e)
            self.store.clear()
            return self.store.stats()
        stats = self.hydrate(document)
        logger.info("[PERSIST] Loaded %d blocks in %d chunks across %d rooms",
                    stats["blocks"], stats["chunks"], stats["worldRooms"])
        return stats


def _parse_block(block):
    if not isinstance(block, dict):
        return None
    values = [to_int(block.get(k)) for k in ("x", "y", "z", "id")]
    if any(v is None for v in values) or values[3] <= 0:
        return None
    return tuple(values)
