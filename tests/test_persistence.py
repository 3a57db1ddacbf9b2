import asyncio
import json
import os
import tempfile
import unittest

from persistence import PersistenceGateway
from world_store import WorldStore


def block_set(document):
    return sorted(
        (room, b["x"], b["y"], b["z"], b["id"])
        for room, chunks in document["rooms"].items()
        for blocks in chunks.values()
        for b in blocks
    )


class PersistenceTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "nested", "world.json")
        self.store = WorldStore()
        self.gateway = PersistenceGateway(self.store, self.path, debounce=0.05)

    def tearDown(self):
        self.tmp.cleanup()


class TestSerialize(PersistenceTestCase):
    def test_sparse_document(self):
        self.store.set_block("ABC", 1, 2, 3, 5)
        self.store.set_block("ABC", -1, 0, 17, 2)
        self.store.set_block("TMP", 0, 0, 0, 1)
        self.store.set_block("TMP", 0, 0, 0, 0)
        doc = self.gateway.serialize()
        self.assertEqual(set(doc["rooms"]), {"ABC"})
        self.assertEqual(doc["rooms"]["ABC"]["0,0"], [{"x": 1, "y": 2, "z": 3, "id": 5}])
        self.assertEqual(doc["rooms"]["ABC"]["-1,1"], [{"x": -1, "y": 0, "z": 17, "id": 2}])

    def test_empty_world(self):
        self.assertEqual(self.gateway.serialize(), {"rooms": {}})

    def test_round_trip_is_stable(self):
        for i in range(40):
            self.store.set_block("R%d" % (i % 3), i * 7 - 100, i % 5, 50 - i * 3, i % 9 + 1)
        first = self.gateway.serialize()
        other = PersistenceGateway(WorldStore(), self.path)
        other.hydrate(json.loads(json.dumps(first)))
        second = other.serialize()
        self.assertEqual(block_set(first), block_set(second))
        self.assertEqual(other.store.rooms, self.store.rooms)


class TestHydrate(PersistenceTestCase):
    def test_drops_malformed_entries(self):
        doc = {"rooms": {
            "A": {
                "0,0": [
                    {"x": 1, "y": 2, "z": 3, "id": 5},
                    {"x": 1, "y": 2, "z": 4, "id": 0},
                    {"x": 1, "y": 2, "z": 5, "id": -3},
                    {"x": "nan", "y": 2, "z": 5, "id": 1},
                    {"x": 1, "y": 2, "id": 1},
                    "junk",
                ],
                "bad": "not a list",
            },
            "B": [],
            "C": {"0,0": [{"x": 0, "y": 0, "z": 0, "id": 0}]},
        }}
        self.gateway.hydrate(doc)
        self.assertEqual(self.gateway.serialize(), {"rooms": {"A": {"0,0": [{"x": 1, "y": 2, "z": 3, "id": 5}]}}})

    def test_chunk_is_recomputed_from_coordinates(self):
        self.gateway.hydrate({"rooms": {"A": {"0,0": [{"x": 40, "y": 1, "z": -3, "id": 2}]}}})
        self.assertEqual(self.store.get_chunk_blocks("A", 2, -1), [{"x": 40, "y": 1, "z": -3, "id": 2}])
        self.assertEqual(self.store.get_chunk_blocks("A", 0, 0), [])

    def test_replaces_existing_world(self):
        self.store.set_block("OLD", 0, 0, 0, 1)
        self.gateway.hydrate({"rooms": {}})
        self.assertEqual(self.store.rooms, {})

    def test_non_dict_documents(self):
        for doc in (None, [], "x", {"rooms": []}, {}):
            self.gateway.hydrate(doc)
            self.assertEqual(self.store.rooms, {})

    def test_hydrate_does_not_schedule_write(self):
        self.gateway.dirty = False
        self.gateway.hydrate({"rooms": {"A": {"0,0": [{"x": 1, "y": 1, "z": 1, "id": 1}]}}})
        self.assertFalse(self.gateway.dirty)


class TestStartupAndFlush(PersistenceTestCase):
    def test_missing_file_is_empty_world(self):
        self.store.set_block("A", 0, 0, 0, 1)
        stats = self.gateway.load_on_startup()
        self.assertEqual(stats["blocks"], 0)

    def test_corrupt_file_is_empty_world(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w") as f:
            f.write("{not json")
        with self.assertLogs("persistence", level="WARNING"):
            self.gateway.load_on_startup()
        self.assertEqual(self.store.rooms, {})

    def test_flush_then_load(self):
        self.store.set_block("A", 3, 4, 5, 6)
        self.assertTrue(self.gateway.flush_now())
        self.assertTrue(os.path.exists(self.path))
        self.assertFalse(self.gateway.dirty)

        store = WorldStore()
        PersistenceGateway(store, self.path).load_on_startup()
        self.assertEqual(store.get_block("A", 3, 4, 5), 6)

    def test_write_failure_is_logged_not_raised(self):
        blocker = os.path.join(self.tmp.name, "file")
        with open(blocker, "w") as f:
            f.write("")
        gateway = PersistenceGateway(WorldStore(), os.path.join(blocker, "world.json"))
        with self.assertLogs("persistence", level="ERROR"):
            self.assertFalse(gateway.flush_now())
        self.assertEqual(gateway.writes, 0)

    def test_failed_replace_removes_temp_file(self):
        # a non-empty directory where the world file should be makes os.replace fail
        os.makedirs(os.path.join(self.path, "occupied"))
        self.store.set_block("A", 0, 0, 0, 1)
        with self.assertLogs("persistence", level="ERROR"):
            self.assertFalse(self.gateway.flush_now())
        self.assertFalse(os.path.exists(self.path + ".tmp"))
        self.assertTrue(self.gateway.dirty)


class TestDebounce(PersistenceTestCase):
    def test_burst_collapses_into_one_write(self):
        async def run():
            for i in range(20):
                self.store.set_block("A", i, 0, 0, 1)
            self.assertTrue(self.gateway.pending)
            self.assertEqual(self.gateway.writes, 0)
            await asyncio.sleep(0.2)
            return self.gateway.writes, self.gateway.pending

        self.assertEqual(asyncio.run(run()), (1, False))
        with open(self.path) as f:
            self.assertEqual(len(json.load(f)["rooms"]["A"]["0,0"]), 20)

    def test_each_edit_restarts_the_timer(self):
        self.gateway.debounce = 0.2

        async def run():
            for i in range(4):
                self.store.set_block("A", i, 0, 0, 1)
                await asyncio.sleep(0.02)
            # edits 0.02s apart, well inside the 0.2s debounce
            self.assertEqual(self.gateway.writes, 0)
            await asyncio.sleep(0.4)
            return self.gateway.writes

        self.assertEqual(asyncio.run(run()), 1)

    def test_flush_now_supersedes_pending_timer(self):
        async def run():
            self.store.set_block("A", 0, 0, 0, 1)
            self.assertTrue(self.gateway.pending)
            self.gateway.flush_now()
            self.assertFalse(self.gateway.pending)
            await asyncio.sleep(0.15)
            return self.gateway.writes

        self.assertEqual(asyncio.run(run()), 1)

    def test_without_loop_only_marks_dirty(self):
        self.store.set_block("A", 0, 0, 0, 1)
        self.assertTrue(self.gateway.dirty)
        self.assertFalse(self.gateway.pending)
        self.assertFalse(os.path.exists(self.path))


if __name__ == "__main__":
    unittest.main()
