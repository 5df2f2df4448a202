from __future__ import annotations

import asyncio
import tempfile
import unittest
from pathlib import Path

from controller.errors import StateCorrupt
from state.persistent import PersistentState


class PersistentStateTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "state.yml"

    def tearDown(self):
        self._tmp.cleanup()

    async def test_snapshot_round_trip(self):
        state = await PersistentState.load(self.path)
        await state.set("model_overrides", {"llm_reply": "mistral"})
        await state.set("vc_notify_followers", [111, 222])
        async with state.transaction() as data:
            data["rivals_ratings"] = {"kragg": 150, "zetter": 220}

        reloaded = await PersistentState.load(self.path)
        self.assertEqual(await reloaded.snapshot(), await state.snapshot())
        self.assertEqual(await reloaded.get("vc_notify_followers"), [111, 222])

    async def test_missing_snapshot_loads_empty(self):
        state = await PersistentState.load(self.path)
        self.assertEqual(await state.snapshot(), {})
        self.assertFalse(self.path.exists())

    async def test_corrupt_snapshot_is_fatal(self):
        self.path.write_text("rivals_ratings: [unclosed\n", encoding="utf-8")
        with self.assertRaises(StateCorrupt):
            await PersistentState.load(self.path)

    async def test_non_mapping_snapshot_is_fatal(self):
        self.path.write_text("- just\n- a list\n", encoding="utf-8")
        with self.assertRaises(StateCorrupt):
            await PersistentState.load(self.path)

    async def test_failed_transaction_leaves_state_untouched(self):
        state = await PersistentState.load(self.path)
        await state.set("counter", 1)
        with self.assertRaises(RuntimeError):
            async with state.transaction() as data:
                data["counter"] = 2
                data["half"] = "written"
                raise RuntimeError("plugin blew up")
        self.assertEqual(await state.snapshot(), {"counter": 1})
        reloaded = await PersistentState.load(self.path)
        self.assertEqual(await reloaded.snapshot(), {"counter": 1})

    async def test_get_returns_a_copy(self):
        state = await PersistentState.load(self.path)
        await state.set("followers", [1])
        followers = await state.get("followers")
        followers.append(2)
        self.assertEqual(await state.get("followers"), [1])

    async def test_concurrent_transactions_do_not_lose_updates(self):
        state = await PersistentState.load(self.path)

        async def bump():
            async with state.transaction() as data:
                current = data.get("n", 0)
                await asyncio.sleep(0)
                data["n"] = current + 1

        await asyncio.gather(*(bump() for _ in range(10)))
        self.assertEqual(await state.get("n"), 10)
        self.assertEqual(await (await PersistentState.load(self.path)).get("n"), 10)

    async def test_flush_writes_without_temp_file_left_behind(self):
        state = PersistentState(self.path, {"a": 1})
        await state.flush()
        self.assertTrue(self.path.exists())
        self.assertFalse(self.path.with_name(self.path.name + ".new").exists())


if __name__ == "__main__":
    unittest.main()
