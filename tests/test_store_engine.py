# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import json
import unittest
from datetime import datetime

from wellness.errors import InvalidRecordError, RemoteSyncError
from wellness.stores import EventBus, MealStore, MemoryBackend, StaticTokenSource, StoreContext, SyncStatus, UserIdentity

NOW = datetime(2024, 3, 15, 12, 0)
TODAY = "2024-03-15"


class FakeIdentity:
    def __init__(self, users: dict) -> None:
        self.users = users
        self.calls = 0

    async def whoami(self, token: str):
        self.calls += 1
        user_id = self.users.get(token)
        return UserIdentity(user_id=user_id) if user_id else None


class BrokenIdentity:
    async def whoami(self, token: str):
        raise RuntimeError("network down")


class SlowIdentity:
    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        self.started = asyncio.Event()
        self.gate = asyncio.Event()

    async def whoami(self, token: str):
        self.started.set()
        await self.gate.wait()
        return UserIdentity(user_id=self.user_id)


class FakeRemote:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.created: list = []
        self.deleted: list = []
        self.gate = asyncio.Event()
        self.gate.set()

    async def create(self, record, token: str) -> str:
        await self.gate.wait()
        if self.fail:
            raise RemoteSyncError("server said no")
        self.created.append(record.id)
        return f"srv-{len(self.created)}"

    async def delete(self, remote_id: str, token: str) -> None:
        self.deleted.append(remote_id)


def make_context(backend=None, *, token=None, identity=None, events=None) -> StoreContext:
    return StoreContext(
        backend=backend if backend is not None else MemoryBackend(),
        tokens=StaticTokenSource(token),
        identity=identity,
        events=events,
        clock=lambda: NOW,
    )


def legacy_meal(meal_id: str, name: str, **extra) -> dict:
    meal = {"id": meal_id, "timestamp": 1710500000000, "date": TODAY, "name": name, "calories": 200, "mealType": "breakfast"}
    meal.update(extra)
    return meal


class TestPartitioning(unittest.IsolatedAsyncioTestCase):
    async def test_users_never_see_each_others_records(self) -> None:
        backend = MemoryBackend()
        identity = FakeIdentity({"token-a": "user-a", "token-b": "user-b"})

        ctx_a = make_context(backend, token="token-a", identity=identity)
        async with MealStore(ctx_a) as store_a:
            self.assertEqual(store_a.partition_key, "loggedMeals:user-a")
            store_a.add_meal({"name": "Oats", "calories": 300})

        ctx_b = make_context(backend, token="token-b", identity=identity)
        async with MealStore(ctx_b) as store_b:
            self.assertEqual(store_b.partition_key, "loggedMeals:user-b")
            self.assertEqual(len(store_b), 0)
            self.assertIsNone(backend.get("loggedMeals:user-b"))

            ctx_b.tokens.set("token-a")
            await store_b.rebind()
            self.assertEqual(store_b.partition_key, "loggedMeals:user-a")
            self.assertEqual([m.name for m in store_b.records], ["Oats"])

    async def test_no_token_uses_anonymous_partition_without_identity_call(self) -> None:
        identity = FakeIdentity({})
        async with MealStore(make_context(identity=identity)) as store:
            self.assertEqual(store.partition_key, "loggedMeals:anon")
        self.assertEqual(identity.calls, 0)

    async def test_identity_failure_falls_back_to_anonymous(self) -> None:
        async with MealStore(make_context(token="t", identity=BrokenIdentity())) as store:
            self.assertEqual(store.partition_key, "loggedMeals:anon")

    async def test_unknown_token_falls_back_to_anonymous(self) -> None:
        async with MealStore(make_context(token="stale", identity=FakeIdentity({}))) as store:
            self.assertEqual(store.partition_key, "loggedMeals:anon")

    async def test_logout_rebinds_to_anonymous(self) -> None:
        backend = MemoryBackend()
        ctx = make_context(backend, token="token-a", identity=FakeIdentity({"token-a": "user-a"}))
        async with MealStore(ctx) as store:
            store.add_meal({"name": "Soup"})
            ctx.tokens.clear()
            await store.rebind()
            self.assertEqual(store.partition_key, "loggedMeals:anon")
            self.assertEqual(len(store), 0)

    async def test_partition_resolved_after_close_is_discarded(self) -> None:
        backend = MemoryBackend({"loggedMeals": json.dumps([legacy_meal("1", "Toast")])})
        identity = SlowIdentity("user-a")
        store = MealStore(make_context(backend, token="token-a", identity=identity))

        opening = asyncio.create_task(store.open())
        await identity.started.wait()
        store.close()
        identity.gate.set()
        await opening

        self.assertIsNone(store.partition_key)
        self.assertEqual(len(store), 0)
        self.assertIsNone(backend.get("loggedMeals:user-a"))
        with self.assertRaises(RuntimeError):
            store.add_meal({"name": "Late"})

    async def test_use_before_open_raises(self) -> None:
        store = MealStore(make_context())
        with self.assertRaises(RuntimeError):
            store.add_meal({"name": "Toast"})


class TestLegacyMigration(unittest.IsolatedAsyncioTestCase):
    async def test_legacy_value_copied_once(self) -> None:
        backend = MemoryBackend({"loggedMeals": json.dumps([legacy_meal("1", "Toast")])})

        async with MealStore(make_context(backend)) as store:
            self.assertEqual([m.name for m in store.records], ["Toast"])
            store.add_meal({"name": "Salad"})

        async with MealStore(make_context(backend)) as store:
            self.assertEqual(sorted(m.name for m in store.records), ["Salad", "Toast"])
            self.assertFalse(store.migrate_legacy("loggedMeals:anon"))

        # The legacy key itself is left alone.
        self.assertIsNotNone(backend.get("loggedMeals"))

    async def test_empty_legacy_value_is_not_copied(self) -> None:
        backend = MemoryBackend({"loggedMeals": ""})
        async with MealStore(make_context(backend)) as store:
            self.assertEqual(len(store), 0)
        self.assertIsNone(backend.get("loggedMeals:anon"))


class TestHydration(unittest.IsolatedAsyncioTestCase):
    async def test_corrupt_json_hydrates_empty(self) -> None:
        backend = MemoryBackend({"loggedMeals:anon": "{not json"})
        with self.assertLogs("wellness.stores.engine", level="WARNING"):
            store = await MealStore(make_context(backend)).open()
        self.assertEqual(len(store), 0)

        store.add_meal({"name": "Eggs", "calories": 150})
        stored = json.loads(backend.get("loggedMeals:anon"))
        self.assertEqual([m["name"] for m in stored], ["Eggs"])
        await store.aclose()

    async def test_non_list_and_invalid_records_hydrate_empty(self) -> None:
        for raw in ('{"a": 1}', json.dumps([{"id": "", "timestamp": -1}])):
            backend = MemoryBackend({"loggedMeals:anon": raw})
            async with MealStore(make_context(backend)) as store:
                self.assertEqual(len(store), 0)

    async def test_invalid_item_is_dropped_alone(self) -> None:
        rows = [legacy_meal("1", "Toast"), {"id": "2", "timestamp": 1, "name": ""}, legacy_meal("3", "Jam")]
        backend = MemoryBackend({"loggedMeals:anon": json.dumps(rows)})
        with self.assertLogs("wellness.stores.engine", level="WARNING"):
            store = await MealStore(make_context(backend)).open()
        self.assertEqual([m.name for m in store.records], ["Toast", "Jam"])

        store.add_meal({"name": "Eggs"})
        stored = json.loads(backend.get("loggedMeals:anon"))
        self.assertEqual([m["name"] for m in stored], ["Toast", "Jam", "Eggs"])
        await store.aclose()

    async def test_duplicate_ids_and_pending_status(self) -> None:
        rows = [
            legacy_meal("1", "Toast", syncStatus="pending"),
            legacy_meal("1", "Toast again"),
            legacy_meal("2", "Jam", syncStatus="synced", remoteId="r2"),
        ]
        backend = MemoryBackend({"loggedMeals:anon": json.dumps(rows)})
        async with MealStore(make_context(backend)) as store:
            self.assertEqual([m.name for m in store.records], ["Toast", "Jam"])
            self.assertEqual(store.get("1").sync_status, SyncStatus.unsynced)
            self.assertEqual(store.get("2").sync_status, SyncStatus.synced)
            self.assertEqual(store.get("2").remote_id, "r2")


class TestMutations(unittest.IsolatedAsyncioTestCase):
    async def test_add_stamps_identity_time_and_date(self) -> None:
        async with MealStore(make_context()) as store:
            meal = store.add_meal({"name": "Oats", "calories": 300, "id": "caller-id"})
            self.assertNotEqual(meal.id, "caller-id")
            self.assertEqual(meal.date, TODAY)
            self.assertEqual(meal.timestamp, int(NOW.timestamp() * 1000))
            self.assertEqual(meal.sync_status, SyncStatus.unsynced)

            other = store.add_meal({"name": "Oats"})
            self.assertNotEqual(meal.id, other.id)

    async def test_invalid_input_raises_without_state_change(self) -> None:
        backend = MemoryBackend()
        async with MealStore(make_context(backend)) as store:
            with self.assertRaises(InvalidRecordError) as ctx:
                store.add_meal({"name": "", "calories": -5})
            self.assertIsInstance(ctx.exception, ValueError)
            self.assertTrue(ctx.exception.errors)
            self.assertEqual(len(store), 0)
            self.assertIsNone(backend.get("loggedMeals:anon"))

    async def test_update_and_remove_missing_are_noops(self) -> None:
        async with MealStore(make_context()) as store:
            self.assertIsNone(store.update("nope", calories=1))
            self.assertIsNone(store.remove_meal("nope"))

    async def test_persist_failure_keeps_memory_state(self) -> None:
        backend = MemoryBackend(quota_bytes=16)
        async with MealStore(make_context(backend)) as store:
            with self.assertLogs("wellness.stores.engine", level="WARNING"):
                meal = store.add_meal({"name": "Oats", "calories": 300})
            self.assertEqual(store.records, [meal])
            self.assertIsNone(backend.get("loggedMeals:anon"))

    async def test_change_signals(self) -> None:
        events = EventBus()
        seen: list = []
        everything: list = []
        events.subscribe("loggedMeals", seen.append)
        unsubscribe = events.subscribe("*", everything.append)

        async with MealStore(make_context(events=events)) as store:
            meal = store.add_meal({"name": "Oats"})
            store.update(meal.id, calories=120)
            unsubscribe()
            store.remove_meal(meal.id)

        self.assertEqual([s.action for s in seen], ["add", "update", "remove"])
        self.assertEqual(seen[0].date, TODAY)
        self.assertEqual(seen[0].record_id, meal.id)
        self.assertEqual(len(everything), 2)

    async def test_failing_listener_does_not_break_mutation(self) -> None:
        events = EventBus()

        def explode(signal) -> None:
            raise RuntimeError("listener bug")

        events.subscribe("loggedMeals", explode)
        async with MealStore(make_context(events=events)) as store:
            with self.assertLogs("wellness.stores.events", level="ERROR"):
                store.add_meal({"name": "Oats"})
            self.assertEqual(len(store), 1)


class TestRemoteSync(unittest.IsolatedAsyncioTestCase):
    def _context(self, backend=None) -> StoreContext:
        return make_context(backend, token="token-a", identity=FakeIdentity({"token-a": "user-a"}))

    async def test_confirmed_create_then_remote_delete(self) -> None:
        remote = FakeRemote()
        async with MealStore(self._context(), remote=remote) as store:
            meal = store.add_meal({"name": "Oats"})
            self.assertEqual(meal.sync_status, SyncStatus.pending)
            await store.drain()

            synced = store.get(meal.id)
            self.assertEqual(synced.sync_status, SyncStatus.synced)
            self.assertEqual(synced.remote_id, "srv-1")

            store.remove_meal(meal.id)
            await store.drain()
        self.assertEqual(remote.deleted, ["srv-1"])

    async def test_remove_before_create_runs_makes_no_remote_calls(self) -> None:
        remote = FakeRemote()
        async with MealStore(self._context(), remote=remote) as store:
            meal = store.add_meal({"name": "Oats"})
            store.remove_meal(meal.id)
            await store.drain()
            self.assertEqual(len(store), 0)
        self.assertEqual(remote.created, [])
        self.assertEqual(remote.deleted, [])

    async def test_remove_while_create_in_flight_issues_no_delete(self) -> None:
        remote = FakeRemote()
        remote.gate.clear()
        async with MealStore(self._context(), remote=remote) as store:
            meal = store.add_meal({"name": "Oats"})
            await asyncio.sleep(0)
            store.remove_meal(meal.id)
            remote.gate.set()
            await store.drain()
            self.assertEqual(len(store), 0)
        self.assertEqual(len(remote.created), 1)
        self.assertEqual(remote.deleted, [])

    async def test_failed_create_marks_record_and_can_be_retried(self) -> None:
        backend = MemoryBackend()
        remote = FakeRemote(fail=True)
        async with MealStore(self._context(backend), remote=remote) as store:
            with self.assertLogs("wellness.stores.engine", level="WARNING"):
                meal = store.add_meal({"name": "Oats"})
                await store.drain()
            self.assertEqual(store.get(meal.id).sync_status, SyncStatus.failed)
            stored = json.loads(backend.get("loggedMeals:user-a"))
            self.assertEqual(stored[0]["syncStatus"], "failed")

            remote.fail = False
            self.assertEqual(store.resync_failed(), 1)
            await store.drain()
            self.assertEqual(store.get(meal.id).sync_status, SyncStatus.synced)

    async def test_completion_after_close_is_discarded(self) -> None:
        remote = FakeRemote()
        remote.gate.clear()
        store = await MealStore(self._context(), remote=remote).open()
        meal = store.add_meal({"name": "Oats"})
        await asyncio.sleep(0)

        store.close()
        remote.gate.set()
        await store.drain()

        self.assertEqual(remote.created, [meal.id])
        self.assertIsNone(store.get(meal.id).remote_id)
        self.assertFalse(store.is_open)

    async def test_no_token_means_local_only(self) -> None:
        remote = FakeRemote()
        async with MealStore(make_context(), remote=remote) as store:
            meal = store.add_meal({"name": "Oats"})
            await store.drain()
            self.assertEqual(meal.sync_status, SyncStatus.unsynced)
        self.assertEqual(remote.created, [])


if __name__ == "__main__":
    unittest.main()
