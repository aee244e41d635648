# -*- coding: utf-8 -*-

from __future__ import annotations

import os
import shutil
import sys
import tempfile
import unittest
from datetime import date
from pathlib import Path
from uuid import uuid4

import httpx

BASE_URL = "http://wellness.test"


class TestStoreServerSync(unittest.IsolatedAsyncioTestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._tmp = Path(tempfile.mkdtemp(prefix="wellness-sync-test-"))
        data_root = cls._tmp / "data"
        os.environ["WELLNESS_DATA_ROOT"] = str(data_root)
        os.environ["WELLNESS_DB_PATH"] = str(data_root / "wellness.db")
        os.environ["WELLNESS_JWT_SECRET"] = "sync-secret"

        for name in list(sys.modules.keys()):
            if name.startswith("wellness."):
                sys.modules.pop(name, None)

        from wellness.api import app  # noqa: WPS433 (import inside test for env control)

        cls.app = app

    @classmethod
    def tearDownClass(cls) -> None:
        shutil.rmtree(cls._tmp, ignore_errors=True)

    async def asyncSetUp(self) -> None:
        from wellness import stores  # noqa: WPS433

        self.stores = stores
        self.transport = httpx.ASGITransport(app=self.app)
        self.api = httpx.AsyncClient(transport=self.transport, base_url=BASE_URL)
        resp = await self.api.post(
            "/api/auth/register",
            json={"email": f"sync-{uuid4().hex[:8]}@example.com", "password": "password123", "name": "Sync"},
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        body = resp.json()
        self.token = body["token"]
        self.user_id = body["user"]["id"]

    async def asyncTearDown(self) -> None:
        await self.api.aclose()

    def _context(self, backend):
        s = self.stores
        return s.StoreContext(
            backend=backend,
            tokens=s.BackendTokenSource(backend),
            identity=s.HttpIdentityClient(BASE_URL, transport=self.transport),
            events=s.EventBus(),
            remote_factory=lambda resource: s.HttpRemoteSync(resource, base_url=BASE_URL, transport=self.transport),
        )

    async def _server_items(self, resource: str, day: str) -> list:
        resp = await self.api.get(
            f"/api/{resource}",
            params={"date": day},
            headers={"Authorization": f"Bearer {self.token}"},
        )
        self.assertEqual(resp.status_code, 200)
        return resp.json()["items"]

    async def test_meal_round_trip(self) -> None:
        backend = self.stores.MemoryBackend({"token": self.token})
        today = date.today().isoformat()

        async with self.stores.MealStore(self._context(backend)) as store:
            self.assertEqual(store.partition_key, f"loggedMeals:{self.user_id}")

            meal = store.add_meal({"name": "Oats", "calories": 300, "meal_type": "breakfast"})
            await store.drain()
            synced = store.get(meal.id)
            self.assertEqual(synced.sync_status, self.stores.SyncStatus.synced)

            items = await self._server_items("meals", today)
            self.assertEqual([i["id"] for i in items], [synced.remote_id])
            self.assertEqual(items[0]["payload"]["name"], "Oats")
            self.assertEqual(items[0]["payload"]["mealType"], "breakfast")
            self.assertNotIn("syncStatus", items[0]["payload"])

            store.remove_meal(meal.id)
            await store.drain()
            self.assertEqual(await self._server_items("meals", today), [])

    async def test_logout_moves_store_to_anonymous_partition(self) -> None:
        backend = self.stores.MemoryBackend({"token": self.token})
        async with self.stores.JournalStore(self._context(backend)) as store:
            store.add_journal_entry({"content": "signed in"})
            await store.drain()

            backend.delete("token")
            await store.rebind()
            self.assertEqual(store.partition_key, "journalEntries:anon")
            self.assertEqual(len(store), 0)

            entry = store.add_journal_entry({"content": "signed out"})
            self.assertEqual(entry.sync_status, self.stores.SyncStatus.unsynced)

        self.assertIsNotNone(backend.get(f"journalEntries:{self.user_id}"))

    async def test_invalid_token_resolves_to_anonymous(self) -> None:
        backend = self.stores.MemoryBackend({"token": "expired.or.bogus"})
        async with self.stores.MoodStore(self._context(backend)) as store:
            self.assertEqual(store.partition_key, "moodEntries:anon")


class TestHttpCollaborators(unittest.IsolatedAsyncioTestCase):
    async def test_identity_payload_shapes(self) -> None:
        from wellness.stores.identity import normalize_user  # noqa: WPS433

        self.assertEqual(normalize_user({"user": {"_id": "abc"}}).user_id, "abc")
        self.assertEqual(normalize_user({"userId": 42}).user_id, "42")
        self.assertIsNone(normalize_user({"user": {"name": "x"}}))
        self.assertIsNone(normalize_user(["not", "a", "dict"]))

    async def test_remote_create_and_failure(self) -> None:
        from wellness.errors import RemoteSyncError  # noqa: WPS433
        from wellness.stores.models import WaterEntry  # noqa: WPS433
        from wellness.stores.remote import HttpRemoteSync  # noqa: WPS433

        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = request.read()
            if request.method == "POST":
                return httpx.Response(201, json={"record": {"_id": "srv-9"}})
            return httpx.Response(500)

        remote = HttpRemoteSync("water", base_url=BASE_URL, transport=httpx.MockTransport(handler))
        record = WaterEntry(id="local-1", timestamp=1, date="2024-03-15", glasses=3)
        self.assertEqual(await remote.create(record, "t"), "srv-9")
        self.assertEqual(seen["path"], "/api/water")
        self.assertNotIn(b"local-1", seen["body"])

        with self.assertRaises(RemoteSyncError):
            await remote.delete("srv-9", "t")


if __name__ == "__main__":
    unittest.main()
