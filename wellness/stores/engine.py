# -*- coding: utf-8 -*-
"""Client stores — the scoped derived-state store engine.

A ``ScopedStore`` owns one category of user records. On ``open()`` it resolves
which persistence partition belongs to the current identity, migrates the
legacy unpartitioned key once, and hydrates. Mutations are applied in memory
immediately, written through to the partition, announced on the event bus and,
when a session token is present, forwarded to the remote service in the
background. Read-only aggregates live in ``aggregates``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import (
    Any,
    Callable,
    ClassVar,
    Coroutine,
    Dict,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Set,
    Type,
    TypeVar,
)
from uuid import uuid4

from pydantic import ValidationError

from ..errors import InvalidRecordError
from .backends import JsonFileBackend, KeyValueBackend
from .events import ChangeSignal, EventBus
from .identity import BackendTokenSource, HttpIdentityClient, IdentityClient, StaticTokenSource, TokenSource
from .models import Record, SyncStatus
from .remote import HttpRemoteSync, RemoteSync

logger = logging.getLogger(__name__)

ANON = "anon"

R = TypeVar("R", bound=Record)

# Fields a caller may never set directly on add().
_RESERVED = ("id", "remote_id", "remoteId", "sync_status", "syncStatus")


@dataclass
class StoreContext:
    """Collaborators shared by every store of one client session."""

    backend: KeyValueBackend
    tokens: TokenSource = field(default_factory=StaticTokenSource)
    identity: Optional[IdentityClient] = None
    events: Optional[EventBus] = None
    clock: Callable[[], datetime] = datetime.now
    remote_factory: Optional[Callable[[str], RemoteSync]] = None

    @classmethod
    def default(cls, backend: KeyValueBackend | None = None) -> "StoreContext":
        """File-backed context talking to ``settings.api_base_url``."""
        backend = backend or JsonFileBackend()
        return cls(
            backend=backend,
            tokens=BackendTokenSource(backend),
            identity=HttpIdentityClient(),
            events=EventBus(),
            remote_factory=lambda resource: HttpRemoteSync(resource),
        )


def partition_key(domain: str, suffix: str) -> str:
    return f"{domain}:{suffix}"


class ScopedStore(Generic[R]):
    domain: ClassVar[str] = ""
    model: ClassVar[Type[Record]] = Record
    # Pre-partitioning key; defaults to the bare domain name.
    legacy_key: ClassVar[Optional[str]] = None
    # REST resource used for remote sync; None disables sync for the domain.
    remote_resource: ClassVar[Optional[str]] = None
    # Stores whose records carry a caller-chosen (scheduled) date turn this off.
    stamp_date: ClassVar[bool] = True

    def __init__(self, context: StoreContext, *, remote: RemoteSync | None = None) -> None:
        if not self.domain:
            raise TypeError(f"{type(self).__name__} must define a domain")
        self.context = context
        if remote is None and self.remote_resource and context.remote_factory is not None:
            remote = context.remote_factory(self.remote_resource)
        self.remote = remote

        self._records: List[R] = []
        self._partition_key: Optional[str] = None
        self._alive = False
        self._generation = 0
        self._tasks: Set[asyncio.Task[Any]] = set()

    # ---------- lifecycle ----------

    async def open(self) -> "ScopedStore[R]":
        self._alive = True
        await self.rebind()
        return self

    async def rebind(self) -> Optional[str]:
        """Re-resolve the identity; on a new partition key, re-hydrate wholesale."""
        self._generation += 1
        generation = self._generation
        key = await self.resolve_partition()
        if not self._alive or generation != self._generation:
            logger.debug("%s: discarding partition %s resolved after teardown", self.domain, key)
            return None
        self.migrate_legacy(key)
        if key != self._partition_key:
            self._partition_key = key
            self.hydrate()
        return key

    def close(self) -> None:
        self._alive = False

    async def aclose(self) -> None:
        self.close()
        await self.drain()

    async def __aenter__(self) -> "ScopedStore[R]":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def drain(self) -> None:
        """Wait for in-flight remote sync calls."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def is_open(self) -> bool:
        return self._alive

    @property
    def partition_key(self) -> Optional[str]:
        return self._partition_key

    # ---------- partition resolution ----------

    def _token(self) -> Optional[str]:
        try:
            return self.context.tokens()
        except Exception as exc:
            logger.debug("%s: token source failed: %s", self.domain, exc)
            return None

    async def resolve_partition(self) -> str:
        token = self._token()
        if not token or self.context.identity is None:
            return partition_key(self.domain, ANON)
        try:
            identity = await self.context.identity.whoami(token)
        except Exception as exc:
            logger.debug("%s: identity lookup failed, using anonymous partition: %s", self.domain, exc)
            identity = None
        if identity is None:
            return partition_key(self.domain, ANON)
        return partition_key(self.domain, identity.user_id)

    def migrate_legacy(self, key: str) -> bool:
        legacy = self.legacy_key or self.domain
        if legacy == key:
            return False
        backend = self.context.backend
        try:
            value = backend.get(legacy)
            if not value or backend.get(key):
                return False
            backend.set(key, value)
        except Exception as exc:
            logger.warning("%s: legacy migration %s -> %s failed: %s", self.domain, legacy, key, exc)
            return False
        logger.info("%s: migrated legacy key %s -> %s", self.domain, legacy, key)
        return True

    # ---------- hydration / persistence ----------

    def hydrate(self) -> None:
        key = self._require_key()
        try:
            raw = self.context.backend.get(key)
        except Exception as exc:
            logger.warning("%s: reading %s failed: %s", self.domain, key, exc)
            raw = None
        self._records = self._decode(key, raw)

    def _decode(self, key: str, raw: Optional[str]) -> List[R]:
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("%s: stored value at %s is not valid JSON; starting empty", self.domain, key)
            return []
        if not isinstance(data, list):
            logger.warning("%s: stored value at %s is not a list; starting empty", self.domain, key)
            return []
        records: List[R] = []
        seen: Set[str] = set()
        for index, item in enumerate(data):
            if isinstance(item, dict) and not item.get("id"):
                # Legacy rows (e.g. joined challenges) were written without an id.
                item = {**item, "id": f"legacy-{index}"}
            try:
                record = self.model.model_validate(item)
            except ValidationError as exc:
                logger.warning(
                    "%s: dropping stored record %d at %s (%d error(s))",
                    self.domain, index, key, exc.error_count(),
                )
                continue
            if record.id in seen:
                continue
            seen.add(record.id)
            if record.sync_status == SyncStatus.pending:
                # The app went away mid-sync; outcome unknown.
                record = record.model_copy(update={"sync_status": SyncStatus.unsynced})
            records.append(record)  # type: ignore[arg-type]
        return records

    def persist(self) -> None:
        key = self._partition_key
        if key is None:
            return
        payload = json.dumps(
            [r.model_dump(by_alias=True, mode="json") for r in self._records],
            ensure_ascii=False,
        )
        try:
            self.context.backend.set(key, payload)
        except Exception as exc:
            logger.warning("%s: persisting %s failed, keeping in-memory state: %s", self.domain, key, exc)

    # ---------- reads ----------

    @property
    def records(self) -> List[R]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[R]:
        return iter(list(self._records))

    def get(self, record_id: str) -> Optional[R]:
        idx = self._index(record_id)
        return self._records[idx] if idx is not None else None

    def find(self, predicate: Callable[[R], bool]) -> Optional[R]:
        for record in self._records:
            if predicate(record):
                return record
        return None

    def now(self) -> datetime:
        return self.context.clock()

    def today(self) -> date:
        return self.now().date()

    def now_ms(self) -> int:
        return int(self.now().timestamp() * 1000)

    # ---------- mutations ----------

    def new_id(self) -> str:
        while True:
            candidate = f"{self.now_ms()}{uuid4().hex[:9]}"
            if self._index(candidate) is None:
                return candidate

    def add(self, fields: Mapping[str, Any] | None = None, **extra: Any) -> R:
        self._require_key()
        payload: Dict[str, Any] = dict(fields or {})
        payload.update(extra)
        for name in _RESERVED:
            payload.pop(name, None)
        payload.setdefault("timestamp", self.now_ms())
        if self.stamp_date and not payload.get("date"):
            payload["date"] = self.today().isoformat()
        payload["id"] = self.new_id()

        token = self._sync_token()
        payload["sync_status"] = SyncStatus.pending if token else SyncStatus.unsynced
        record = self._validate(payload)

        self._records.append(record)
        self._changed("add", record)
        if token:
            self._spawn(self._create_remote(record.id, token))
        return record

    def update(self, record_id: str, **patch: Any) -> Optional[R]:
        idx = self._index(record_id)
        if idx is None:
            return None
        for name in _RESERVED:
            patch.pop(name, None)
        merged = self._records[idx].model_dump()
        merged.update(patch)
        record = self._validate(merged)
        self._records[idx] = record
        self._changed("update", record)
        return record

    def remove(self, record_id: str) -> Optional[R]:
        idx = self._index(record_id)
        if idx is None:
            return None
        record = self._records.pop(idx)
        self._changed("remove", record)
        if record.remote_id and self.remote is not None:
            token = self._token()
            if token:
                self._spawn(self._delete_remote(record.remote_id, token))
        return record

    def clear(self) -> None:
        self._records = []
        self.persist()
        self._publish("clear", None)

    def resync_failed(self) -> int:
        """Re-attempt remote creates for records that never got a remote id."""
        token = self._sync_token()
        if not token:
            return 0
        count = 0
        for record in list(self._records):
            if record.remote_id or record.sync_status == SyncStatus.pending:
                continue
            self._patch_sync(record.id, status=SyncStatus.pending)
            self._spawn(self._create_remote(record.id, token))
            count += 1
        return count

    # ---------- internals ----------

    def _require_key(self) -> str:
        if self._partition_key is None:
            raise RuntimeError(f"{self.domain} store used before open()")
        return self._partition_key

    def _index(self, record_id: str) -> Optional[int]:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        return None

    def _validate(self, payload: Mapping[str, Any]) -> R:
        try:
            return self.model.model_validate(payload)  # type: ignore[return-value]
        except ValidationError as exc:
            raise InvalidRecordError(
                f"invalid {self.domain} record: {exc.error_count()} error(s)",
                exc.errors(include_url=False),
            ) from exc

    def _changed(self, action: str, record: Record) -> None:
        self.persist()
        self._publish(action, record)

    def _publish(self, action: str, record: Optional[Record]) -> None:
        if self.context.events is None:
            return
        signal = ChangeSignal(
            domain=self.domain,
            action=action,
            date=record.date if record is not None else None,
            record_id=record.id if record is not None else None,
        )
        self.context.events.publish(signal)

    def _sync_token(self) -> Optional[str]:
        if self.remote is None:
            return None
        token = self._token()
        if not token:
            return None
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("%s: no running event loop; record stays local-only", self.domain)
            return None
        return token

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _patch_sync(self, record_id: str, **changes: Any) -> Optional[R]:
        idx = self._index(record_id)
        if idx is None:
            return None
        update: Dict[str, Any] = {}
        if "remote_id" in changes:
            update["remote_id"] = changes["remote_id"]
        if "status" in changes:
            update["sync_status"] = changes["status"]
        record = self._records[idx].model_copy(update=update)
        self._records[idx] = record
        self.persist()
        return record

    async def _create_remote(self, record_id: str, token: str) -> None:
        key = self._partition_key
        record = self.get(record_id)
        if record is None or self.remote is None:
            return
        try:
            remote_id = await self.remote.create(record, token)
        except Exception as exc:
            logger.warning("%s: remote create of %s failed: %s", self.domain, record_id, exc)
            if self._alive and key == self._partition_key:
                self._patch_sync(record_id, status=SyncStatus.failed)
            return
        if not self._alive or key != self._partition_key:
            logger.debug("%s: discarding remote id for %s (store closed or rebound)", self.domain, record_id)
            return
        if self._patch_sync(record_id, remote_id=remote_id, status=SyncStatus.synced) is None:
            logger.info("%s: %s removed before remote create finished; remote %s left behind", self.domain, record_id, remote_id)

    async def _delete_remote(self, remote_id: str, token: str) -> None:
        if self.remote is None:
            return
        try:
            await self.remote.delete(remote_id, token)
        except Exception as exc:
            logger.warning("%s: remote delete of %s failed: %s", self.domain, remote_id, exc)
