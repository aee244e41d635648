# -*- coding: utf-8 -*-
"""Client stores — remote sync service (create/delete against the REST API)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from ..config import settings
from ..errors import RemoteSyncError
from .models import Record

logger = logging.getLogger(__name__)

# Local bookkeeping that never leaves the device.
_LOCAL_FIELDS = {"id", "remote_id", "sync_status"}


class RemoteSync(Protocol):
    async def create(self, record: Record, token: str) -> str: ...

    async def delete(self, remote_id: str, token: str) -> None: ...


def record_payload(record: Record) -> Dict[str, Any]:
    return record.model_dump(by_alias=True, mode="json", exclude=_LOCAL_FIELDS)


def _extract_remote_id(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    for name in ("id", "_id", "remoteId"):
        value = data.get(name)
        if value:
            return str(value)
    nested = data.get("record") or data.get("data")
    if isinstance(nested, dict):
        return _extract_remote_id(nested)
    return None


class HttpRemoteSync:
    """``POST /api/<resource>`` and ``DELETE /api/<resource>/<remote_id>``."""

    def __init__(
        self,
        resource: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.resource = resource.strip("/")
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.remote_timeout
        self.transport = transport

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, "api", self.resource, *parts])

    async def create(self, record: Record, token: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    self._url(),
                    json=record_payload(record),
                    headers={"Authorization": f"Bearer {token}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RemoteSyncError(f"create {self.resource} failed: {exc}") from exc
        remote_id = _extract_remote_id(data)
        if not remote_id:
            raise RemoteSyncError(f"create {self.resource} returned no id")
        return remote_id

    async def delete(self, remote_id: str, token: str) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.delete(
                    self._url(remote_id),
                    headers={"Authorization": f"Bearer {token}"},
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteSyncError(f"delete {self.resource}/{remote_id} failed: {exc}") from exc
