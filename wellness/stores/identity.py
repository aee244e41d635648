# -*- coding: utf-8 -*-
"""Client stores — session token sources and the "who am I" collaborator."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx
from pydantic import BaseModel, Field

from ..config import settings
from .backends import KeyValueBackend

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"

# The auth service has returned the user id under each of these names over time.
_ID_FIELDS = ("_id", "id", "userId", "user_id")


class UserIdentity(BaseModel):
    user_id: str = Field(..., min_length=1)


class TokenSource(Protocol):
    def __call__(self) -> Optional[str]: ...


class StaticTokenSource:
    """Holds the session token in memory; ``set``/``clear`` on login/logout."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token

    def __call__(self) -> Optional[str]:
        return self._token or None

    def set(self, token: Optional[str]) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class BackendTokenSource:
    """Reads the session token from the persistence backend (``token`` key)."""

    def __init__(self, backend: KeyValueBackend, key: str = TOKEN_KEY) -> None:
        self.backend = backend
        self.key = key

    def __call__(self) -> Optional[str]:
        try:
            token = self.backend.get(self.key)
        except Exception as exc:
            logger.debug("token lookup failed: %s", exc)
            return None
        token = (token or "").strip()
        return token or None


class IdentityClient(Protocol):
    async def whoami(self, token: str) -> Optional[UserIdentity]: ...


def normalize_user(payload: Any) -> Optional[UserIdentity]:
    """Extract a canonical user id from ``{"user": {...}}`` or a bare user object."""
    if not isinstance(payload, dict):
        return None
    user = payload.get("user")
    if not isinstance(user, dict):
        user = payload
    for name in _ID_FIELDS:
        value = user.get(name)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return UserIdentity(user_id=value)
    return None


class HttpIdentityClient:
    """Resolves a token against ``GET /api/auth/me``.

    Never raises: an invalid token, a network error or an unexpected payload all
    mean "no identity".
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.remote_timeout
        self.transport = transport

    async def whoami(self, token: str) -> Optional[UserIdentity]:
        url = f"{self.base_url}/api/auth/me"
        headers: Dict[str, str] = {"Authorization": f"Bearer {token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("identity lookup failed: %s", exc)
            return None
        identity = normalize_user(data)
        if identity is None:
            logger.debug("identity payload had no user id: %r", data)
        return identity
