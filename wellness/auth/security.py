# -*- coding: utf-8 -*-
"""Auth — password hashing, signed session tokens and request helpers.

Session tokens are HS256 JWTs whose only identity claim is ``id`` (the user
id). Their lifetime comes from ``settings.jwt_expires_in``, written the way
the browser client's server configured it: ``"1d"``, ``"12h"``, ``"30m"``,
``"45s"``, ``"2w"`` or a bare number of seconds.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request

from ..config import settings
from .storage import find_user

TOKEN_COOKIE_NAME = "wellness_token"

_HASH_ALG = "sha256"
_HASH_ROUNDS = 200_000

_DURATION_UNITS = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60, "w": 7 * 24 * 60 * 60}


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _unb64(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def expires_in_seconds(value: str) -> int:
    text = (value or "").strip().lower()
    if text.isdigit():
        return int(text)
    unit = _DURATION_UNITS.get(text[-1:])
    if unit is None or not text[:-1].isdigit():
        raise ValueError(f"unsupported token lifetime {value!r}")
    return int(text[:-1]) * unit


# ---------- passwords ----------


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac(_HASH_ALG, password.encode("utf-8"), salt, _HASH_ROUNDS)
    return "$".join((f"pbkdf2_{_HASH_ALG}", str(_HASH_ROUNDS), _b64(salt), _b64(digest)))


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    parts = password_hash.split("$")
    if len(parts) != 4 or not parts[0].startswith("pbkdf2_"):
        return False
    scheme, rounds, salt, digest = parts
    try:
        actual = hashlib.pbkdf2_hmac(scheme[len("pbkdf2_"):], password.encode("utf-8"), _unb64(salt), int(rounds))
        return hmac.compare_digest(actual, _unb64(digest))
    except (ValueError, TypeError):
        return False


# ---------- tokens ----------


def _segment(obj: Dict[str, Any]) -> str:
    return _b64(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


_HEADER = _segment({"alg": "HS256", "typ": "JWT"})


def _signature(signing_input: str) -> str:
    mac = hmac.new(settings.jwt_secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256)
    return _b64(mac.digest())


def issue_token(user_id: str) -> str:
    issued = int(time.time())
    claims = {"id": user_id, "iat": issued, "exp": issued + expires_in_seconds(settings.jwt_expires_in)}
    body = f"{_HEADER}.{_segment(claims)}"
    return f"{body}.{_signature(body)}"


def read_token(token: str) -> Dict[str, Any]:
    """Verified claims of ``token``; 401 when it is forged, malformed or expired."""
    body, _, sig = token.rpartition(".")
    try:
        if body.count(".") != 1 or not hmac.compare_digest(sig, _signature(body)):
            raise ValueError("bad signature")
        claims = json.loads(_unb64(body.split(".", 1)[1]))
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc
    if not isinstance(claims, dict) or not claims.get("id"):
        raise HTTPException(status_code=401, detail="Invalid token")
    exp = claims.get("exp")
    if not isinstance(exp, int):
        raise HTTPException(status_code=401, detail="Invalid token")
    if exp < int(time.time()):
        raise HTTPException(status_code=401, detail="Token expired")
    return claims


# ---------- requests ----------


def token_from_request(request: Request) -> Optional[str]:
    scheme, _, credentials = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(TOKEN_COOKIE_NAME) or None


def authenticate(request: Request) -> Dict[str, Any]:
    # The auth gate middleware caches the user on request.state.
    cached = getattr(request.state, "user", None)
    if cached:
        return cached

    token = token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = find_user(str(read_token(token)["id"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    request.state.user = user
    return user


def current_user(user: Dict[str, Any] = Depends(authenticate)) -> Dict[str, Any]:
    return user
