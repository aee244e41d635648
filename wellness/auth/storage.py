# -*- coding: utf-8 -*-
"""Auth — user rows.

Identity columns live on the ``users`` table; the optional onboarding fields
(age, gender, height, weight, goals, ...) are kept together as one JSON
profile document.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from ..app_db import db_conn
from ..config import settings

_USER_COLUMNS = "id, email, name, password_hash, login_method, avatar_url, profile_json, created_at, updated_at"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def normalize_email(email: str) -> str:
    return email.lower().strip()


def _user(row: Any) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    user = dict(row)
    user["profile"] = json.loads(user.pop("profile_json") or "{}")
    return user


def find_user(user_id: str) -> Optional[Dict[str, Any]]:
    with db_conn(settings.app_db_path) as conn:
        return _user(conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone())


def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (normalize_email(email),)).fetchone()
        return _user(row)


def create_user(*, email: str, password_hash: str, name: str = "", login_method: str = "email") -> Dict[str, Any]:
    user_id = uuid4().hex
    now = _utc_now()
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            "INSERT INTO users (id, email, name, password_hash, login_method, avatar_url, profile_json, created_at, updated_at)"
            " VALUES (?, ?, ?, ?, ?, '', '{}', ?, ?)",
            (user_id, normalize_email(email), name.strip(), password_hash, login_method, now, now),
        )
    return {
        "id": user_id,
        "email": normalize_email(email),
        "name": name.strip(),
        "password_hash": password_hash,
        "login_method": login_method,
        "avatar_url": "",
        "profile": {},
        "created_at": now,
        "updated_at": now,
    }


def update_user(
    user_id: str,
    *,
    name: Optional[str] = None,
    avatar_url: Optional[str] = None,
    profile: Optional[Mapping[str, Any]] = None,
) -> Optional[Dict[str, Any]]:
    """Apply a partial profile update; ``None`` leaves a field unchanged."""
    current = find_user(user_id)
    if current is None:
        return None
    merged = {**current["profile"], **dict(profile or {})}
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            "UPDATE users SET name = ?, avatar_url = ?, profile_json = ?, updated_at = ? WHERE id = ?",
            (
                current["name"] if name is None else name.strip(),
                current["avatar_url"] if avatar_url is None else avatar_url,
                json.dumps(merged, ensure_ascii=False),
                _utc_now(),
                user_id,
            ),
        )
    return find_user(user_id)
