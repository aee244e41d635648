# -*- coding: utf-8 -*-
"""Records — owner-scoped SQLite storage of per-domain JSON payloads."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..app_db import db_conn
from ..config import settings
from .models import AnalyticsDay


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def record_day(payload: Dict[str, Any]) -> str:
    """Explicit ``date`` wins, then the local day of ``timestamp``, then today."""
    day = payload.get("date")
    if day:
        return str(day)
    ts = payload.get("timestamp")
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        return datetime.fromtimestamp(ts / 1000).date().isoformat()
    return date.today().isoformat()


def _row_to_record(row: Any) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "resource": row["resource"],
        "date": row["day"],
        "created_at": row["created_at"],
        "payload": json.loads(row["payload_json"]),
    }


def create_record(*, user_id: str, resource: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    record_id = str(uuid4())
    now = _utc_now()
    day = record_day(payload)
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            """
            INSERT INTO records (id, user_id, resource, day, payload_json, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (record_id, user_id, resource, day, json.dumps(payload, ensure_ascii=False), now),
        )
    return {"id": record_id, "resource": resource, "date": day, "created_at": now, "payload": payload}


def list_records(*, user_id: str, resource: str, day: Optional[str] = None) -> List[Dict[str, Any]]:
    with db_conn(settings.app_db_path) as conn:
        sql = "SELECT * FROM records WHERE user_id = ? AND resource = ?"
        params: list[Any] = [user_id, resource]
        if day:
            sql += " AND day = ?"
            params.append(day)
        sql += " ORDER BY created_at ASC"
        rows = conn.execute(sql, tuple(params)).fetchall()
        return [_row_to_record(r) for r in rows]


def delete_record(*, user_id: str, resource: str, record_id: str) -> bool:
    with db_conn(settings.app_db_path) as conn:
        cur = conn.execute(
            "DELETE FROM records WHERE id = ? AND user_id = ? AND resource = ?",
            (record_id, user_id, resource),
        )
        return cur.rowcount > 0


def _numeric_fields(payload: Dict[str, Any]) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for key, value in payload.items():
        if key == "timestamp" or isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            out[key] = float(value)
    return out


def analytics(*, user_id: str, resource: str, days: int, today: Optional[date] = None) -> List[AnalyticsDay]:
    """Per-day count and numeric field sums over the trailing ``days``, oldest first."""
    end = today or date.today()
    start = end - timedelta(days=days - 1)
    buckets = {
        (start + timedelta(days=i)).isoformat(): AnalyticsDay(date=(start + timedelta(days=i)).isoformat())
        for i in range(days)
    }
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            "SELECT day, payload_json FROM records WHERE user_id = ? AND resource = ? AND day BETWEEN ? AND ?",
            (user_id, resource, start.isoformat(), end.isoformat()),
        ).fetchall()
    for row in rows:
        bucket = buckets.get(row["day"])
        if bucket is None:
            continue
        bucket.count += 1
        for key, value in _numeric_fields(json.loads(row["payload_json"])).items():
            bucket.totals[key] = round(bucket.totals.get(key, 0.0) + value, 2)
    return list(buckets.values())
