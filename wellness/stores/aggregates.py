# -*- coding: utf-8 -*-
"""Client stores — pure aggregation queries over record collections.

Nothing here mutates its input or performs I/O. Day boundaries are local
midnight; a record's day comes from its ``date`` field when present, otherwise
from its ``timestamp``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Sequence, TypeVar

from .models import LeaderboardUser, Record

R = TypeVar("R", bound=Record)

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

MS_PER_DAY = 24 * 60 * 60 * 1000


@dataclass
class DayBucket:
    date: str
    day: str
    values: Dict[str, float] = field(default_factory=dict)


def parse_day(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def record_day(record: Record) -> date:
    if record.date:
        return parse_day(record.date)
    return datetime.fromtimestamp(record.timestamp / 1000).date()


def weekday_label(day: date) -> str:
    return WEEKDAY_LABELS[day.weekday()]


def on_day(records: Iterable[R], day: date) -> List[R]:
    return [r for r in records if record_day(r) == day]


def today_only(records: Iterable[R], today: date) -> List[R]:
    return on_day(records, today)


def in_window(records: Iterable[R], start: date, days: int) -> List[R]:
    """Records dated within ``[start, start + days - 1]`` inclusive."""
    end = start + timedelta(days=max(days, 1) - 1)
    return [r for r in records if start <= record_day(r) <= end]


def in_month(records: Iterable[R], year: int, month: int) -> List[R]:
    """``month`` is 1-based."""
    out: List[R] = []
    for r in records:
        d = record_day(r)
        if d.year == year and d.month == month:
            out.append(r)
    return out


def since(records: Iterable[R], cutoff_ms: int) -> List[R]:
    return [r for r in records if r.timestamp >= cutoff_ms]


def _num(record: Any, name: str) -> float:
    value = getattr(record, name, None)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def total(records: Iterable[Record], name: str) -> float:
    return sum(_num(r, name) for r in records)


def totals(records: Iterable[Record], names: Sequence[str]) -> Dict[str, float]:
    items = list(records)
    return {name: total(items, name) for name in names}


def average(values: Iterable[float]) -> float:
    items = [float(v) for v in values]
    if not items:
        return 0.0
    return round(sum(items) / len(items), 1)


def daily_series(
    records: Iterable[R],
    *,
    today: date,
    days: int = 7,
    reducer: Callable[[List[R]], Dict[str, float]],
) -> List[DayBucket]:
    """One bucket per day of the trailing ``days`` window ending today, oldest first.

    ``reducer`` receives the (possibly empty) records of one day; empty days are
    still emitted so the series length always equals ``days``.
    """
    per_day: Dict[date, List[R]] = {}
    for r in records:
        per_day.setdefault(record_day(r), []).append(r)

    series: List[DayBucket] = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        series.append(
            DayBucket(
                date=day.isoformat(),
                day=weekday_label(day),
                values=reducer(per_day.get(day, [])),
            )
        )
    return series


def streak(records: Iterable[Record], *, today: date) -> int:
    """Consecutive days with at least one record, counting back from today."""
    days = sorted({record_day(r) for r in records}, reverse=True)
    count = 0
    for day in days:
        diff = (today - day).days
        if diff < 0:
            # Future-dated (e.g. scheduled) records never extend a streak.
            continue
        if diff == count:
            count += 1
        elif diff > count:
            break
    return count


def rerank(
    participants: Sequence[LeaderboardUser],
    name: str,
    points: int,
) -> List[LeaderboardUser]:
    """Set ``name``'s points, re-sort descending (stable) and reassign 1-based ranks."""
    updated: List[LeaderboardUser] = []
    found = False
    for user in participants:
        if user.name == name:
            updated.append(user.model_copy(update={"points": points}))
            found = True
        else:
            updated.append(user)
    if not found:
        raise KeyError(name)

    ordered = sorted(updated, key=lambda u: u.points, reverse=True)
    return [u.model_copy(update={"rank": i + 1}) for i, u in enumerate(ordered)]
