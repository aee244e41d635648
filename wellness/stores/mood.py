# -*- coding: utf-8 -*-
"""Mood — daily mood / stress / energy check-ins."""

from __future__ import annotations

from typing import Any, List, Mapping

from . import aggregates
from .aggregates import MS_PER_DAY
from .engine import ScopedStore
from .models import MoodEntry, MoodTrend


def _mean(entries: List[MoodEntry], name: str) -> float:
    if not entries:
        return 0.0
    return round(aggregates.total(entries, name) / len(entries), 1)


class MoodStore(ScopedStore[MoodEntry]):
    domain = "moodEntries"
    model = MoodEntry
    remote_resource = "mood"

    def add_mood_entry(self, entry: Mapping[str, Any]) -> MoodEntry:
        return self.add(entry)

    def average_mood(self) -> float:
        return aggregates.average(e.mood for e in self._records)

    def recent_entries(self, days: int) -> List[MoodEntry]:
        cutoff = self.now_ms() - days * MS_PER_DAY
        entries = aggregates.since(self._records, cutoff)
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    def mood_trends(self, days: int = 7) -> List[MoodTrend]:
        series = aggregates.daily_series(
            self._records,
            today=self.today(),
            days=days,
            reducer=lambda entries: {
                "mood": _mean(entries, "mood"),
                "stress": _mean(entries, "stress_level"),
                "energy": _mean(entries, "energy_level"),
            },
        )
        return [MoodTrend(date=b.date, day=b.day, **b.values) for b in series]
