# -*- coding: utf-8 -*-
"""Water intake — one entry per day holding a glass count."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional, Union

from . import aggregates
from .engine import ScopedStore
from .models import WaterEntry

DayLike = Union[str, date, None]


class WaterStore(ScopedStore[WaterEntry]):
    domain = "water"
    legacy_key = "waterEntries"
    model = WaterEntry

    def _target(self, day: DayLike) -> str:
        if day is None:
            return self.today().isoformat()
        if isinstance(day, date):
            return day.isoformat()
        return day

    def _entry(self, day: str) -> Optional[WaterEntry]:
        return self.find(lambda e: e.date == day)

    def add_glass(self, day: DayLike = None) -> int:
        target = self._target(day)
        entry = self._entry(target)
        if entry is None:
            return self.add(date=target, glasses=1).glasses
        updated = self.update(entry.id, glasses=entry.glasses + 1, timestamp=self.now_ms())
        return updated.glasses if updated else 0

    def remove_glass(self, day: DayLike = None) -> int:
        target = self._target(day)
        entry = self._entry(target)
        if entry is None or entry.glasses <= 0:
            return 0
        updated = self.update(entry.id, glasses=entry.glasses - 1, timestamp=self.now_ms())
        return updated.glasses if updated else 0

    def set_glasses(self, glasses: int, day: DayLike = None) -> int:
        target = self._target(day)
        entry = self._entry(target)
        if entry is None:
            return self.add(date=target, glasses=glasses).glasses
        updated = self.update(entry.id, glasses=glasses, timestamp=self.now_ms())
        return updated.glasses if updated else 0

    def glasses_for_date(self, day: DayLike) -> int:
        entry = self._entry(self._target(day))
        return entry.glasses if entry else 0

    def glasses_today(self) -> int:
        return self.glasses_for_date(None)

    def weekly_average(self) -> float:
        """Glasses per day over the trailing 7 days; 0 when nothing was logged."""
        start = self.today() - timedelta(days=6)
        week = aggregates.in_window(self._records, start, 7)
        if not week:
            return 0.0
        return round(aggregates.total(week, "glasses") / 7, 1)
