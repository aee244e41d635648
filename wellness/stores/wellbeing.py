# -*- coding: utf-8 -*-
"""Mental wellbeing — meditation sessions and therapy appointments."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from . import aggregates
from .engine import ScopedStore
from .models import MeditationSession, MeditationStats, TherapySession


class MeditationStore(ScopedStore[MeditationSession]):
    domain = "meditationSessions"
    model = MeditationSession
    remote_resource = "meditation"

    def add_session(self, session: Mapping[str, Any]) -> MeditationSession:
        return self.add(session)

    def streak(self) -> int:
        return aggregates.streak(self._records, today=self.today())

    def total_minutes(self) -> float:
        return aggregates.total(self._records, "duration")

    def stats(self) -> MeditationStats:
        sessions = len(self._records)
        total_time = self.total_minutes()
        avg = f"{total_time / sessions:.2f}" if sessions else "0.00"
        return MeditationStats(
            days_streak=self.streak(),
            total_time=total_time,
            sessions=sessions,
            avg_session=avg,
        )


class TherapyStore(ScopedStore[TherapySession]):
    domain = "therapySessions"
    model = TherapySession
    stamp_date = False

    def add_session(self, session: Mapping[str, Any]) -> TherapySession:
        return self.add(session)

    def complete_session(self, session_id: str, notes: str) -> Optional[TherapySession]:
        return self.update(session_id, completed=True, notes=notes)

    def delete_session(self, session_id: str) -> Optional[TherapySession]:
        return self.remove(session_id)

    def sessions_this_month(self) -> int:
        today = self.today()
        return len(aggregates.in_month(self._records, today.year, today.month))
