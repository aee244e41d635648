# -*- coding: utf-8 -*-
"""Workouts — scheduled workouts, completion and weekly progress."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from . import aggregates
from .engine import ScopedStore
from .models import ScheduledWorkout, WorkoutProgress, WorkoutStats


def _completed(workouts: List[ScheduledWorkout]) -> List[ScheduledWorkout]:
    return [w for w in workouts if w.completed]


class WorkoutStore(ScopedStore[ScheduledWorkout]):
    domain = "scheduledWorkouts"
    model = ScheduledWorkout
    remote_resource = "workouts"
    stamp_date = False

    def add_scheduled_workout(self, workout: Mapping[str, Any]) -> ScheduledWorkout:
        return self.add(workout)

    def complete_workout(self, workout_id: str, calories_burned: float, actual_duration: float) -> Optional[ScheduledWorkout]:
        return self.update(
            workout_id,
            completed=True,
            calories_burned=calories_burned,
            actual_duration=actual_duration,
        )

    def delete_scheduled_workout(self, workout_id: str) -> Optional[ScheduledWorkout]:
        return self.remove(workout_id)

    def weekly_progress(self, days: int = 7) -> List[WorkoutProgress]:
        series = aggregates.daily_series(
            _completed(self._records),
            today=self.today(),
            days=days,
            reducer=lambda done: {
                "workouts": float(len(done)),
                "duration": aggregates.total(done, "actual_duration"),
                "calories": aggregates.total(done, "calories_burned"),
            },
        )
        return [
            WorkoutProgress(
                date=b.date,
                day=b.day,
                workouts=int(b.values["workouts"]),
                duration=b.values["duration"],
                calories=b.values["calories"],
            )
            for b in series
        ]

    def total_stats(self) -> WorkoutStats:
        done = _completed(self._records)
        return WorkoutStats(
            total_workouts=len(done),
            total_duration=aggregates.total(done, "actual_duration"),
            total_calories=aggregates.total(done, "calories_burned"),
        )

    def workouts_for_today(self) -> List[ScheduledWorkout]:
        return aggregates.today_only(self._records, self.today())

    def streak(self) -> int:
        return aggregates.streak(_completed(self._records), today=self.today())
