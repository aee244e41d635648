# -*- coding: utf-8 -*-
"""Points & challenges — the gamification layer.

Totals, badge and streak are derived from the activity ledger rather than kept
as separate counters, so they can never drift from the recorded activities.
Counts from other domains (workouts, meals, ...) are passed in by the caller;
this store never reads another store's records.
"""

from __future__ import annotations

import math
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

from . import aggregates
from .engine import ScopedStore, StoreContext
from .models import Challenge, PointsActivity, UserChallenge

POINTS_CONFIG: Dict[str, int] = {
    "WORKOUT_COMPLETED": 10,
    "MEDITATION_SESSION": 5,
    "MOOD_ENTRY": 3,
    "MEAL_LOGGED": 2,
    "WATER_GLASS": 1,
    "POST_CREATED": 5,
    "COMMENT_ADDED": 2,
    "POST_LIKED": 1,
    "DAILY_STREAK": 5,
    "CHALLENGE_JOINED": 5,
    "CHALLENGE_COMPLETED": 0,  # the challenge's own reward is used instead
}

# Highest threshold first.
BADGE_TIERS = (
    (2500, "Champion"),
    (2000, "Expert"),
    (1500, "Advanced"),
    (1000, "Intermediate"),
    (0, "Beginner"),
)

CHALLENGE_LENGTH_DAYS = 30


def badge_for(points: int) -> str:
    for threshold, name in BADGE_TIERS:
        if points >= threshold:
            return name
    return BADGE_TIERS[-1][1]


class PointsLedger(ScopedStore[PointsActivity]):
    domain = "pointsActivities"
    model = PointsActivity


class ChallengeStore(ScopedStore[UserChallenge]):
    domain = "challenges"
    legacy_key = "activeChallenges"
    model = UserChallenge


class PointsStore:
    def __init__(self, context: StoreContext) -> None:
        self.ledger = PointsLedger(context)
        self.challenges = ChallengeStore(context)

    async def open(self) -> "PointsStore":
        await self.ledger.open()
        await self.challenges.open()
        return self

    async def rebind(self) -> None:
        await self.ledger.rebind()
        await self.challenges.rebind()

    async def aclose(self) -> None:
        await self.ledger.aclose()
        await self.challenges.aclose()

    async def __aenter__(self) -> "PointsStore":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---------- points ----------

    def add_points(self, type: str, points: int, description: str = "") -> PointsActivity:
        return self.ledger.add(type=type, points=points, description=description)

    def total_points(self) -> int:
        return int(aggregates.total(self.ledger.records, "points"))

    def badge(self) -> str:
        return badge_for(self.total_points())

    def recent_activities(self, limit: int = 100) -> List[PointsActivity]:
        ordered = sorted(self.ledger.records, key=lambda a: a.timestamp, reverse=True)
        return ordered[: max(limit, 0)]

    def streak(self) -> int:
        return aggregates.streak(self.ledger.records, today=self.ledger.today())

    def update_streak(self) -> Optional[PointsActivity]:
        """Award the daily streak bonus when the last active day was yesterday."""
        activities = self.ledger.records
        if not activities:
            return None
        today = self.ledger.today()
        days = {aggregates.record_day(a) for a in activities}
        if today in days:
            return None
        yesterday = today - timedelta(days=1)
        if yesterday not in days:
            return None
        running = aggregates.streak(activities, today=yesterday)
        return self.add_points(
            "daily_streak",
            POINTS_CONFIG["DAILY_STREAK"],
            f"{running + 1} day streak!",
        )

    def points_from_activities(self, workouts: int, meditations: int, mood_entries: int, meals: int) -> int:
        return (
            workouts * POINTS_CONFIG["WORKOUT_COMPLETED"]
            + meditations * POINTS_CONFIG["MEDITATION_SESSION"]
            + mood_entries * POINTS_CONFIG["MOOD_ENTRY"]
            + meals * POINTS_CONFIG["MEAL_LOGGED"]
            + self.streak() * POINTS_CONFIG["DAILY_STREAK"]
        )

    # ---------- challenges ----------

    def active_challenges(self) -> List[UserChallenge]:
        return [c for c in self.challenges.records if not c.completed]

    def completed_challenges(self) -> List[UserChallenge]:
        return [c for c in self.challenges.records if c.completed]

    def _active(self, challenge_id: int) -> Optional[UserChallenge]:
        return self.challenges.find(lambda c: c.challenge_id == challenge_id and not c.completed)

    def join_challenge(self, challenge: Union[Challenge, Mapping[str, Any]]) -> UserChallenge:
        if not isinstance(challenge, Challenge):
            challenge = Challenge.model_validate(challenge)
        existing = self._active(challenge.id)
        if existing is not None:
            return existing
        joined = self.challenges.add(
            challenge_id=challenge.id,
            start_date=self.challenges.now().isoformat(),
        )
        self.add_points("challenge_joined", POINTS_CONFIG["CHALLENGE_JOINED"], f"Joined {challenge.title}")
        return joined

    def update_challenge_progress(self, challenge_id: int, progress: float) -> Optional[UserChallenge]:
        current = self._active(challenge_id)
        if current is None:
            return None
        return self.challenges.update(
            current.id,
            progress=progress,
            last_activity_date=self.challenges.now().isoformat(),
            days_completed=math.floor(progress / 100 * CHALLENGE_LENGTH_DAYS),
        )

    def complete_challenge(self, challenge_id: int, reward: int = 0) -> Optional[UserChallenge]:
        current = self._active(challenge_id)
        if current is None:
            return None
        done = self.challenges.update(current.id, completed=True, progress=100)
        if reward > 0:
            self.add_points("challenge_completed", reward, f"Completed challenge {challenge_id}")
        return done

    def challenge_by_id(self, challenge_id: int) -> Optional[UserChallenge]:
        return self._active(challenge_id) or self.challenges.find(lambda c: c.challenge_id == challenge_id)
