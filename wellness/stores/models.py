# -*- coding: utf-8 -*-
"""Client stores — Pydantic record models.

Records serialize with camelCase aliases so the persisted JSON stays readable by
(and migratable from) the legacy browser client, which wrote the same shapes.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class SyncStatus(str, Enum):
    unsynced = "unsynced"
    pending = "pending"
    synced = "synced"
    failed = "failed"


def parse_instant(value: str) -> datetime:
    """ISO date or datetime (``Z`` suffix allowed) as a naive local datetime."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def coerce_day(value: str) -> Optional[str]:
    """Normalize the day formats the browser client wrote (ISO, ``M/D/YYYY``) to ``YYYY-MM-DD``."""
    try:
        return datetime.strptime(value, "%m/%d/%Y").date().isoformat()
    except ValueError:
        pass
    try:
        return parse_instant(value).date().isoformat()
    except ValueError:
        return None


def _epoch_ms(value: str) -> Optional[int]:
    try:
        return int(parse_instant(value).timestamp() * 1000)
    except ValueError:
        return None


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., min_length=1)
    timestamp: int = Field(..., ge=0, description="Epoch milliseconds")
    date: Optional[str] = Field(None, description="YYYY-MM-DD")
    remote_id: Optional[str] = None
    sync_status: SyncStatus = SyncStatus.unsynced

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_shape(cls, data: Any) -> Any:
        # Browser-era records: locale or ISO dates, ISO-string timestamps, or none at all.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if isinstance(data.get("id"), (int, float)) and not isinstance(data.get("id"), bool):
            data["id"] = str(data["id"])
        day = data.get("date")
        if isinstance(day, str) and day:
            try:
                datetime.strptime(day, "%Y-%m-%d")
            except ValueError:
                data["date"] = coerce_day(day) or day

        stamp = data.get("timestamp")
        if isinstance(stamp, str) and not stamp.strip().isdigit():
            converted = _epoch_ms(stamp)
            if converted is not None:
                data["timestamp"] = converted
        elif stamp is None:
            for name in ("date", "startDate", "start_date"):
                anchor = data.get(name)
                converted = _epoch_ms(anchor) if isinstance(anchor, str) else None
                if converted is not None:
                    data["timestamp"] = converted
                    break
        return data

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError as exc:
            raise ValueError(f"date must be YYYY-MM-DD, got {value!r}") from exc
        return value


MealType = Literal["breakfast", "lunch", "dinner", "snacks"]


class LoggedMeal(Record):
    name: str = Field(..., min_length=1)
    calories: float = Field(0.0, ge=0)
    protein: float = Field(0.0, ge=0)
    carbs: float = Field(0.0, ge=0)
    fat: float = Field(0.0, ge=0)
    meal_type: MealType = "snacks"


class PlannedMeal(LoggedMeal):
    date: str = Field(..., description="YYYY-MM-DD")
    recipe_url: Optional[str] = None
    image: Optional[str] = None
    prep_time: Optional[int] = Field(None, ge=0)


class MoodEntry(Record):
    mood: int = Field(..., ge=1, le=10)
    stress_level: int = Field(..., ge=1, le=10)
    energy_level: int = Field(..., ge=1, le=10)
    weather: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)


class WaterEntry(Record):
    glasses: int = Field(0, ge=0)


class ScheduledWorkout(Record):
    date: str = Field(..., description="YYYY-MM-DD")
    workout_id: int
    time: str = ""
    completed: bool = False
    calories_burned: Optional[float] = Field(None, ge=0)
    actual_duration: Optional[float] = Field(None, ge=0, description="Minutes")


class JournalEntry(Record):
    content: str = Field(..., min_length=1)
    prompt: Optional[str] = None


class MeditationSession(Record):
    session_id: Optional[int] = None
    title: Optional[str] = None
    duration: float = Field(0.0, ge=0, description="Minutes")
    completed: bool = True


class TherapySession(Record):
    date: str = Field(..., description="YYYY-MM-DD")
    time: str = ""
    therapist: Optional[str] = None
    type: str = Field(..., min_length=1)
    notes: Optional[str] = None
    completed: bool = False


class CommunityPost(Record):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    avatar: str = ""
    category: str = "general"
    content: str = ""
    replies: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)
    is_expert: bool = False
    liked_by_user: bool = False


class CommunityComment(Record):
    post_id: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    avatar: str = ""
    content: str = Field(..., min_length=1)
    likes: int = Field(0, ge=0)


class PointsActivity(Record):
    type: str = Field(..., min_length=1)
    points: int
    description: str = ""


class UserChallenge(Record):
    challenge_id: int
    start_date: str
    progress: float = Field(0.0, ge=0, le=100)
    completed: bool = False
    days_completed: int = Field(0, ge=0)
    last_activity_date: Optional[str] = None


class LeaderboardUser(Record):
    rank: int = Field(0, ge=0)
    name: str = Field(..., min_length=1)
    points: int = 0
    badge: str = "Beginner"
    streak: int = Field(0, ge=0)
    avatar: Optional[str] = None


# ---- Inputs / derived views (not persisted) ----


class Challenge(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    description: str = ""
    reward: int = Field(0, ge=0)
    target_days: Optional[int] = Field(None, ge=1)


class MacroTotals(BaseModel):
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class WorkoutProgress(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    day: str = Field(..., description="Weekday label, e.g. 'Mon'")
    workouts: int = 0
    duration: float = 0.0
    calories: float = 0.0


class WorkoutStats(BaseModel):
    total_workouts: int = 0
    total_duration: float = 0.0
    total_calories: float = 0.0


class MoodTrend(BaseModel):
    date: str
    day: str
    mood: float = 0.0
    stress: float = 0.0
    energy: float = 0.0


class MeditationStats(BaseModel):
    days_streak: int = 0
    total_time: float = 0.0
    sessions: int = 0
    avg_session: str = "0.00"


class DailyCalories(BaseModel):
    date: str
    day: str
    calories: float = 0.0
    meals: int = 0
