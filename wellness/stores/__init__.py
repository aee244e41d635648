# -*- coding: utf-8 -*-
"""Client-side scoped derived-state stores (one per wellness domain)."""

from .backends import JsonFileBackend, KeyValueBackend, MemoryBackend
from .community import CommunityStore
from .engine import ScopedStore, StoreContext
from .events import ChangeSignal, EventBus
from .identity import BackendTokenSource, HttpIdentityClient, StaticTokenSource, UserIdentity
from .journal import JournalStore
from .meals import MealPlannerStore, MealStore
from .models import SyncStatus
from .mood import MoodStore
from .points import PointsStore
from .remote import HttpRemoteSync
from .water import WaterStore
from .wellbeing import MeditationStore, TherapyStore
from .workouts import WorkoutStore

__all__ = [
    "BackendTokenSource",
    "ChangeSignal",
    "CommunityStore",
    "EventBus",
    "HttpIdentityClient",
    "HttpRemoteSync",
    "JournalStore",
    "JsonFileBackend",
    "KeyValueBackend",
    "MealPlannerStore",
    "MealStore",
    "MeditationStore",
    "MemoryBackend",
    "MoodStore",
    "PointsStore",
    "ScopedStore",
    "StaticTokenSource",
    "StoreContext",
    "SyncStatus",
    "TherapyStore",
    "UserIdentity",
    "WaterStore",
    "WorkoutStore",
]
