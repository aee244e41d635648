# -*- coding: utf-8 -*-
"""Exception types shared by the client stores."""

from __future__ import annotations

from typing import Any, List, Optional


class WellnessError(Exception):
    """Base class for store-level failures."""


class InvalidRecordError(WellnessError, ValueError):
    """Mutation input failed validation. Raised before any state change."""

    def __init__(self, message: str, errors: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class PersistenceError(WellnessError):
    """A persistence backend could not store a value."""


class StorageQuotaExceeded(PersistenceError):
    pass


class RemoteSyncError(WellnessError):
    """A remote create/delete did not succeed."""
