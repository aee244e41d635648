# -*- coding: utf-8 -*-
"""Records — Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordPayload(BaseModel):
    """Body of ``POST /api/<resource>``; domain fields pass through untouched."""

    model_config = ConfigDict(extra="allow")

    timestamp: Optional[int] = Field(None, ge=0, description="Creation time, ms since epoch")
    date: Optional[str] = Field(None, description="Local calendar day, YYYY-MM-DD")

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            datetime.strptime(value, "%Y-%m-%d")
        return value


class RecordOut(BaseModel):
    id: str
    resource: str
    date: str
    created_at: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class RecordListResponse(BaseModel):
    resource: str
    date: Optional[str] = None
    items: List[RecordOut] = Field(default_factory=list)


class AnalyticsDay(BaseModel):
    date: str
    count: int = 0
    totals: Dict[str, float] = Field(default_factory=dict)


class AnalyticsResponse(BaseModel):
    resource: str
    range: int
    days: List[AnalyticsDay] = Field(default_factory=list)
