# -*- coding: utf-8 -*-
"""Records — API endpoints, one router per synced domain."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth.security import current_user
from .models import AnalyticsResponse, RecordListResponse, RecordOut, RecordPayload
from .storage import analytics, create_record, delete_record, list_records

logger = logging.getLogger(__name__)

RESOURCES = ("meals", "workouts", "journal", "meditation", "mood", "posts")


def _check_day_or_400(day: Optional[str]) -> Optional[str]:
    if day is None:
        return None
    try:
        datetime.strptime(day, "%Y-%m-%d")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid date: {day}") from exc
    return day


def build_router(resource: str) -> APIRouter:
    router = APIRouter(prefix=f"/api/{resource}", tags=[resource.capitalize()])

    @router.post("", response_model=RecordOut, status_code=201, summary=f"Create a {resource} record")
    def create(request: RecordPayload, user: dict = Depends(current_user)):
        payload = request.model_dump(exclude_none=True)
        row = create_record(user_id=user["id"], resource=resource, payload=payload)
        logger.info("created %s record %s for user %s", resource, row["id"], user["id"])
        return RecordOut(**row)

    @router.get("", response_model=RecordListResponse, summary=f"List {resource} records")
    def list_(date: Optional[str] = Query(None), user: dict = Depends(current_user)):
        day = _check_day_or_400(date)
        items = list_records(user_id=user["id"], resource=resource, day=day)
        return RecordListResponse(resource=resource, date=day, items=[RecordOut(**r) for r in items])

    @router.get("/analytics", response_model=AnalyticsResponse, summary=f"Daily {resource} analytics")
    def analytics_(range_: int = Query(7, alias="range", ge=1, le=366), user: dict = Depends(current_user)):
        days = analytics(user_id=user["id"], resource=resource, days=range_)
        return AnalyticsResponse(resource=resource, range=range_, days=days)

    @router.delete("/{record_id}", summary=f"Delete a {resource} record")
    def delete(record_id: str, user: dict = Depends(current_user)):
        if not delete_record(user_id=user["id"], resource=resource, record_id=record_id):
            raise HTTPException(status_code=404, detail="Record not found")
        return {"status": "ok", "id": record_id}

    return router


routers: List[APIRouter] = [build_router(r) for r in RESOURCES]
