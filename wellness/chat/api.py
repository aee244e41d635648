# -*- coding: utf-8 -*-
"""Chat — therapy assistant endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import current_user
from .models import TherapyChatRequest, TherapyChatResponse
from .service import call_chat_model

router = APIRouter(prefix="/api/therapy", tags=["Chat"])


@router.post("/chat", response_model=TherapyChatResponse, summary="Reply to a therapy conversation")
def therapy_chat(request: TherapyChatRequest, user: dict = Depends(current_user)):  # noqa: ARG001
    if not request.messages:
        raise HTTPException(status_code=400, detail="messages array required")
    reply, model = call_chat_model([m.model_dump() for m in request.messages])
    return TherapyChatResponse(reply=reply, model=model)
