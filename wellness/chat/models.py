# -*- coding: utf-8 -*-
"""Chat — Pydantic models."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field


ChatRole = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    role: ChatRole
    content: str = Field(..., max_length=8000)


class TherapyChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)


class TherapyChatResponse(BaseModel):
    reply: str
    model: str
