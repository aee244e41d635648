# -*- coding: utf-8 -*-
"""Chat — OpenAI-compatible chat-completions client for the therapy assistant."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
from fastapi import HTTPException

from ..config import settings

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a supportive wellness companion. Listen carefully, answer briefly and kindly, "
    "and encourage the user to seek a licensed professional for anything urgent or clinical."
)


def _completions_url(base_url: str) -> str:
    base_url = base_url.rstrip("/")
    if base_url.endswith("/chat/completions"):
        return base_url
    return f"{base_url}/chat/completions"


def _with_system_prompt(messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
    if any(m.get("role") == "system" for m in messages):
        return messages
    return [{"role": "system", "content": DEFAULT_SYSTEM_PROMPT}, *messages]


def extract_reply(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, list):
        return "".join(str(part.get("text") or "") for part in content if isinstance(part, dict))
    return str(content or "")


def call_chat_model(
    messages: List[Dict[str, str]],
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> Tuple[str, str]:
    """Send the conversation upstream; returns ``(reply, model)``."""
    if not settings.llm_api_key:
        raise HTTPException(status_code=503, detail="Chat provider not configured")

    payload = {
        "model": settings.llm_model,
        "messages": _with_system_prompt(messages),
        "temperature": settings.llm_temperature,
        "max_tokens": settings.llm_max_tokens,
    }
    try:
        with httpx.Client(timeout=settings.llm_timeout, transport=transport) as client:
            resp = client.post(
                _completions_url(settings.llm_base_url),
                json=payload,
                headers={"Authorization": f"Bearer {settings.llm_api_key}"},
            )
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPStatusError as exc:
        logger.warning("chat provider returned %s", exc.response.status_code)
        raise HTTPException(status_code=502, detail=f"Chat provider error: {exc.response.status_code}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("chat provider unreachable: %s", exc)
        raise HTTPException(status_code=502, detail=f"Chat provider unreachable: {exc}") from exc

    if not isinstance(data, dict):
        logger.warning("chat provider returned a %s payload", type(data).__name__)
        raise HTTPException(status_code=502, detail="Chat provider returned an unexpected payload")
    return extract_reply(data).strip(), str(data.get("model") or settings.llm_model)
